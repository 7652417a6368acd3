"""
Delivery estimate for an address.

Backed by the dispatch service's zone check. When that service cannot be
reached the estimate falls back to a fixed 3-day delivery instead of failing
the request; the fallback never influences real dispatch creation.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Protocol

from clients.dispatch_client import DeliveryAvailability
from domain.errors import DispatchUnavailableError

logger = logging.getLogger(__name__)

FALLBACK_DELIVERY_DAYS = 3


class AvailabilityChecker(Protocol):
    def check_availability(self, address: str) -> DeliveryAvailability: ...


def check_delivery(dispatch: AvailabilityChecker, address: str, *, now: datetime) -> DeliveryAvailability:
    try:
        return dispatch.check_availability(address)
    except DispatchUnavailableError as exc:
        logger.warning(
            "Delivery check failed; using %d-day fallback: %s",
            FALLBACK_DELIVERY_DAYS,
            exc,
            extra={"operation": "check_availability"},
        )
        return DeliveryAvailability(
            available=True,
            estimated_delivery_date=now + timedelta(days=FALLBACK_DELIVERY_DAYS),
            delivery_days=FALLBACK_DELIVERY_DAYS,
        )


__all__ = ["FALLBACK_DELIVERY_DAYS", "check_delivery"]
