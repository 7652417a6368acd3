"""
Sale lifecycle: completing pending sales and reaping expired ones.

Allowed transition: PENDING -> COMPLETED, only while the reservation window
is open. Completion is a status-only change; it does not run the inventory or
dispatch side effects a sale created as COMPLETED would have triggered.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List
from uuid import UUID

from domain.errors import NotFoundError, SaleExpiredError, SaleNotPendingError
from domain.order import Order
from repositories.protocols import OrderStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CleanupResult:
    deleted_count: int
    deleted_ids: List[UUID]


def complete_sale(orders: OrderStore, order_id: UUID, *, now: datetime) -> Order:
    """
    Transition a PENDING sale to COMPLETED and clear its expiration.

    Raises:
        NotFoundError: no such order.
        SaleNotPendingError: the order is not PENDING.
        SaleExpiredError: now is past the order's expires_at.
    """

    order = orders.get_order(order_id)
    if order is None:
        raise NotFoundError("Sale", order_id)

    if not order.is_pending:
        raise SaleNotPendingError(order_id, order.status.value)

    if order.is_expired(now):
        raise SaleExpiredError(order_id)

    updated = orders.mark_completed(order_id)
    if updated is None:
        # Completed or reaped between the read and the conditional update.
        current = orders.get_order(order_id)
        if current is None:
            raise NotFoundError("Sale", order_id)
        raise SaleNotPendingError(order_id, current.status.value)

    logger.info("Completed sale %s", order_id, extra={"order_id": str(order_id)})
    return updated


def cleanup_expired_sales(orders: OrderStore, *, now: datetime) -> CleanupResult:
    """
    Delete every PENDING order whose expires_at <= now, items included.

    Idempotent: a second sweep with no new expirations deletes nothing.
    """

    deleted = orders.delete_expired_pending(now)
    logger.info("Cleaned up %d expired sales", len(deleted))
    return CleanupResult(deleted_count=len(deleted), deleted_ids=list(deleted))


__all__ = ["CleanupResult", "complete_sale", "cleanup_expired_sales"]
