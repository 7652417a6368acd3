"""
Dispatch (home delivery) service client.

The dispatch service only supports two operations: checking whether an address
is deliverable and creating a dispatch order. There is no endpoint to query a
dispatch after creation, so this client offers none.

Wire adaptation lives in `to_dispatch_payload` / `from_dispatch_response` so
the orchestration code never sees the service's field names.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional, Tuple
from uuid import UUID

import requests

from clients.http_client import HttpClient
from domain.errors import DispatchUnavailableError
from domain.time import parse_utc_datetime

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DispatchLine:
    product_id: str
    quantity: int
    description: Optional[str] = None


@dataclass(frozen=True, slots=True)
class DispatchRequest:
    """Internal shape of a dispatch creation request."""
    order_id: UUID
    customer_name: str
    customer_address: str
    customer_email: str
    delivery_date: datetime
    items: Tuple[DispatchLine, ...]
    customer_phone: Optional[str] = None


@dataclass(frozen=True, slots=True)
class DispatchConfirmation:
    dispatch_id: str
    status: str
    estimated_delivery_date: datetime


@dataclass(frozen=True, slots=True)
class DeliveryAvailability:
    available: bool
    estimated_delivery_date: datetime
    delivery_days: int
    zone: Optional[str] = None
    cost: Optional[Decimal] = None


def to_dispatch_payload(request: DispatchRequest) -> Dict[str, Any]:
    """Map a DispatchRequest to the dispatch service's exact payload shape."""

    return {
        "id_venta": str(request.order_id),
        "cliente_nombre": request.customer_name,
        "cliente_telefono": request.customer_phone or request.customer_email,
        "direccion_entrega": request.customer_address,
        "productos": [
            {
                "id_producto": line.product_id,
                "nombre": line.description or line.product_id,
                "cantidad": line.quantity,
            }
            for line in request.items
        ],
        "fecha_estimada_envio": request.delivery_date.date().isoformat(),
        "estado": "pendiente",
    }


def from_dispatch_response(request: DispatchRequest, payload: Mapping[str, Any]) -> DispatchConfirmation:
    """
    Read the dispatch service's response.

    The service's `orden_id` is the dispatch identifier; it does not echo a
    delivery date, so the requested one is carried through.
    """

    orden_id = payload.get("orden_id")
    if orden_id is None or orden_id == "":
        raise DispatchUnavailableError(
            "create_dispatch: response has no orden_id",
            operation="create_dispatch",
        )
    return DispatchConfirmation(
        dispatch_id=str(orden_id),
        status=str(payload.get("estado", "")),
        estimated_delivery_date=request.delivery_date,
    )


def availability_from_payload(payload: Mapping[str, Any]) -> DeliveryAvailability:
    cost = payload.get("cost")
    return DeliveryAvailability(
        available=bool(payload.get("available", False)),
        estimated_delivery_date=parse_utc_datetime(payload["estimatedDeliveryDate"]),
        delivery_days=int(payload.get("deliveryDays", 0)),
        zone=payload.get("zone"),
        cost=Decimal(str(cost)) if cost is not None else None,
    )


class DispatchClient:
    """Client for the dispatch service REST API."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 5.0,
        session: Optional[requests.Session] = None,
    ):
        self.http = HttpClient(
            base_url, timeout=timeout, error_cls=DispatchUnavailableError, session=session
        )

    def check_availability(self, address: str) -> DeliveryAvailability:
        """
        Check whether an address can receive home delivery.

        Raises:
            DispatchUnavailableError: the service is unreachable or answered badly.
        """
        payload = self.http.post(
            "/api/dispatch/check-availability",
            {"address": address},
            operation="check_availability",
        )
        try:
            return availability_from_payload(payload)
        except (KeyError, TypeError, ValueError) as exc:
            raise DispatchUnavailableError(
                f"check_availability: malformed response: {exc}",
                operation="check_availability",
            ) from exc

    def create_dispatch(self, request: DispatchRequest) -> DispatchConfirmation:
        """
        Create a dispatch order.

        Raises:
            DispatchUnavailableError: the dispatch could not be created. No
                dispatch id is ever fabricated on failure.
        """
        payload = self.http.post("/api/ordenes", to_dispatch_payload(request), operation="create_dispatch")
        if not isinstance(payload, Mapping):
            raise DispatchUnavailableError(
                "create_dispatch: unexpected response payload",
                operation="create_dispatch",
            )
        return from_dispatch_response(request, payload)

    def close(self) -> None:
        self.http.close()


__all__ = [
    "DispatchLine",
    "DispatchRequest",
    "DispatchConfirmation",
    "DeliveryAvailability",
    "DispatchClient",
    "to_dispatch_payload",
    "from_dispatch_response",
]
