"""
Order repository (persistence).

Persistence operations for orders and their line items. It does not enforce
business rules (expiration, allowed transitions); it only inserts, fetches,
updates and deletes rows.

Order creation goes through the `create_order_atomic()` PostgreSQL function so
the order row and all of its item rows are written in one transaction.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, List, Mapping, Optional, Sequence
from uuid import UUID

from postgrest.exceptions import APIError
from supabase import Client  # type: ignore[import-not-found]

from domain.errors import PersistenceError
from domain.order import DeliveryMethod, LineItem, Order, OrderItem, OrderStatus
from domain.time import parse_utc_datetime, to_iso_utc, utc_now
from repositories.customer_repository import _row_to_customer

logger = logging.getLogger(__name__)

_ORDERS_TABLE: str = "orders"

# Embed line items and the owning customer in every order read.
_ORDER_SELECT: str = "*, order_items(*), customers(*)"


@dataclass(frozen=True, slots=True)
class AtomicOrderResult:
    """Result from the create_order_atomic PostgreSQL function."""
    success: bool
    payload: Optional[Mapping[str, Any]]
    error_code: Optional[str]
    error_message: Optional[str]


def _optional_datetime(value: Any) -> Optional[datetime]:
    return parse_utc_datetime(value) if value else None


def _row_to_item(row: Mapping[str, Any]) -> OrderItem:
    return OrderItem(
        item_id=UUID(str(row["item_id"])),
        order_id=UUID(str(row["order_id"])),
        product_id=str(row["product_id"]),
        quantity=int(row["quantity"]),
        unit_price=Decimal(str(row["unit_price"])),
    )


def _row_to_order(row: Mapping[str, Any]) -> Order:
    """Convert a Supabase order row (with embedded items/customer) into an Order."""

    items = sorted(row.get("order_items") or [], key=lambda r: int(r.get("position", 0)))
    customer_row = row.get("customers")

    return Order(
        order_id=UUID(str(row["order_id"])),
        customer_id=UUID(str(row["customer_id"])),
        items=tuple(_row_to_item(item) for item in items),
        total=Decimal(str(row["total"])),
        delivery_method=DeliveryMethod(str(row["delivery_method"])),
        status=OrderStatus(str(row["status"])),
        created_at=parse_utc_datetime(row["created_at_utc"]),
        expires_at=_optional_datetime(row.get("expires_at_utc")),
        delivery_date=_optional_datetime(row.get("delivery_date_utc")),
        dispatch_id=row.get("dispatch_id"),
        customer=_row_to_customer(customer_row) if customer_row else None,
    )


class OrderRepository:
    """Supabase-backed OrderStore."""

    def __init__(self, client: Client):
        self.client = client

    def _rows(self, query: Any, action: str) -> List[Mapping[str, Any]]:
        try:
            response = query.execute()
        except APIError as exc:
            raise PersistenceError(f"Failed to {action}: {exc.message}") from exc
        except Exception as exc:
            raise PersistenceError(f"Failed to {action}: {exc}") from exc

        error = getattr(response, "error", None)
        if error:
            raise PersistenceError(f"Failed to {action}: {error}")
        return getattr(response, "data", None) or []

    def _execute_atomic_create(self, params: Mapping[str, Any]) -> AtomicOrderResult:
        """
        Call create_order_atomic(), which inserts the order and every item in
        a single transaction and returns {"success": true, "order_id": ...,
        "created_at_utc": ..., "item_ids": [...]}.
        """

        try:
            response = self.client.rpc("create_order_atomic", dict(params)).execute()
        except APIError as e:
            # supabase-py raises APIError for some JSON-returning functions even
            # when the function succeeded; the body tells the two apart.
            try:
                error_data = e.json() if callable(getattr(e, "json", None)) else {}
            except ValueError:
                error_data = {}
            if isinstance(error_data, Mapping) and error_data.get("success") is True:
                return AtomicOrderResult(True, error_data, None, None)
            return AtomicOrderResult(
                success=False,
                payload=None,
                error_code=getattr(e, "code", None) or "API_ERROR",
                error_message=getattr(e, "message", None) or str(e),
            )
        except Exception as e:
            return AtomicOrderResult(False, None, "EXCEPTION", str(e))

        error = getattr(response, "error", None)
        if error:
            return AtomicOrderResult(False, None, "RPC_ERROR", str(error))

        result = response.data or {}
        if result.get("success"):
            return AtomicOrderResult(True, result, None, None)
        return AtomicOrderResult(False, None, result.get("error"), result.get("message"))

    def create_order(
        self,
        *,
        customer_id: UUID,
        items: Sequence[LineItem],
        total: Decimal,
        delivery_method: DeliveryMethod,
        status: OrderStatus,
        expires_at: Optional[datetime],
        delivery_date: Optional[datetime],
    ) -> Order:
        """
        Persist an order with its items atomically and return it re-read.

        If the re-read fails after the commit, the order is rebuilt from the
        ids and timestamp the function returned instead of failing the sale.

        Raises:
            PersistenceError: the transaction failed; nothing was written.
        """

        params = {
            "p_customer_id": str(customer_id),
            "p_total": str(total),
            "p_delivery_method": delivery_method.value,
            "p_status": status.value,
            "p_expires_at": to_iso_utc(expires_at, name="expires_at") if expires_at else None,
            "p_delivery_date": to_iso_utc(delivery_date, name="delivery_date") if delivery_date else None,
            "p_items": [
                {
                    "position": position,
                    "product_id": item.product_id,
                    "quantity": item.quantity,
                    "unit_price": str(item.unit_price),
                }
                for position, item in enumerate(items)
            ],
        }

        result = self._execute_atomic_create(params)
        if not result.success or not result.payload:
            raise PersistenceError(
                f"Failed to create order: {result.error_code}: {result.error_message}"
            )

        order_id = UUID(str(result.payload["order_id"]))
        try:
            order = self.get_order(order_id)
        except PersistenceError as e:
            logger.warning("Order %s committed but re-read failed: %s", order_id, e)
            order = None
        if order is not None:
            return order

        # The transaction committed; answer from what the function returned.
        item_ids = result.payload.get("item_ids") or []
        if len(item_ids) != len(items):
            raise PersistenceError(f"Order {order_id} was created but could not be read back")
        return Order(
            order_id=order_id,
            customer_id=customer_id,
            items=tuple(
                OrderItem(
                    item_id=UUID(str(item_id)),
                    order_id=order_id,
                    product_id=item.product_id,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                )
                for item_id, item in zip(item_ids, items)
            ),
            total=total,
            delivery_method=delivery_method,
            status=status,
            created_at=_optional_datetime(result.payload.get("created_at_utc")) or utc_now(),
            expires_at=expires_at,
            delivery_date=delivery_date,
        )

    def get_order(self, order_id: UUID) -> Optional[Order]:
        rows = self._rows(
            self.client.table(_ORDERS_TABLE).select(_ORDER_SELECT).eq("order_id", str(order_id)).limit(1),
            "get order",
        )
        return _row_to_order(rows[0]) if rows else None

    def list_orders(self) -> List[Order]:
        rows = self._rows(
            self.client.table(_ORDERS_TABLE).select(_ORDER_SELECT).order("created_at_utc", desc=True),
            "list orders",
        )
        return [_row_to_order(row) for row in rows]

    def set_dispatch_id(self, order_id: UUID, dispatch_id: str) -> None:
        self._rows(
            self.client.table(_ORDERS_TABLE).update({"dispatch_id": dispatch_id}).eq("order_id", str(order_id)),
            "attach dispatch id",
        )

    def mark_completed(self, order_id: UUID) -> Optional[Order]:
        """
        Transition a PENDING order to COMPLETED and clear its expiration.

        The status filter makes the update conditional: a row that is no
        longer PENDING is left untouched and None is returned.
        """

        rows = self._rows(
            self.client.table(_ORDERS_TABLE)
            .update({"status": OrderStatus.COMPLETED.value, "expires_at_utc": None})
            .eq("order_id", str(order_id))
            .eq("status", OrderStatus.PENDING.value),
            "complete order",
        )
        if not rows:
            return None
        return self.get_order(order_id)

    def delete_expired_pending(self, now: datetime) -> List[UUID]:
        """Delete expired PENDING orders; order_items rows cascade."""

        rows = self._rows(
            self.client.table(_ORDERS_TABLE)
            .delete()
            .eq("status", OrderStatus.PENDING.value)
            .lte("expires_at_utc", to_iso_utc(now, name="now")),
            "delete expired orders",
        )
        return [UUID(str(row["order_id"])) for row in rows]


__all__ = ["OrderRepository", "AtomicOrderResult"]
