"""
Domain: Orders ("sales") and their line items.

Contract rules implemented here:
- An order always has exactly one customer and at least one line item.
- total == sum(quantity * unit_price) over the items, fixed at creation time.
- expires_at is set iff status == PENDING.
- Line items are immutable once created; only the status transition and the
  dispatch identifier change afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Iterable, Optional, Tuple
from uuid import UUID

from .customer import Customer
from .time import require_utc_timestamp


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"


class DeliveryMethod(str, Enum):
    PICKUP = "PICKUP"
    DISPATCH = "DISPATCH"


@dataclass(frozen=True, slots=True)
class LineItem:
    """A requested line: catalog product, quantity and the captured unit price."""

    product_id: str
    quantity: int
    unit_price: Decimal

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity


def compute_total(items: Iterable[LineItem]) -> Decimal:
    """Order total: sum of quantity x unit price."""
    return sum((item.subtotal for item in items), Decimal("0"))


@dataclass(frozen=True, slots=True)
class OrderItem:
    """Persisted line item, owned by exactly one order."""

    item_id: UUID
    order_id: UUID
    product_id: str
    quantity: int
    unit_price: Decimal

    def __post_init__(self) -> None:
        if self.quantity < 1:
            raise ValueError("quantity must be at least 1")
        if self.unit_price < 0:
            raise ValueError("unit_price must be non-negative")


@dataclass(frozen=True, slots=True)
class Order:
    """
    Immutable snapshot of a persisted order.

    Transitions return new instances (see `completed` and `with_dispatch_id`);
    the repository persists them.
    """

    order_id: UUID
    customer_id: UUID
    items: Tuple[OrderItem, ...]
    total: Decimal
    delivery_method: DeliveryMethod
    status: OrderStatus
    created_at: datetime
    expires_at: Optional[datetime] = None
    delivery_date: Optional[datetime] = None
    dispatch_id: Optional[str] = None
    customer: Optional[Customer] = None

    def __post_init__(self) -> None:
        require_utc_timestamp("created_at", self.created_at)
        if self.expires_at is not None:
            require_utc_timestamp("expires_at", self.expires_at)
        if self.delivery_date is not None:
            require_utc_timestamp("delivery_date", self.delivery_date)

        if not self.items:
            raise ValueError("an order must have at least one item")
        if (self.status is OrderStatus.PENDING) != (self.expires_at is not None):
            raise ValueError("expires_at must be set iff status is PENDING")

    @property
    def is_pending(self) -> bool:
        return self.status is OrderStatus.PENDING

    def is_expired(self, now: datetime) -> bool:
        """A pending order expires once now is past expires_at."""
        return self.expires_at is not None and now > self.expires_at

    def completed(self) -> "Order":
        """Return a COMPLETED copy with the expiration window cleared."""
        if not self.is_pending:
            raise ValueError(f"order {self.order_id} is not pending")
        return replace(self, status=OrderStatus.COMPLETED, expires_at=None)

    def with_dispatch_id(self, dispatch_id: str) -> "Order":
        return replace(self, dispatch_id=dispatch_id)

    def with_customer(self, customer: Customer) -> "Order":
        return replace(self, customer=customer)
