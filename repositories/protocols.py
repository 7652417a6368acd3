"""Storage interfaces consumed by the sale services.

The Supabase repositories implement these; tests substitute in-memory stores.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Protocol, Sequence
from uuid import UUID

from domain.customer import Customer, CustomerDetails
from domain.order import DeliveryMethod, LineItem, Order, OrderStatus


class CustomerStore(Protocol):

    def get_by_email(self, email: str) -> Optional[Customer]:
        """Exact-match lookup on the unique email key."""
        ...

    def get_by_id(self, customer_id: UUID) -> Optional[Customer]:
        ...

    def create(self, details: CustomerDetails) -> Customer:
        """Insert a customer.

        Raises:
            DuplicateEmailError: the email is already on file.
            PersistenceError: any other storage failure.
        """
        ...

    def update(self, customer_id: UUID, details: CustomerDetails) -> Optional[Customer]:
        ...

    def list_customers(self) -> List[Customer]:
        ...


class OrderStore(Protocol):

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
        """Insert an order and its items as one atomic unit."""
        ...

    def get_order(self, order_id: UUID) -> Optional[Order]:
        ...

    def list_orders(self) -> List[Order]:
        """All orders, newest first, with items and customer."""
        ...

    def set_dispatch_id(self, order_id: UUID, dispatch_id: str) -> None:
        ...

    def mark_completed(self, order_id: UUID) -> Optional[Order]:
        """PENDING -> COMPLETED with expires_at cleared; None if no pending row matched."""
        ...

    def delete_expired_pending(self, now: datetime) -> List[UUID]:
        """Delete PENDING orders with expires_at <= now (items cascade); return their ids."""
        ...
