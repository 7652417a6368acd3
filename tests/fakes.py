"""In-memory stores and fake external clients for tests."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, Sequence, Set, Tuple
from uuid import UUID, uuid4

from clients.dispatch_client import DeliveryAvailability, DispatchConfirmation, DispatchRequest
from domain.customer import Customer, CustomerDetails
from domain.errors import DispatchUnavailableError, DuplicateEmailError, InventoryError, PersistenceError
from domain.order import DeliveryMethod, LineItem, Order, OrderItem, OrderStatus
from domain.product import AvailabilityType, ProductInfo
from domain.time import utc_now


class InMemoryCustomerStore:
    """CustomerStore with the unique email constraint."""

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self.clock = clock or utc_now
        self.by_id: Dict[UUID, Customer] = {}
        self.fail = False
        # Runs just before an insert; lets tests simulate a concurrent insert.
        self.before_create: Optional[Callable[[CustomerDetails], None]] = None

    def _check(self) -> None:
        if self.fail:
            raise PersistenceError("customer store unavailable")

    def get_by_email(self, email: str) -> Optional[Customer]:
        self._check()
        return next((c for c in self.by_id.values() if c.email == email), None)

    def get_by_id(self, customer_id: UUID) -> Optional[Customer]:
        self._check()
        return self.by_id.get(customer_id)

    def create(self, details: CustomerDetails) -> Customer:
        self._check()
        if self.before_create is not None:
            hook, self.before_create = self.before_create, None
            hook(details)
        if any(c.email == details.email for c in self.by_id.values()):
            raise DuplicateEmailError(details.email)
        customer = Customer(
            customer_id=uuid4(),
            name=details.name,
            email=details.email,
            address=details.address,
            phone=details.phone,
            document_number=details.document_number,
            created_at=self.clock(),
        )
        self.by_id[customer.customer_id] = customer
        return customer

    def update(self, customer_id: UUID, details: CustomerDetails) -> Optional[Customer]:
        self._check()
        current = self.by_id.get(customer_id)
        if current is None:
            return None
        if any(c.email == details.email and c.customer_id != customer_id for c in self.by_id.values()):
            raise DuplicateEmailError(details.email)
        updated = replace(
            current,
            name=details.name,
            email=details.email,
            address=details.address,
            phone=details.phone,
            document_number=details.document_number,
        )
        self.by_id[customer_id] = updated
        return updated

    def list_customers(self) -> List[Customer]:
        self._check()
        return list(reversed(list(self.by_id.values())))


class InMemoryOrderStore:
    """OrderStore holding orders and items; deleting an order drops its items."""

    def __init__(self, customers: InMemoryCustomerStore, clock: Callable[[], datetime]):
        self.customers = customers
        self.clock = clock
        self.orders: Dict[UUID, Order] = {}
        self.fail_create = False
        self.fail_set_dispatch = False

    def _with_customer(self, order: Order) -> Order:
        customer = self.customers.by_id.get(order.customer_id)
        return order.with_customer(customer) if customer else order

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
        if self.fail_create:
            raise PersistenceError("order store unavailable")
        order_id = uuid4()
        order = Order(
            order_id=order_id,
            customer_id=customer_id,
            items=tuple(
                OrderItem(
                    item_id=uuid4(),
                    order_id=order_id,
                    product_id=item.product_id,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                )
                for item in items
            ),
            total=total,
            delivery_method=delivery_method,
            status=status,
            created_at=self.clock(),
            expires_at=expires_at,
            delivery_date=delivery_date,
        )
        self.orders[order_id] = order
        return self._with_customer(order)

    def add(self, order: Order) -> Order:
        self.orders[order.order_id] = order
        return order

    def get_order(self, order_id: UUID) -> Optional[Order]:
        order = self.orders.get(order_id)
        return self._with_customer(order) if order else None

    def list_orders(self) -> List[Order]:
        return [self._with_customer(o) for o in reversed(list(self.orders.values()))]

    def set_dispatch_id(self, order_id: UUID, dispatch_id: str) -> None:
        if self.fail_set_dispatch:
            raise PersistenceError("order store unavailable")
        self.orders[order_id] = self.orders[order_id].with_dispatch_id(dispatch_id)

    def mark_completed(self, order_id: UUID) -> Optional[Order]:
        order = self.orders.get(order_id)
        if order is None or not order.is_pending:
            return None
        self.orders[order_id] = order.completed()
        return self.get_order(order_id)

    def delete_expired_pending(self, now: datetime) -> List[UUID]:
        expired = [
            o.order_id for o in self.orders.values()
            if o.status is OrderStatus.PENDING and o.expires_at is not None and o.expires_at <= now
        ]
        for order_id in expired:
            del self.orders[order_id]
        return expired

    @property
    def item_count(self) -> int:
        return sum(len(o.items) for o in self.orders.values())


class FakeInventory:
    """
    Inventory client double.

    products maps catalog ids to ProductInfo; unknown ids are STOCK. Every
    stock operation is recorded in `calls` as (operation, key, quantity[, channel]).
    """

    def __init__(self, products: Optional[Dict[str, ProductInfo]] = None):
        self.products: Dict[str, ProductInfo] = dict(products or {})
        self.failing_products: Set[str] = set()
        self.failing_operations: Set[str] = set()
        self.lookups: List[str] = []
        self.calls: List[Tuple[Any, ...]] = []
        self.catalog: List[Dict[str, Any]] = []
        self.searches: List[Optional[str]] = []

    def add_product(self, product_id: str, kind: AvailabilityType, estimated_days: Optional[int] = None) -> None:
        self.products[product_id] = ProductInfo(
            product_id=product_id,
            availability_type=kind,
            estimated_days=estimated_days,
            raw={"id": product_id, "availabilityType": kind.value, "estimatedDays": estimated_days},
        )

    def get_product(self, product_id: str) -> ProductInfo:
        self.lookups.append(product_id)
        if product_id in self.failing_products:
            raise InventoryError(f"lookup failed for {product_id}", operation="get_product")
        return self.products.get(
            product_id, ProductInfo(product_id=product_id, availability_type=AvailabilityType.STOCK)
        )

    def _record(self, operation: str, *args: Any) -> None:
        self.calls.append((operation, *args))
        if operation in self.failing_operations:
            raise InventoryError(f"{operation} failed", operation=operation)

    def reserve(self, inventory_key: str, quantity: int) -> None:
        self._record("reserve", inventory_key, quantity)

    def mark_for_dispatch(self, inventory_key: str, quantity: int) -> None:
        self._record("mark_for_dispatch", inventory_key, quantity)

    def withdraw_stock(self, inventory_key: str, quantity: int, channel: str = "tienda") -> None:
        self._record("withdraw_stock", inventory_key, quantity, channel)

    def list_products(self) -> Dict[str, Any]:
        self.searches.append(None)
        return {"data": list(self.catalog), "total": len(self.catalog)}

    def search_products(self, query: str) -> Dict[str, Any]:
        self.searches.append(query)
        matches = [p for p in self.catalog if query.lower() in str(p.get("name", "")).lower()]
        return {"data": matches, "total": len(matches)}


class FakeDispatch:
    def __init__(self, dispatch_id: str = "4711"):
        self.dispatch_id = dispatch_id
        self.fail = False
        self.requests: List[DispatchRequest] = []
        self.availability: Optional[DeliveryAvailability] = None

    def create_dispatch(self, request: DispatchRequest) -> DispatchConfirmation:
        self.requests.append(request)
        if self.fail:
            raise DispatchUnavailableError(
                "Dispatch service unavailable", operation="create_dispatch"
            )
        return DispatchConfirmation(
            dispatch_id=self.dispatch_id,
            status="pendiente",
            estimated_delivery_date=request.delivery_date,
        )

    def check_availability(self, address: str) -> DeliveryAvailability:
        if self.fail or self.availability is None:
            raise DispatchUnavailableError("Dispatch service unavailable", operation="check_availability")
        return self.availability
