"""
Sale service: end-to-end sale creation.

Process:
1. Validate the request (terminal on failure, before any side effect)
2. Compute fulfillment timing from the items' availability types
3. Resolve (find-or-create) the customer by email
4. Compute the total
5. Compute the reservation window for PENDING sales
6. Persist the order and its items atomically (commit point)
7. Run post-commit side effects against inventory and dispatch
8. Return the persisted order with fulfillment metadata

Steps 3 and 6 are fatal on storage failure. Everything in step 7 is
best-effort: each external call has its own failure boundary, failures are
logged with the order id, product and operation for manual reconciliation,
and the order is never rolled back.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple

from clients.dispatch_client import DispatchConfirmation, DispatchLine, DispatchRequest
from clients.inventory_client import IN_STORE_CHANNEL
from domain.customer import Customer, CustomerDetails
from domain.errors import DependencyError, FieldError, PersistenceError, ValidationError
from domain.order import DeliveryMethod, LineItem, Order, OrderStatus, compute_total
from domain.product import AvailabilityType, ProductInfo, to_inventory_key
from domain.time import utc_now
from repositories.protocols import CustomerStore, OrderStore
from services.customer_service import customer_field_errors, resolve_customer
from services.fulfillment_service import (
    DISPATCH_BUFFER_DAYS,
    FulfillmentPlan,
    calculate_fulfillment,
    lookup_availability,
)

logger = logging.getLogger(__name__)

PENDING_EXPIRATION_MINUTES = 15
# Money columns are numeric(14, 2).
PRICE_DECIMAL_PLACES = 2


class InventoryGateway(Protocol):
    def get_product(self, product_id: str) -> ProductInfo: ...
    def reserve(self, inventory_key: str, quantity: int) -> None: ...
    def mark_for_dispatch(self, inventory_key: str, quantity: int) -> None: ...
    def withdraw_stock(self, inventory_key: str, quantity: int, channel: str = ...) -> None: ...


class DispatchGateway(Protocol):
    def create_dispatch(self, request: DispatchRequest) -> DispatchConfirmation: ...


@dataclass(frozen=True, slots=True)
class SaleRequest:
    """
    Request to create a sale.

    delivery_date is an optional hint (e.g. from a prior delivery check); it
    is overridden when manufacturing lead time applies.
    """
    customer: CustomerDetails
    items: Tuple[LineItem, ...]
    delivery_method: DeliveryMethod
    status: OrderStatus = OrderStatus.COMPLETED
    delivery_date: Optional[datetime] = None


@dataclass(frozen=True, slots=True)
class SaleResult:
    """Created order plus the fulfillment plan computed for it."""
    order: Order
    fulfillment: FulfillmentPlan

    @property
    def manufacturing_info(self) -> Optional[Dict[str, Any]]:
        """Response annotation, present only when manufacturing applies."""
        if not self.fulfillment.has_manufacturing:
            return None
        return {
            "has_manufacturing_products": True,
            "manufacturing_days": self.fulfillment.manufacturing_days,
            "calculated_delivery_date": self.fulfillment.delivery_date,
        }


def validate_sale_request(request: SaleRequest) -> None:
    """
    Check constraints that must hold before anything is written.

    Raises:
        ValidationError: with one FieldError per violated constraint.
    """

    errors: List[FieldError] = customer_field_errors(request.customer, prefix="customer.")

    if not request.items:
        errors.append(FieldError("items", "At least one item is required"))

    for index, item in enumerate(request.items):
        if not (item.product_id or "").strip():
            errors.append(FieldError(f"items[{index}].product_id", "Product id is required"))
        if isinstance(item.quantity, bool) or not isinstance(item.quantity, int) or item.quantity < 1:
            errors.append(FieldError(f"items[{index}].quantity", "Quantity must be an integer >= 1"))
        if not isinstance(item.unit_price, Decimal) or not item.unit_price.is_finite() or item.unit_price < 0:
            errors.append(FieldError(f"items[{index}].unit_price", "Unit price must be >= 0"))
        elif item.unit_price.normalize().as_tuple().exponent < -PRICE_DECIMAL_PLACES:
            errors.append(
                FieldError(f"items[{index}].unit_price", f"Unit price must have at most {PRICE_DECIMAL_PLACES} decimal places")
            )

    if not isinstance(request.delivery_method, DeliveryMethod):
        errors.append(FieldError("delivery_method", "Must be PICKUP or DISPATCH"))
    if not isinstance(request.status, OrderStatus):
        errors.append(FieldError("status", "Must be PENDING or COMPLETED"))

    if request.delivery_date is not None and (
        request.delivery_date.tzinfo is None or request.delivery_date.utcoffset() is None
    ):
        errors.append(FieldError("delivery_date", "Must include a timezone offset"))

    if errors:
        raise ValidationError(errors)


@dataclass(slots=True)
class _SaleContext:
    request: SaleRequest
    customer: Customer
    order: Order
    fulfillment: FulfillmentPlan
    now: datetime


SideEffect = Callable[["SaleOrchestrator", _SaleContext], None]


class SaleOrchestrator:
    """
    Executes the sale-creation saga.

    Collaborators are injected so tests can substitute in-memory stores and
    fake clients.
    """

    def __init__(
        self,
        orders: OrderStore,
        customers: CustomerStore,
        inventory: InventoryGateway,
        dispatch: DispatchGateway,
        *,
        pending_expiration_minutes: int = PENDING_EXPIRATION_MINUTES,
        dispatch_buffer_days: int = DISPATCH_BUFFER_DAYS,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.orders = orders
        self.customers = customers
        self.inventory = inventory
        self.dispatch = dispatch
        self.pending_expiration = timedelta(minutes=pending_expiration_minutes)
        self.dispatch_buffer_days = dispatch_buffer_days
        self.clock = clock

    def create_sale(self, request: SaleRequest) -> SaleResult:
        """
        Create a sale and drive its side effects.

        Raises:
            ValidationError: invalid input; nothing was written.
            PersistenceError: customer resolution or order persistence failed;
                no order exists.
        """

        validate_sale_request(request)
        now = self.clock()
        requested_delivery_date = (
            request.delivery_date.astimezone(timezone.utc) if request.delivery_date else None
        )

        fulfillment = calculate_fulfillment(
            request.items,
            self.inventory,
            now=now,
            requested_delivery_date=requested_delivery_date,
            dispatch_buffer_days=self.dispatch_buffer_days,
        )

        try:
            customer = resolve_customer(self.customers, request.customer)
        except PersistenceError:
            logger.exception("Customer resolution failed for %s", request.customer.email)
            raise

        total = compute_total(request.items)
        expires_at = now + self.pending_expiration if request.status is OrderStatus.PENDING else None

        try:
            order = self.orders.create_order(
                customer_id=customer.customer_id,
                items=request.items,
                total=total,
                delivery_method=request.delivery_method,
                status=request.status,
                expires_at=expires_at,
                delivery_date=fulfillment.delivery_date,
            )
        except PersistenceError:
            logger.exception("Order persistence failed for customer %s", customer.customer_id)
            raise

        if order.customer is None:
            order = order.with_customer(customer)

        logger.info(
            "Created sale %s (%s/%s) total=%s",
            order.order_id,
            order.status.value,
            order.delivery_method.value,
            order.total,
            extra={"order_id": str(order.order_id)},
        )

        context = _SaleContext(
            request=request,
            customer=customer,
            order=order,
            fulfillment=fulfillment,
            now=now,
        )
        for side_effect in _SIDE_EFFECTS.get((order.status, order.delivery_method), ()):
            side_effect(self, context)

        return SaleResult(order=context.order, fulfillment=fulfillment)

    # ------------------------------------------------------------------
    # Post-commit side effects
    # ------------------------------------------------------------------

    def _log_degraded(self, context: _SaleContext, operation: str, exc: Exception, product_id: Optional[str] = None) -> None:
        logger.warning(
            "Sale %s: %s failed%s: %s",
            context.order.order_id,
            operation,
            f" for {product_id}" if product_id else "",
            exc,
            extra={
                "order_id": str(context.order.order_id),
                "product_id": product_id,
                "operation": operation,
            },
        )

    def _reserve_items(self, context: _SaleContext) -> None:
        for item in context.order.items:
            key = to_inventory_key(item.product_id)
            try:
                self.inventory.reserve(key, item.quantity)
                logger.info("Reserved %s x %d for sale %s", key, item.quantity, context.order.order_id)
            except DependencyError as exc:
                self._log_degraded(context, "reserve", exc, item.product_id)

    def _fulfill_pickup_items(self, context: _SaleContext) -> None:
        """
        Mixed fulfillment inside a PICKUP sale: MANUFACTURING items ship,
        everything else leaves stock through the store.
        """
        for item in context.order.items:
            key = to_inventory_key(item.product_id)
            product = lookup_availability(self.inventory, item.product_id)
            if product is None:
                # Type unknown: neither withdrawal nor dispatch is safe for this item.
                logger.warning(
                    "Sale %s: skipped pickup fulfillment for %s (availability type unavailable)",
                    context.order.order_id,
                    item.product_id,
                    extra={
                        "order_id": str(context.order.order_id),
                        "product_id": item.product_id,
                        "operation": "fulfill_pickup",
                    },
                )
                continue

            try:
                if product.availability_type is AvailabilityType.MANUFACTURING:
                    self.inventory.mark_for_dispatch(key, item.quantity)
                    logger.info("Manufacturing item %s in pickup sale %s marked for dispatch", key, context.order.order_id)
                else:
                    self.inventory.withdraw_stock(key, item.quantity, IN_STORE_CHANNEL)
                    logger.info("Stock item %s withdrawn for pickup sale %s", key, context.order.order_id)
            except DependencyError as exc:
                self._log_degraded(context, "fulfill_pickup", exc, item.product_id)

    def _mark_items_for_dispatch(self, context: _SaleContext) -> None:
        for item in context.order.items:
            key = to_inventory_key(item.product_id)
            try:
                self.inventory.mark_for_dispatch(key, item.quantity)
            except DependencyError as exc:
                self._log_degraded(context, "mark_for_dispatch", exc, item.product_id)

    def _create_dispatch(self, context: _SaleContext) -> None:
        order = context.order
        customer = context.customer
        request = DispatchRequest(
            order_id=order.order_id,
            customer_name=customer.name,
            customer_address=customer.address,
            customer_email=customer.email,
            customer_phone=customer.phone,
            delivery_date=context.fulfillment.delivery_date or context.now,
            items=tuple(DispatchLine(product_id=i.product_id, quantity=i.quantity) for i in order.items),
        )

        try:
            confirmation = self.dispatch.create_dispatch(request)
        except DependencyError as exc:
            self._log_degraded(context, "create_dispatch", exc)
            return

        try:
            self.orders.set_dispatch_id(order.order_id, confirmation.dispatch_id)
        except PersistenceError as exc:
            self._log_degraded(context, "attach_dispatch_id", exc)
            return

        context.order = order.with_dispatch_id(confirmation.dispatch_id)
        logger.info("Dispatch %s created for sale %s", confirmation.dispatch_id, order.order_id)


# Side effects per (status, delivery method), executed in order.
_SIDE_EFFECTS: Dict[Tuple[OrderStatus, DeliveryMethod], Tuple[SideEffect, ...]] = {
    (OrderStatus.PENDING, DeliveryMethod.PICKUP): (SaleOrchestrator._reserve_items,),
    (OrderStatus.PENDING, DeliveryMethod.DISPATCH): (SaleOrchestrator._reserve_items,),
    (OrderStatus.COMPLETED, DeliveryMethod.PICKUP): (SaleOrchestrator._fulfill_pickup_items,),
    (OrderStatus.COMPLETED, DeliveryMethod.DISPATCH): (
        SaleOrchestrator._mark_items_for_dispatch,
        SaleOrchestrator._create_dispatch,
    ),
}


__all__ = [
    "PENDING_EXPIRATION_MINUTES",
    "SaleRequest",
    "SaleResult",
    "SaleOrchestrator",
    "validate_sale_request",
]
