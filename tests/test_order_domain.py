"""
Tests for `domain/order.py`, `domain/product.py` and `domain/customer.py`.

Covers contract rules:
- Order timestamps are UTC; an order has at least one item.
- expires_at is set iff status == PENDING.
- Completion clears expires_at and only applies to PENDING orders.
- Expiry is strict: an order is expired only once now > expires_at.
- Inventory keys drop the "prod-" prefix and are upper-cased.
"""

from __future__ import annotations

from dataclasses import FrozenInstanceError, replace
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import UUID

import pytest

from domain.customer import Customer, is_valid_email
from domain.order import DeliveryMethod, LineItem, Order, OrderItem, OrderStatus, compute_total
from domain.product import AvailabilityType, to_inventory_key

ORDER_ID = UUID("00000000-0000-0000-0000-000000000101")
CUSTOMER_ID = UUID("00000000-0000-0000-0000-000000000201")
CREATED = datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def _item(quantity: int = 1, unit_price: str = "10") -> OrderItem:
    return OrderItem(
        item_id=UUID("00000000-0000-0000-0000-000000000301"),
        order_id=ORDER_ID,
        product_id="prod-p1",
        quantity=quantity,
        unit_price=Decimal(unit_price),
    )


def _order(**overrides) -> Order:
    fields = dict(
        order_id=ORDER_ID,
        customer_id=CUSTOMER_ID,
        items=(_item(),),
        total=Decimal("10"),
        delivery_method=DeliveryMethod.PICKUP,
        status=OrderStatus.PENDING,
        created_at=CREATED,
        expires_at=CREATED + timedelta(minutes=15),
    )
    fields.update(overrides)
    return Order(**fields)


def test_compute_total_sums_quantity_times_unit_price() -> None:
    items = [LineItem("prod-a", 2, Decimal("100")), LineItem("prod-b", 3, Decimal("0.50"))]

    assert compute_total(items) == Decimal("201.50")
    assert compute_total([]) == Decimal("0")


def test_order_created_at_must_be_utc() -> None:
    with pytest.raises(ValueError):
        _order(created_at=datetime(2025, 1, 1, 12, 0, 0))

    with pytest.raises(ValueError):
        _order(created_at=datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone(timedelta(hours=-3))))


def test_order_requires_at_least_one_item() -> None:
    with pytest.raises(ValueError):
        _order(items=())


def test_expires_at_is_set_iff_pending() -> None:
    with pytest.raises(ValueError):
        _order(status=OrderStatus.PENDING, expires_at=None)

    with pytest.raises(ValueError):
        _order(status=OrderStatus.COMPLETED)

    assert _order(status=OrderStatus.COMPLETED, expires_at=None).expires_at is None


def test_order_item_rejects_zero_quantity_and_negative_price() -> None:
    with pytest.raises(ValueError):
        _item(quantity=0)

    with pytest.raises(ValueError):
        _item(unit_price="-0.01")

    assert _item(unit_price="0").unit_price == Decimal("0")


def test_is_expired_is_strict() -> None:
    order = _order()

    assert not order.is_expired(order.expires_at)
    assert order.is_expired(order.expires_at + timedelta(microseconds=1))


def test_completed_clears_expiration() -> None:
    completed = _order().completed()

    assert completed.status is OrderStatus.COMPLETED
    assert completed.expires_at is None
    assert completed.order_id == ORDER_ID


def test_completed_rejects_non_pending_order() -> None:
    with pytest.raises(ValueError):
        _order(status=OrderStatus.COMPLETED, expires_at=None).completed()


def test_order_is_immutable() -> None:
    order = _order()

    with pytest.raises(FrozenInstanceError):
        order.status = OrderStatus.COMPLETED  # type: ignore[misc]

    assert order.with_dispatch_id("77").dispatch_id == "77"
    assert order.dispatch_id is None


@pytest.mark.parametrize(
    "product_id, expected",
    [
        ("prod-s1", "S1"),
        ("prod-m12", "M12"),
        ("x9", "X9"),
        ("prod-prod-a", "PROD-A"),
        ("xprod-a", "XPROD-A"),
        ("sofa-prod-1", "SOFA-PROD-1"),
    ],
)
def test_to_inventory_key(product_id: str, expected: str) -> None:
    assert to_inventory_key(product_id) == expected


def test_only_manufacturing_has_lead_time() -> None:
    assert AvailabilityType.MANUFACTURING.has_lead_time
    assert not AvailabilityType.STOCK.has_lead_time
    assert not AvailabilityType.MADE_TO_ORDER.has_lead_time


def test_customer_requires_utc_created_at() -> None:
    customer = Customer(
        customer_id=CUSTOMER_ID,
        name="Ana",
        email="ana@example.com",
        address="Av. Centro 123",
        created_at=CREATED,
    )

    with pytest.raises(ValueError, match="created_at"):
        replace(customer, created_at=CREATED.replace(tzinfo=None))


@pytest.mark.parametrize(
    "value, valid",
    [
        ("ana@example.com", True),
        ("a.b+c@shop.cl", True),
        ("ana@example", False),
        ("ana example@x.com", False),
        ("ana@example..com", False),
        ("ana@.example.com", False),
        ("", False),
    ],
)
def test_email_shape(value: str, valid: bool) -> None:
    assert is_valid_email(value) is valid
