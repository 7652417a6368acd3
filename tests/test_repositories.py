"""
Tests for `repositories/customer_repository.py` and `repositories/order_repository.py`
against a mocked Supabase client.

Covers contract rules:
- Unique-email violations surface as DuplicateEmailError; other failures as PersistenceError.
- Rows map to domain objects with UTC timestamps and items in insertion order.
- Order creation goes through create_order_atomic, including the success-wrapped-in-APIError case.
- Completion is a conditional update on status = PENDING.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, List, Optional
from unittest.mock import MagicMock
from uuid import UUID

import pytest
from postgrest.exceptions import APIError

from domain.customer import CustomerDetails
from domain.errors import DuplicateEmailError, PersistenceError
from domain.order import DeliveryMethod, LineItem, OrderStatus
from repositories.customer_repository import CustomerRepository
from repositories.order_repository import OrderRepository

CUSTOMER_ID = "00000000-0000-0000-0000-000000000201"
ORDER_ID = "00000000-0000-0000-0000-000000000101"
NOW = datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

CUSTOMER_ROW = {
    "customer_id": CUSTOMER_ID,
    "name": "Ana Rojas",
    "email": "ana@example.com",
    "address": "Av. Centro 123",
    "phone": None,
    "document_number": "12.345.678-9",
    "created_at_utc": "2025-01-01T10:00:00+00:00",
}

ORDER_ROW = {
    "order_id": ORDER_ID,
    "customer_id": CUSTOMER_ID,
    "total": "70.97",
    "delivery_method": "DISPATCH",
    "status": "PENDING",
    "created_at_utc": "2025-01-01T12:00:00Z",
    "expires_at_utc": "2025-01-01T12:15:00Z",
    "delivery_date_utc": None,
    "dispatch_id": None,
    "order_items": [
        {
            "item_id": "00000000-0000-0000-0000-000000000302",
            "order_id": ORDER_ID,
            "product_id": "prod-b",
            "quantity": 1,
            "unit_price": "10.99",
            "position": 1,
        },
        {
            "item_id": "00000000-0000-0000-0000-000000000301",
            "order_id": ORDER_ID,
            "product_id": "prod-a",
            "quantity": 3,
            "unit_price": "19.99",
            "position": 0,
        },
    ],
    "customers": CUSTOMER_ROW,
}


def _query(data: Optional[List[Any]] = None, *, raises: Optional[Exception] = None) -> MagicMock:
    """A postgrest-style builder whose chained calls all return itself."""

    query = MagicMock()
    for method in ("select", "eq", "limit", "order", "insert", "update", "delete", "lte"):
        getattr(query, method).return_value = query
    if raises is not None:
        query.execute.side_effect = raises
    else:
        query.execute.return_value = MagicMock(data=data or [], error=None)
    return query


def _client(query: MagicMock) -> MagicMock:
    client = MagicMock()
    client.table.return_value = query
    return client


def _api_error(code: str, message: str = "error") -> APIError:
    return APIError({"message": message, "code": code, "hint": None, "details": None})


def _details(email: str = "ana@example.com") -> CustomerDetails:
    return CustomerDetails(name="Ana Rojas", email=email, address="Av. Centro 123")


# ------------------------------------------------------------------ #
#  CustomerRepository                                                  #
# ------------------------------------------------------------------ #


def test_get_by_email_maps_row() -> None:
    query = _query([CUSTOMER_ROW])
    repo = CustomerRepository(_client(query))

    customer = repo.get_by_email("ana@example.com")

    query.eq.assert_called_with("email", "ana@example.com")
    assert customer.customer_id == UUID(CUSTOMER_ID)
    assert customer.document_number == "12.345.678-9"
    assert customer.created_at == datetime(2025, 1, 1, 10, 0, 0, tzinfo=timezone.utc)


def test_get_by_email_returns_none_when_absent() -> None:
    repo = CustomerRepository(_client(_query([])))

    assert repo.get_by_email("nobody@example.com") is None


def test_create_customer_sends_row() -> None:
    query = _query([])
    repo = CustomerRepository(_client(query))

    customer = repo.create(_details())

    payload = query.insert.call_args.args[0]
    assert payload["email"] == "ana@example.com"
    assert payload["customer_id"] == str(customer.customer_id)
    assert payload["created_at_utc"].endswith("+00:00")


def test_create_customer_unique_violation_is_duplicate() -> None:
    repo = CustomerRepository(_client(_query(raises=_api_error("23505", "duplicate key"))))

    with pytest.raises(DuplicateEmailError) as exc_info:
        repo.create(_details())

    assert exc_info.value.email == "ana@example.com"


def test_create_customer_other_failure_is_persistence_error() -> None:
    repo = CustomerRepository(_client(_query(raises=_api_error("08006", "connection failure"))))

    with pytest.raises(PersistenceError) as exc_info:
        repo.create(_details())

    assert not isinstance(exc_info.value, DuplicateEmailError)


def test_update_unknown_customer_returns_none() -> None:
    repo = CustomerRepository(_client(_query([])))

    assert repo.update(UUID(CUSTOMER_ID), _details()) is None


def test_query_failure_is_persistence_error() -> None:
    repo = CustomerRepository(_client(_query(raises=RuntimeError("network down"))))

    with pytest.raises(PersistenceError):
        repo.list_customers()


# ------------------------------------------------------------------ #
#  OrderRepository                                                     #
# ------------------------------------------------------------------ #


def _create(repo: OrderRepository):
    return repo.create_order(
        customer_id=UUID(CUSTOMER_ID),
        items=[LineItem("prod-a", 3, Decimal("19.99")), LineItem("prod-b", 1, Decimal("10.99"))],
        total=Decimal("70.96"),
        delivery_method=DeliveryMethod.DISPATCH,
        status=OrderStatus.PENDING,
        expires_at=datetime(2025, 1, 1, 12, 15, 0, tzinfo=timezone.utc),
        delivery_date=None,
    )


def test_row_mapping_orders_items_by_position() -> None:
    repo = OrderRepository(_client(_query([ORDER_ROW])))

    order = repo.get_order(UUID(ORDER_ID))

    assert [item.product_id for item in order.items] == ["prod-a", "prod-b"]
    assert order.total == Decimal("70.97")
    assert order.status is OrderStatus.PENDING
    assert order.expires_at == datetime(2025, 1, 1, 12, 15, 0, tzinfo=timezone.utc)
    assert order.delivery_date is None
    assert order.customer.email == "ana@example.com"


def test_create_order_calls_atomic_function() -> None:
    client = _client(_query([ORDER_ROW]))
    client.rpc.return_value.execute.return_value = MagicMock(
        data={"success": True, "order_id": ORDER_ID}, error=None
    )
    repo = OrderRepository(client)

    order = _create(repo)

    name, params = client.rpc.call_args.args
    assert name == "create_order_atomic"
    assert params["p_customer_id"] == CUSTOMER_ID
    assert params["p_status"] == "PENDING"
    assert params["p_expires_at"] == "2025-01-01T12:15:00+00:00"
    assert params["p_delivery_date"] is None
    assert [i["position"] for i in params["p_items"]] == [0, 1]
    assert params["p_items"][0]["unit_price"] == "19.99"
    assert order.order_id == UUID(ORDER_ID)


def test_create_order_success_wrapped_in_api_error() -> None:
    client = _client(_query([ORDER_ROW]))
    client.rpc.return_value.execute.side_effect = APIError(
        {"success": True, "order_id": ORDER_ID, "message": None, "code": None}
    )
    repo = OrderRepository(client)

    assert _create(repo).order_id == UUID(ORDER_ID)


def test_create_order_failure_is_persistence_error() -> None:
    client = _client(_query([]))
    client.rpc.return_value.execute.return_value = MagicMock(
        data={"success": False, "error": "FK_VIOLATION", "message": "unknown customer"}, error=None
    )
    repo = OrderRepository(client)

    with pytest.raises(PersistenceError, match="FK_VIOLATION"):
        _create(repo)


def test_create_order_survives_failed_reread() -> None:
    client = _client(_query(raises=Exception("connection reset")))
    client.rpc.return_value.execute.return_value = MagicMock(
        data={
            "success": True,
            "order_id": ORDER_ID,
            "created_at_utc": "2025-01-01T12:00:00+00:00",
            "item_ids": ["00000000-0000-0000-0000-000000000301", "00000000-0000-0000-0000-000000000302"],
        },
        error=None,
    )
    repo = OrderRepository(client)

    order = _create(repo)

    assert order.order_id == UUID(ORDER_ID)
    assert order.created_at == NOW
    assert [item.item_id for item in order.items] == [
        UUID("00000000-0000-0000-0000-000000000301"),
        UUID("00000000-0000-0000-0000-000000000302"),
    ]
    assert [item.product_id for item in order.items] == ["prod-a", "prod-b"]
    assert order.total == Decimal("70.96")
    assert order.status is OrderStatus.PENDING
    assert order.expires_at == datetime(2025, 1, 1, 12, 15, 0, tzinfo=timezone.utc)


def test_create_order_missing_after_commit_without_item_ids() -> None:
    client = _client(_query([]))
    client.rpc.return_value.execute.return_value = MagicMock(
        data={"success": True, "order_id": ORDER_ID}, error=None
    )
    repo = OrderRepository(client)

    with pytest.raises(PersistenceError, match="could not be read back"):
        _create(repo)


def test_mark_completed_is_conditional_on_pending() -> None:
    query = _query([])
    repo = OrderRepository(_client(query))

    assert repo.mark_completed(UUID(ORDER_ID)) is None

    query.update.assert_called_once_with({"status": "COMPLETED", "expires_at_utc": None})
    query.eq.assert_any_call("status", "PENDING")


def test_delete_expired_pending_returns_deleted_ids() -> None:
    query = _query([{"order_id": ORDER_ID}])
    repo = OrderRepository(_client(query))

    deleted = repo.delete_expired_pending(NOW)

    assert deleted == [UUID(ORDER_ID)]
    query.eq.assert_called_with("status", "PENDING")
    query.lte.assert_called_once_with("expires_at_utc", "2025-01-01T12:00:00+00:00")
