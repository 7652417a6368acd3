"""
Dependency wiring for the API.

Every collaborator is provided through a FastAPI dependency so tests can swap
in in-memory stores and fake clients with `app.dependency_overrides`.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Iterator

from fastapi import Depends

from clients.dispatch_client import DispatchClient
from clients.inventory_client import InventoryClient
from config import Settings, get_settings
from domain.time import utc_now
from repositories.client import get_supabase
from repositories.customer_repository import CustomerRepository
from repositories.order_repository import OrderRepository
from repositories.protocols import CustomerStore, OrderStore
from services.sale_service import SaleOrchestrator


def get_clock() -> Callable[[], datetime]:
    return utc_now


def get_order_store() -> OrderStore:
    return OrderRepository(get_supabase())


def get_customer_store() -> CustomerStore:
    return CustomerRepository(get_supabase())


def get_inventory_client(settings: Settings = Depends(get_settings)) -> Iterator[InventoryClient]:
    # One client, and so one requests.Session, per request.
    client = InventoryClient(settings.inventory_api_url, timeout=settings.http_timeout_seconds)
    try:
        yield client
    finally:
        client.close()


def get_dispatch_client(settings: Settings = Depends(get_settings)) -> Iterator[DispatchClient]:
    client = DispatchClient(settings.dispatch_api_url, timeout=settings.http_timeout_seconds)
    try:
        yield client
    finally:
        client.close()


def get_sale_orchestrator(
    orders: OrderStore = Depends(get_order_store),
    customers: CustomerStore = Depends(get_customer_store),
    inventory: InventoryClient = Depends(get_inventory_client),
    dispatch: DispatchClient = Depends(get_dispatch_client),
    settings: Settings = Depends(get_settings),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> SaleOrchestrator:
    return SaleOrchestrator(
        orders,
        customers,
        inventory,
        dispatch,
        pending_expiration_minutes=settings.pending_expiration_minutes,
        dispatch_buffer_days=settings.dispatch_buffer_days,
        clock=clock,
    )
