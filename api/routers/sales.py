"""
Sales API Endpoints.

Endpoints for creating, listing, completing and reaping sales, plus the
delivery availability check used before a DISPATCH sale.
"""

from datetime import datetime
from typing import Callable, List
from uuid import UUID

from fastapi import APIRouter, Depends

from api.dependencies import (
    get_clock,
    get_dispatch_client,
    get_inventory_client,
    get_order_store,
    get_sale_orchestrator,
)
from api.models import (
    CleanupResponse,
    CreateSaleRequest,
    DeliveryAvailabilityResponse,
    DeliveryCheckRequest,
    ErrorResponse,
    SaleResponse,
)
from clients.dispatch_client import DispatchClient
from clients.inventory_client import InventoryClient
from repositories.protocols import OrderStore
from services.delivery_service import check_delivery
from services.sale_lifecycle_service import cleanup_expired_sales, complete_sale
from services.sale_query_service import get_sale, list_sales
from services.sale_service import SaleOrchestrator

router = APIRouter()


@router.post(
    "/sales",
    response_model=SaleResponse,
    status_code=201,
    summary="Create Sale",
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def create_sale(
    request: CreateSaleRequest,
    orchestrator: SaleOrchestrator = Depends(get_sale_orchestrator),
):
    """
    Create a sale.

    **Process:**
    1. Validates the request
    2. Computes delivery timing (manufacturing lead time + 3 dispatch days)
    3. Finds or creates the customer by email
    4. Persists the order and its items atomically
    5. Runs inventory/dispatch side effects:
       - PENDING: reserves every item (expires after 15 minutes)
       - COMPLETED + PICKUP: withdraws stock items, marks manufacturing items for dispatch
       - COMPLETED + DISPATCH: marks items for dispatch and creates the dispatch order

    Side-effect failures never fail the request; a sale whose dispatch could
    not be created is returned without a `dispatch_id`.
    """
    result = orchestrator.create_sale(request.to_service_request())
    return SaleResponse.from_result(result)


@router.get(
    "/sales",
    response_model=List[SaleResponse],
    summary="List Sales",
)
def get_sales(orders: OrderStore = Depends(get_order_store)):
    """All sales, newest first, with customer and items."""
    return [SaleResponse.from_order(order) for order in list_sales(orders)]


@router.post(
    "/sales/cleanup-expired",
    response_model=CleanupResponse,
    summary="Clean Up Expired Sales",
)
def cleanup_expired(
    orders: OrderStore = Depends(get_order_store),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    """
    Delete every PENDING sale whose reservation window has closed.

    Intended to be called periodically (e.g. by a cron job).
    """
    result = cleanup_expired_sales(orders, now=clock())
    return CleanupResponse(
        message=f"Cleaned up {result.deleted_count} expired sales",
        deleted_count=result.deleted_count,
        deleted_sales=result.deleted_ids,
    )


@router.post(
    "/sales/check-delivery",
    response_model=DeliveryAvailabilityResponse,
    summary="Check Delivery Availability",
)
def check_delivery_availability(
    request: DeliveryCheckRequest,
    dispatch: DispatchClient = Depends(get_dispatch_client),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    """
    Delivery estimate for an address. Falls back to a 3-day estimate when the
    dispatch service is unavailable.
    """
    availability = check_delivery(dispatch, request.address, now=clock())
    return DeliveryAvailabilityResponse.from_domain(availability)


@router.get(
    "/sales/{sale_id}",
    response_model=SaleResponse,
    summary="Get Sale",
    responses={404: {"model": ErrorResponse}},
)
def get_sale_details(
    sale_id: UUID,
    orders: OrderStore = Depends(get_order_store),
    inventory: InventoryClient = Depends(get_inventory_client),
):
    """A sale with each item enriched with its inventory product details."""
    return SaleResponse.from_details(get_sale(orders, inventory, sale_id))


@router.patch(
    "/sales/{sale_id}/complete",
    response_model=SaleResponse,
    summary="Complete Pending Sale",
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
def complete_pending_sale(
    sale_id: UUID,
    orders: OrderStore = Depends(get_order_store),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    """
    Complete a PENDING sale before its reservation expires.

    Only the status changes; inventory and dispatch side effects are not run.
    """
    return SaleResponse.from_order(complete_sale(orders, sale_id, now=clock()))
