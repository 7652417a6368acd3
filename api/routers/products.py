"""
Products API Endpoints.

Proxy to the inventory service's catalog with storefront prices applied.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query

from api.dependencies import get_inventory_client
from api.models import ErrorResponse
from clients.inventory_client import InventoryClient
from config import Settings, get_settings
from services.catalog_service import search_products

router = APIRouter()


@router.get(
    "/products",
    summary="Search Products",
    responses={502: {"model": ErrorResponse}},
)
def get_products(
    search: Optional[str] = Query(None, description="Name or SKU to search for"),
    inventory: InventoryClient = Depends(get_inventory_client),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    """
    List or search catalog products.

    Prices are returned with the profit margin applied; the inventory price is
    kept as `costPrice`.

    **Example usage:**
    - All products: `GET /api/v1/products`
    - Search: `GET /api/v1/products?search=mesa`
    """
    return search_products(inventory, search, margin=settings.profit_margin)
