"""
Inventory service client.

Reads product metadata and posts stock-affecting operations. Stock operations
address products by inventory key (see `domain.product.to_inventory_key`);
callers are responsible for applying the mapping, product lookups use the
catalog id as-is.
"""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Mapping, Optional

import requests

from clients.http_client import HttpClient
from domain.errors import InventoryError
from domain.product import AvailabilityType, ProductInfo

logger = logging.getLogger(__name__)

# Channel value the inventory service expects for in-store withdrawals.
IN_STORE_CHANNEL = "tienda"


def _to_optional_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _to_optional_decimal(value: Any) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return None


def product_from_payload(product_id: str, payload: Mapping[str, Any]) -> ProductInfo:
    """
    Convert an inventory product payload into ProductInfo.

    Unknown availability types are treated as STOCK so that an unexpected
    catalog value never adds lead time.
    """

    if isinstance(payload.get("data"), Mapping):
        payload = payload["data"]

    try:
        availability = AvailabilityType(str(payload.get("availabilityType", "STOCK")).upper())
    except ValueError:
        logger.warning(
            "Unknown availability type for product %s: %r",
            product_id,
            payload.get("availabilityType"),
        )
        availability = AvailabilityType.STOCK

    return ProductInfo(
        product_id=product_id,
        availability_type=availability,
        estimated_days=_to_optional_int(payload.get("estimatedDays")),
        name=payload.get("name"),
        price=_to_optional_decimal(payload.get("price")),
        raw=dict(payload),
    )


class InventoryClient:
    """Client for the inventory service REST API."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 5.0,
        session: Optional[requests.Session] = None,
    ):
        self.http = HttpClient(base_url, timeout=timeout, error_cls=InventoryError, session=session)

    def get_product(self, product_id: str) -> ProductInfo:
        """Fetch availability metadata for a catalog product."""
        payload = self.http.get(f"/api/v1/products/{product_id}", operation="get_product")
        if not isinstance(payload, Mapping):
            raise InventoryError(f"get_product: unexpected payload for {product_id}", operation="get_product")
        return product_from_payload(product_id, payload)

    def list_products(self) -> Dict[str, Any]:
        return self._catalog_page("/api/v1/products", None, operation="list_products")

    def search_products(self, query: str) -> Dict[str, Any]:
        return self._catalog_page("/api/v1/products/search", {"query": query}, operation="search_products")

    def reserve(self, inventory_key: str, quantity: int) -> None:
        """Place a non-committing stock hold."""
        self.http.post(
            "/api/productos/reservas",
            {"id_producto": inventory_key, "cantidad": quantity},
            operation="reserve",
        )

    def mark_for_dispatch(self, inventory_key: str, quantity: int) -> None:
        self.http.post(
            "/api/productos/despachos",
            {"id_producto": inventory_key, "cantidad": quantity},
            operation="mark_for_dispatch",
        )

    def withdraw_stock(self, inventory_key: str, quantity: int, channel: str = IN_STORE_CHANNEL) -> None:
        """Commit a stock decrement for an item leaving through `channel`."""
        self.http.post(
            "/api/productos/retiros",
            {"id_producto": inventory_key, "cantidad": quantity, "metodo_entrega": channel},
            operation="withdraw_stock",
        )

    def _catalog_page(self, path: str, params: Optional[Mapping[str, Any]], *, operation: str) -> Dict[str, Any]:
        payload = self.http.get(path, params, operation=operation)
        if isinstance(payload, list):
            return {"data": payload}
        if not isinstance(payload, Mapping):
            raise InventoryError(f"{operation}: unexpected payload", operation=operation)
        page = dict(payload)
        page["data"] = list(page.get("data") or [])
        return page

    def close(self) -> None:
        self.http.close()


__all__ = ["IN_STORE_CHANNEL", "InventoryClient", "product_from_payload"]
