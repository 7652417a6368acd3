"""
Catalog service: product search proxied to the inventory service.

Inventory prices are cost prices. The storefront sells at cost plus a profit
margin, rounded to whole currency units; the cost is kept as `costPrice`.
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, Mapping, Optional, Protocol

logger = logging.getLogger(__name__)

PROFIT_MARGIN = Decimal("0.16")


class CatalogSource(Protocol):
    def list_products(self) -> Dict[str, Any]: ...
    def search_products(self, query: str) -> Dict[str, Any]: ...


def apply_margin(cost: Any, margin: Decimal = PROFIT_MARGIN) -> Decimal:
    """Sale price for a cost price: cost * (1 + margin), rounded to units."""
    return (Decimal(str(cost)) * (1 + margin)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)


def _with_margin(product: Mapping[str, Any], margin: Decimal) -> Dict[str, Any]:
    priced = dict(product)
    if product.get("price") is None:
        return priced
    try:
        sale_price = apply_margin(product["price"], margin)
    except InvalidOperation:
        logger.warning("Product %s has unusable price %r; listed unpriced", product.get("id"), product["price"])
        return priced
    priced["costPrice"] = product["price"]
    priced["price"] = sale_price
    return priced


def search_products(
    catalog: CatalogSource,
    query: Optional[str] = None,
    *,
    margin: Decimal = PROFIT_MARGIN,
) -> Dict[str, Any]:
    """
    List (no query) or search the inventory catalog with sale prices applied.

    Raises:
        InventoryError: the inventory service failed.
    """

    page = catalog.search_products(query) if query else catalog.list_products()
    result = dict(page)
    result["data"] = [_with_margin(product, margin) for product in page.get("data", [])]
    return result


__all__ = ["PROFIT_MARGIN", "apply_margin", "search_products"]
