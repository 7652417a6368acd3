"""
Domain: Catalog products as seen through the external inventory service.

Products are not local entities. An order line only stores the opaque catalog
key (`product_id`, e.g. "prod-s1"); the inventory service addresses the same
product by its inventory key ("S1").
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping, Optional

INVENTORY_KEY_PREFIX = "prod-"


class AvailabilityType(str, Enum):
    STOCK = "STOCK"
    MANUFACTURING = "MANUFACTURING"
    MADE_TO_ORDER = "MADE_TO_ORDER"

    @property
    def has_lead_time(self) -> bool:
        """Only MANUFACTURING items carry a fabrication lead time."""
        return self is AvailabilityType.MANUFACTURING


def to_inventory_key(product_id: str) -> str:
    """
    Map an order-facing product id to the inventory service's product key.

    Example:
        to_inventory_key("prod-s1")  # "S1"
    """
    return product_id.removeprefix(INVENTORY_KEY_PREFIX).upper()


@dataclass(frozen=True, slots=True)
class ProductInfo:
    """
    Inventory metadata for a single catalog product.

    estimated_days is only meaningful for MANUFACTURING products.
    raw keeps the full payload returned by the inventory service so that order
    views can show it without another round trip.
    """

    product_id: str
    availability_type: AvailabilityType
    estimated_days: Optional[int] = None
    name: Optional[str] = None
    price: Optional[Decimal] = None
    raw: Mapping[str, Any] = field(default_factory=dict)
