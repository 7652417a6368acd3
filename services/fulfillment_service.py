"""
Fulfillment service: delivery timing for an order's items.

Determines whether manufacturing lead time applies to an order and computes
its delivery date:
- Items whose availability type is MANUFACTURING contribute their
  estimated fabrication days; the longest one wins.
- Manufacturing always implies eventual shipping, so the dispatch buffer is
  added even when the order is a nominal PICKUP.
- Without manufacturing, a caller-supplied delivery date (e.g. from a prior
  delivery check) is kept; otherwise no delivery date is set.

Inventory lookups are best-effort: one attempt per item, and an item whose
lookup fails is treated as STOCK so availability checks never block a sale.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, Mapping, Optional, Protocol, Sequence

from domain.errors import DependencyError
from domain.order import LineItem
from domain.product import AvailabilityType, ProductInfo

logger = logging.getLogger(__name__)

DISPATCH_BUFFER_DAYS = 3


class ProductLookup(Protocol):
    def get_product(self, product_id: str) -> ProductInfo:
        ...


@dataclass(frozen=True, slots=True)
class FulfillmentPlan:
    """
    Outcome of the fulfillment calculation.

    availability records the type used for each product; products whose
    lookup failed are recorded as STOCK.
    """
    has_manufacturing: bool
    manufacturing_days: int
    delivery_date: Optional[datetime]
    availability: Mapping[str, AvailabilityType] = field(default_factory=dict)


def lookup_availability(inventory: ProductLookup, product_id: str) -> Optional[ProductInfo]:
    """Single best-effort product lookup; None when the inventory call failed."""

    try:
        return inventory.get_product(product_id)
    except DependencyError as exc:
        logger.warning(
            "Inventory lookup failed for product %s; treating as STOCK: %s",
            product_id,
            exc,
            extra={"product_id": product_id, "operation": "get_product"},
        )
        return None


def calculate_fulfillment(
    items: Sequence[LineItem],
    inventory: ProductLookup,
    *,
    now: datetime,
    requested_delivery_date: Optional[datetime] = None,
    dispatch_buffer_days: int = DISPATCH_BUFFER_DAYS,
) -> FulfillmentPlan:
    """
    Compute manufacturing lead time and delivery date for a set of items.

    Args:
        items: Order lines, in request order
        inventory: Client used to look up each product's availability type
        now: Reference time (UTC) for the delivery date
        requested_delivery_date: Caller's hint, used only without manufacturing
        dispatch_buffer_days: Shipping days added after fabrication

    Returns:
        FulfillmentPlan

    Example:
        # one MANUFACTURING item (5 days) and one (2 days)
        plan = calculate_fulfillment(items, inventory, now=now)
        # plan.manufacturing_days == 5, plan.delivery_date == now + 8 days
    """

    has_manufacturing = False
    max_days = 0
    availability: Dict[str, AvailabilityType] = {}

    for item in items:
        product = lookup_availability(inventory, item.product_id)
        kind = product.availability_type if product else AvailabilityType.STOCK
        availability[item.product_id] = kind

        if kind.has_lead_time:
            has_manufacturing = True
            days = product.estimated_days or 0
            if days > max_days:
                max_days = days

    if has_manufacturing:
        total_days = max_days + dispatch_buffer_days
        delivery_date = now + timedelta(days=total_days)
        logger.info(
            "Manufacturing items detected: %d fabrication days + %d dispatch days = %d days",
            max_days,
            dispatch_buffer_days,
            total_days,
        )
    else:
        delivery_date = requested_delivery_date

    return FulfillmentPlan(
        has_manufacturing=has_manufacturing,
        manufacturing_days=max_days,
        delivery_date=delivery_date,
        availability=availability,
    )


__all__ = [
    "DISPATCH_BUFFER_DAYS",
    "FulfillmentPlan",
    "ProductLookup",
    "calculate_fulfillment",
    "lookup_availability",
]
