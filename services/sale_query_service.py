"""Read-side helpers for sales: listing and detail views."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional
from uuid import UUID

from domain.errors import NotFoundError
from domain.order import Order, OrderItem
from domain.product import ProductInfo
from repositories.protocols import OrderStore
from services.fulfillment_service import ProductLookup, lookup_availability


@dataclass(frozen=True, slots=True)
class SaleItemDetails:
    item: OrderItem
    product: Optional[ProductInfo] = None


@dataclass(frozen=True, slots=True)
class SaleDetails:
    order: Order
    items: List[SaleItemDetails]


def list_sales(orders: OrderStore) -> List[Order]:
    """All sales, newest first, with customer and items."""
    return orders.list_orders()


def get_sale(orders: OrderStore, inventory: ProductLookup, order_id: UUID) -> SaleDetails:
    """
    A single sale with each item enriched by its inventory details
    (availability type, estimated days). Items whose lookup fails are
    returned without product details.

    Raises:
        NotFoundError: no such order.
    """

    order = orders.get_order(order_id)
    if order is None:
        raise NotFoundError("Sale", order_id)

    items = [
        SaleItemDetails(item=item, product=lookup_availability(inventory, item.product_id))
        for item in order.items
    ]
    return SaleDetails(order=order, items=items)


__all__ = ["SaleItemDetails", "SaleDetails", "list_sales", "get_sale"]
