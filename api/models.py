"""
API Request and Response Models.

Pydantic models for validating API requests and serializing responses.
Request models accept both snake_case and the storefront's camelCase keys.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from clients.dispatch_client import DeliveryAvailability
from domain.customer import Customer, CustomerDetails
from domain.order import DeliveryMethod, LineItem, Order, OrderStatus
from services.sale_query_service import SaleDetails
from services.sale_service import SaleRequest, SaleResult


# ============================================================================
# Customer Models
# ============================================================================

class CustomerRequest(BaseModel):
    """Customer fields on a sale or customer-create request."""
    name: str
    email: EmailStr
    address: str
    phone: Optional[str] = None
    document_number: Optional[str] = Field(None, alias="documentNumber")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "name": "Ana Rojas",
                "email": "ana@example.com",
                "address": "Av. Centro 123",
                "phone": "+56 9 1234 5678",
                "documentNumber": "12.345.678-9"
            }
        }

    def to_details(self) -> CustomerDetails:
        return CustomerDetails(
            name=self.name,
            email=self.email,
            address=self.address,
            phone=self.phone,
            document_number=self.document_number,
        )


class CustomerResponse(BaseModel):
    customer_id: UUID
    name: str
    email: str
    address: str
    phone: Optional[str] = None
    document_number: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_domain(cls, customer: Customer) -> "CustomerResponse":
        return cls(
            customer_id=customer.customer_id,
            name=customer.name,
            email=customer.email,
            address=customer.address,
            phone=customer.phone,
            document_number=customer.document_number,
            created_at=customer.created_at,
        )


# ============================================================================
# Sale Models
# ============================================================================

def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Naive hints (e.g. a bare date) are read as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class SaleItemRequest(BaseModel):
    """Single line in a sale request."""
    product_id: str = Field(..., alias="productId", min_length=1)
    quantity: int = Field(..., ge=1)
    unit_price: Decimal = Field(..., alias="unitPrice", ge=0, decimal_places=2)

    class Config:
        populate_by_name = True


class CreateSaleRequest(BaseModel):
    """Request to create a sale."""
    customer: CustomerRequest
    items: List[SaleItemRequest] = Field(..., min_length=1)
    delivery_method: DeliveryMethod = Field(..., alias="deliveryMethod")
    status: OrderStatus = OrderStatus.COMPLETED
    delivery_date: Optional[datetime] = Field(
        None,
        alias="deliveryDate",
        description="ISO 8601 delivery date hint, e.g. from a prior delivery check"
    )

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "customer": {
                    "name": "Ana Rojas",
                    "email": "ana@example.com",
                    "address": "Av. Centro 123"
                },
                "items": [
                    {"productId": "prod-s1", "quantity": 2, "unitPrice": 100}
                ],
                "deliveryMethod": "PICKUP",
                "status": "COMPLETED"
            }
        }

    def to_service_request(self) -> SaleRequest:
        return SaleRequest(
            customer=self.customer.to_details(),
            items=tuple(
                LineItem(product_id=item.product_id, quantity=item.quantity, unit_price=item.unit_price)
                for item in self.items
            ),
            delivery_method=self.delivery_method,
            status=self.status,
            delivery_date=_as_utc(self.delivery_date),
        )


class SaleItemResponse(BaseModel):
    item_id: UUID
    product_id: str
    quantity: int
    unit_price: Decimal
    product: Optional[Dict[str, Any]] = None


class ManufacturingInfo(BaseModel):
    has_manufacturing_products: bool
    manufacturing_days: int
    calculated_delivery_date: Optional[datetime] = None


class SaleResponse(BaseModel):
    """A persisted sale with its customer and items."""
    order_id: UUID
    customer_id: UUID
    customer: Optional[CustomerResponse] = None
    items: List[SaleItemResponse]
    total: Decimal
    delivery_method: DeliveryMethod
    status: OrderStatus
    expires_at: Optional[datetime] = None
    delivery_date: Optional[datetime] = None
    dispatch_id: Optional[str] = None
    created_at: datetime
    manufacturing_info: Optional[ManufacturingInfo] = None

    class Config:
        json_schema_extra = {
            "example": {
                "order_id": "123e4567-e89b-12d3-a456-426614174000",
                "customer_id": "123e4567-e89b-12d3-a456-426614174001",
                "items": [],
                "total": "200",
                "delivery_method": "PICKUP",
                "status": "PENDING",
                "expires_at": "2025-01-01T12:15:00Z",
                "delivery_date": None,
                "dispatch_id": None,
                "created_at": "2025-01-01T12:00:00Z"
            }
        }

    @classmethod
    def from_order(cls, order: Order, items: Optional[List[SaleItemResponse]] = None) -> "SaleResponse":
        if items is None:
            items = [
                SaleItemResponse(
                    item_id=item.item_id,
                    product_id=item.product_id,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                )
                for item in order.items
            ]
        return cls(
            order_id=order.order_id,
            customer_id=order.customer_id,
            customer=CustomerResponse.from_domain(order.customer) if order.customer else None,
            items=items,
            total=order.total,
            delivery_method=order.delivery_method,
            status=order.status,
            expires_at=order.expires_at,
            delivery_date=order.delivery_date,
            dispatch_id=order.dispatch_id,
            created_at=order.created_at,
        )

    @classmethod
    def from_result(cls, result: SaleResult) -> "SaleResponse":
        response = cls.from_order(result.order)
        info = result.manufacturing_info
        if info is not None:
            response.manufacturing_info = ManufacturingInfo(**info)
        return response

    @classmethod
    def from_details(cls, details: SaleDetails) -> "SaleResponse":
        items = [
            SaleItemResponse(
                item_id=d.item.item_id,
                product_id=d.item.product_id,
                quantity=d.item.quantity,
                unit_price=d.item.unit_price,
                product=dict(d.product.raw) if d.product else None,
            )
            for d in details.items
        ]
        return cls.from_order(details.order, items)


class CleanupResponse(BaseModel):
    message: str
    deleted_count: int
    deleted_sales: List[UUID]


# ============================================================================
# Delivery Models
# ============================================================================

class DeliveryCheckRequest(BaseModel):
    address: str = Field(..., min_length=1)


class DeliveryAvailabilityResponse(BaseModel):
    available: bool
    estimated_delivery_date: datetime
    delivery_days: int
    zone: Optional[str] = None
    cost: Optional[Decimal] = None

    @classmethod
    def from_domain(cls, availability: DeliveryAvailability) -> "DeliveryAvailabilityResponse":
        return cls(
            available=availability.available,
            estimated_delivery_date=availability.estimated_delivery_date,
            delivery_days=availability.delivery_days,
            zone=availability.zone,
            cost=availability.cost,
        )


# ============================================================================
# Error Models
# ============================================================================

class FieldErrorResponse(BaseModel):
    field: str
    message: str


class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    detail: Optional[str] = None
    fields: List[FieldErrorResponse] = []
    status_code: int

    class Config:
        json_schema_extra = {
            "example": {
                "error": "Validation failed",
                "detail": None,
                "fields": [{"field": "items[0].quantity", "message": "Quantity must be an integer >= 1"}],
                "status_code": 400
            }
        }
