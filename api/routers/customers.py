"""
Customers API Endpoints.

Customer records are created implicitly by sales; these endpoints let staff
create, browse and correct them. Customers are never deleted.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends

from api.dependencies import get_customer_store
from api.models import CustomerRequest, CustomerResponse, ErrorResponse
from repositories.protocols import CustomerStore
from services.customer_service import create_customer, get_customer, update_customer

router = APIRouter()


@router.post(
    "/customers",
    response_model=CustomerResponse,
    status_code=201,
    summary="Create Customer",
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
def create_customer_record(
    request: CustomerRequest,
    customers: CustomerStore = Depends(get_customer_store),
):
    return CustomerResponse.from_domain(create_customer(customers, request.to_details()))


@router.get(
    "/customers",
    response_model=List[CustomerResponse],
    summary="List Customers",
)
def list_customer_records(customers: CustomerStore = Depends(get_customer_store)):
    return [CustomerResponse.from_domain(c) for c in customers.list_customers()]


@router.get(
    "/customers/{customer_id}",
    response_model=CustomerResponse,
    summary="Get Customer",
    responses={404: {"model": ErrorResponse}},
)
def get_customer_record(
    customer_id: UUID,
    customers: CustomerStore = Depends(get_customer_store),
):
    return CustomerResponse.from_domain(get_customer(customers, customer_id))


@router.put(
    "/customers/{customer_id}",
    response_model=CustomerResponse,
    summary="Update Customer",
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
def update_customer_record(
    customer_id: UUID,
    request: CustomerRequest,
    customers: CustomerStore = Depends(get_customer_store),
):
    return CustomerResponse.from_domain(update_customer(customers, customer_id, request.to_details()))
