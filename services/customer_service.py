"""
Customer service.

Sale creation resolves customers find-or-create by exact email. An existing
customer is reused unchanged (no update-on-conflict). Concurrent first sales
under the same new email race on the unique constraint; the loser re-fetches
and uses the winner's record.

Explicit customer edits (create/update from the customer records screen) go
through the same field rules.
"""

from __future__ import annotations

import logging
from typing import List
from uuid import UUID

from domain.customer import Customer, CustomerDetails, is_valid_email
from domain.errors import DuplicateEmailError, FieldError, NotFoundError, PersistenceError, ValidationError
from repositories.protocols import CustomerStore

logger = logging.getLogger(__name__)


def customer_field_errors(details: CustomerDetails, prefix: str = "") -> List[FieldError]:
    """Field-level problems with customer details (empty when valid)."""

    errors: List[FieldError] = []
    if not (details.name or "").strip():
        errors.append(FieldError(f"{prefix}name", "Name is required"))
    if not is_valid_email(details.email):
        errors.append(FieldError(f"{prefix}email", "Invalid email address"))
    if not (details.address or "").strip():
        errors.append(FieldError(f"{prefix}address", "Address is required"))
    return errors


def resolve_customer(customers: CustomerStore, details: CustomerDetails) -> Customer:
    """
    Return the customer on file for details.email, creating it if absent.

    Raises:
        PersistenceError: the store failed; fatal to the calling sale.
    """

    existing = customers.get_by_email(details.email)
    if existing is not None:
        return existing

    try:
        return customers.create(details)
    except DuplicateEmailError:
        logger.info(
            "Customer %s created concurrently; reusing existing record",
            details.email,
            extra={"operation": "resolve_customer"},
        )
        existing = customers.get_by_email(details.email)
        if existing is None:
            raise PersistenceError(
                f"Customer {details.email!r} reported as duplicate but not found"
            )
        return existing


def create_customer(customers: CustomerStore, details: CustomerDetails) -> Customer:
    """
    Raises:
        ValidationError: invalid fields.
        DuplicateEmailError: the email is already on file.
    """
    errors = customer_field_errors(details)
    if errors:
        raise ValidationError(errors)
    return customers.create(details)


def update_customer(customers: CustomerStore, customer_id: UUID, details: CustomerDetails) -> Customer:
    """
    Raises:
        ValidationError: invalid fields.
        NotFoundError: no such customer.
        DuplicateEmailError: the new email belongs to another customer.
    """
    errors = customer_field_errors(details)
    if errors:
        raise ValidationError(errors)
    updated = customers.update(customer_id, details)
    if updated is None:
        raise NotFoundError("Customer", customer_id)
    return updated


def get_customer(customers: CustomerStore, customer_id: UUID) -> Customer:
    customer = customers.get_by_id(customer_id)
    if customer is None:
        raise NotFoundError("Customer", customer_id)
    return customer


__all__ = [
    "customer_field_errors",
    "resolve_customer",
    "create_customer",
    "update_customer",
    "get_customer",
]
