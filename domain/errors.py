"""
Domain: error taxonomy for the sales platform.

Fatal errors abort a request before the order is committed; dependency errors
are raised by the external clients and are caught at each call site of the
sale saga, where they are logged and never surfaced to the caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional


class SalesError(Exception):
    """Base class for all sales platform errors."""


@dataclass(frozen=True, slots=True)
class FieldError:
    """A single field-level validation failure."""
    field: str
    message: str


class ValidationError(SalesError):
    """Raised when request input is malformed or out of range."""

    def __init__(self, errors: List[FieldError]):
        self.errors = list(errors)
        summary = "; ".join(f"{e.field}: {e.message}" for e in self.errors)
        super().__init__(f"Invalid request: {summary}")


class NotFoundError(SalesError):
    """Raised when a referenced order or customer does not exist."""

    def __init__(self, entity: str, entity_id: object):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found: {entity_id}")


class StateConflictError(SalesError):
    """Raised when an operation is invalid for the current state of an order."""


class SaleNotPendingError(StateConflictError):
    def __init__(self, order_id: object, status: str):
        self.order_id = order_id
        self.status = status
        super().__init__(f"Sale {order_id} is not pending (status: {status})")


class SaleExpiredError(StateConflictError):
    def __init__(self, order_id: object):
        self.order_id = order_id
        super().__init__(f"Sale {order_id} has expired")


class PersistenceError(SalesError):
    """Raised when the backing store fails on a fatal step."""


class DuplicateEmailError(PersistenceError):
    """Raised when a customer insert violates the unique email constraint."""

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"A customer with email {email!r} already exists")


class DependencyError(SalesError):
    """
    Failure of an external service (inventory, dispatch).

    Non-fatal inside the sale saga: the order record is authoritative and the
    external side effects are advisory.
    """

    def __init__(self, message: str, *, operation: str, status_code: Optional[int] = None):
        self.operation = operation
        self.status_code = status_code
        super().__init__(message)


class InventoryError(DependencyError):
    """Inventory service call failed (transport error, timeout or non-2xx)."""


class DispatchUnavailableError(DependencyError):
    """Dispatch service could not create or check a dispatch."""


__all__ = [
    "SalesError",
    "FieldError",
    "ValidationError",
    "NotFoundError",
    "StateConflictError",
    "SaleNotPendingError",
    "SaleExpiredError",
    "PersistenceError",
    "DuplicateEmailError",
    "DependencyError",
    "InventoryError",
    "DispatchUnavailableError",
]
