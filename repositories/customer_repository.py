"""
Customer repository (persistence).

Persistence operations for Customer records. The `customers.email` column
carries a unique constraint; an insert that violates it is reported as
DuplicateEmailError so the caller can re-fetch instead of failing.
"""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional
from uuid import UUID, uuid4

from postgrest.exceptions import APIError
from supabase import Client  # type: ignore[import-not-found]

from domain.customer import Customer, CustomerDetails
from domain.errors import DuplicateEmailError, PersistenceError
from domain.time import parse_utc_datetime, to_iso_utc, utc_now

logger = logging.getLogger(__name__)

_CUSTOMERS_TABLE: str = "customers"

# Postgres SQLSTATE for unique_violation.
UNIQUE_VIOLATION = "23505"


def _row_to_customer(row: Mapping[str, Any]) -> Customer:
    """Convert a Supabase row into a Customer."""

    return Customer(
        customer_id=UUID(str(row["customer_id"])),
        name=str(row["name"]),
        email=str(row["email"]),
        address=str(row["address"]),
        phone=row.get("phone"),
        document_number=row.get("document_number"),
        created_at=parse_utc_datetime(row["created_at_utc"]),
    )


def _details_payload(details: CustomerDetails) -> dict[str, Any]:
    return {
        "name": details.name,
        "email": details.email,
        "address": details.address,
        "phone": details.phone,
        "document_number": details.document_number,
    }


class CustomerRepository:
    """Supabase-backed CustomerStore."""

    def __init__(self, client: Client):
        self.client = client

    def _rows(self, query: Any, action: str) -> List[Mapping[str, Any]]:
        try:
            response = query.execute()
        except APIError as exc:
            raise PersistenceError(f"Failed to {action}: {exc.message}") from exc
        except Exception as exc:
            raise PersistenceError(f"Failed to {action}: {exc}") from exc

        error = getattr(response, "error", None)
        if error:
            raise PersistenceError(f"Failed to {action}: {error}")
        return getattr(response, "data", None) or []

    def get_by_email(self, email: str) -> Optional[Customer]:
        rows = self._rows(
            self.client.table(_CUSTOMERS_TABLE).select("*").eq("email", email).limit(1),
            "fetch customer",
        )
        return _row_to_customer(rows[0]) if rows else None

    def get_by_id(self, customer_id: UUID) -> Optional[Customer]:
        rows = self._rows(
            self.client.table(_CUSTOMERS_TABLE).select("*").eq("customer_id", str(customer_id)).limit(1),
            "fetch customer",
        )
        return _row_to_customer(rows[0]) if rows else None

    def list_customers(self) -> List[Customer]:
        rows = self._rows(
            self.client.table(_CUSTOMERS_TABLE).select("*").order("created_at_utc", desc=True),
            "list customers",
        )
        return [_row_to_customer(row) for row in rows]

    def create(self, details: CustomerDetails) -> Customer:
        """
        Insert a new customer.

        Raises:
            DuplicateEmailError: another customer already uses this email.
            PersistenceError: any other storage failure.
        """

        customer_id = uuid4()
        now = utc_now()
        payload = _details_payload(details)
        payload.update(
            {
                "customer_id": str(customer_id),
                "created_at_utc": to_iso_utc(now, name="created_at"),
            }
        )

        try:
            response = self.client.table(_CUSTOMERS_TABLE).insert(payload).execute()
        except APIError as exc:
            if exc.code == UNIQUE_VIOLATION:
                raise DuplicateEmailError(details.email) from exc
            raise PersistenceError(f"Failed to create customer: {exc.message}") from exc
        except Exception as exc:
            raise PersistenceError(f"Failed to create customer: {exc}") from exc

        error = getattr(response, "error", None)
        if error:
            raise PersistenceError(f"Failed to create customer: {error}")

        logger.info("Created customer %s", customer_id, extra={"customer_id": str(customer_id)})

        return Customer(
            customer_id=customer_id,
            name=details.name,
            email=details.email,
            address=details.address,
            phone=details.phone,
            document_number=details.document_number,
            created_at=now,
        )

    def update(self, customer_id: UUID, details: CustomerDetails) -> Optional[Customer]:
        """Overwrite a customer's fields; returns None when the id is unknown."""

        try:
            response = (
                self.client.table(_CUSTOMERS_TABLE)
                .update(_details_payload(details))
                .eq("customer_id", str(customer_id))
                .execute()
            )
        except APIError as exc:
            if exc.code == UNIQUE_VIOLATION:
                raise DuplicateEmailError(details.email) from exc
            raise PersistenceError(f"Failed to update customer: {exc.message}") from exc
        except Exception as exc:
            raise PersistenceError(f"Failed to update customer: {exc}") from exc

        rows = getattr(response, "data", None) or []
        return _row_to_customer(rows[0]) if rows else None


__all__ = ["CustomerRepository", "UNIQUE_VIOLATION"]
