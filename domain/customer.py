"""
Domain: Customer records.

A customer is created lazily the first time a sale references an email that is
not yet on file, and reused unchanged afterwards. Email is the unique natural
key. Customers are never deleted by the sales subsystem.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from uuid import UUID

from email_validator import EmailNotValidError, validate_email

from .time import require_utc_timestamp


def is_valid_email(value: str) -> bool:
    """Syntax check only; the mailbox's domain is not looked up."""
    try:
        validate_email(value or "", check_deliverability=False)
    except EmailNotValidError:
        return False
    return True

@dataclass(frozen=True, slots=True)
class CustomerDetails:
    """
    Customer fields as supplied on a sale or customer-create request.

    Not yet persisted: carries no id and no creation timestamp.
    """

    name: str
    email: str
    address: str
    phone: Optional[str] = None
    document_number: Optional[str] = None


@dataclass(frozen=True, slots=True)
class Customer:
    """
    Persisted customer record.

    Orders reference customers many-to-one; a customer may own many orders.
    """

    customer_id: UUID
    name: str
    email: str
    address: str
    created_at: datetime
    phone: Optional[str] = None
    document_number: Optional[str] = None

    def __post_init__(self) -> None:
        require_utc_timestamp("created_at", self.created_at)

