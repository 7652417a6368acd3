"""
Pytest configuration.

Adds the project root to the Python path so that tests can import domain,
repositories, services, etc., and provides in-memory collaborators.
"""

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from fakes import FakeDispatch, FakeInventory, InMemoryCustomerStore, InMemoryOrderStore  # noqa: E402

NOW = datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def customers() -> InMemoryCustomerStore:
    return InMemoryCustomerStore()


@pytest.fixture
def orders(customers: InMemoryCustomerStore) -> InMemoryOrderStore:
    return InMemoryOrderStore(customers, clock=lambda: NOW)


@pytest.fixture
def inventory() -> FakeInventory:
    return FakeInventory()


@pytest.fixture
def dispatch() -> FakeDispatch:
    return FakeDispatch()
