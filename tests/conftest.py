"""
Shared fixtures.

Every test gets a fresh in-memory SQLite database with the full
component graph wired on top of it. No files are written.
"""

from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from ledgerdash.api import create_app
from ledgerdash.config import DatabaseSettings
from ledgerdash.orchestrator import create_app_components
from ledgerdash.services.storage import Database, InMemorySelectionStore


@pytest.fixture
def database():
    db = Database(DatabaseSettings(url="sqlite://"))
    yield db
    db.dispose()


@pytest.fixture
def components(database):
    return create_app_components(
        database=database,
        selection_store=InMemorySelectionStore(),
    )


@pytest.fixture
def client(components):
    with TestClient(create_app(components)) as test_client:
        yield test_client


@pytest.fixture
def personal(components):
    return components.accounts.create_account({"name": "Pessoal", "type": "personal"})


@pytest.fixture
def business(components):
    return components.accounts.create_account({"name": "Empresa", "type": "business"})


@pytest.fixture
def card(components, personal):
    """Closes on the 25th, due on the 5th of the following month."""
    return components.invoices.create_credit_card(personal.id, {
        "name": "Nubank",
        "brand": "Mastercard",
        "credit_limit": "5000.00",
        "closing_day": 25,
        "due_date": 5,
    })


def expense(description="Mercado", amount="10.00", day=date(2024, 3, 10), **extra):
    """Transaction payload with sensible defaults."""
    payload = {
        "description": description,
        "amount": Decimal(amount),
        "type": "expense",
        "date": day,
    }
    payload.update(extra)
    return payload


def income(description="Salário", amount="100.00", day=date(2024, 3, 5), **extra):
    return expense(description, amount, day, type="income", **extra)
