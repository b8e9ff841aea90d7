"""Shared fixtures for the test suite."""

from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from bullion_aml.compliance.edd import EDDService
from bullion_aml.compliance.engine import ComplianceEngine
from bullion_aml.main import app
from bullion_aml.models import (
    CheckoutRequest,
    ComplianceConfig,
    Customer,
    SanctionedEntity,
    StoredTransaction,
)
from bullion_aml.storage.memory import MemoryStore


SANCTIONS_LIST = [
    {"full_name": "Mohammad Ahmad", "aliases": ["Mohammed Ahmed", "Muhammad Ahmad"],
     "date_of_birth": "1971-03-14", "nationality": "IR", "reference_number": "DFAT-1001"},
    {"full_name": "Viktor Petrov", "aliases": ["Victor Petroff"],
     "date_of_birth": "1965-11-02", "nationality": "RU", "reference_number": "DFAT-1002"},
    {"full_name": "Ali Hassan", "aliases": ["Ali Hasan"], "reference_number": "DFAT-1003"},
    {"full_name": "Al-Rashid Trading Company", "aliases": ["Al Rashid Trading Co"],
     "reference_number": "DFAT-2001"},
]


def ts(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


@pytest.fixture
def sanctions_list():
    return [SanctionedEntity(**e) for e in SANCTIONS_LIST]


@pytest.fixture
def config():
    return ComplianceConfig()


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def engine(sanctions_list, store, config):
    return ComplianceEngine(
        sanctions_list=sanctions_list,
        store=store,
        config=config,
    )


@pytest.fixture
def edd_service(store):
    return EDDService(store)


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


def make_customer(
    store=None,
    customer_id="cust-1",
    first_name="Jane",
    last_name="Citizen",
    verification_status="verified",
    created_at="2025-01-01T00:00:00Z",
    **overrides,
) -> Customer:
    customer = Customer(
        customer_id=customer_id,
        first_name=first_name,
        last_name=last_name,
        verification_status=verification_status,
        created_at=ts(created_at),
        **overrides,
    )
    if store is not None:
        store.upsert_customer(customer)
    return customer


def make_stored(
    customer_id="cust-1",
    amount=150.0,
    timestamp="2026-02-22T10:00:00Z",
    tx_id="test-id",
    **overrides,
) -> StoredTransaction:
    return StoredTransaction(
        transaction_id=tx_id,
        customer_id=customer_id,
        amount=amount,
        timestamp=ts(timestamp),
        **overrides,
    )


def make_checkout(
    customer_id="cust-1",
    amount=150.0,
    timestamp="2026-02-22T10:00:00Z",
    **overrides,
) -> CheckoutRequest:
    return CheckoutRequest(
        customer_id=customer_id,
        amount=amount,
        timestamp=ts(timestamp),
        **overrides,
    )
