"""Customer registration and sanctions screening endpoints."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException, Request

from bullion_aml.compliance.sanctions import rescreen_customers, screen_name
from bullion_aml.models import (
    AuditEntry,
    Customer,
    CustomerCreate,
    RescreeningResult,
    ScreeningResult,
)
from bullion_aml.storage.memory import MemoryStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Customers"])


def _get_store(request: Request) -> MemoryStore:
    """Retrieve the memory store from application state."""
    return request.app.state.store


def _get_customer(store: MemoryStore, customer_id: str) -> Customer:
    customer = store.get_customer(customer_id)
    if customer is None:
        raise HTTPException(status_code=404, detail="Customer not found")
    return customer


@router.post("/customers", response_model=Customer, status_code=201)
async def create_customer(payload: CustomerCreate, request: Request) -> Customer:
    """Register a customer (or replace an existing record with the same id)."""
    store = _get_store(request)
    data = payload.model_dump()
    if data["created_at"] is None:
        data["created_at"] = datetime.now(timezone.utc)
    customer = Customer(**data)
    store.upsert_customer(customer)
    logger.info("Customer %s registered", customer.customer_id)
    return customer


@router.get("/customers/{customer_id}", response_model=Customer)
async def get_customer(customer_id: str, request: Request) -> Customer:
    return _get_customer(_get_store(request), customer_id)


@router.post("/customers/rescreen", response_model=RescreeningResult)
async def rescreen_all(request: Request) -> RescreeningResult:
    """Periodic re-screen of every customer not already flagged."""
    engine = request.app.state.engine
    return rescreen_customers(_get_store(request), engine.sanctions_list, engine.config)


@router.post("/customers/{customer_id}/screen", response_model=ScreeningResult)
async def screen_customer(customer_id: str, request: Request) -> ScreeningResult:
    """Screen one customer against the sanctions list and record the outcome."""
    store = _get_store(request)
    engine = request.app.state.engine
    customer = _get_customer(store, customer_id)

    result = screen_name(
        customer.first_name,
        customer.last_name,
        engine.sanctions_list,
        date_of_birth=customer.date_of_birth,
        config=engine.config,
    )
    store.upsert_customer(customer.model_copy(update={"is_sanctioned": result.is_match}))
    store.add_audit(
        AuditEntry(
            action_type="sanctions_screening",
            entity_type="customer",
            entity_id=customer_id,
            description="potential_match" if result.is_match else "clear",
            metadata={
                "screened_name": result.screened_name,
                "match_score": result.matches[0].match_score if result.matches else 0,
            },
            timestamp=result.screened_at,
        )
    )
    return result
