"""Transaction history and manual review endpoints."""

from datetime import datetime, timedelta, timezone
from typing import List

from fastapi import APIRouter, HTTPException, Request

from bullion_aml.compliance.review import review_transaction
from bullion_aml.exceptions import InvalidReviewError, TransactionNotFoundError
from bullion_aml.models import StoredTransaction, TransactionReview
from bullion_aml.storage.memory import MemoryStore

router = APIRouter(prefix="/api", tags=["Transactions"])


def _get_store(request: Request) -> MemoryStore:
    """Retrieve the memory store from application state."""
    return request.app.state.store


@router.get("/transactions/{customer_id}", response_model=List[StoredTransaction])
async def get_customer_transactions(
    customer_id: str,
    request: Request,
    days: int = 7,
) -> List[StoredTransaction]:
    """Get a customer's transactions from the last N days (default: the structuring window)."""
    store = _get_store(request)
    since = datetime.now(timezone.utc) - timedelta(days=days)
    return store.get_by_customer(customer_id, since=since)


@router.post("/transactions/{transaction_id}/review", response_model=StoredTransaction)
async def review(
    transaction_id: str,
    payload: TransactionReview,
    request: Request,
) -> StoredTransaction:
    """Approve or reject a transaction held for manual review."""
    try:
        return review_transaction(
            _get_store(request),
            transaction_id,
            payload.decision,
            payload.notes,
            payload.admin_id,
        )
    except TransactionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidReviewError as e:
        raise HTTPException(status_code=400, detail=str(e))
