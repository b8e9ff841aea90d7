"""Manual review of transactions held by the checkout engine.

Compliance staff approve or reject a ``requires_review`` purchase with
mandatory notes. Approval releases the payment and, for a customer whose
EDD is already complete, lifts the outstanding EDD requirement.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from bullion_aml.exceptions import InvalidReviewError, TransactionNotFoundError
from bullion_aml.models import AuditEntry, StoredTransaction
from bullion_aml.storage.memory import MemoryStore

logger = logging.getLogger(__name__)

REVIEW_OUTCOMES = {
    "approve": ("approved", "succeeded"),
    "reject": ("rejected", "rejected"),
}


def review_transaction(
    store: MemoryStore,
    transaction_id: str,
    decision: str,
    notes: str,
    admin_id: Optional[str] = None,
) -> StoredTransaction:
    """Record a reviewer's decision on a held transaction."""
    if decision not in REVIEW_OUTCOMES:
        raise InvalidReviewError(f"Unknown review decision: {decision}")
    if not notes or not notes.strip():
        raise InvalidReviewError("Review notes are required")

    tx = store.get_transaction(transaction_id)
    if tx is None:
        raise TransactionNotFoundError(transaction_id)
    if tx.payment_status != "pending_review":
        raise InvalidReviewError(
            f"Transaction {transaction_id} is not awaiting review ({tx.payment_status})"
        )

    review_status, payment_status = REVIEW_OUTCOMES[decision]
    now = datetime.now(timezone.utc)
    tx.review_status = review_status
    tx.review_notes = notes
    tx.reviewed_by = admin_id
    tx.reviewed_at = now
    tx.payment_status = payment_status

    if decision == "approve":
        customer = store.get_customer(tx.customer_id)
        if customer is not None and customer.requires_enhanced_dd and customer.edd_completed:
            store.upsert_customer(customer.model_copy(update={"requires_enhanced_dd": False}))
            logger.info("Cleared EDD requirement for customer %s", customer.customer_id)

    store.add_audit(
        AuditEntry(
            action_type="transaction_reviewed",
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"Transaction {review_status} by admin: {notes}",
            metadata={
                "decision": decision,
                "notes": notes,
                "admin_id": admin_id,
                "customer_id": tx.customer_id,
            },
            timestamp=now,
        )
    )
    logger.info("Transaction %s %s by %s", transaction_id, review_status, admin_id)
    return tx
