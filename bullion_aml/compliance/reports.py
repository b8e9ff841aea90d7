"""Regulatory report generation (TTR and SMR).

Reports are created as ``pending`` records with their AUSTRAC submission
deadline attached; lodging them is outside this service.
"""

import logging
import uuid
from datetime import date, datetime, timezone
from typing import Optional

from bullion_aml.compliance.deadlines import (
    business_days_remaining,
    calculate_smr_deadline,
    calculate_ttr_deadline,
    is_deadline_approaching,
    is_deadline_passed,
)
from bullion_aml.models import (
    AuditEntry,
    Customer,
    DeadlineAlert,
    DeadlineCheckResult,
    SMRRecord,
    StoredTransaction,
    TTRRecord,
)
from bullion_aml.storage.memory import MemoryStore

logger = logging.getLogger(__name__)

VERIFICATION_METHODS = {
    "electronic_id": "Electronic verification of government-issued photo ID",
    "manual_document": "Manual verification",
    "dvs_verified": "Electronic verification via DVS",
}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def generate_ttr(
    transaction: StoredTransaction,
    customer: Customer,
    store: MemoryStore,
) -> TTRRecord:
    """Build, store and audit a Threshold Transaction Report."""
    created_at = _now()
    reference = f"TTR-{int(created_at.timestamp() * 1000)}-{transaction.transaction_id[:8]}"
    transaction_date = transaction.timestamp.date()

    record = TTRRecord(
        ttr_reference=reference,
        transaction_id=transaction.transaction_id,
        customer_id=customer.customer_id,
        transaction_date=transaction_date,
        transaction_amount=transaction.amount,
        transaction_currency=transaction.currency,
        customer_name=f"{customer.first_name} {customer.last_name}".strip()
        or "Name not provided",
        customer_dob=customer.date_of_birth,
        customer_occupation=customer.occupation or "Not provided",
        customer_source_of_funds=customer.source_of_funds or "Not declared",
        customer_employer=customer.employer or "N/A",
        verification_method=VERIFICATION_METHODS.get(
            customer.verification_level, "Not verified"
        ),
        deadline=calculate_ttr_deadline(transaction_date),
        created_at=created_at,
    )
    store.add_ttr(record)
    store.add_audit(
        AuditEntry(
            action_type="ttr_created",
            entity_type="transaction",
            entity_id=transaction.transaction_id,
            description=f"TTR {reference} generated",
            metadata={
                "customer_id": customer.customer_id,
                "amount": transaction.amount,
                "deadline": record.deadline.isoformat(),
            },
            timestamp=created_at,
        )
    )
    logger.info(
        "TTR %s generated for transaction %s (due %s)",
        reference,
        transaction.transaction_id,
        record.deadline,
    )
    return record


def build_smr_narrative(suspicion_type: str, indicators: list[str], narrative: str) -> str:
    return (
        "Suspicious Matter Report\n\n"
        f"Suspicion Type: {suspicion_type}\n"
        f"Indicators: {', '.join(indicators)}\n\n"
        "Narrative:\n"
        f"{narrative}\n\n"
        "This matter was flagged by automated compliance systems and requires "
        "review within 3 business days."
    )


def generate_smr(
    store: MemoryStore,
    customer_id: str,
    suspicion_type: str,
    indicators: list[str],
    narrative: str,
    transaction_id: Optional[str] = None,
    transaction_amount: Optional[float] = None,
    investigation_id: Optional[str] = None,
) -> SMRRecord:
    """Build, store and audit a Suspicious Matter Report."""
    created_at = _now()
    record = SMRRecord(
        id=str(uuid.uuid4()),
        customer_id=customer_id,
        transaction_id=transaction_id,
        edd_investigation_id=investigation_id,
        suspicion_category=suspicion_type,
        indicators=indicators,
        description=build_smr_narrative(suspicion_type, indicators, narrative),
        transaction_amount=transaction_amount,
        deadline=calculate_smr_deadline(created_at.date()),
        created_at=created_at,
    )
    store.add_smr(record)
    store.add_audit(
        AuditEntry(
            action_type="smr_created",
            entity_type="suspicious_activity_report",
            entity_id=record.id,
            description=f"SMR generated for {suspicion_type}",
            metadata={
                "customer_id": customer_id,
                "transaction_id": transaction_id,
                "suspicion_type": suspicion_type,
                "indicators": indicators,
            },
            timestamp=created_at,
        )
    )
    logger.warning("SMR %s generated for customer %s (%s)", record.id, customer_id, suspicion_type)
    return record


# First warning goes out five business days before a report is due
DEADLINE_WARNING_DAYS = 5


def check_report_deadlines(
    store: MemoryStore,
    today: Optional[date] = None,
    threshold_days: int = DEADLINE_WARNING_DAYS,
) -> DeadlineCheckResult:
    """Pending TTRs and SMRs that are due soon or already overdue."""
    if today is None:
        today = _now().date()

    pending = [
        ("TTR", r.ttr_reference, r.customer_id, r.transaction_id, r.deadline)
        for r in store.get_ttr_reports()
        if r.status == "pending"
    ] + [
        ("SMR", r.id, r.customer_id, r.transaction_id, r.deadline)
        for r in store.get_smr_reports()
        if r.status == "pending"
    ]

    result = DeadlineCheckResult(checked_on=today, threshold_days=threshold_days)
    for report_type, reference, customer_id, transaction_id, deadline in pending:
        overdue = is_deadline_passed(deadline, today)
        if not overdue and not is_deadline_approaching(deadline, threshold_days, today):
            continue
        alert = DeadlineAlert(
            report_type=report_type,
            reference=reference,
            customer_id=customer_id,
            transaction_id=transaction_id,
            deadline=deadline,
            business_days_remaining=business_days_remaining(deadline, today),
            overdue=overdue,
        )
        if overdue:
            logger.warning("%s %s is overdue (deadline %s)", report_type, reference, deadline)
            result.overdue.append(alert)
        else:
            result.approaching.append(alert)

    logger.info(
        "Deadline check on %s: %d approaching, %d overdue",
        today,
        len(result.approaching),
        len(result.overdue),
    )
    return result
