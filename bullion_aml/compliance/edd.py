"""Enhanced due diligence (EDD) investigations.

An investigation is a case record whose status is advanced only by
explicit admin actions:

    open -> awaiting_customer_info   (request_information)
         -> under_review             (submit_recommendation)
         -> escalated                (escalate)
         -> completed_*              (complete)

No transition table is enforced. The service only guarantees that a
customer has at most one active investigation at creation time, and that
rejecting a relationship or escalating to an SMR carries management
approval.
"""

import logging
import uuid
from datetime import date, datetime, timezone
from typing import Any, Optional

from pydantic import ValidationError

from bullion_aml.compliance.reports import generate_smr
from bullion_aml.exceptions import (
    CustomerNotFoundError,
    InvalidInvestigationActionError,
    InvestigationNotFoundError,
    ManagementApprovalRequiredError,
)
from bullion_aml.models import (
    AuditEntry,
    ChecklistSection,
    CompletionResult,
    EDDInvestigation,
    Escalation,
    InformationRequest,
    OpenInvestigationResult,
)
from bullion_aml.storage.memory import MemoryStore

logger = logging.getLogger(__name__)

CHECKLIST_SECTIONS = (
    "customer_information_review",
    "employment_verification",
    "source_of_wealth",
    "source_of_funds",
    "transaction_pattern_analysis",
    "additional_information",
)

# Outcomes that end or report the relationship need sign-off
HIGH_RISK_RECOMMENDATIONS = frozenset({"reject_relationship", "escalate_to_smr"})

MONITORING_LEVELS = {
    "approve_relationship": "standard",
    "ongoing_monitoring": "ongoing_review",
    "enhanced_monitoring": "enhanced",
    "reject_relationship": "blocked",
    "escalate_to_smr": "blocked",
}

COMPLETED_STATUSES = {
    "approve_relationship": "completed_approved",
    "ongoing_monitoring": "completed_ongoing_monitoring",
    "enhanced_monitoring": "completed_ongoing_monitoring",
    "reject_relationship": "completed_rejected",
    "escalate_to_smr": "completed_rejected",
}


def _now() -> datetime:
    return datetime.now(timezone.utc)


class EDDService:
    """Admin actions over EDD investigations."""

    def __init__(self, store: MemoryStore) -> None:
        self.store = store

    def _get(self, investigation_id: str) -> EDDInvestigation:
        investigation = self.store.get_investigation(investigation_id)
        if investigation is None:
            raise InvestigationNotFoundError(investigation_id)
        return investigation

    def _audit(
        self,
        action_type: str,
        investigation_id: str,
        description: str,
        metadata: dict[str, Any],
    ) -> None:
        self.store.add_audit(
            AuditEntry(
                action_type=action_type,
                entity_type="edd_investigation",
                entity_id=investigation_id,
                description=description,
                metadata=metadata,
                timestamp=_now(),
            )
        )

    def _link_transaction(self, transaction_id: Optional[str], investigation_id: str) -> None:
        if not transaction_id:
            return
        tx = self.store.get_transaction(transaction_id)
        if tx is not None:
            tx.edd_investigation_id = investigation_id

    def open_investigation(
        self,
        customer_id: str,
        trigger_reason: str,
        transaction_id: Optional[str] = None,
        triggered_by: str = "admin",
        admin_id: Optional[str] = None,
    ) -> OpenInvestigationResult:
        """Open a case unless the customer already has an active one.

        When one exists, the transaction is linked to it instead and the
        existing case is returned with ``created=False``.
        """
        customer = self.store.get_customer(customer_id)
        if customer is None:
            raise CustomerNotFoundError(customer_id)

        existing = self.store.get_active_investigation(customer_id)
        if existing is not None:
            self._link_transaction(transaction_id, existing.id)
            logger.info(
                "Customer %s already under investigation %s",
                customer_id,
                existing.investigation_number,
            )
            return OpenInvestigationResult(
                created=False,
                investigation=existing,
                error="Customer already has an active investigation",
            )

        now = _now()
        investigation = EDDInvestigation(
            id=str(uuid.uuid4()),
            investigation_number=self.store.next_investigation_number(),
            customer_id=customer_id,
            transaction_id=transaction_id,
            triggered_by=triggered_by,
            triggered_by_admin_id=admin_id,
            trigger_reason=trigger_reason,
            assigned_to=admin_id,
            opened_at=now,
            last_activity_at=now,
        )
        self.store.save_investigation(investigation)

        self.store.upsert_customer(
            customer.model_copy(
                update={
                    "requires_enhanced_dd": True,
                    "edd_completed": False,
                    "current_investigation_id": investigation.id,
                }
            )
        )
        self._link_transaction(transaction_id, investigation.id)

        self._audit(
            "edd_investigation_created",
            investigation.id,
            f"EDD investigation created: {trigger_reason}",
            {
                "investigation_number": investigation.investigation_number,
                "customer_id": customer_id,
                "transaction_id": transaction_id,
                "triggered_by": triggered_by,
                "admin_id": admin_id,
            },
        )
        logger.info("EDD investigation %s opened", investigation.investigation_number)
        return OpenInvestigationResult(created=True, investigation=investigation)

    def update_checklist(
        self,
        investigation_id: str,
        section_name: str,
        section_data: dict[str, Any],
        admin_id: Optional[str] = None,
    ) -> EDDInvestigation:
        """Merge reviewer input into one checklist section."""
        if section_name not in CHECKLIST_SECTIONS:
            raise InvalidInvestigationActionError(f"Invalid section name: {section_name}")
        investigation = self._get(investigation_id)

        now = _now()
        current: ChecklistSection = getattr(investigation, section_name)
        merged = {
            **current.model_dump(),
            **section_data,
            "reviewed_by": admin_id,
            "reviewed_at": now,
        }
        try:
            section = ChecklistSection(**merged)
        except ValidationError as exc:
            raise InvalidInvestigationActionError(
                f"Invalid data for section {section_name}: {exc.error_count()} field error(s)"
            ) from exc
        setattr(investigation, section_name, section)
        investigation.last_activity_at = now

        self._audit(
            "edd_investigation_updated",
            investigation_id,
            f"Investigation checklist updated: {section_name}",
            {
                "section_name": section_name,
                "completed": section_data.get("completed"),
                "admin_id": admin_id,
            },
        )
        return investigation

    def request_information(
        self,
        investigation_id: str,
        items: list[str],
        admin_id: Optional[str] = None,
        deadline: Optional[date] = None,
    ) -> InformationRequest:
        """Ask the customer for more documents; the case waits on them."""
        if not items:
            raise InvalidInvestigationActionError("At least one item must be requested")
        investigation = self._get(investigation_id)

        now = _now()
        request = InformationRequest(
            id=str(uuid.uuid4()),
            requested_at=now,
            requested_by=admin_id,
            items=items,
            deadline=deadline,
        )
        investigation.information_requests.append(request)
        investigation.status = "awaiting_customer_info"
        investigation.last_activity_at = now

        self._audit(
            "edd_information_requested",
            investigation_id,
            f"Information requested from customer: {', '.join(items)}",
            {
                "items": items,
                "deadline": deadline.isoformat() if deadline else None,
                "admin_id": admin_id,
            },
        )
        return request

    def escalate(
        self,
        investigation_id: str,
        reason: str,
        admin_id: Optional[str] = None,
        escalated_to: str = "management",
    ) -> Escalation:
        if not reason:
            raise InvalidInvestigationActionError("An escalation reason is required")
        investigation = self._get(investigation_id)

        now = _now()
        escalation = Escalation(
            id=str(uuid.uuid4()),
            escalated_at=now,
            escalated_by=admin_id,
            escalated_to=escalated_to,
            reason=reason,
        )
        investigation.escalations.append(escalation)
        investigation.status = "escalated"
        investigation.last_activity_at = now

        self._audit(
            "edd_investigation_escalated",
            investigation_id,
            f"Investigation escalated: {reason}",
            {"reason": reason, "escalated_to": escalated_to, "admin_id": admin_id},
        )
        logger.warning(
            "EDD investigation %s escalated to %s: %s",
            investigation.investigation_number,
            escalated_to,
            reason,
        )
        return escalation

    def submit_recommendation(
        self,
        investigation_id: str,
        findings: str,
        risk_summary: str,
        recommendation: str,
        admin_id: Optional[str] = None,
    ) -> EDDInvestigation:
        """Record the investigator's outcome and put the case under review."""
        if recommendation not in MONITORING_LEVELS:
            raise InvalidInvestigationActionError(
                f"Unknown compliance recommendation: {recommendation}"
            )
        investigation = self._get(investigation_id)

        investigation.investigation_findings = findings
        investigation.risk_assessment_summary = risk_summary
        investigation.compliance_recommendation = recommendation
        investigation.status = "under_review"
        investigation.last_activity_at = _now()

        self._audit(
            "edd_recommendation_submitted",
            investigation_id,
            f"Recommendation submitted: {recommendation}",
            {"decision": recommendation, "admin_id": admin_id},
        )
        return investigation

    def approve_management(self, investigation_id: str, manager_id: str) -> EDDInvestigation:
        """Management sign-off; only meaningful for high-risk recommendations."""
        investigation = self._get(investigation_id)
        if investigation.compliance_recommendation not in HIGH_RISK_RECOMMENDATIONS:
            raise InvalidInvestigationActionError(
                "Management approval only required for reject_relationship "
                "or escalate_to_smr decisions"
            )

        now = _now()
        investigation.approved_by_management = True
        investigation.management_approver_id = manager_id
        investigation.management_approved_at = now
        investigation.last_activity_at = now

        self._audit(
            "edd_management_approved",
            investigation_id,
            "Management approval granted for investigation",
            {
                "management_id": manager_id,
                "decision": investigation.compliance_recommendation,
            },
        )
        return investigation

    def complete(
        self,
        investigation_id: str,
        findings: str,
        risk_summary: str,
        recommendation: str,
        admin_id: Optional[str] = None,
    ) -> CompletionResult:
        """Close the case and apply its outcome to the customer."""
        if recommendation not in MONITORING_LEVELS:
            raise InvalidInvestigationActionError(
                f"Unknown compliance recommendation: {recommendation}"
            )
        investigation = self._get(investigation_id)

        if recommendation in HIGH_RISK_RECOMMENDATIONS and not investigation.approved_by_management:
            raise ManagementApprovalRequiredError(
                "Management approval required for this decision. "
                "Please request management approval first."
            )

        monitoring_level = MONITORING_LEVELS[recommendation]
        now = _now()
        investigation.investigation_findings = findings
        investigation.risk_assessment_summary = risk_summary
        investigation.compliance_recommendation = recommendation
        investigation.status = COMPLETED_STATUSES[recommendation]
        investigation.reviewed_by = admin_id
        investigation.completed_at = now
        investigation.last_activity_at = now

        customer = self.store.get_customer(investigation.customer_id)
        if customer is not None:
            self.store.upsert_customer(
                customer.model_copy(
                    update={
                        "edd_completed": True,
                        "requires_enhanced_dd": False,
                        "monitoring_level": monitoring_level,
                        "current_investigation_id": None,
                    }
                )
            )

        smr_id = None
        if recommendation == "escalate_to_smr":
            amount = None
            if investigation.transaction_id:
                tx = self.store.get_transaction(investigation.transaction_id)
                if tx is not None:
                    amount = tx.amount_aud if tx.amount_aud is not None else tx.amount
            smr = generate_smr(
                self.store,
                customer_id=investigation.customer_id,
                suspicion_type="enhanced_dd_escalation",
                indicators=[findings, risk_summary],
                narrative=(
                    f"EDD Investigation {investigation.investigation_number} "
                    f"escalated to SMR. {findings}"
                ),
                transaction_id=investigation.transaction_id,
                transaction_amount=amount,
                investigation_id=investigation.id,
            )
            smr_id = smr.id

        self._audit(
            "edd_investigation_completed",
            investigation_id,
            f"Investigation completed with decision: {recommendation}",
            {
                "decision": recommendation,
                "monitoring_level": monitoring_level,
                "admin_id": admin_id,
            },
        )
        logger.info(
            "EDD investigation %s completed: %s",
            investigation.investigation_number,
            recommendation,
        )
        return CompletionResult(
            investigation=investigation,
            monitoring_level=monitoring_level,
            smr_created=smr_id is not None,
            smr_id=smr_id,
        )
