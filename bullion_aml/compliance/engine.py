"""Checkout compliance orchestrator.

Evaluates a purchase through every compliance check in order of severity:
  1. Sanctions / blocked relationship (instant block)
  2. Threshold requirements on cumulative spend
  3. KYC gate (unverified customer over the KYC threshold)
  4. Structuring
  5. Risk score (amount, account age, repeat activity, international,
     unusual pattern, cardholder name mismatch)

Then decides approved vs. requires_review, lodges any TTR/SMR the
purchase triggers, and stores the transaction and an audit entry.
USD purchases are converted to AUD once, up front, and every rule sees
the AUD value.
"""

import logging
import uuid
from typing import Optional

from bullion_aml.compliance.name_matching import compare_payment_name
from bullion_aml.compliance.reports import generate_smr, generate_ttr
from bullion_aml.compliance.risk_scoring import calculate_risk_score, get_risk_level
from bullion_aml.compliance.sanctions import screen_name
from bullion_aml.compliance.structuring import detect_structuring
from bullion_aml.compliance.thresholds import get_compliance_requirements, to_aud
from bullion_aml.exceptions import CustomerNotFoundError
from bullion_aml.models import (
    AuditEntry,
    CheckoutDecision,
    CheckoutFlags,
    CheckoutRequest,
    ComplianceConfig,
    ComplianceRequirements,
    Customer,
    RiskFactors,
    SanctionedEntity,
    StoredTransaction,
)
from bullion_aml.storage.memory import MemoryStore

logger = logging.getLogger(__name__)

# Checkout status -> payment status recorded on the stored transaction
PAYMENT_STATUSES = {
    "approved": "succeeded",
    "requires_review": "pending_review",
    "kyc_required": "requires_kyc",
    "blocked": "blocked",
}


class ComplianceEngine:
    """Orchestrates checkout evaluation through all compliance rules."""

    def __init__(
        self,
        sanctions_list: list[SanctionedEntity],
        store: MemoryStore,
        config: ComplianceConfig,
        usd_to_aud_rate: float = 1.52,
    ) -> None:
        self.sanctions_list = sanctions_list
        self.store = store
        self.config = config
        self.usd_to_aud_rate = usd_to_aud_rate

    def _record(
        self,
        request: CheckoutRequest,
        transaction_id: str,
        decision: CheckoutDecision,
        requirements: Optional[ComplianceRequirements] = None,
    ) -> StoredTransaction:
        """Persist the transaction and its audit entry."""
        stored_tx = StoredTransaction(
            transaction_id=transaction_id,
            customer_id=request.customer_id,
            amount=request.amount,
            currency=request.currency,
            amount_aud=to_aud(request, self.usd_to_aud_rate),
            timestamp=request.timestamp,
            payment_status=PAYMENT_STATUSES[decision.status],
            decision=decision.status,
            risk_score=decision.risk_score or 0,
            risk_level=decision.risk_level or "low",
            requires_kyc=bool(requirements and requirements.requires_kyc),
            requires_ttr=bool(requirements and requirements.requires_ttr),
            requires_enhanced_dd=bool(requirements and requirements.requires_enhanced_dd),
            flagged_for_review=decision.status in ("requires_review", "blocked"),
        )
        self.store.add(stored_tx)

        self.store.add_audit(
            AuditEntry(
                action_type="checkout_evaluated",
                entity_type="transaction",
                entity_id=transaction_id,
                description=f"Checkout {decision.status}: {decision.message}",
                metadata={
                    "customer_id": request.customer_id,
                    "amount": request.amount,
                    "currency": request.currency,
                    "amount_aud": to_aud(request, self.usd_to_aud_rate),
                    "status": decision.status,
                    "reason": decision.reason,
                    "risk_score": decision.risk_score,
                    "flags": decision.flags.model_dump(),
                },
                timestamp=request.timestamp,
            )
        )
        logger.info(
            "Checkout %s for customer %s: %s (score=%s)",
            transaction_id,
            request.customer_id,
            decision.status,
            decision.risk_score,
        )
        return stored_tx

    def _block(
        self, request: CheckoutRequest, transaction_id: str, reason: str, smr_ids: list[str]
    ) -> CheckoutDecision:
        decision = CheckoutDecision(
            transaction_id=transaction_id,
            status="blocked",
            reason=reason,
            message=(
                "Your transaction requires additional verification. "
                "Our compliance team will contact you."
            ),
            smr_ids=smr_ids,
        )
        self._record(request, transaction_id, decision)
        return decision

    def _screen_customer(self, customer: Customer) -> Optional[str]:
        """Screen the customer; on a new hit flag them and file an SMR."""
        result = screen_name(
            customer.first_name,
            customer.last_name,
            self.sanctions_list,
            date_of_birth=customer.date_of_birth,
            config=self.config,
        )
        if not result.is_match:
            return None

        logger.warning("Sanctions match for customer %s", customer.customer_id)
        self.store.upsert_customer(customer.model_copy(update={"is_sanctioned": True}))
        top = result.matches[0]
        smr = generate_smr(
            self.store,
            customer_id=customer.customer_id,
            suspicion_type="sanctions_match",
            indicators=[
                f"Match: {m.name} ({m.source}) - Score: {m.match_score}"
                for m in result.matches
            ],
            narrative=(
                f"Customer matched against {top.source} sanctions list. "
                f"Reference: {top.reference_number}"
            ),
        )
        return smr.id

    def evaluate_checkout(self, request: CheckoutRequest) -> CheckoutDecision:
        """Run a purchase through all compliance checks and record the outcome."""
        customer = self.store.get_customer(request.customer_id)
        if customer is None:
            raise CustomerNotFoundError(request.customer_id)

        transaction_id = str(uuid.uuid4())
        # Every rule below works in AUD
        amount_aud = to_aud(request, self.usd_to_aud_rate)

        # 1. Sanctions and relationship blocks
        if customer.is_sanctioned:
            return self._block(request, transaction_id, "sanctions_match", [])
        smr_id = self._screen_customer(customer)
        if smr_id is not None:
            return self._block(request, transaction_id, "sanctions_match", [smr_id])
        if customer.monitoring_level == "blocked":
            return self._block(request, transaction_id, "relationship_blocked", [])

        # 2. Thresholds on cumulative spend
        requirements = get_compliance_requirements(
            customer.customer_id,
            amount_aud,
            self.store,
            config=self.config,
            usd_to_aud_rate=self.usd_to_aud_rate,
        )

        # 3. KYC gate
        if requirements.requires_kyc and customer.verification_status != "verified":
            decision = CheckoutDecision(
                transaction_id=transaction_id,
                status="kyc_required",
                reason="kyc_required",
                message=(
                    f"Identity verification required for transactions over "
                    f"${self.config.kyc_threshold:,.0f}"
                ),
                requirements=requirements,
            )
            self._record(request, transaction_id, decision, requirements)
            return decision

        # 4. Structuring, evaluated before this purchase is stored
        structuring = detect_structuring(
            customer.customer_id,
            amount_aud,
            self.store,
            now=request.timestamp,
            config=self.config,
            usd_to_aud_rate=self.usd_to_aud_rate,
        )
        smr_ids: list[str] = []
        if structuring.is_structuring:
            smr = generate_smr(
                self.store,
                customer_id=customer.customer_id,
                suspicion_type="structuring",
                indicators=structuring.indicators,
                narrative=(
                    "Customer appears to be structuring transactions to avoid "
                    f"${self.config.kyc_threshold:,.0f} KYC threshold"
                ),
                transaction_id=transaction_id,
                transaction_amount=structuring.recent_total + amount_aud,
            )
            smr_ids.append(smr.id)

        # 5. Risk score
        name_check = None
        if request.cardholder_name is not None:
            name_check = compare_payment_name(
                customer.first_name,
                customer.last_name,
                request.cardholder_name,
                has_kyc=customer.verification_status == "verified",
            )
        previous_count = len(self.store.get_by_customer(customer.customer_id))
        factors = RiskFactors(
            transaction_amount=amount_aud,
            customer_age_days=(request.timestamp - customer.created_at).days,
            previous_transaction_count=previous_count,
            is_international=customer.country.strip().upper() != self.config.home_country,
            has_multiple_recent_transactions=previous_count >= self.config.repeat_transaction_count,
            unusual_pattern=structuring.is_structuring,
            payment_name_mismatch=name_check is not None and not name_check.is_match,
            mismatch_severity=name_check.mismatch_severity if name_check else None,
            has_kyc_verification=customer.verification_status == "verified",
        )
        risk_score = calculate_risk_score(factors)
        risk_level = get_risk_level(risk_score)

        requires_review = (
            risk_level == "high"
            or customer.risk_level == "high"
            or structuring.is_structuring
            or requirements.requires_enhanced_dd
        )

        decision = CheckoutDecision(
            transaction_id=transaction_id,
            status="requires_review" if requires_review else "approved",
            message=(
                "Transaction flagged for manual review"
                if requires_review
                else "Transaction approved"
            ),
            requirements=requirements,
            risk_score=risk_score,
            risk_level=risk_level,
            flags=CheckoutFlags(
                structuring=structuring.is_structuring,
                high_value=requirements.requires_enhanced_dd,
                high_risk=risk_level == "high",
                name_mismatch=factors.payment_name_mismatch,
            ),
            smr_ids=smr_ids,
        )
        stored_tx = self._record(request, transaction_id, decision, requirements)

        # Reporting obligation is independent of the approval decision
        if requirements.requires_ttr:
            ttr = generate_ttr(stored_tx, customer, self.store)
            stored_tx.ttr_reference = ttr.ttr_reference
            decision.ttr_reference = ttr.ttr_reference

        return decision
