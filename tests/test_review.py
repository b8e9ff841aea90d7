"""Tests for manual review of held transactions."""

import pytest

from bullion_aml.compliance.review import review_transaction
from bullion_aml.exceptions import InvalidReviewError, TransactionNotFoundError
from tests.conftest import make_customer, make_stored


@pytest.fixture
def held(store):
    make_customer(store)
    tx = make_stored(amount=60000.0, tx_id="tx-held", payment_status="pending_review", decision="requires_review")
    store.add(tx)
    return tx


class TestReviewDecision:
    def test_approve_releases_payment(self, store, held):
        tx = review_transaction(store, "tx-held", "approve", "Source of funds verified", admin_id="admin-1")
        assert tx.payment_status == "succeeded"
        assert tx.review_status == "approved"
        assert tx.review_notes == "Source of funds verified"
        assert tx.reviewed_by == "admin-1"
        assert tx.reviewed_at is not None
        assert store.get_transaction("tx-held").payment_status == "succeeded"

    def test_reject(self, store, held):
        tx = review_transaction(store, "tx-held", "reject", "Funds unexplained", admin_id="admin-1")
        assert tx.payment_status == "rejected"
        assert tx.review_status == "rejected"

    def test_approved_purchase_counts_towards_spend(self, store, held):
        from bullion_aml.compliance.thresholds import get_compliance_requirements

        assert get_compliance_requirements("cust-1", 0.0, store).cumulative_total == 0
        review_transaction(store, "tx-held", "approve", "OK")
        assert get_compliance_requirements("cust-1", 0.0, store).cumulative_total == 60000.0

    def test_audited(self, store, held):
        review_transaction(store, "tx-held", "reject", "Funds unexplained", admin_id="admin-1")
        entries = store.get_audit_log(entity_id="tx-held", action_type="transaction_reviewed")
        assert len(entries) == 1
        assert entries[0].metadata["decision"] == "reject"
        assert entries[0].metadata["admin_id"] == "admin-1"
        assert entries[0].metadata["customer_id"] == "cust-1"


class TestReviewValidation:
    @pytest.mark.parametrize("notes", ["", "   "])
    def test_notes_required(self, store, held, notes):
        with pytest.raises(InvalidReviewError):
            review_transaction(store, "tx-held", "approve", notes)
        assert store.get_transaction("tx-held").payment_status == "pending_review"

    def test_unknown_decision(self, store, held):
        with pytest.raises(InvalidReviewError):
            review_transaction(store, "tx-held", "escalate", "Notes")

    def test_unknown_transaction(self, store):
        with pytest.raises(TransactionNotFoundError):
            review_transaction(store, "missing", "approve", "Notes")

    def test_only_held_transactions(self, store, held):
        review_transaction(store, "tx-held", "approve", "OK")
        with pytest.raises(InvalidReviewError):
            review_transaction(store, "tx-held", "reject", "Changed my mind")

    def test_approved_purchase_not_reviewable(self, store):
        store.add(make_stored(tx_id="tx-ok"))
        with pytest.raises(InvalidReviewError):
            review_transaction(store, "tx-ok", "approve", "Notes")


class TestReviewEDD:
    def test_approval_clears_completed_edd(self, store):
        make_customer(store, requires_enhanced_dd=True, edd_completed=True)
        store.add(make_stored(tx_id="tx-held", payment_status="pending_review"))
        review_transaction(store, "tx-held", "approve", "EDD complete")
        assert store.get_customer("cust-1").requires_enhanced_dd is False

    def test_approval_keeps_outstanding_edd(self, store):
        make_customer(store, requires_enhanced_dd=True, edd_completed=False)
        store.add(make_stored(tx_id="tx-held", payment_status="pending_review"))
        review_transaction(store, "tx-held", "approve", "Released pending EDD")
        assert store.get_customer("cust-1").requires_enhanced_dd is True

    def test_rejection_keeps_edd_flag(self, store):
        make_customer(store, requires_enhanced_dd=True, edd_completed=True)
        store.add(make_stored(tx_id="tx-held", payment_status="pending_review"))
        review_transaction(store, "tx-held", "reject", "Declined")
        assert store.get_customer("cust-1").requires_enhanced_dd is True
