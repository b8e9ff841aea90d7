"""Tests for the EDD investigation service."""

import pytest

from bullion_aml.exceptions import (
    CustomerNotFoundError,
    InvalidInvestigationActionError,
    InvestigationNotFoundError,
    ManagementApprovalRequiredError,
)
from tests.conftest import make_customer, make_stored


@pytest.fixture
def opened(store, edd_service):
    make_customer(store)
    store.add(make_stored(amount=60000.0, tx_id="tx-1"))
    return edd_service.open_investigation(
        "cust-1", "Cumulative spend over $50,000", transaction_id="tx-1", admin_id="admin-1"
    ).investigation


class TestOpenInvestigation:
    def test_creates_case(self, store, edd_service):
        make_customer(store)
        result = edd_service.open_investigation("cust-1", "Manual review")
        assert result.created is True
        assert result.error is None
        assert result.investigation.investigation_number == "EDD-000001"
        assert result.investigation.status == "open"

    def test_updates_customer_flags(self, store, opened):
        customer = store.get_customer("cust-1")
        assert customer.requires_enhanced_dd is True
        assert customer.edd_completed is False
        assert customer.current_investigation_id == opened.id

    def test_links_transaction(self, store, opened):
        assert store.get_transaction("tx-1").edd_investigation_id == opened.id

    def test_audited(self, store, opened):
        entries = store.get_audit_log(entity_id=opened.id, action_type="edd_investigation_created")
        assert len(entries) == 1

    def test_one_active_case_per_customer(self, store, edd_service, opened):
        store.add(make_stored(amount=1000.0, tx_id="tx-2"))
        result = edd_service.open_investigation("cust-1", "Second trigger", transaction_id="tx-2")
        assert result.created is False
        assert result.investigation.id == opened.id
        assert result.error == "Customer already has an active investigation"
        assert store.get_transaction("tx-2").edd_investigation_id == opened.id
        assert len(store.get_investigations(customer_id="cust-1")) == 1

    def test_new_case_after_completion(self, edd_service, opened):
        edd_service.complete(opened.id, "All verified", "Low risk", "approve_relationship")
        result = edd_service.open_investigation("cust-1", "New trigger")
        assert result.created is True
        assert result.investigation.investigation_number == "EDD-000002"

    def test_unknown_customer(self, edd_service):
        with pytest.raises(CustomerNotFoundError):
            edd_service.open_investigation("nobody", "Manual review")


class TestChecklist:
    def test_update_section(self, edd_service, opened):
        inv = edd_service.update_checklist(
            opened.id,
            "source_of_funds",
            {"completed": True, "findings": "Salary and savings", "bank_statements": 3},
            admin_id="admin-2",
        )
        section = inv.source_of_funds
        assert section.completed is True
        assert section.findings == "Salary and savings"
        assert section.reviewed_by == "admin-2"
        assert section.reviewed_at is not None
        assert section.model_dump()["bank_statements"] == 3

    def test_update_merges(self, edd_service, opened):
        edd_service.update_checklist(opened.id, "source_of_wealth", {"findings": "Inheritance"})
        inv = edd_service.update_checklist(opened.id, "source_of_wealth", {"verified": True})
        assert inv.source_of_wealth.findings == "Inheritance"
        assert inv.source_of_wealth.verified is True

    def test_invalid_section(self, edd_service, opened):
        with pytest.raises(InvalidInvestigationActionError):
            edd_service.update_checklist(opened.id, "favourite_colour", {})

    def test_wrongly_typed_field(self, edd_service, opened):
        with pytest.raises(InvalidInvestigationActionError):
            edd_service.update_checklist(opened.id, "source_of_funds", {"completed": "maybe"})
        assert opened.source_of_funds.completed is False
        assert opened.source_of_funds.reviewed_by is None

    def test_unknown_investigation(self, edd_service):
        with pytest.raises(InvestigationNotFoundError):
            edd_service.update_checklist("missing", "source_of_funds", {})


class TestStatusActions:
    def test_request_information(self, edd_service, opened):
        req = edd_service.request_information(opened.id, ["Payslips", "Bank statements"])
        assert req.status == "pending"
        assert opened.status == "awaiting_customer_info"
        assert len(opened.information_requests) == 1

    def test_request_information_requires_items(self, edd_service, opened):
        with pytest.raises(InvalidInvestigationActionError):
            edd_service.request_information(opened.id, [])

    def test_escalate(self, store, edd_service, opened):
        escalation = edd_service.escalate(opened.id, "Inconsistent source of funds", "admin-1")
        assert escalation.escalated_to == "management"
        assert opened.status == "escalated"
        assert store.get_audit_log(action_type="edd_investigation_escalated")

    def test_submit_recommendation(self, edd_service, opened):
        edd_service.submit_recommendation(opened.id, "Findings", "High risk", "reject_relationship")
        assert opened.status == "under_review"
        assert opened.compliance_recommendation == "reject_relationship"

    def test_active_states_block_new_case(self, edd_service, opened):
        edd_service.escalate(opened.id, "Needs sign-off")
        assert edd_service.open_investigation("cust-1", "Again").created is False


class TestManagementApproval:
    def test_requires_high_risk_recommendation(self, edd_service, opened):
        with pytest.raises(InvalidInvestigationActionError):
            edd_service.approve_management(opened.id, "manager-1")

    def test_low_risk_recommendation_rejected(self, edd_service, opened):
        edd_service.submit_recommendation(opened.id, "Fine", "Low", "approve_relationship")
        with pytest.raises(InvalidInvestigationActionError):
            edd_service.approve_management(opened.id, "manager-1")

    def test_approve(self, edd_service, opened):
        edd_service.submit_recommendation(opened.id, "Findings", "High risk", "escalate_to_smr")
        inv = edd_service.approve_management(opened.id, "manager-1")
        assert inv.approved_by_management is True
        assert inv.management_approver_id == "manager-1"
        assert inv.management_approved_at is not None


class TestComplete:
    def test_approve_relationship(self, store, edd_service, opened):
        result = edd_service.complete(opened.id, "All verified", "Low risk", "approve_relationship", "admin-1")
        assert result.investigation.status == "completed_approved"
        assert result.monitoring_level == "standard"
        assert result.smr_created is False

        customer = store.get_customer("cust-1")
        assert customer.edd_completed is True
        assert customer.requires_enhanced_dd is False
        assert customer.current_investigation_id is None
        assert customer.monitoring_level == "standard"

    @pytest.mark.parametrize(
        "recommendation,status,level",
        [
            ("ongoing_monitoring", "completed_ongoing_monitoring", "ongoing_review"),
            ("enhanced_monitoring", "completed_ongoing_monitoring", "enhanced"),
        ],
    )
    def test_monitoring_outcomes(self, store, edd_service, opened, recommendation, status, level):
        result = edd_service.complete(opened.id, "Findings", "Summary", recommendation)
        assert result.investigation.status == status
        assert store.get_customer("cust-1").monitoring_level == level

    @pytest.mark.parametrize("recommendation", ["reject_relationship", "escalate_to_smr"])
    def test_high_risk_needs_approval(self, edd_service, opened, recommendation):
        with pytest.raises(ManagementApprovalRequiredError):
            edd_service.complete(opened.id, "Findings", "Summary", recommendation)
        assert opened.status == "open"

    def test_reject_relationship(self, store, edd_service, opened):
        edd_service.submit_recommendation(opened.id, "Findings", "High", "reject_relationship")
        edd_service.approve_management(opened.id, "manager-1")
        result = edd_service.complete(opened.id, "Findings", "High", "reject_relationship")
        assert result.investigation.status == "completed_rejected"
        assert store.get_customer("cust-1").monitoring_level == "blocked"
        assert result.smr_created is False

    def test_escalate_to_smr_files_report(self, store, edd_service, opened):
        edd_service.submit_recommendation(opened.id, "Unexplained wealth", "High", "escalate_to_smr")
        edd_service.approve_management(opened.id, "manager-1")
        result = edd_service.complete(opened.id, "Unexplained wealth", "High", "escalate_to_smr")

        assert result.smr_created is True
        smrs = store.get_smr_reports(customer_id="cust-1")
        assert len(smrs) == 1
        assert smrs[0].id == result.smr_id
        assert smrs[0].suspicion_category == "enhanced_dd_escalation"
        assert smrs[0].edd_investigation_id == opened.id
        assert smrs[0].transaction_id == "tx-1"
        assert smrs[0].transaction_amount == 60000.0
        assert store.get_customer("cust-1").monitoring_level == "blocked"

    def test_completion_audited(self, store, edd_service, opened):
        edd_service.complete(opened.id, "Findings", "Summary", "approve_relationship")
        entries = store.get_audit_log(entity_id=opened.id, action_type="edd_investigation_completed")
        assert entries[0].metadata["monitoring_level"] == "standard"

    def test_unknown_investigation(self, edd_service):
        with pytest.raises(InvestigationNotFoundError):
            edd_service.complete("missing", "F", "S", "approve_relationship")
