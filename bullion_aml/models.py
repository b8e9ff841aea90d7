"""Pydantic models for the bullion AML/CTF compliance service."""

from datetime import date, datetime, timezone
from typing import Annotated, Any, Literal, Optional

from pydantic import AfterValidator, BaseModel, Field


VerificationStatus = Literal["unverified", "pending", "verified", "rejected"]
VerificationLevel = Literal["none", "electronic_id", "manual_document", "dvs_verified"]
RiskLevel = Literal["low", "medium", "high"]
MonitoringLevel = Literal["standard", "ongoing_review", "enhanced", "blocked"]
MismatchSeverity = Literal["none", "low", "medium", "high"]
CheckoutStatus = Literal["approved", "requires_review", "kyc_required", "blocked"]

InvestigationStatus = Literal[
    "open",
    "awaiting_customer_info",
    "under_review",
    "escalated",
    "completed_approved",
    "completed_rejected",
    "completed_ongoing_monitoring",
]
TriggerType = Literal["system", "admin", "transaction_review"]
ComplianceRecommendation = Literal[
    "approve_relationship",
    "ongoing_monitoring",
    "enhanced_monitoring",
    "reject_relationship",
    "escalate_to_smr",
]
SuspicionType = Literal[
    "structuring",
    "sanctions_match",
    "unusual_pattern",
    "high_risk",
    "enhanced_dd_escalation",
    "other",
]
EntityType = Literal[
    "sole_trader", "company", "partnership", "trust", "smsf", "other"
]


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Read naive datetimes as UTC and convert aware ones to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# Every stored or compared timestamp goes through this type
UTCDatetime = Annotated[datetime, AfterValidator(ensure_utc)]


# --- Customers and transactions ---


class CustomerCreate(BaseModel):
    """Payload for registering a customer."""
    customer_id: str
    first_name: str
    last_name: str
    date_of_birth: Optional[date] = None
    country: str = "AU"
    created_at: Optional[UTCDatetime] = None
    verification_status: VerificationStatus = "unverified"
    verification_level: VerificationLevel = "none"
    risk_level: RiskLevel = "low"
    is_pep: bool = False
    source_of_funds: Optional[str] = None
    source_of_wealth: Optional[str] = None
    occupation: Optional[str] = None
    employer: Optional[str] = None


class Customer(CustomerCreate):
    """A customer as held in the store."""
    created_at: UTCDatetime
    risk_score: int = 0
    is_sanctioned: bool = False
    requires_enhanced_dd: bool = False
    edd_completed: bool = False
    monitoring_level: MonitoringLevel = "standard"
    current_investigation_id: Optional[str] = None


class CheckoutRequest(BaseModel):
    """A purchase submitted for compliance evaluation."""
    customer_id: str
    amount: float  # in `currency`
    currency: Literal["AUD", "USD"] = "AUD"
    amount_aud: Optional[float] = None
    timestamp: UTCDatetime
    cardholder_name: Optional[str] = None
    product_details: Optional[dict[str, Any]] = None


class StoredTransaction(BaseModel):
    """A transaction persisted in the store. Never deleted."""
    transaction_id: str
    customer_id: str
    amount: float
    currency: str = "AUD"
    amount_aud: Optional[float] = None
    timestamp: UTCDatetime
    payment_status: str = "succeeded"
    decision: str = "approved"
    risk_score: int = 0
    risk_level: RiskLevel = "low"
    requires_kyc: bool = False
    requires_ttr: bool = False
    requires_enhanced_dd: bool = False
    flagged_for_review: bool = False
    ttr_reference: Optional[str] = None
    edd_investigation_id: Optional[str] = None
    review_status: Optional[Literal["approved", "rejected"]] = None
    review_notes: Optional[str] = None
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None


class TransactionReview(BaseModel):
    """Manual decision on a transaction held for review."""
    decision: Literal["approve", "reject"]
    notes: str
    admin_id: Optional[str] = None


# --- Decision engine inputs and outputs ---


class ThresholdFlags(BaseModel):
    """Compliance actions triggered by a single amount."""
    requires_kyc: bool
    requires_ttr: bool
    requires_enhanced_dd: bool


class ComplianceRequirements(ThresholdFlags):
    """Threshold flags evaluated against the customer's lifetime spend."""
    cumulative_total: float
    new_cumulative_total: float


class RiskFactors(BaseModel):
    """Inputs to the individual transaction risk scorer."""
    transaction_amount: float
    customer_age_days: int
    previous_transaction_count: int = 0
    is_international: bool = False
    has_multiple_recent_transactions: bool = False
    unusual_pattern: bool = False
    payment_name_mismatch: bool = False
    mismatch_severity: Optional[MismatchSeverity] = None
    has_kyc_verification: bool = False


class RiskAssessment(BaseModel):
    risk_score: int  # 0-100
    risk_level: RiskLevel


class StructuringResult(BaseModel):
    """Outcome of the trailing-window structuring check."""
    is_structuring: bool
    band_count: int
    recent_total: float
    indicators: list[str]


class BeneficialOwner(BaseModel):
    is_pep: bool = False
    is_sanctioned: bool = False
    verification_status: str = "unverified"


class BusinessRiskFactors(BaseModel):
    """Inputs to the business-entity risk scorer."""
    entity_type: EntityType
    years_in_operation: Optional[float] = None
    industry_code: Optional[str] = None
    abn_status: str
    gst_registered: bool
    ubo_count: int
    ubos: list[BeneficialOwner] = Field(default_factory=list)
    is_interstate: bool = False
    transaction_amount: float = 0.0
    has_multiple_recent_transactions: bool = False
    unusual_pattern: bool = False


class BlockDecision(BaseModel):
    blocked: bool
    reason: Optional[str] = None


class BusinessRiskAssessment(RiskAssessment):
    block: BlockDecision


class NameComparisonResult(BaseModel):
    """Customer name vs. payment cardholder name."""
    is_match: bool
    mismatch_severity: MismatchSeverity
    confidence: int  # 0-100
    details: str
    customer_name: str
    payment_name: str
    has_kyc: bool


class CheckoutFlags(BaseModel):
    structuring: bool = False
    high_value: bool = False
    high_risk: bool = False
    name_mismatch: bool = False


class CheckoutDecision(BaseModel):
    """Result of evaluating a checkout through the compliance engine."""
    transaction_id: Optional[str] = None
    status: CheckoutStatus
    reason: Optional[str] = None
    message: str
    requirements: Optional[ComplianceRequirements] = None
    risk_score: Optional[int] = None
    risk_level: Optional[RiskLevel] = None
    flags: CheckoutFlags = Field(default_factory=CheckoutFlags)
    ttr_reference: Optional[str] = None
    smr_ids: list[str] = Field(default_factory=list)


# --- Sanctions screening ---


class SanctionedEntity(BaseModel):
    full_name: str
    aliases: list[str] = Field(default_factory=list)
    date_of_birth: Optional[date] = None
    nationality: Optional[str] = None
    source: str = "DFAT"
    reference_number: str


class SanctionsMatch(BaseModel):
    name: str
    match_score: float  # 0.0-1.0
    source: str
    reference_number: str
    date_of_birth: Optional[date] = None
    nationality: Optional[str] = None


class ScreeningResult(BaseModel):
    is_match: bool
    matches: list[SanctionsMatch]
    screened_at: datetime
    screened_name: str


class RescreeningResult(BaseModel):
    total_customers: int = 0
    screened: int = 0
    new_matches: int = 0
    matched_customer_ids: list[str] = Field(default_factory=list)


# --- EDD investigations ---


class ChecklistSection(BaseModel):
    completed: bool = False
    findings: Optional[str] = None
    notes: Optional[str] = None
    verified: bool = False
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None

    model_config = {"extra": "allow"}


class InformationRequest(BaseModel):
    id: str
    requested_at: datetime
    requested_by: Optional[str]
    items: list[str]
    deadline: Optional[date] = None
    status: Literal["pending", "received", "overdue"] = "pending"
    received_at: Optional[datetime] = None
    response_notes: Optional[str] = None


class Escalation(BaseModel):
    id: str
    escalated_at: datetime
    escalated_by: Optional[str]
    escalated_to: str
    reason: str
    resolved: bool = False
    resolved_at: Optional[datetime] = None
    resolution_notes: Optional[str] = None


class EDDInvestigation(BaseModel):
    """An enhanced due diligence case opened against a customer."""
    id: str
    investigation_number: str
    customer_id: str
    transaction_id: Optional[str] = None
    status: InvestigationStatus = "open"
    triggered_by: TriggerType = "admin"
    triggered_by_admin_id: Optional[str] = None
    trigger_reason: str

    customer_information_review: ChecklistSection = Field(default_factory=ChecklistSection)
    employment_verification: ChecklistSection = Field(default_factory=ChecklistSection)
    source_of_wealth: ChecklistSection = Field(default_factory=ChecklistSection)
    source_of_funds: ChecklistSection = Field(default_factory=ChecklistSection)
    transaction_pattern_analysis: ChecklistSection = Field(default_factory=ChecklistSection)
    additional_information: ChecklistSection = Field(default_factory=ChecklistSection)

    investigation_findings: Optional[str] = None
    risk_assessment_summary: Optional[str] = None
    compliance_recommendation: Optional[ComplianceRecommendation] = None

    information_requests: list[InformationRequest] = Field(default_factory=list)
    escalations: list[Escalation] = Field(default_factory=list)

    approved_by_management: bool = False
    management_approver_id: Optional[str] = None
    management_approved_at: Optional[datetime] = None

    assigned_to: Optional[str] = None
    reviewed_by: Optional[str] = None
    opened_at: datetime
    completed_at: Optional[datetime] = None
    last_activity_at: datetime


class InvestigationCreate(BaseModel):
    customer_id: str
    trigger_reason: str
    transaction_id: Optional[str] = None
    triggered_by: TriggerType = "admin"
    admin_id: Optional[str] = None


class OpenInvestigationResult(BaseModel):
    created: bool
    investigation: EDDInvestigation
    error: Optional[str] = None


class ChecklistUpdate(BaseModel):
    section_name: str
    section_data: dict[str, Any]
    admin_id: Optional[str] = None


class InformationRequestCreate(BaseModel):
    items: list[str]
    deadline: Optional[date] = None
    admin_id: Optional[str] = None


class EscalationCreate(BaseModel):
    reason: str
    escalated_to: str = "management"
    admin_id: Optional[str] = None


class ManagementApproval(BaseModel):
    manager_id: str


class InvestigationCompletion(BaseModel):
    investigation_findings: str
    risk_assessment_summary: str
    compliance_recommendation: ComplianceRecommendation
    admin_id: Optional[str] = None


class CompletionResult(BaseModel):
    investigation: EDDInvestigation
    monitoring_level: MonitoringLevel
    smr_created: bool
    smr_id: Optional[str] = None


# --- Regulatory reports ---


class TTRRecord(BaseModel):
    """Threshold Transaction Report in AUSTRAC's part B/C/D layout."""
    ttr_reference: str
    transaction_id: str
    customer_id: str
    transaction_date: date
    transaction_type: str = "Purchase of bullion"
    transaction_amount: float
    transaction_currency: str
    customer_type: str = "individual"
    customer_name: str
    customer_dob: Optional[date] = None
    customer_occupation: str
    customer_source_of_funds: str
    customer_employer: str
    verification_method: str
    deadline: date
    status: Literal["pending", "submitted"] = "pending"
    created_at: datetime


class SMRRecord(BaseModel):
    """Suspicious Matter Report."""
    id: str
    customer_id: str
    transaction_id: Optional[str] = None
    edd_investigation_id: Optional[str] = None
    report_type: Literal["SMR"] = "SMR"
    suspicion_category: SuspicionType
    indicators: list[str]
    description: str
    transaction_amount: Optional[float] = None
    status: Literal["pending", "submitted", "dismissed"] = "pending"
    flagged_by_system: bool = True
    deadline: date
    created_at: datetime


class DeadlineAlert(BaseModel):
    """A pending report that is close to, or past, its AUSTRAC deadline."""
    report_type: Literal["TTR", "SMR"]
    reference: str
    customer_id: str
    transaction_id: Optional[str] = None
    deadline: date
    business_days_remaining: int
    overdue: bool


class DeadlineCheckResult(BaseModel):
    checked_on: date
    threshold_days: int
    approaching: list[DeadlineAlert] = Field(default_factory=list)
    overdue: list[DeadlineAlert] = Field(default_factory=list)


class AuditEntry(BaseModel):
    """Full audit trail entry for every state change."""
    action_type: str
    entity_type: str
    entity_id: str
    description: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    timestamp: UTCDatetime


class ComplianceConfig(BaseModel):
    """Tunable thresholds for all compliance rules (AUD)."""
    kyc_threshold: float = 5000
    ttr_threshold: float = 10000
    enhanced_dd_threshold: float = 50000
    structuring_window_days: int = 7
    structuring_band_low: float = 4000
    structuring_band_high: float = 5000
    structuring_min_count: int = 3
    structuring_aggregate_min_count: int = 2
    structuring_aggregate_total: float = 10000
    sanctions_match_threshold: float = 0.7
    sanctions_candidate_threshold: float = 0.6
    repeat_transaction_count: int = 3
    home_country: str = "AU"
