"""Business-entity risk scoring.

Same additive-weight approach as the individual scorer, extended with
entity structure, ANZSIC industry, ABN/GST registration and beneficial
ownership (UBO) factors. A separate hard-block predicate overrides the
score entirely: a sanctioned beneficial owner or a cancelled/deleted ABN
blocks the business no matter how low it scores.
"""

from bullion_aml.compliance.risk_scoring import amount_points, get_risk_level
from bullion_aml.models import BlockDecision, BusinessRiskFactors

# High-risk ANZSIC industry codes
HIGH_RISK_INDUSTRIES = {
    "6419",  # Other Depository Financial Intermediation
    "6420",  # Other Non-Depository Financing
    "6910",  # Auxiliary Finance and Investment Services
    "6921",  # Foreign Exchange Dealing Services
    "7320",  # Gambling and Betting Services
    "9241",  # Religious Services
    "9540",  # Pubs, Taverns and Bars
}

INACTIVE_ABN_STATUSES = {"Cancelled", "Deleted"}


def calculate_business_risk_score(
    factors: BusinessRiskFactors,
    high_risk_industries: set[str] = HIGH_RISK_INDUSTRIES,
) -> int:
    """Sum the weighted business risk factors and clamp to 0-100."""
    score = 0

    # Entity structure: trusts and SMSFs obscure control
    if factors.entity_type in ("trust", "smsf"):
        score += 15
    elif factors.entity_type == "partnership" and factors.ubo_count >= 3:
        score += 10

    if factors.years_in_operation is not None:
        if factors.years_in_operation < 1:
            score += 20
        elif factors.years_in_operation < 2:
            score += 15
        elif factors.years_in_operation < 5:
            score += 5

    if factors.industry_code and factors.industry_code in high_risk_industries:
        score += 20

    if factors.abn_status != "Active":
        score += 25

    # No GST registration suggests a smaller or newer business
    if not factors.gst_registered:
        score += 5

    if factors.ubo_count >= 4:
        score += 15
    elif factors.ubo_count >= 2:
        score += 10

    if any(ubo.is_pep for ubo in factors.ubos):
        score += 30

    # Scored for tracking; should_block_business decides the block
    if any(ubo.is_sanctioned for ubo in factors.ubos):
        score += 50

    if any(ubo.verification_status != "verified" for ubo in factors.ubos):
        score += 15

    if factors.is_interstate:
        score += 5

    score += amount_points(factors.transaction_amount)

    if factors.has_multiple_recent_transactions:
        score += 20

    if factors.unusual_pattern:
        score += 25

    return min(score, 100)


def get_business_risk_level(score: int) -> str:
    """Businesses share the individual cutoffs (40 / 70)."""
    return get_risk_level(score)


def should_block_business(factors: BusinessRiskFactors) -> BlockDecision:
    """Binary override evaluated independently of the risk score."""
    if any(ubo.is_sanctioned for ubo in factors.ubos):
        return BlockDecision(
            blocked=True, reason="Beneficial owner matches sanctions list"
        )

    if factors.abn_status in INACTIVE_ABN_STATUSES:
        return BlockDecision(blocked=True, reason="Business ABN is no longer active")

    return BlockDecision(blocked=False)
