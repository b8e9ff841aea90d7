"""Individual transaction risk scoring.

Additive point weights over the transaction and the customer, capped at
100 and bucketed into low / medium / high:
  - score >= 70 -> high (manual review)
  - score >= 40 -> medium
  - otherwise   -> low

Pure and deterministic: the score is recomputed on every request and
never cached.
"""

from bullion_aml.models import RiskFactors

HIGH_RISK_CUTOFF = 70
MEDIUM_RISK_CUTOFF = 40

# (points if KYC verified, points otherwise). A mismatch against a
# government-verified identity is the more serious signal.
NAME_MISMATCH_POINTS = {
    "high": (30, 20),
    "medium": (20, 12),
    "low": (8, 5),
}


def amount_points(amount: float) -> int:
    """Points for the transaction amount bracket."""
    if amount > 100_000:
        return 30
    if amount > 50_000:
        return 20
    if amount > 20_000:
        return 10
    return 0


def calculate_risk_score(factors: RiskFactors) -> int:
    """Sum the weighted risk factors and clamp to 0-100."""
    score = amount_points(factors.transaction_amount)

    # New accounts carry more risk
    if factors.customer_age_days < 7:
        score += 15
    elif factors.customer_age_days < 30:
        score += 10

    if factors.has_multiple_recent_transactions:
        score += 20

    if factors.is_international:
        score += 15

    if factors.unusual_pattern:
        score += 25

    if factors.payment_name_mismatch:
        severity = factors.mismatch_severity or "medium"
        if severity in NAME_MISMATCH_POINTS:
            with_kyc, without_kyc = NAME_MISMATCH_POINTS[severity]
            score += with_kyc if factors.has_kyc_verification else without_kyc

    return min(score, 100)


def get_risk_level(score: int) -> str:
    """Map a 0-100 score to its risk tier."""
    if score >= HIGH_RISK_CUTOFF:
        return "high"
    if score >= MEDIUM_RISK_CUTOFF:
        return "medium"
    return "low"
