"""Checkout evaluation and stateless scoring endpoints."""

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from bullion_aml.compliance.engine import ComplianceEngine
from bullion_aml.compliance.risk_scoring import calculate_risk_score, get_risk_level
from bullion_aml.compliance.thresholds import check_thresholds
from bullion_aml.exceptions import CustomerNotFoundError
from bullion_aml.models import (
    CheckoutDecision,
    CheckoutRequest,
    RiskAssessment,
    RiskFactors,
    ThresholdFlags,
)

router = APIRouter(prefix="/api", tags=["Checkout"])


class AmountRequest(BaseModel):
    amount: float


def _get_engine(request: Request) -> ComplianceEngine:
    """Retrieve the compliance engine from application state."""
    return request.app.state.engine


@router.post("/checkout", response_model=CheckoutDecision)
async def evaluate_checkout(
    checkout: CheckoutRequest,
    request: Request,
) -> CheckoutDecision:
    """Evaluate a purchase against all compliance rules."""
    engine = _get_engine(request)
    try:
        return engine.evaluate_checkout(checkout)
    except CustomerNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/thresholds", response_model=ThresholdFlags)
async def lookup_thresholds(payload: AmountRequest, request: Request) -> ThresholdFlags:
    """Compliance actions a single amount triggers, without customer history."""
    return check_thresholds(payload.amount, _get_engine(request).config)


@router.post("/risk-score", response_model=RiskAssessment)
async def score_risk(factors: RiskFactors) -> RiskAssessment:
    score = calculate_risk_score(factors)
    return RiskAssessment(risk_score=score, risk_level=get_risk_level(score))
