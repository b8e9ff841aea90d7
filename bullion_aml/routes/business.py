"""Business-entity risk assessment endpoint."""

import logging

from fastapi import APIRouter, Request

from bullion_aml.compliance.business_risk import (
    calculate_business_risk_score,
    get_business_risk_level,
    should_block_business,
)
from bullion_aml.models import BusinessRiskAssessment, BusinessRiskFactors

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Business"])


@router.post("/business/assess", response_model=BusinessRiskAssessment)
async def assess_business(
    factors: BusinessRiskFactors,
    request: Request,
) -> BusinessRiskAssessment:
    """Score a business and apply the hard-block override.

    The block decision is reported alongside the score and does not
    depend on it.
    """
    score = calculate_business_risk_score(factors, request.app.state.high_risk_industries)
    block = should_block_business(factors)
    if block.blocked:
        logger.warning("Business blocked: %s", block.reason)
    return BusinessRiskAssessment(
        risk_score=score,
        risk_level=get_business_risk_level(score),
        block=block,
    )
