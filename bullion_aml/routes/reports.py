"""Regulatory report listing endpoints (TTR / SMR)."""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Query, Request

from bullion_aml.compliance.reports import DEADLINE_WARNING_DAYS, check_report_deadlines
from bullion_aml.models import DeadlineCheckResult, SMRRecord, TTRRecord

router = APIRouter(prefix="/api/reports", tags=["Reports"])


@router.get("/ttr", response_model=List[TTRRecord])
async def list_ttr_reports(
    request: Request,
    customer_id: Optional[str] = Query(default=None),
) -> List[TTRRecord]:
    return request.app.state.store.get_ttr_reports(customer_id)


@router.get("/smr", response_model=List[SMRRecord])
async def list_smr_reports(
    request: Request,
    customer_id: Optional[str] = Query(default=None),
) -> List[SMRRecord]:
    return request.app.state.store.get_smr_reports(customer_id)


@router.get("/deadlines", response_model=DeadlineCheckResult)
async def report_deadlines(
    request: Request,
    threshold_days: int = Query(default=DEADLINE_WARNING_DAYS, ge=0),
    as_of: Optional[date] = Query(default=None),
) -> DeadlineCheckResult:
    """Pending reports within ``threshold_days`` business days of their deadline, or overdue."""
    return check_report_deadlines(request.app.state.store, today=as_of, threshold_days=threshold_days)
