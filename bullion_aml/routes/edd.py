"""EDD investigation endpoints for compliance staff."""

from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, Request

from bullion_aml.compliance.edd import EDDService
from bullion_aml.exceptions import (
    ComplianceError,
    CustomerNotFoundError,
    InvalidInvestigationActionError,
    InvestigationNotFoundError,
    ManagementApprovalRequiredError,
)
from bullion_aml.models import (
    ChecklistUpdate,
    CompletionResult,
    EDDInvestigation,
    Escalation,
    EscalationCreate,
    InformationRequest,
    InformationRequestCreate,
    InvestigationCompletion,
    InvestigationCreate,
    ManagementApproval,
    OpenInvestigationResult,
)

router = APIRouter(prefix="/api/edd-investigations", tags=["EDD"])

ERROR_STATUS = {
    CustomerNotFoundError: 404,
    InvestigationNotFoundError: 404,
    InvalidInvestigationActionError: 400,
    ManagementApprovalRequiredError: 403,
}


def _get_service(request: Request) -> EDDService:
    """Retrieve the EDD service from application state."""
    return request.app.state.edd


def _http_error(error: ComplianceError) -> HTTPException:
    return HTTPException(status_code=ERROR_STATUS.get(type(error), 400), detail=str(error))


@router.post("", response_model=OpenInvestigationResult, status_code=201)
async def create_investigation(
    payload: InvestigationCreate,
    request: Request,
) -> OpenInvestigationResult:
    """Open an investigation; 409 if the customer already has an active one."""
    try:
        result = _get_service(request).open_investigation(
            customer_id=payload.customer_id,
            trigger_reason=payload.trigger_reason,
            transaction_id=payload.transaction_id,
            triggered_by=payload.triggered_by,
            admin_id=payload.admin_id,
        )
    except ComplianceError as e:
        raise _http_error(e)
    if not result.created:
        raise HTTPException(
            status_code=409,
            detail={
                "error": result.error,
                "existing_investigation": result.investigation.investigation_number,
                "investigation_id": result.investigation.id,
            },
        )
    return result


@router.get("", response_model=List[EDDInvestigation])
async def list_investigations(
    request: Request,
    status: Optional[str] = Query(default=None),
    customer_id: Optional[str] = Query(default=None),
) -> List[EDDInvestigation]:
    """List investigations; ``status=active`` returns every open state."""
    if status == "all":
        status = None
    return request.app.state.store.get_investigations(status=status, customer_id=customer_id)


@router.get("/{investigation_id}", response_model=EDDInvestigation)
async def get_investigation(investigation_id: str, request: Request) -> EDDInvestigation:
    investigation = request.app.state.store.get_investigation(investigation_id)
    if investigation is None:
        raise HTTPException(status_code=404, detail="Investigation not found")
    return investigation


@router.post("/{investigation_id}/checklist", response_model=EDDInvestigation)
async def update_checklist(
    investigation_id: str,
    payload: ChecklistUpdate,
    request: Request,
) -> EDDInvestigation:
    try:
        return _get_service(request).update_checklist(
            investigation_id, payload.section_name, payload.section_data, payload.admin_id
        )
    except ComplianceError as e:
        raise _http_error(e)


@router.post("/{investigation_id}/request-information", response_model=InformationRequest)
async def request_information(
    investigation_id: str,
    payload: InformationRequestCreate,
    request: Request,
) -> InformationRequest:
    try:
        return _get_service(request).request_information(
            investigation_id, payload.items, payload.admin_id, payload.deadline
        )
    except ComplianceError as e:
        raise _http_error(e)


@router.post("/{investigation_id}/escalate", response_model=Escalation)
async def escalate(
    investigation_id: str,
    payload: EscalationCreate,
    request: Request,
) -> Escalation:
    try:
        return _get_service(request).escalate(
            investigation_id, payload.reason, payload.admin_id, payload.escalated_to
        )
    except ComplianceError as e:
        raise _http_error(e)


@router.post("/{investigation_id}/recommendation", response_model=EDDInvestigation)
async def submit_recommendation(
    investigation_id: str,
    payload: InvestigationCompletion,
    request: Request,
) -> EDDInvestigation:
    try:
        return _get_service(request).submit_recommendation(
            investigation_id,
            payload.investigation_findings,
            payload.risk_assessment_summary,
            payload.compliance_recommendation,
            payload.admin_id,
        )
    except ComplianceError as e:
        raise _http_error(e)


@router.post("/{investigation_id}/approve-management", response_model=EDDInvestigation)
async def approve_management(
    investigation_id: str,
    payload: ManagementApproval,
    request: Request,
) -> EDDInvestigation:
    try:
        return _get_service(request).approve_management(investigation_id, payload.manager_id)
    except ComplianceError as e:
        raise _http_error(e)


@router.post("/{investigation_id}/complete", response_model=CompletionResult)
async def complete_investigation(
    investigation_id: str,
    payload: InvestigationCompletion,
    request: Request,
) -> CompletionResult:
    try:
        return _get_service(request).complete(
            investigation_id,
            payload.investigation_findings,
            payload.risk_assessment_summary,
            payload.compliance_recommendation,
            payload.admin_id,
        )
    except ComplianceError as e:
        raise _http_error(e)
