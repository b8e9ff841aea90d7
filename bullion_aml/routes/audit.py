"""Audit trail endpoint for compliance review."""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Query, Request

from bullion_aml.models import AuditEntry, ensure_utc

router = APIRouter(prefix="/api", tags=["Audit"])


@router.get("/audit", response_model=List[AuditEntry])
async def get_audit_log(
    request: Request,
    entity_id: Optional[str] = Query(default=None),
    entity_type: Optional[str] = Query(default=None),
    action_type: Optional[str] = Query(default=None),
    from_date: Optional[datetime] = Query(default=None),
    to_date: Optional[datetime] = Query(default=None),
) -> List[AuditEntry]:
    """Audit entries in the order they were recorded.

    Every filter is optional and they combine with AND. ``entity_type``
    is one of transaction, customer, edd_investigation or
    suspicious_activity_report; ``from_date``/``to_date`` are inclusive
    and read as UTC when no offset is given.
    """
    return request.app.state.store.get_audit_log(
        entity_id=entity_id,
        entity_type=entity_type,
        action_type=action_type,
        since=ensure_utc(from_date),
        until=ensure_utc(to_date),
    )
