"""Audit log endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from ...schemas.notifications import AuditEntryModel, AuditRequest
from ...services.registry import ServiceRegistry
from ..dependencies import get_services, raise_http_error

router = APIRouter(prefix="/audit", tags=["audit"])


@router.post("", response_model=AuditEntryModel, status_code=status.HTTP_201_CREATED)
def post_audit(payload: AuditRequest, services: ServiceRegistry = Depends(get_services)) -> AuditEntryModel:
    try:
        entry = services.audit.record(payload.action, payload.details, actor=payload.actor)
    except Exception as exc:
        raise_http_error(exc, "record audit entry")
    return AuditEntryModel.model_validate(entry.to_record())


@router.get("", response_model=list[AuditEntryModel], status_code=status.HTTP_200_OK)
def list_audit(
    action: str | None = Query(default=None, description="Filter by action, e.g. GPS_UPDATE"),
    limit: int | None = Query(default=None, gt=0),
    services: ServiceRegistry = Depends(get_services),
) -> list[AuditEntryModel]:
    return [AuditEntryModel.model_validate(record) for record in services.audit.list_entries(action, limit)]
