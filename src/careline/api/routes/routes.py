"""Route and delivery record endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from ...schemas.tracking import ProofRecordModel
from ...services.registry import ServiceRegistry
from ..dependencies import get_services

router = APIRouter(tags=["routes"])


@router.get("/routes", status_code=status.HTTP_200_OK)
def get_routes(services: ServiceRegistry = Depends(get_services)) -> dict:
    """Return all drivers and routes exactly as stored."""
    return services.tracking.list_routes()


@router.get("/deliveries", response_model=list[ProofRecordModel], status_code=status.HTTP_200_OK)
def get_deliveries(
    stop_id: str | None = Query(default=None, alias="stopId", description="Only records for this stop"),
    services: ServiceRegistry = Depends(get_services),
) -> list[ProofRecordModel]:
    return [ProofRecordModel.model_validate(record) for record in services.tracking.list_proof_records(stop_id)]
