"""Public tracking endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from ...schemas.tracking import TrackingSnapshotModel
from ...services.registry import ServiceRegistry
from ..dependencies import driver_model, get_services, position_model, raise_http_error, stop_model

router = APIRouter(tags=["tracking"])


def _snapshot(stop_id: str, services: ServiceRegistry) -> TrackingSnapshotModel:
    try:
        snapshot = services.tracking.get_tracking_snapshot(stop_id)
    except Exception as exc:
        raise_http_error(exc, "load tracking snapshot")
    return TrackingSnapshotModel(
        stop=stop_model(snapshot.stop),
        driver=driver_model(snapshot.driver),
        live_location=position_model(snapshot.live_location),
        eta_minutes=snapshot.eta_minutes,
        tracking_url=snapshot.tracking_url,
    )


@router.get("/tracking/{stop_id}", response_model=TrackingSnapshotModel, status_code=status.HTTP_200_OK)
def get_tracking(stop_id: str, services: ServiceRegistry = Depends(get_services)) -> TrackingSnapshotModel:
    return _snapshot(stop_id, services)


@router.get("/track", response_model=TrackingSnapshotModel, status_code=status.HTTP_200_OK)
def track(
    stop_id: str = Query(..., alias="stopId", description="Stop identifier from a tracking link"),
    services: ServiceRegistry = Depends(get_services),
) -> TrackingSnapshotModel:
    return _snapshot(stop_id, services)
