"""Driver device endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from ...schemas.tracking import GpsPingRequest, LivePositionModel
from ...services.registry import ServiceRegistry
from ..dependencies import get_services, position_model, raise_http_error, record_audit

router = APIRouter(prefix="/driver", tags=["driver"])


@router.post("/gps", response_model=LivePositionModel, status_code=status.HTTP_200_OK)
def post_gps(payload: GpsPingRequest, services: ServiceRegistry = Depends(get_services)) -> LivePositionModel:
    try:
        position = services.lifecycle.record_gps_ping(
            payload.driver_id,
            payload.lat,
            payload.lng,
            speed=payload.speed,
            heading=payload.heading,
            accuracy=payload.accuracy,
        )
    except Exception as exc:
        raise_http_error(exc, "record GPS position")
    record_audit(
        services,
        "GPS_UPDATE",
        {"lat": payload.lat, "lng": payload.lng, "accuracy": payload.accuracy},
        actor=payload.driver_id,
    )
    return position_model(position)
