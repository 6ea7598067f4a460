"""Request dependencies and error translation shared by the routers."""

from __future__ import annotations

import logging
from typing import NoReturn

from fastapi import HTTPException, Request, status

from ..errors import InvalidInputError, NotFoundError, StorageFailure
from ..models.domain import Driver, LivePosition, NotificationEvent, Stop
from ..schemas.notifications import NotificationEventModel
from ..schemas.tracking import DriverModel, LivePositionModel, StopModel
from ..services.registry import ServiceRegistry


def get_services(request: Request) -> ServiceRegistry:
    return request.app.state.services


def raise_http_error(exc: Exception, action: str) -> NoReturn:
    if isinstance(exc, NotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    if isinstance(exc, InvalidInputError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    if isinstance(exc, StorageFailure):
        logging.error(f"Storage failure while trying to {action}: {exc}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Failed to {action}: changes could not be saved",
        ) from exc
    logging.exception(f"Error while trying to {action}: {exc}")
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to {action}: {str(exc)}",
    ) from exc


def stop_model(stop: Stop) -> StopModel:
    return StopModel(**stop.summary())


def driver_model(driver: Driver | None) -> DriverModel | None:
    if driver is None:
        return None
    return DriverModel(driver_id=driver.driver_id, name=driver.name)


def position_model(position: LivePosition | None) -> LivePositionModel | None:
    if position is None:
        return None
    return LivePositionModel(
        driver_id=position.driver_id,
        lat=position.latitude,
        lng=position.longitude,
        speed=position.speed,
        heading=position.heading,
        accuracy=position.accuracy,
        updated_at=position.updated_at,
    )


def notification_model(event: NotificationEvent) -> NotificationEventModel:
    return NotificationEventModel(
        id=event.id,
        type=event.type,
        stop_id=event.stop_id,
        driver_id=event.driver_id,
        status=event.status,
        templates=event.templates.to_record(),
        extra=event.extra,
        created_at=event.created_at,
    )


def record_audit(services: ServiceRegistry, action: str, details: dict, actor: str | None = None) -> None:
    """Audit an action that already succeeded; a failed audit write does not undo it."""
    try:
        services.audit.record(action, details, actor=actor)
    except StorageFailure as exc:
        logging.warning(f"Audit entry {action} was not saved: {exc}")
