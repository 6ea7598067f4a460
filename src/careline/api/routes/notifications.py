"""Notification log endpoints."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query, status

from ...schemas.notifications import NotificationEventModel, SendNotificationRequest
from ...services.registry import ServiceRegistry
from ..dependencies import get_services, notification_model, raise_http_error

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=list[NotificationEventModel], status_code=status.HTTP_200_OK)
def list_notifications(
    event_type: str | None = Query(default=None, alias="type", description="Filter by event type (e.g. status_change)"),
    facility: str | None = Query(default=None, description="Filter by facility name"),
    stop_id: str | None = Query(default=None, alias="stopId", description="Filter by stop"),
    since: datetime | None = Query(default=None, description="Only events created at or after this time"),
    until: datetime | None = Query(default=None, description="Only events created at or before this time"),
    limit: int | None = Query(default=None, gt=0, description="Maximum number of events to return"),
    services: ServiceRegistry = Depends(get_services),
) -> list[NotificationEventModel]:
    events = services.dispatcher.list_notifications(
        event_type=event_type,
        facility=facility,
        stop_id=stop_id,
        since=since,
        until=until,
        limit=limit,
    )
    return [notification_model(event) for event in events]


@router.post("/{event_id}/send", response_model=NotificationEventModel, status_code=status.HTTP_200_OK)
def send_notification(
    event_id: str,
    payload: SendNotificationRequest,
    services: ServiceRegistry = Depends(get_services),
) -> NotificationEventModel:
    try:
        event = services.dispatcher.send(event_id, payload.destination)
    except Exception as exc:
        raise_http_error(exc, "send notification")
    return notification_model(event)
