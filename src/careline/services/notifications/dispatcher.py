"""Records notification events and hands them to the configured channel."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from ...config import Settings, settings as default_settings
from ...errors import InvalidInputError, NotFoundError
from ...models.domain import EventType, NotificationEvent, Stop, TemplateSet, utc_now_iso
from ...persistence.repository import DeliveryRepository
from .channels import NotificationChannel, get_channel
from .templates import admin_only_templates, build_templates

logger = logging.getLogger(__name__)


def _parse_timestamp(value: str) -> Optional[datetime]:
    try:
        parsed = datetime.fromisoformat(value)
    except (TypeError, ValueError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class NotificationDispatcher:
    """Append-only notification log plus a pluggable outbound channel.

    Registering an event never sends anything; :meth:`send` is the only path
    that reaches a channel.
    """

    def __init__(
        self,
        repository: DeliveryRepository,
        channel: NotificationChannel | None = None,
        config: Settings | None = None,
    ) -> None:
        self.repository = repository
        self.config = config or default_settings
        self.channel = channel or get_channel(self.config.notification_channel, self.config)

    def register_notification(
        self,
        event_type: str,
        driver_id: Optional[str],
        stop: Stop,
        extra: dict[str, Any] | None = None,
    ) -> NotificationEvent:
        templates = build_templates(event_type, driver_id, stop, extra, base_url=self.config.tracking_base_url)
        metadata = dict(extra or {})
        metadata["stop"] = {
            "routeId": stop.route_id,
            "patient": stop.patient,
            "facility": stop.facility,
        }
        return self._append(event_type, driver_id, stop.stop_id, stop.status, templates, metadata)

    def send(self, event_id: str, destination: str) -> NotificationEvent:
        """Send a recorded event and log the outcome as an sms/email event."""
        if not destination or not destination.strip():
            raise InvalidInputError("destination is required")
        event = self.get_notification(event_id)
        destination = destination.strip()
        is_email = "@" in destination
        # Patients are reached by phone, facilities by email. The admin line stays internal.
        audience = event.templates.facility if is_email else event.templates.patient
        if audience is None:
            raise InvalidInputError(f"Notification '{event.id}' has no message for {destination}")
        outgoing = TemplateSet(
            patient=None if is_email else audience,
            facility=audience if is_email else None,
        )
        delivered = self.channel.send(outgoing, destination)
        follow_up_type = EventType.FACILITY_EMAIL_SENT.value if is_email else EventType.SMS_SENT.value
        extra = {
            "sourceEventId": event.id,
            "destination": destination,
            "channel": self.channel.name,
            "delivered": delivered,
        }
        templates = admin_only_templates(follow_up_type, event.driver_id, event.stop_id, extra)
        if "stop" in event.extra:
            extra["stop"] = event.extra["stop"]
        return self._append(follow_up_type, event.driver_id, event.stop_id, event.status, templates, extra)

    def get_notification(self, event_id: str) -> NotificationEvent:
        for event in self.repository.load_notifications():
            if event.id == event_id:
                return event
        raise NotFoundError(f"Notification '{event_id}' not found")

    def list_notifications(
        self,
        *,
        event_type: Optional[str] = None,
        facility: Optional[str] = None,
        stop_id: Optional[str] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> list[NotificationEvent]:
        """Return matching events, newest first."""
        normalized_facility = facility.strip().lower() if facility else None
        since = _as_utc(since) if since else None
        until = _as_utc(until) if until else None

        matches: list[NotificationEvent] = []
        for event in reversed(self.repository.load_notifications()):
            if event_type and event.type != event_type:
                continue
            if stop_id and event.stop_id != stop_id:
                continue
            if normalized_facility:
                event_facility = ((event.extra.get("stop") or {}).get("facility") or "").strip().lower()
                if event_facility != normalized_facility:
                    continue
            if since or until:
                created = _parse_timestamp(event.created_at)
                if created is None:
                    continue
                if since and created < since:
                    continue
                if until and created > until:
                    continue
            matches.append(event)
            if limit and len(matches) >= limit:
                break
        return matches

    def _append(
        self,
        event_type: str,
        driver_id: Optional[str],
        stop_id: Optional[str],
        status: Optional[str],
        templates: TemplateSet,
        extra: dict[str, Any],
    ) -> NotificationEvent:
        event = NotificationEvent(
            id=uuid.uuid4().hex,
            type=event_type,
            stop_id=stop_id,
            driver_id=driver_id,
            status=status,
            templates=templates,
            extra=extra,
            created_at=utc_now_iso(),
        )
        self.repository.append_notification(event)
        logger.info(f"Recorded {event_type} notification {event.id} for stop {stop_id}")
        return event
