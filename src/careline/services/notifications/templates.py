"""Audience specific message templates for notification events."""

from __future__ import annotations

from typing import Any, Optional
from urllib.parse import quote

from ...models.domain import EventType, MessageTemplate, Stop, StopStatus, TemplateSet

_PATIENT_STATUS_PHRASES = {
    StopStatus.ASSIGNED.value: "has been scheduled",
    StopStatus.OUT_FOR_DELIVERY.value: "is on its way",
    StopStatus.DELIVERED.value: "has been delivered",
    StopStatus.FAILED.value: "could not be completed",
}


def build_tracking_url(stop_id: str, base_url: str) -> str:
    """Return ``<base>/track?stopId=<stop id>`` with the id percent-encoded."""
    return f"{base_url.rstrip('/')}/track?stopId={quote(str(stop_id), safe='')}"


def admin_only_templates(
    event_type: str,
    driver_id: Optional[str],
    stop_id: Optional[str],
    extra: dict[str, Any] | None = None,
) -> TemplateSet:
    details = " ".join(f"{key}={value}" for key, value in sorted((extra or {}).items()) if not isinstance(value, dict))
    body = f"event={event_type} stop={stop_id or '-'} driver={driver_id or '-'}"
    if details:
        body = f"{body} {details}"
    return TemplateSet(admin=MessageTemplate(subject=f"[CareLine] {event_type}", body=body))


def build_templates(
    event_type: str,
    driver_id: Optional[str],
    stop: Stop,
    extra: dict[str, Any] | None = None,
    *,
    base_url: str,
) -> TemplateSet:
    """Render patient, facility and admin messages for an event.

    Unknown event types only produce the admin template.
    """
    extra = extra or {}
    patient = stop.patient or "Patient"
    facility = stop.facility or "Facility"

    if event_type == EventType.STATUS_CHANGE.value:
        tracking_url = build_tracking_url(stop.stop_id, base_url)
        phrase = _PATIENT_STATUS_PHRASES.get(stop.status, f"is now {stop.status}")
        patient_body = f"Hi {patient}, your CareLine delivery {phrase}."
        eta = extra.get("etaMinutes")
        if eta is not None and stop.status == StopStatus.OUT_FOR_DELIVERY.value:
            patient_body += f" Estimated arrival in about {eta} min."
        patient_body += f" Track it here: {tracking_url}"
        return TemplateSet(
            patient=MessageTemplate(subject="Your CareLine delivery update", body=patient_body),
            facility=MessageTemplate(
                subject=f"Delivery status update: stop {stop.stop_id}",
                body=(
                    f"Dear {facility} team,\n\n"
                    f"The delivery for {patient} (stop {stop.stop_id}, route {stop.route_id}) "
                    f"is now marked as {stop.status}."
                    + (f"\nReason: {stop.reason}" if stop.reason else "")
                    + f"\nTracking: {tracking_url}\n\nCareLine Medical Logistics"
                ),
            ),
            admin=MessageTemplate(
                subject=f"[CareLine] status_change {stop.stop_id}",
                body=(
                    f"event=status_change stop={stop.stop_id} route={stop.route_id} "
                    f"driver={driver_id or '-'} status={stop.status}"
                ),
            ),
        )

    if event_type == EventType.PROOF_UPLOADED.value:
        file_reference = extra.get("file") or stop.proof_file or "-"
        return TemplateSet(
            patient=MessageTemplate(
                subject="Your CareLine delivery is complete",
                body=f"Hi {patient}, your delivery has been completed and confirmed by your driver. Thank you!",
            ),
            facility=MessageTemplate(
                subject=f"Proof of delivery received: stop {stop.stop_id}",
                body=(
                    f"Dear {facility} team,\n\n"
                    f"Proof of delivery for {patient} (stop {stop.stop_id}) has been uploaded.\n"
                    f"Reference: {file_reference}\n\nCareLine Medical Logistics"
                ),
            ),
            admin=MessageTemplate(
                subject=f"[CareLine] proof_uploaded {stop.stop_id}",
                body=(
                    f"event=proof_uploaded stop={stop.stop_id} route={stop.route_id} "
                    f"driver={driver_id or '-'} file={file_reference}"
                ),
            ),
        )

    return admin_only_templates(event_type, driver_id, stop.stop_id, extra)
