"""Domain models for routes, stops, live positions and notification records."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _coerce_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class StopStatus(str, Enum):
    """Known lifecycle statuses of a delivery stop."""

    ASSIGNED = "Assigned"
    OUT_FOR_DELIVERY = "OutForDelivery"
    DELIVERED = "Delivered"
    FAILED = "Failed"


class EventType(str, Enum):
    STATUS_CHANGE = "status_change"
    PROOF_UPLOADED = "proof_uploaded"
    SMS_SENT = "sms_sent"
    FACILITY_EMAIL_SENT = "facility_email_sent"
    GENERIC = "generic"


@dataclass(slots=True, frozen=True)
class Coordinate:
    latitude: float
    longitude: float


@dataclass(slots=True)
class Driver:
    driver_id: str
    name: str


@dataclass(slots=True)
class Stop:
    """A single scheduled delivery within a route."""

    stop_id: str
    route_id: str
    patient: Optional[str] = None
    facility: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    status: str = StopStatus.ASSIGNED.value
    proof_file: Optional[str] = None
    reason: Optional[str] = None
    updated_at: Optional[str] = None
    raw: dict = field(default_factory=dict)

    @property
    def coordinate(self) -> Optional[Coordinate]:
        if self.latitude is None or self.longitude is None:
            return None
        return Coordinate(self.latitude, self.longitude)

    @classmethod
    def from_record(cls, record: dict, route_id: str) -> "Stop":
        lat = record.get("latitude", record.get("lat"))
        lng = record.get("longitude", record.get("lng"))
        return cls(
            stop_id=str(record.get("id") or record.get("stopId") or "").strip(),
            route_id=route_id,
            patient=record.get("patient"),
            facility=record.get("facility"),
            latitude=_coerce_float(lat),
            longitude=_coerce_float(lng),
            status=record.get("status") or StopStatus.ASSIGNED.value,
            proof_file=record.get("proofFile") or record.get("proof_file"),
            reason=record.get("reason"),
            updated_at=record.get("updatedAt"),
            raw=record,
        )

    def to_record(self) -> dict:
        # Keys keep the spelling of the stored record; unset optional fields stay absent.
        record = dict(self.raw)
        id_key = "stopId" if "stopId" in record and "id" not in record else "id"
        lat_key, lng_key = ("lat", "lng") if "lat" in record and "latitude" not in record else ("latitude", "longitude")
        proof_key = "proof_file" if "proof_file" in record and "proofFile" not in record else "proofFile"

        record[id_key] = self.stop_id
        record["status"] = self.status
        for key, value in (
            ("patient", self.patient),
            ("facility", self.facility),
            (proof_key, self.proof_file),
            ("reason", self.reason),
            ("updatedAt", self.updated_at),
        ):
            if value is not None or key in record:
                record[key] = value
        for key, value in ((lat_key, self.latitude), (lng_key, self.longitude)):
            if _coerce_float(record.get(key)) != value:
                record[key] = value
        return record

    def summary(self) -> dict:
        return {
            "stop_id": self.stop_id,
            "route_id": self.route_id,
            "patient": self.patient,
            "facility": self.facility,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "status": self.status,
            "proof_file": self.proof_file,
            "reason": self.reason,
            "updated_at": self.updated_at,
        }


@dataclass(slots=True)
class Route:
    route_id: str
    driver_id: Optional[str]
    stops: list[Stop] = field(default_factory=list)
    raw: dict = field(default_factory=dict)


@dataclass(slots=True)
class LivePosition:
    """Latest reported coordinate for a driver; no history is kept."""

    driver_id: str
    latitude: float
    longitude: float
    updated_at: str
    speed: Optional[float] = None
    heading: Optional[float] = None
    accuracy: Optional[float] = None

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(self.latitude, self.longitude)

    @classmethod
    def from_record(cls, driver_id: str, record: dict) -> "LivePosition":
        return cls(
            driver_id=driver_id,
            latitude=float(record.get("lat", record.get("latitude"))),
            longitude=float(record.get("lng", record.get("longitude"))),
            updated_at=record.get("updatedAt") or record.get("updated_at") or "",
            speed=record.get("speed"),
            heading=record.get("heading"),
            accuracy=record.get("accuracy"),
        )

    def to_record(self) -> dict:
        return {
            "lat": self.latitude,
            "lng": self.longitude,
            "speed": self.speed,
            "heading": self.heading,
            "accuracy": self.accuracy,
            "updatedAt": self.updated_at,
        }


@dataclass(slots=True)
class MessageTemplate:
    subject: str
    body: str


@dataclass(slots=True)
class TemplateSet:
    """Audience specific renderings of one notification."""

    patient: Optional[MessageTemplate] = None
    facility: Optional[MessageTemplate] = None
    admin: Optional[MessageTemplate] = None

    def to_record(self) -> dict:
        return {
            audience: asdict(template) if template else None
            for audience, template in (
                ("patient", self.patient),
                ("facility", self.facility),
                ("admin", self.admin),
            )
        }

    @classmethod
    def from_record(cls, record: dict | None) -> "TemplateSet":
        record = record or {}

        def _template(value: Any) -> Optional[MessageTemplate]:
            if not isinstance(value, dict):
                return None
            return MessageTemplate(subject=value.get("subject", ""), body=value.get("body", ""))

        return cls(
            patient=_template(record.get("patient")),
            facility=_template(record.get("facility")),
            admin=_template(record.get("admin")),
        )


@dataclass(slots=True)
class NotificationEvent:
    """Append-only audit record describing a lifecycle or proof event."""

    id: str
    type: str
    stop_id: Optional[str]
    driver_id: Optional[str]
    status: Optional[str]
    templates: TemplateSet
    extra: dict
    created_at: str

    def to_record(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "stopId": self.stop_id,
            "driverId": self.driver_id,
            "status": self.status,
            "templates": self.templates.to_record(),
            "extra": self.extra,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_record(cls, record: dict) -> "NotificationEvent":
        return cls(
            id=str(record.get("id", "")),
            type=record.get("type") or EventType.GENERIC.value,
            stop_id=record.get("stopId"),
            driver_id=record.get("driverId"),
            status=record.get("status"),
            templates=TemplateSet.from_record(record.get("templates")),
            extra=record.get("extra") or {},
            created_at=record.get("createdAt") or "",
        )


@dataclass(slots=True)
class ProofRecord:
    stop_id: str
    file: str
    uploaded_at: str

    def to_record(self) -> dict:
        return {"stopId": self.stop_id, "file": self.file, "uploadedAt": self.uploaded_at}


@dataclass(slots=True)
class AuditEntry:
    id: str
    action: str
    actor: Optional[str]
    details: dict
    created_at: str

    def to_record(self) -> dict:
        return {
            "id": self.id,
            "action": self.action,
            "actor": self.actor,
            "details": self.details,
            "createdAt": self.created_at,
        }
