"""Typed access to the CareLine JSON collections."""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, Optional

from ..models.domain import AuditEntry, Driver, LivePosition, NotificationEvent, ProofRecord, Route, Stop
from .filesystem import FileStorage

logger = logging.getLogger(__name__)

ROUTES = "routes"
LIVE_POSITIONS = "live_positions"
NOTIFICATIONS = "notifications"
DELIVERIES = "deliveries"
AUDIT_LOG = "audit_log"


def _empty_routes_document() -> dict:
    return {"drivers": [], "routes": []}


@dataclass
class RouteBook:
    """Parsed routes document with a stop id index.

    The index is rebuilt every time the document is loaded, so lookups by a
    bare stop id never scan every route.
    """

    document: dict
    drivers: dict[str, Driver] = field(default_factory=dict)
    routes: list[Route] = field(default_factory=list)
    _stop_index: dict[str, tuple[int, int]] = field(default_factory=dict)
    _raw_positions: dict[str, tuple[int, int]] = field(default_factory=dict)

    @classmethod
    def from_document(cls, document: dict) -> "RouteBook":
        book = cls(document=document)
        for record in document.get("drivers") or []:
            if not isinstance(record, dict):
                continue
            driver_id = str(record.get("id") or "").strip()
            if not driver_id:
                continue
            book.drivers[driver_id] = Driver(driver_id=driver_id, name=record.get("name") or driver_id)

        for route_pos, record in enumerate(document.get("routes") or []):
            if not isinstance(record, dict):
                continue
            route_id = str(record.get("id") or "").strip()
            driver_id = record.get("driverId") or record.get("driver")
            route = Route(route_id=route_id, driver_id=str(driver_id) if driver_id else None, raw=record)
            for stop_pos, stop_record in enumerate(record.get("stops") or []):
                if not isinstance(stop_record, dict):
                    continue
                stop = Stop.from_record(stop_record, route_id)
                route.stops.append(stop)
                if not stop.stop_id:
                    logger.warning(f"Ignoring stop without an id in route '{route_id}'")
                    continue
                if stop.stop_id in book._stop_index:
                    logger.warning(f"Duplicate stop id '{stop.stop_id}' in route '{route_id}'; keeping the first")
                    continue
                book._stop_index[stop.stop_id] = (len(book.routes), len(route.stops) - 1)
                book._raw_positions[stop.stop_id] = (route_pos, stop_pos)
            book.routes.append(route)
        return book

    def locate(self, stop_id: str) -> Optional[tuple[Route, Stop]]:
        position = self._stop_index.get(stop_id)
        if position is None:
            return None
        route_pos, stop_pos = position
        route = self.routes[route_pos]
        return route, route.stops[stop_pos]

    def driver_for(self, route: Route) -> Optional[Driver]:
        if not route.driver_id:
            return None
        return self.drivers.get(route.driver_id)

    def write_back(self, stop: Stop) -> None:
        """Copy a mutated stop into the underlying document in place."""
        route_pos, stop_pos = self._raw_positions[stop.stop_id]
        self.document["routes"][route_pos]["stops"][stop_pos] = stop.to_record()


class DeliveryRepository:
    """Explicit handle on the persisted collections, passed to each service."""

    def __init__(self, storage: FileStorage | None = None) -> None:
        self.storage = storage or FileStorage()

    # Routes

    def load_route_book(self) -> RouteBook:
        return RouteBook.from_document(self.storage.load_json(ROUTES, _empty_routes_document()))

    def routes_lock(self) -> threading.RLock:
        """Lock serialising routes writers; hold it to order follow-up writes too."""
        return self.storage.lock_for(ROUTES)

    @contextmanager
    def routes_transaction(self) -> Iterator[RouteBook]:
        with self.storage.transaction(ROUTES, _empty_routes_document()) as document:
            document.setdefault("drivers", [])
            document.setdefault("routes", [])
            yield RouteBook.from_document(document)

    # Live positions

    def load_positions(self) -> dict[str, LivePosition]:
        positions: dict[str, LivePosition] = {}
        for driver_id, record in self.storage.load_json(LIVE_POSITIONS, {}).items():
            try:
                positions[driver_id] = LivePosition.from_record(driver_id, record)
            except (TypeError, ValueError, AttributeError) as exc:
                logger.warning(f"Skipping malformed live position for driver '{driver_id}': {exc}")
        return positions

    def get_position(self, driver_id: str) -> Optional[LivePosition]:
        return self.load_positions().get(driver_id)

    def upsert_position(self, position: LivePosition) -> None:
        with self.storage.transaction(LIVE_POSITIONS, {}) as document:
            document[position.driver_id] = position.to_record()

    # Notifications

    def load_notifications(self) -> list[NotificationEvent]:
        return [
            NotificationEvent.from_record(record)
            for record in self.storage.load_json(NOTIFICATIONS, [])
            if isinstance(record, dict)
        ]

    def append_notification(self, event: NotificationEvent) -> None:
        with self.storage.transaction(NOTIFICATIONS, []) as document:
            document.append(event.to_record())

    # Proof-of-delivery records

    def load_proof_records(self) -> list[dict]:
        return [record for record in self.storage.load_json(DELIVERIES, []) if isinstance(record, dict)]

    def append_proof_record(self, record: ProofRecord) -> None:
        with self.storage.transaction(DELIVERIES, []) as document:
            document.append(record.to_record())

    # Audit log

    def load_audit_entries(self) -> list[dict]:
        return [record for record in self.storage.load_json(AUDIT_LOG, []) if isinstance(record, dict)]

    def append_audit_entry(self, entry: AuditEntry) -> None:
        with self.storage.transaction(AUDIT_LOG, []) as document:
            document.append(entry.to_record())
