"""Read-side composition of stops, drivers, live positions and ETA."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ...config import Settings, settings as default_settings
from ...errors import InvalidInputError, NotFoundError
from ...models.domain import Driver, LivePosition, Route, Stop
from ...persistence.repository import DeliveryRepository
from ..geospatial import eta_minutes
from ..notifications.templates import build_tracking_url


@dataclass(slots=True)
class StopLookup:
    stop: Stop
    route: Route
    driver: Optional[Driver]


@dataclass(slots=True)
class TrackingSnapshot:
    stop: Stop
    driver: Optional[Driver]
    live_location: Optional[LivePosition]
    eta_minutes: Optional[int]
    tracking_url: str


class TrackingService:
    """Side-effect free queries over the persisted collections."""

    def __init__(self, repository: DeliveryRepository, config: Settings | None = None) -> None:
        self.repository = repository
        self.config = config or default_settings

    def find_stop_by_id(self, stop_id: str) -> StopLookup:
        if not stop_id or not stop_id.strip():
            raise InvalidInputError("stopId is required")
        book = self.repository.load_route_book()
        located = book.locate(stop_id.strip())
        if located is None:
            raise NotFoundError(f"Stop '{stop_id}' not found")
        route, stop = located
        return StopLookup(stop=stop, route=route, driver=book.driver_for(route))

    def get_tracking_snapshot(self, stop_id: str) -> TrackingSnapshot:
        lookup = self.find_stop_by_id(stop_id)
        live_location = (
            self.repository.get_position(lookup.route.driver_id) if lookup.route.driver_id else None
        )
        eta = None
        if live_location is not None:
            eta = eta_minutes(live_location.coordinate, lookup.stop.coordinate, self.config.average_speed_kmh)
        return TrackingSnapshot(
            stop=lookup.stop,
            driver=lookup.driver,
            live_location=live_location,
            eta_minutes=eta,
            tracking_url=build_tracking_url(lookup.stop.stop_id, self.config.tracking_base_url),
        )

    def list_routes(self) -> dict:
        """Return the raw ``{drivers, routes}`` document."""
        return self.repository.load_route_book().document

    def list_proof_records(self, stop_id: Optional[str] = None) -> list[dict]:
        records = self.repository.load_proof_records()
        if stop_id:
            records = [record for record in records if record.get("stopId") == stop_id]
        return records
