"""Stop lifecycle operations: status changes, proof of delivery and GPS pings."""

from __future__ import annotations

import logging
import math
from typing import Optional

from ...config import Settings, settings as default_settings
from ...errors import InvalidInputError, NotFoundError
from ...models.domain import EventType, LivePosition, ProofRecord, Stop, StopStatus, utc_now_iso
from ...persistence.repository import DeliveryRepository
from ..geospatial import eta_minutes, is_valid_coordinate
from ..notifications.dispatcher import NotificationDispatcher
from .status import check_transition, normalize_status

logger = logging.getLogger(__name__)


def _require(value: Optional[str], field_name: str) -> str:
    if value is None or not str(value).strip():
        raise InvalidInputError(f"{field_name} is required")
    return str(value).strip()


def _optional_float(value: Optional[float], field_name: str) -> Optional[float]:
    if value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidInputError(f"{field_name} must be a number") from exc
    if not math.isfinite(number):
        raise InvalidInputError(f"{field_name} must be finite")
    return number


class StopLifecycleManager:
    """Applies state changes to stops and fires the matching notifications.

    Every change is saved before its notification is registered, so the log
    never describes a state that did not reach disk.
    """

    def __init__(
        self,
        repository: DeliveryRepository,
        dispatcher: NotificationDispatcher,
        config: Settings | None = None,
    ) -> None:
        self.repository = repository
        self.dispatcher = dispatcher
        self.config = config or default_settings

    def update_stop_status(
        self,
        stop_id: str,
        new_status: str,
        *,
        reason: Optional[str] = None,
        actor: Optional[str] = None,
    ) -> Stop:
        stop_id = _require(stop_id, "stopId")
        status = normalize_status(_require(new_status, "status"))

        # The routes lock stays held until the event is logged, so the log
        # follows the same order as the saves.
        with self.repository.routes_lock():
            with self.repository.routes_transaction() as book:
                located = book.locate(stop_id)
                if located is None:
                    raise NotFoundError(f"Stop '{stop_id}' not found")
                route, stop = located
                check_transition(stop.status, status, self.config.status_policy)
                previous = stop.status
                stop.status = status
                stop.reason = reason.strip() if reason and reason.strip() else None
                stop.updated_at = utc_now_iso()
                book.write_back(stop)
                driver_id = route.driver_id

            logger.info(f"Stop {stop_id} status {previous} -> {status}")
            extra: dict = {"previousStatus": previous}
            if stop.reason:
                extra["reason"] = stop.reason
            if actor:
                extra["actor"] = actor
            if status == StopStatus.OUT_FOR_DELIVERY.value and driver_id:
                position = self.repository.get_position(driver_id)
                eta = eta_minutes(
                    position.coordinate if position else None,
                    stop.coordinate,
                    self.config.average_speed_kmh,
                )
                if eta is not None:
                    extra["etaMinutes"] = eta
            self.dispatcher.register_notification(EventType.STATUS_CHANGE.value, driver_id, stop, extra)
        return stop

    def attach_proof_of_delivery(
        self,
        stop_id: str,
        file_reference: str,
        *,
        actor: Optional[str] = None,
    ) -> Stop:
        stop_id = _require(stop_id, "stopId")
        file_reference = _require(file_reference, "file")

        with self.repository.routes_lock():
            with self.repository.routes_transaction() as book:
                located = book.locate(stop_id)
                if located is None:
                    raise NotFoundError(f"Stop '{stop_id}' not found")
                route, stop = located
                if not route.route_id:
                    raise NotFoundError(f"Route for stop '{stop_id}' not found")
                check_transition(stop.status, StopStatus.DELIVERED.value, self.config.status_policy)
                stop.status = StopStatus.DELIVERED.value
                stop.proof_file = file_reference
                stop.updated_at = utc_now_iso()
                book.write_back(stop)
                driver_id = route.driver_id

            # A failure past this point leaves the stop Delivered with its proof
            # file set; the deliveries record and the event are then missing.
            self.repository.append_proof_record(
                ProofRecord(stop_id=stop_id, file=file_reference, uploaded_at=stop.updated_at)
            )
            logger.info(f"Proof of delivery {file_reference} attached to stop {stop_id}")
            extra: dict = {"file": file_reference}
            if actor:
                extra["actor"] = actor
            self.dispatcher.register_notification(EventType.PROOF_UPLOADED.value, driver_id, stop, extra)
        return stop

    def record_gps_ping(
        self,
        driver_id: str,
        latitude: Optional[float],
        longitude: Optional[float],
        *,
        speed: Optional[float] = None,
        heading: Optional[float] = None,
        accuracy: Optional[float] = None,
    ) -> LivePosition:
        """Overwrite the driver's live position; unknown drivers are accepted."""
        driver_id = _require(driver_id, "driverId")
        lat = _optional_float(latitude, "lat")
        lng = _optional_float(longitude, "lng")
        if lat is None or lng is None:
            raise InvalidInputError("lat and lng are required")
        if not is_valid_coordinate(lat, lng):
            raise InvalidInputError(f"Coordinate ({lat}, {lng}) is out of range")

        position = LivePosition(
            driver_id=driver_id,
            latitude=lat,
            longitude=lng,
            updated_at=utc_now_iso(),
            speed=_optional_float(speed, "speed"),
            heading=_optional_float(heading, "heading"),
            accuracy=_optional_float(accuracy, "accuracy"),
        )
        self.repository.upsert_position(position)
        logger.debug(f"GPS ping for driver {driver_id}: ({lat:.5f}, {lng:.5f})")
        return position
