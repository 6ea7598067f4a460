import json
from pathlib import Path

import pytest

from src.careline.config import Settings
from src.careline.errors import InvalidInputError, NotFoundError
from src.careline.services.registry import ServiceRegistry


def _services(tmp_path: Path) -> ServiceRegistry:
    document = {
        "drivers": [{"id": "D1", "name": "Dana Driver"}],
        "routes": [
            {
                "id": "R1",
                "driverId": "D1",
                "stops": [
                    {"id": "S1", "patient": "Pat Smith", "facility": "Mercy Clinic", "lat": 39.30, "lng": -76.61},
                    {"id": "S2", "patient": "Lee Jones", "facility": "Hopkins Lab"},
                ],
            },
            {"id": "R2", "driverId": "D7", "stops": [{"id": "S3", "lat": 39.0, "lng": -76.0}]},
        ],
    }
    (tmp_path / "routes.json").write_text(json.dumps(document), encoding="utf-8")
    config = Settings(data_root=tmp_path, tracking_base_url="https://careline.test/")
    return ServiceRegistry.build(config, data_root=tmp_path)


def test_find_stop_by_id_joins_route_and_driver(tmp_path: Path) -> None:
    services = _services(tmp_path)

    lookup = services.tracking.find_stop_by_id("S1")

    assert lookup.stop.patient == "Pat Smith"
    assert lookup.route.route_id == "R1"
    assert lookup.driver.name == "Dana Driver"


def test_find_stop_by_id_with_unregistered_driver(tmp_path: Path) -> None:
    lookup = _services(tmp_path).tracking.find_stop_by_id("S3")

    assert lookup.route.driver_id == "D7"
    assert lookup.driver is None


def test_find_stop_by_id_errors(tmp_path: Path) -> None:
    services = _services(tmp_path)

    with pytest.raises(NotFoundError):
        services.tracking.find_stop_by_id("S404")
    with pytest.raises(InvalidInputError):
        services.tracking.find_stop_by_id("")


def test_snapshot_without_live_position_has_no_eta(tmp_path: Path) -> None:
    snapshot = _services(tmp_path).tracking.get_tracking_snapshot("S1")

    assert snapshot.stop.status == "Assigned"
    assert snapshot.live_location is None
    assert snapshot.eta_minutes is None
    assert snapshot.tracking_url == "https://careline.test/track?stopId=S1"


def test_snapshot_with_live_position_estimates_eta(tmp_path: Path) -> None:
    services = _services(tmp_path)
    services.lifecycle.record_gps_ping("D1", 39.29, -76.60)

    snapshot = services.tracking.get_tracking_snapshot("S1")

    assert snapshot.live_location.latitude == 39.29
    assert snapshot.eta_minutes == 2


def test_snapshot_for_stop_without_coordinates_has_no_eta(tmp_path: Path) -> None:
    services = _services(tmp_path)
    services.lifecycle.record_gps_ping("D1", 39.29, -76.60)

    snapshot = services.tracking.get_tracking_snapshot("S2")

    assert snapshot.live_location is not None
    assert snapshot.eta_minutes is None


def test_snapshot_reflects_latest_status(tmp_path: Path) -> None:
    services = _services(tmp_path)

    services.lifecycle.update_stop_status("S1", "Delivered")

    assert services.tracking.get_tracking_snapshot("S1").stop.status == "Delivered"


def test_snapshot_reads_do_not_touch_storage(tmp_path: Path) -> None:
    services = _services(tmp_path)
    services.lifecycle.record_gps_ping("D1", 39.29, -76.60)
    before = {path.name: path.read_bytes() for path in tmp_path.iterdir()}

    for _ in range(5):
        services.tracking.get_tracking_snapshot("S1")
        services.tracking.list_routes()
        services.tracking.list_proof_records()

    after = {path.name: path.read_bytes() for path in tmp_path.iterdir()}
    assert after == before
    assert services.repository.load_notifications() == []


def test_list_proof_records_filters_by_stop(tmp_path: Path) -> None:
    services = _services(tmp_path)
    services.lifecycle.attach_proof_of_delivery("S1", "a.jpg")
    services.lifecycle.attach_proof_of_delivery("S3", "b.jpg")

    assert [r["file"] for r in services.tracking.list_proof_records()] == ["a.jpg", "b.jpg"]
    assert [r["file"] for r in services.tracking.list_proof_records("S3")] == ["b.jpg"]
