from datetime import datetime, timedelta, timezone
from pathlib import Path

import httpx
import pytest

from src.careline.config import Settings
from src.careline.errors import InvalidInputError, NotFoundError
from src.careline.models.domain import Stop, TemplateSet
from src.careline.persistence.filesystem import FileStorage
from src.careline.persistence.repository import DeliveryRepository
from src.careline.services.notifications import (
    LoggingChannel,
    NotificationChannel,
    NotificationDispatcher,
    WebhookChannel,
    build_templates,
    build_tracking_url,
    get_channel,
)

BASE_URL = "https://careline.test"


def _stop(stop_id: str = "S1", status: str = "OutForDelivery", facility: str = "Mercy Clinic") -> Stop:
    return Stop(
        stop_id=stop_id,
        route_id="R1",
        patient="Pat Smith",
        facility=facility,
        latitude=39.30,
        longitude=-76.61,
        status=status,
    )


class RecordingChannel(NotificationChannel):
    name = "recording"

    def __init__(self, result: bool = True) -> None:
        self.result = result
        self.sent: list[tuple[TemplateSet, str]] = []

    def send(self, templates: TemplateSet, destination: str) -> bool:
        self.sent.append((templates, destination))
        return self.result


def _dispatcher(tmp_path: Path, channel: NotificationChannel | None = None) -> NotificationDispatcher:
    config = Settings(data_root=tmp_path, tracking_base_url=BASE_URL)
    return NotificationDispatcher(DeliveryRepository(FileStorage(root=tmp_path)), channel=channel, config=config)


def test_tracking_url_format() -> None:
    assert build_tracking_url("S1", BASE_URL) == "https://careline.test/track?stopId=S1"
    assert build_tracking_url("S 1/&x", BASE_URL + "/") == "https://careline.test/track?stopId=S%201%2F%26x"


def test_status_change_templates_cover_all_audiences() -> None:
    templates = build_templates("status_change", "D1", _stop(), base_url=BASE_URL)

    assert "is on its way" in templates.patient.body
    assert "https://careline.test/track?stopId=S1" in templates.patient.body
    assert templates.facility.body.startswith("Dear Mercy Clinic team")
    assert "OutForDelivery" in templates.facility.body
    assert templates.admin.body == "event=status_change stop=S1 route=R1 driver=D1 status=OutForDelivery"


def test_failed_status_mentions_reason_for_facility() -> None:
    stop = _stop(status="Failed")
    stop.reason = "Address closed"

    templates = build_templates("status_change", "D1", stop, base_url=BASE_URL)

    assert "could not be completed" in templates.patient.body
    assert "Reason: Address closed" in templates.facility.body


def test_proof_uploaded_templates_reference_file() -> None:
    templates = build_templates("proof_uploaded", "D1", _stop(status="Delivered"), {"file": "p.jpg"}, base_url=BASE_URL)

    assert "completed" in templates.patient.body
    assert "Reference: p.jpg" in templates.facility.body
    assert "file=p.jpg" in templates.admin.body


def test_unknown_event_type_is_admin_only() -> None:
    templates = build_templates("route_reassigned", None, _stop(), {"by": "dispatch"}, base_url=BASE_URL)

    assert templates.patient is None
    assert templates.facility is None
    assert templates.admin.body == "event=route_reassigned stop=S1 driver=- by=dispatch"


def test_register_notification_appends_without_sending(tmp_path: Path) -> None:
    channel = RecordingChannel()
    dispatcher = _dispatcher(tmp_path, channel)

    event = dispatcher.register_notification("status_change", "D1", _stop(), {"previousStatus": "Assigned"})

    assert channel.sent == []
    stored = dispatcher.repository.load_notifications()
    assert [e.id for e in stored] == [event.id]
    assert stored[0].templates.patient.body == event.templates.patient.body
    assert stored[0].extra["stop"]["facility"] == "Mercy Clinic"
    assert datetime.fromisoformat(stored[0].created_at).tzinfo is not None


def test_list_notifications_filters_newest_first(tmp_path: Path) -> None:
    dispatcher = _dispatcher(tmp_path)
    first = dispatcher.register_notification("status_change", "D1", _stop("S1"))
    second = dispatcher.register_notification("proof_uploaded", "D1", _stop("S1", "Delivered"), {"file": "a.jpg"})
    third = dispatcher.register_notification("status_change", "D2", _stop("S2", facility="Hopkins Lab"))

    assert [e.id for e in dispatcher.list_notifications()] == [third.id, second.id, first.id]
    assert [e.id for e in dispatcher.list_notifications(event_type="status_change")] == [third.id, first.id]
    assert [e.id for e in dispatcher.list_notifications(facility="hopkins lab")] == [third.id]
    assert [e.id for e in dispatcher.list_notifications(stop_id="S1", limit=1)] == [second.id]

    future = datetime.now(timezone.utc) + timedelta(hours=1)
    assert dispatcher.list_notifications(since=future) == []
    assert len(dispatcher.list_notifications(until=future.replace(tzinfo=None))) == 3


def test_send_uses_channel_and_records_follow_up(tmp_path: Path) -> None:
    channel = RecordingChannel()
    dispatcher = _dispatcher(tmp_path, channel)
    event = dispatcher.register_notification("status_change", "D1", _stop())

    sms = dispatcher.send(event.id, "+14105550100")
    email = dispatcher.send(event.id, "pharmacy@mercy.test")

    assert [destination for _, destination in channel.sent] == ["+14105550100", "pharmacy@mercy.test"]
    assert channel.sent[0][0].patient == event.templates.patient
    assert channel.sent[0][0].facility is None
    assert channel.sent[1][0].facility == event.templates.facility
    assert all(templates.admin is None for templates, _ in channel.sent)
    assert sms.type == "sms_sent"
    assert email.type == "facility_email_sent"
    assert sms.extra["sourceEventId"] == event.id
    assert sms.extra["delivered"] is True
    assert sms.templates.patient is None
    assert len(dispatcher.repository.load_notifications()) == 3


def test_send_validates_input(tmp_path: Path) -> None:
    dispatcher = _dispatcher(tmp_path, RecordingChannel())

    with pytest.raises(NotFoundError):
        dispatcher.send("missing", "+14105550100")
    with pytest.raises(InvalidInputError):
        dispatcher.send("missing", " ")


def test_send_keeps_admin_line_out_of_the_webhook_payload(tmp_path: Path) -> None:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(202)

    client = httpx.Client(transport=httpx.MockTransport(handler))
    channel = WebhookChannel(url="https://hooks.test/n", max_retries=0, backoff_seconds=0, client=client)
    dispatcher = _dispatcher(tmp_path, channel)
    event = dispatcher.register_notification("status_change", "D1", _stop())

    dispatcher.send(event.id, "+14105550100")

    assert len(calls) == 1
    assert b"Hi Pat Smith" in calls[0].content
    assert event.templates.admin.body.encode() not in calls[0].content
    assert b"event=status_change" not in calls[0].content


def test_send_refuses_admin_only_events(tmp_path: Path) -> None:
    channel = RecordingChannel()
    dispatcher = _dispatcher(tmp_path, channel)
    event = dispatcher.register_notification("route_reassigned", None, _stop())

    with pytest.raises(InvalidInputError):
        dispatcher.send(event.id, "+14105550100")

    assert channel.sent == []
    assert len(dispatcher.repository.load_notifications()) == 1


def test_get_channel_factory(tmp_path: Path) -> None:
    assert isinstance(get_channel("log"), LoggingChannel)
    config = Settings(data_root=tmp_path, notification_channel="webhook", notification_webhook_url="https://hooks.test/n")
    assert isinstance(get_channel("webhook", config), WebhookChannel)
    with pytest.raises(ValueError):
        get_channel("carrier-pigeon")
    with pytest.raises(ValueError):
        get_channel("webhook", Settings(data_root=tmp_path, notification_webhook_url=None))


def test_logging_channel_only_logs(caplog: pytest.LogCaptureFixture) -> None:
    import logging

    caplog.set_level(logging.INFO)
    templates = build_templates("status_change", "D1", _stop(), base_url=BASE_URL)

    assert LoggingChannel().send(templates, "+14105550100") is True
    assert "not sent" in caplog.text


def test_webhook_channel_retries_server_errors() -> None:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(503 if len(calls) == 1 else 202)

    client = httpx.Client(transport=httpx.MockTransport(handler))
    channel = WebhookChannel(url="https://hooks.test/n", max_retries=2, backoff_seconds=0, client=client)
    templates = build_templates("status_change", "D1", _stop(), base_url=BASE_URL)

    assert channel.send(templates, "+14105550100") is True
    assert len(calls) == 2
    assert b"+14105550100" in calls[-1].content


def test_webhook_channel_gives_up_on_client_errors() -> None:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(400)

    client = httpx.Client(transport=httpx.MockTransport(handler))
    channel = WebhookChannel(url="https://hooks.test/n", max_retries=3, backoff_seconds=0, client=client)

    assert channel.send(TemplateSet(), "ops@careline.test") is False
    assert len(calls) == 1
