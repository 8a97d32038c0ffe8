"""予約受付エンドポイントのテスト。"""

from __future__ import annotations

import json
import logging
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from aiokafka.errors import KafkaTimeoutError
from fastapi.testclient import TestClient

from appointments_api.app import create_app
from appointments_api.core.publisher import KafkaPublisher

_VALID_BODY = {
    "contact": {"firstName": "Ada", "lastName": "Lovelace", "email": "a@b.com"},
    "appointment": {
        "topic": "intro call",
        "start_time": "2026-01-01T10:00:00Z",
        "end_time": "2026-01-01T10:30:00Z",
    },
}


def _enabled_publisher(producer: MagicMock) -> KafkaPublisher:
    return KafkaPublisher(topic="appointments.created", enabled=True, producer=producer)


def _producer() -> MagicMock:
    producer = MagicMock()
    producer.send_and_wait = AsyncMock(
        return_value=SimpleNamespace(topic="appointments.created", partition=0, offset=7)
    )
    return producer


def test_disabled_publishing_still_accepts() -> None:
    client = TestClient(create_app())

    res = client.post("/api/appointments", json=_VALID_BODY)

    assert res.status_code == 202
    assert res.headers["Location"] == "/api/appointments"
    data = res.json()
    assert data["appointment_id"].startswith("timeslot-")
    assert data["event_id"].startswith("evt-")
    assert data["kafka_enabled"] is False
    assert data["published"] is False


def test_published_event_payload() -> None:
    producer = _producer()
    client = TestClient(create_app(publisher=_enabled_publisher(producer)))

    res = client.post("/api/appointments", json=_VALID_BODY)

    assert res.status_code == 202
    data = res.json()
    assert data["kafka_enabled"] is True
    assert data["published"] is True

    topic, raw = producer.send_and_wait.await_args.args
    assert topic == "appointments.created"
    event = json.loads(raw)
    assert event["event_id"] == data["event_id"]
    assert event["event_type"] == "appointments.created"
    assert event["notify"] == {"email": True, "sms": False}
    appointment = event["appointment"]
    assert appointment["appointment_id"] == data["appointment_id"]
    assert appointment["user_id"] == data["appointment_id"].removeprefix("timeslot-")
    assert appointment["duration_minutes"] == 30
    assert appointment["time"] == appointment["start_time"]
    assert appointment["email"] == "a@b.com"
    assert "phone_e164" not in appointment


def test_broker_timeout_is_not_a_request_failure(caplog: pytest.LogCaptureFixture) -> None:
    producer = _producer()
    producer.send_and_wait.side_effect = KafkaTimeoutError("timed out")
    client = TestClient(create_app(publisher=_enabled_publisher(producer)))

    with caplog.at_level(logging.WARNING, logger="appointments_api"):
        res = client.post("/api/appointments", json=_VALID_BODY)

    assert res.status_code == 202
    assert res.json()["kafka_enabled"] is True
    assert res.json()["published"] is False
    warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
    assert any("Kafka publish skipped or failed." in r.getMessage() for r in warnings)


def test_phone_is_normalized_into_event() -> None:
    producer = _producer()
    client = TestClient(create_app(publisher=_enabled_publisher(producer)))
    body = {
        "contact": {"phone": "(650) 253-0000"},
        "appointment": _VALID_BODY["appointment"],
    }

    res = client.post("/api/appointments", json=body)

    assert res.status_code == 202
    event = json.loads(producer.send_and_wait.await_args.args[1])
    assert event["appointment"]["phone_e164"] == "+16502530000"
    assert "email" not in event["appointment"]


def test_fixed_policy_ignores_requested_notify_flags() -> None:
    producer = _producer()
    client = TestClient(create_app(publisher=_enabled_publisher(producer)))
    body = {**_VALID_BODY, "notify": {"email": False, "sms": True}}

    res = client.post("/api/appointments", json=body)

    assert res.status_code == 202
    event = json.loads(producer.send_and_wait.await_args.args[1])
    assert event["notify"] == {"email": True, "sms": False}


def test_contact_policy_requires_phone_for_sms(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("NOTIFY_POLICY", "contact")
    client = TestClient(create_app())
    body = {**_VALID_BODY, "notify": {"sms": True}}

    res = client.post("/api/appointments", json=body)

    assert res.status_code == 400
    assert res.json() == {"errors": ["contact.phone is required when notify.sms is enabled"]}


def test_missing_contact() -> None:
    producer = _producer()
    client = TestClient(create_app(publisher=_enabled_publisher(producer)))

    res = client.post("/api/appointments", json={"appointment": _VALID_BODY["appointment"]})

    assert res.status_code == 400
    assert res.json() == {"errors": ["contact is required"]}
    producer.send_and_wait.assert_not_called()


def test_invalid_phone_without_email() -> None:
    client = TestClient(create_app())
    body = {"contact": {"phone": "555-ABCD"}, "appointment": _VALID_BODY["appointment"]}

    res = client.post("/api/appointments", json=body)

    assert res.status_code == 400
    assert res.json() == {"errors": ["contact.phone must be a valid phone number"]}


def test_no_contact_method() -> None:
    client = TestClient(create_app())
    body = {"contact": {"firstName": "Ada"}, "appointment": _VALID_BODY["appointment"]}

    res = client.post("/api/appointments", json=body)

    assert res.status_code == 400
    assert res.json() == {"errors": ["contact.email or contact.phone is required"]}


def test_end_time_before_start_time() -> None:
    client = TestClient(create_app())
    body = {
        "contact": {"email": "a@b.com"},
        "appointment": {
            "start_time": "2026-01-01T10:00:00Z",
            "end_time": "2026-01-01T09:00:00Z",
        },
    }

    res = client.post("/api/appointments", json=body)

    assert res.status_code == 400
    assert res.json() == {
        "errors": ["appointment.end_time must be after appointment.start_time"]
    }


def test_missing_appointment() -> None:
    client = TestClient(create_app())

    res = client.post("/api/appointments", json={"contact": {"email": "a@b.com"}})

    assert res.status_code == 400
    assert res.json() == {"errors": ["appointment is required"]}


def test_unparseable_timestamp_is_a_400() -> None:
    client = TestClient(create_app())
    body = {
        "contact": {"email": "a@b.com"},
        "appointment": {"start_time": "tomorrow", "end_time": "2026-01-01T09:00:00Z"},
    }

    res = client.post("/api/appointments", json=body)

    assert res.status_code == 400
    errors = res.json()["errors"]
    assert len(errors) == 1
    assert errors[0].startswith("appointment.start_time: ")


@pytest.mark.parametrize(
    ("start_time", "end_time"),
    [
        ("0001-01-01T00:00:00+05:00", "0001-01-01T01:00:00+05:00"),
        ("9999-12-31T20:00:00-05:00", "9999-12-31T21:00:00-05:00"),
    ],
)
def test_timestamp_outside_utc_range_is_a_400(start_time: str, end_time: str) -> None:
    producer = _producer()
    client = TestClient(create_app(publisher=_enabled_publisher(producer)))
    body = {
        "contact": {"email": "a@b.com"},
        "appointment": {"start_time": start_time, "end_time": end_time},
    }

    res = client.post("/api/appointments", json=body)

    assert res.status_code == 400
    errors = res.json()["errors"]
    assert any(error.startswith("appointment.start_time: ") for error in errors)
    assert any(error.startswith("appointment.end_time: ") for error in errors)
    producer.send_and_wait.assert_not_called()


def test_malformed_json_is_a_400() -> None:
    client = TestClient(create_app())

    res = client.post(
        "/api/appointments",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )

    assert res.status_code == 400
    assert res.json() == {"errors": ["request body must be valid JSON"]}


def test_lifespan_opens_disabled_publisher() -> None:
    with TestClient(create_app()) as client:
        res = client.post("/api/appointments", json=_VALID_BODY)

    assert res.status_code == 202
    assert res.json()["kafka_enabled"] is False
    assert res.json()["published"] is False
