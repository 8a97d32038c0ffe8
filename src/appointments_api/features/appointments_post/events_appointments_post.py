"""受理済みリクエストから `appointments.created` イベントを組み立てる。"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable

from appointments_api.core.models import NormalizedContact, NotifyFlags
from appointments_api.features.appointments_post.schemas_appointments_post import (
    AppointmentModel,
)
from appointments_api.shared.schemas.appointment_events import (
    AppointmentCreatedEvent,
    AppointmentPayloadModel,
    NotifyPayloadModel,
)

Clock = Callable[[], datetime]
IdFactory = Callable[[], uuid.UUID]

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MICROSECONDS_PER_MINUTE = Decimal(60_000_000)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def build_appointment_event(
    appointment: AppointmentModel,
    contact: NormalizedContact,
    notify: NotifyFlags,
    *,
    clock: Clock = utc_now,
    id_factory: IdFactory = uuid.uuid4,
) -> AppointmentCreatedEvent:
    """イベントを生成する。現在時刻は1回だけ取得し ID と occurred_at で共有する。"""

    now = clock().astimezone(timezone.utc)
    unix_ms = to_unix_millis(now)

    start_utc = appointment.start_time.astimezone(timezone.utc)
    end_utc = appointment.end_time.astimezone(timezone.utc)
    start_iso = to_iso_utc(start_utc)

    return AppointmentCreatedEvent(
        event_id=f"evt-{id_factory()}",
        occurred_at=to_iso_utc(now),
        notify=NotifyPayloadModel(email=notify.email, sms=notify.sms),
        appointment=AppointmentPayloadModel(
            appointment_id=f"timeslot-{unix_ms}",
            user_id=str(unix_ms),
            start_time=start_iso,
            end_time=to_iso_utc(end_utc),
            duration_minutes=duration_minutes(start_utc, end_utc),
            time=start_iso,
            email=contact.email,
            phone_e164=contact.phone_e164,
        ),
    )


def to_unix_millis(value: datetime) -> int:
    return (value - _EPOCH) // timedelta(milliseconds=1)


def to_iso_utc(value: datetime) -> str:
    """マイクロ秒まで固定桁で出力する（往復変換で精度が落ちない）。"""

    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def duration_minutes(start: datetime, end: datetime) -> int:
    """分単位の長さ。0.5 分は 0 から遠い方へ丸める。"""

    delta = end - start
    micros = Decimal(
        (delta.days * 86_400 + delta.seconds) * 1_000_000 + delta.microseconds
    )
    minutes = micros / _MICROSECONDS_PER_MINUTE
    return int(minutes.quantize(Decimal(1), rounding=ROUND_HALF_UP))
