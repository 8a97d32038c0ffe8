"""ブローカーへ送る `appointments.created` イベントのスキーマ。

コンシューマ側と共有する契約なので、フィールド名・順序は変更しないこと。
None のフィールドはシリアライズ時に省略する。
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict

APPOINTMENTS_CREATED = "appointments.created"


class NotifyPayloadModel(BaseModel):
    email: bool
    sms: bool

    model_config = ConfigDict(extra="forbid", frozen=True)


class AppointmentPayloadModel(BaseModel):
    """予約本体。`time` は旧コンシューマ向けに `start_time` と同値を入れる。"""

    appointment_id: str
    user_id: str
    start_time: str
    end_time: str
    duration_minutes: int
    time: str
    email: str | None = None
    phone_e164: str | None = None

    model_config = ConfigDict(extra="forbid", frozen=True)


class AppointmentCreatedEvent(BaseModel):
    event_id: str
    event_type: Literal["appointments.created"] = APPOINTMENTS_CREATED
    occurred_at: str
    notify: NotifyPayloadModel
    appointment: AppointmentPayloadModel

    model_config = ConfigDict(extra="forbid", frozen=True)

    def to_json_bytes(self) -> bytes:
        """Kafka の value として送る UTF-8 JSON を返す。"""

        return self.model_dump_json(exclude_none=True).encode("utf-8")
