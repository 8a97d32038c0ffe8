"""`/api/appointments` のリクエスト/レスポンススキーマ。"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field, field_validator


class ContactModel(BaseModel):
    """予約者の連絡先。どの項目も省略可能。"""

    firstName: str | None = None
    lastName: str | None = None
    email: str | None = None
    phone: str | None = None
    timezone: str | None = None


class NotifyPreferenceModel(BaseModel):
    """通知チャネルの希望。`contact` ポリシーの場合のみ参照される。"""

    email: bool | None = None
    sms: bool | None = None


class AppointmentModel(BaseModel):
    topic: str | None = None
    start_time: datetime = Field(..., description="ISO8601形式の開始日時（オフセット付き）")
    end_time: datetime = Field(..., description="ISO8601形式の終了日時（オフセット付き）")

    @field_validator("start_time", "end_time")
    @classmethod
    def _to_utc(cls, value: datetime) -> datetime:
        # オフセット無しの日時は UTC として扱う。
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        try:
            return value.astimezone(timezone.utc)
        except OverflowError as exc:
            raise ValueError("UTC に変換すると日時の範囲外になります") from exc


class AppointmentRequest(BaseModel):
    """予約受付リクエスト。contact / appointment の欠落はユースケース側で判定する。"""

    contact: ContactModel | None = None
    appointment: AppointmentModel | None = None
    notify: NotifyPreferenceModel | None = None


class AppointmentAcceptedResponse(BaseModel):
    appointment_id: str
    event_id: str
    kafka_enabled: bool
    published: bool


class AppointmentErrorResponse(BaseModel):
    errors: list[str] = Field(default_factory=list)
