"""予約受付ユースケース。

正規化 → バリデーション → イベント生成 → パブリッシュ の順に処理する。
パブリッシュの失敗は受付結果に `published=False` として畳み込み、
リクエスト自体は失敗させない。
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Union, cast

from appointments_api.core.models import PublishOutcome, ValidationIssue
from appointments_api.core.publisher import KafkaPublisher
from appointments_api.features.appointments_post.events_appointments_post import (
    Clock,
    IdFactory,
    build_appointment_event,
    utc_now,
)
from appointments_api.features.appointments_post.schemas_appointments_post import (
    AppointmentModel,
    AppointmentRequest,
)
from appointments_api.features.appointments_post.validation_appointments_post import (
    validate_appointment_request,
)
from appointments_api.shared.contact_normalizer import ContactNormalizer
from appointments_api.shared.notify_policy import NotifyPolicy
from appointments_api.shared.schemas.appointment_events import AppointmentCreatedEvent


@dataclass(slots=True, frozen=True)
class AppointmentRejected:
    issues: list[ValidationIssue]

    @property
    def messages(self) -> list[str]:
        return [issue.message for issue in self.issues]


@dataclass(slots=True, frozen=True)
class AppointmentAccepted:
    event: AppointmentCreatedEvent
    kafka_enabled: bool
    outcome: PublishOutcome

    @property
    def published(self) -> bool:
        return self.outcome.published


AppointmentResult = Union[AppointmentAccepted, AppointmentRejected]


async def create_appointment(
    request: AppointmentRequest,
    *,
    publisher: KafkaPublisher,
    normalizer: ContactNormalizer,
    notify_policy: NotifyPolicy,
    clock: Clock = utc_now,
    id_factory: IdFactory = uuid.uuid4,
) -> AppointmentResult:
    """予約を受け付けてイベントを発行する。"""

    raw_contact = request.contact
    contact = normalizer.normalize(
        email=raw_contact.email if raw_contact else None,
        phone=raw_contact.phone if raw_contact else None,
    )
    requested = request.notify
    notify = notify_policy.resolve(
        contact,
        requested_email=requested.email if requested else None,
        requested_sms=requested.sms if requested else None,
    )

    issues = validate_appointment_request(request, contact, notify)
    if issues:
        return AppointmentRejected(issues=issues)

    # appointment の欠落はバリデーションで弾かれている。
    appointment = cast(AppointmentModel, request.appointment)
    event = build_appointment_event(
        appointment,
        contact,
        notify,
        clock=clock,
        id_factory=id_factory,
    )
    outcome = await publisher.publish(event.to_json_bytes())
    return AppointmentAccepted(
        event=event,
        kafka_enabled=publisher.enabled,
        outcome=outcome,
    )
