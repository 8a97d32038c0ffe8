"""予約受付エンドポイント。"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from starlette.responses import JSONResponse

from appointments_api.core.logging import log_publish_outcome
from appointments_api.core.publisher import KafkaPublisher
from appointments_api.features.appointments_post.schemas_appointments_post import (
    AppointmentAcceptedResponse,
    AppointmentErrorResponse,
    AppointmentRequest,
)
from appointments_api.features.appointments_post.usecase_appointments_post import (
    AppointmentAccepted,
    AppointmentResult,
    create_appointment,
)
from appointments_api.shared.contact_normalizer import ContactNormalizer
from appointments_api.shared.notify_policy import NotifyPolicy

APPOINTMENTS_PATH = "/api/appointments"

router = APIRouter(prefix="/api", tags=["appointments"])


async def get_publisher(request: Request) -> KafkaPublisher:
    return request.app.state.publisher  # type: ignore[attr-defined]


async def get_contact_normalizer(request: Request) -> ContactNormalizer:
    return request.app.state.contact_normalizer  # type: ignore[attr-defined]


async def get_notify_policy(request: Request) -> NotifyPolicy:
    return request.app.state.notify_policy  # type: ignore[attr-defined]


@router.post(
    "/appointments",
    status_code=202,
    response_model=AppointmentAcceptedResponse,
    responses={400: {"model": AppointmentErrorResponse}},
)
async def post_appointment(
    payload: AppointmentRequest,
    request: Request,
    publisher: KafkaPublisher = Depends(get_publisher),
    normalizer: ContactNormalizer = Depends(get_contact_normalizer),
    notify_policy: NotifyPolicy = Depends(get_notify_policy),
) -> JSONResponse:
    result = await create_appointment(
        payload,
        publisher=publisher,
        normalizer=normalizer,
        notify_policy=notify_policy,
    )
    return to_response(result, request_id=getattr(request.state, "request_id", None))


def to_response(result: AppointmentResult, *, request_id: str | None = None) -> JSONResponse:
    """ユースケース結果を HTTP レスポンスへ変換する。

    受理済みなら送信結果に関わらず 202 を返し、未送信の場合は WARNING を記録する。
    """

    if not isinstance(result, AppointmentAccepted):
        body = AppointmentErrorResponse(errors=result.messages)
        return JSONResponse(status_code=400, content=body.model_dump())

    appointment_id = result.event.appointment.appointment_id
    log_publish_outcome(
        result.outcome,
        kafka_enabled=result.kafka_enabled,
        appointment_id=appointment_id,
        event_id=result.event.event_id,
        request_id=request_id,
    )
    body = AppointmentAcceptedResponse(
        appointment_id=appointment_id,
        event_id=result.event.event_id,
        kafka_enabled=result.kafka_enabled,
        published=result.published,
    )
    return JSONResponse(
        status_code=202,
        content=body.model_dump(),
        headers={"Location": APPOINTMENTS_PATH},
    )
