"""予約受付リクエストのバリデーション。

contact / appointment ブロックの欠落は即時に1件だけ返し、それ以外の
違反はすべて収集して定義順に返す。
"""

from __future__ import annotations

from appointments_api.core.models import (
    NormalizedContact,
    NotifyFlags,
    ValidationErrorKind,
    ValidationIssue,
)
from appointments_api.features.appointments_post.schemas_appointments_post import (
    AppointmentRequest,
)

CONTACT_REQUIRED = "contact is required"
PHONE_INVALID = "contact.phone must be a valid phone number"
CONTACT_METHOD_REQUIRED = "contact.email or contact.phone is required"
SMS_PHONE_INVALID = "contact.phone must be a valid phone number when notify.sms is enabled"
SMS_PHONE_REQUIRED = "contact.phone is required when notify.sms is enabled"
APPOINTMENT_REQUIRED = "appointment is required"
TIME_RANGE_INVALID = "appointment.end_time must be after appointment.start_time"


def validate_appointment_request(
    request: AppointmentRequest,
    contact: NormalizedContact,
    notify: NotifyFlags,
) -> list[ValidationIssue]:
    """違反を順序付きで返す。空リストなら受理。"""

    issues: list[ValidationIssue] = []

    if request.contact is None:
        issues.append(ValidationIssue(ValidationErrorKind.CONTACT_REQUIRED, CONTACT_REQUIRED))
        return issues

    has_email = contact.email is not None
    has_phone = contact.phone_e164 is not None
    raw_phone = request.contact.phone
    phone_provided = raw_phone is not None and bool(raw_phone.strip())

    if not has_email and not has_phone:
        if phone_provided:
            issues.append(ValidationIssue(ValidationErrorKind.PHONE_INVALID, PHONE_INVALID))
        else:
            issues.append(
                ValidationIssue(
                    ValidationErrorKind.CONTACT_METHOD_REQUIRED, CONTACT_METHOD_REQUIRED
                )
            )

    if notify.sms and not has_phone:
        if phone_provided:
            issues.append(
                ValidationIssue(ValidationErrorKind.SMS_PHONE_INVALID, SMS_PHONE_INVALID)
            )
        else:
            issues.append(
                ValidationIssue(ValidationErrorKind.SMS_PHONE_REQUIRED, SMS_PHONE_REQUIRED)
            )

    if request.appointment is None:
        issues.append(
            ValidationIssue(ValidationErrorKind.APPOINTMENT_REQUIRED, APPOINTMENT_REQUIRED)
        )
        return issues

    if request.appointment.end_time <= request.appointment.start_time:
        issues.append(
            ValidationIssue(ValidationErrorKind.TIME_RANGE_INVALID, TIME_RANGE_INVALID)
        )

    return issues
