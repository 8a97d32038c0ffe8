"""イベントに載せる通知フラグの決定方針。

- `fixed`: 運用方針としてメール通知のみ固定で有効にする（既定）。
- `contact`: リクエスト（未指定なら設定の既定値）で要求されたチャネルを、
  連絡先の有無に応じて絞り込む。
"""

from __future__ import annotations

from typing import Protocol

from appointments_api.core.models import NormalizedContact, NotifyFlags
from appointments_api.core.settings import Settings


class NotifyPolicy(Protocol):
    def resolve(
        self,
        contact: NormalizedContact,
        *,
        requested_email: bool | None = None,
        requested_sms: bool | None = None,
    ) -> NotifyFlags: ...


class FixedNotifyPolicy:
    """要求内容や連絡先に関わらず email=True / sms=False を返す。"""

    def resolve(
        self,
        contact: NormalizedContact,
        *,
        requested_email: bool | None = None,
        requested_sms: bool | None = None,
    ) -> NotifyFlags:
        return NotifyFlags(email=True, sms=False)


class ContactAvailabilityNotifyPolicy:
    """要求チャネルと連絡先の有無から通知フラグを算出する。

    sms は要求どおりに返す。電話番号が無い場合はバリデーションで弾かれる。
    """

    def __init__(self, *, default_email: bool, default_sms: bool) -> None:
        self._default_email = default_email
        self._default_sms = default_sms

    def resolve(
        self,
        contact: NormalizedContact,
        *,
        requested_email: bool | None = None,
        requested_sms: bool | None = None,
    ) -> NotifyFlags:
        email = self._default_email if requested_email is None else requested_email
        sms = self._default_sms if requested_sms is None else requested_sms
        return NotifyFlags(email=email and contact.email is not None, sms=sms)


def notify_policy_from_settings(settings: Settings) -> NotifyPolicy:
    if settings.notify_policy == "contact":
        return ContactAvailabilityNotifyPolicy(
            default_email=settings.notify_email_default,
            default_sms=settings.notify_sms_default,
        )
    return FixedNotifyPolicy()
