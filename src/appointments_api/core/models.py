"""ユースケース間で共有するデータモデル。"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union


@dataclass(slots=True, frozen=True)
class NormalizedContact:
    """正規化済みの連絡先。空・不正な値は None に揃える。"""

    email: str | None
    phone_e164: str | None


@dataclass(slots=True, frozen=True)
class NotifyFlags:
    """イベントに載せる通知チャネルのフラグ。"""

    email: bool
    sms: bool


class ValidationErrorKind(str, Enum):
    """バリデーションエラーの種別。表示文言とは別に分岐用に使う。"""

    CONTACT_REQUIRED = "CONTACT_REQUIRED"
    CONTACT_METHOD_REQUIRED = "CONTACT_METHOD_REQUIRED"
    PHONE_INVALID = "PHONE_INVALID"
    SMS_PHONE_REQUIRED = "SMS_PHONE_REQUIRED"
    SMS_PHONE_INVALID = "SMS_PHONE_INVALID"
    APPOINTMENT_REQUIRED = "APPOINTMENT_REQUIRED"
    TIME_RANGE_INVALID = "TIME_RANGE_INVALID"


@dataclass(slots=True, frozen=True)
class ValidationIssue:
    kind: ValidationErrorKind
    message: str


@dataclass(slots=True, frozen=True)
class PublishDisabled:
    """パブリッシュ無効時の結果。I/O は発生しない。"""

    reason: str

    @property
    def published(self) -> bool:
        return False


@dataclass(slots=True, frozen=True)
class PublishSucceeded:
    """ブローカーから ack を受け取った結果。"""

    topic: str
    partition: int
    offset: int

    @property
    def published(self) -> bool:
        return True


@dataclass(slots=True, frozen=True)
class PublishFailed:
    """送信エラー。リクエスト自体は失敗扱いにしない。"""

    error: str

    @property
    def published(self) -> bool:
        return False


PublishOutcome = Union[PublishDisabled, PublishSucceeded, PublishFailed]
