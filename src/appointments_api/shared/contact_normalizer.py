"""連絡先（メール・電話番号）の正規化。"""

from __future__ import annotations

import phonenumbers
from phonenumbers import NumberParseException, PhoneNumberFormat

from appointments_api.core.models import NormalizedContact

DEFAULT_PHONE_REGION = "US"


class PhoneNormalizer:
    """既定リージョンを基準に電話番号を E.164 へ正規化する。

    状態を持たないため、複数リクエストから同時に呼び出してよい。
    """

    def __init__(self, default_region: str | None = DEFAULT_PHONE_REGION) -> None:
        region = (default_region or "").strip().upper()
        self._default_region = region or DEFAULT_PHONE_REGION

    @property
    def default_region(self) -> str:
        return self._default_region

    def normalize(self, value: str | None) -> str | None:
        """E.164 形式の文字列を返す。空・解析不能・無効番号は None。"""

        if value is None or not value.strip():
            return None

        try:
            parsed = phonenumbers.parse(value.strip(), self._default_region)
        except NumberParseException:
            return None
        if not phonenumbers.is_valid_number(parsed):
            return None
        return phonenumbers.format_number(parsed, PhoneNumberFormat.E164)


def normalize_email(value: str | None) -> str | None:
    if value is None:
        return None
    trimmed = value.strip()
    return trimmed or None


class ContactNormalizer:
    def __init__(self, phone_normalizer: PhoneNormalizer | None = None) -> None:
        self._phone_normalizer = phone_normalizer or PhoneNormalizer()

    def normalize(self, *, email: str | None, phone: str | None) -> NormalizedContact:
        return NormalizedContact(
            email=normalize_email(email),
            phone_e164=self._phone_normalizer.normalize(phone),
        )
