from __future__ import annotations

import os
from typing import Iterator

os.environ.setdefault("KAFKA_PRODUCER_ENABLED", "false")

import pytest

from appointments_api.core import settings as core_settings

_MANAGED_ENV = [
    "APP_ENV",
    "ALLOWED_ORIGINS",
    "CALENDAR_API_PORT",
    "CONTACT_DEFAULT_PHONE_REGION",
    "KAFKA_BOOTSTRAP_SERVERS",
    "KAFKA_NOTIFY_EMAIL_DEFAULT",
    "KAFKA_NOTIFY_SMS_DEFAULT",
    "KAFKA_SHUTDOWN_GRACE_SECONDS",
    "KAFKA_TOPIC_APPOINTMENTS_CREATED",
    "NOTIFY_POLICY",
    "SSM_PATH_PREFIX",
]


@pytest.fixture(autouse=True)
def basic_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """テストごとに設定系の環境変数を既定値へ戻す。"""

    monkeypatch.setenv("KAFKA_PRODUCER_ENABLED", "false")
    for name in _MANAGED_ENV:
        monkeypatch.delenv(name, raising=False)
    core_settings.load_settings.cache_clear()
    yield
    core_settings.load_settings.cache_clear()
