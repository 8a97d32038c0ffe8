"""アプリ全体で共有する設定読み込みロジック。"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable

import boto3
from botocore.exceptions import ClientError


_DEFAULT_REGION = "ap-northeast-1"
_LOCAL_ENV = "local"
_NOTIFY_POLICIES = {"fixed", "contact"}

_TRUE_VALUES = {"1", "true", "t", "yes", "y", "on"}
_FALSE_VALUES = {"0", "false", "f", "no", "n", "off"}


@dataclass(slots=True)
class Settings:
    """環境非依存で参照できる設定値の集合。"""

    app_env: str
    host: str
    port: int
    allowed_origins: list[str]
    kafka_enabled: bool
    kafka_bootstrap_servers: str
    kafka_topic_appointments_created: str
    kafka_client_id: str
    kafka_shutdown_grace_seconds: float
    notify_email_default: bool
    notify_sms_default: bool
    notify_policy: str
    default_phone_region: str
    log_level: str = "INFO"
    region: str = _DEFAULT_REGION
    ssm_path_prefix: str | None = None

    @property
    def is_local(self) -> bool:
        return self.app_env == _LOCAL_ENV

    @property
    def allow_any_origin(self) -> bool:
        return self.allowed_origins == ["*"]


def _get_str(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


def _get_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    return default


def _get_csv(name: str, default: list[str]) -> list[str]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return list(default)
    return [item.strip() for item in value.split(",") if item.strip()]


def _get_int(name: str, default: int) -> int:
    raw = _get_str(name, str(default))
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"環境変数 {name} は整数で指定してください: {raw}") from exc


def _get_float(name: str, default: float) -> float:
    raw = _get_str(name, str(default))
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"環境変数 {name} は数値で指定してください: {raw}") from exc


def _get_notify_policy() -> str:
    policy = _get_str("NOTIFY_POLICY", "fixed").lower()
    if policy not in _NOTIFY_POLICIES:
        raise ValueError(
            f"NOTIFY_POLICY は {', '.join(sorted(_NOTIFY_POLICIES))} のいずれかです: {policy}"
        )
    return policy


def _fetch_ssm_parameters(
    region: str, names: Iterable[str], prefix: str
) -> dict[str, str]:
    name_list = [f"{prefix}/{name}" for name in names]
    client = boto3.client("ssm", region_name=region)
    try:
        resp = client.get_parameters(Names=name_list, WithDecryption=True)
    except ClientError as exc:  # pragma: no cover - boto3 例外ラップ
        raise RuntimeError("SSM パラメータ取得に失敗しました。") from exc

    found = {item["Name"]: item["Value"] for item in resp.get("Parameters", [])}
    missing = {name for name in name_list if name not in found}
    if missing:
        raise ValueError(f"SSM パラメータ未設定: {', '.join(sorted(missing))}")
    return found


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """環境変数（本番では SSM を併用）から設定を構築する。"""

    app_env = _get_str("APP_ENV", _LOCAL_ENV)
    region = _get_str("REGION", _DEFAULT_REGION)

    settings = Settings(
        app_env=app_env,
        host=_get_str("APP_HOST", "0.0.0.0"),
        port=_get_int("CALENDAR_API_PORT", 8002),
        allowed_origins=_get_csv("ALLOWED_ORIGINS", ["http://localhost:3000"]),
        kafka_enabled=_get_bool("KAFKA_PRODUCER_ENABLED", False),
        kafka_bootstrap_servers=_get_str("KAFKA_BOOTSTRAP_SERVERS", "localhost:9092"),
        kafka_topic_appointments_created=_get_str(
            "KAFKA_TOPIC_APPOINTMENTS_CREATED", "appointments.created"
        ),
        kafka_client_id=_get_str("KAFKA_CLIENT_ID", "appointments-api"),
        kafka_shutdown_grace_seconds=_get_float("KAFKA_SHUTDOWN_GRACE_SECONDS", 5.0),
        notify_email_default=_get_bool("KAFKA_NOTIFY_EMAIL_DEFAULT", True),
        notify_sms_default=_get_bool("KAFKA_NOTIFY_SMS_DEFAULT", False),
        notify_policy=_get_notify_policy(),
        default_phone_region=_get_str("CONTACT_DEFAULT_PHONE_REGION", "US").upper(),
        log_level=_get_str("LOG_LEVEL", "INFO").upper(),
        region=region,
    )

    if app_env == _LOCAL_ENV:
        return settings

    prefix = _get_str("SSM_PATH_PREFIX", "/app/prod")
    required_keys = [
        "kafka/bootstrap_servers",
        "kafka/topic_appointments_created",
    ]
    values = _fetch_ssm_parameters(region=region, names=required_keys, prefix=prefix)

    def from_ssm(key: str) -> str:
        return values[f"{prefix}/{key}"].strip()

    settings.kafka_bootstrap_servers = from_ssm("kafka/bootstrap_servers")
    settings.kafka_topic_appointments_created = from_ssm("kafka/topic_appointments_created")
    settings.ssm_path_prefix = prefix
    return settings
