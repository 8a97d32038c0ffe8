"""JSONロギングの共通ヘルパー。"""

from __future__ import annotations

import json
import logging
import traceback
from typing import Any

from appointments_api.core.models import (
    PublishDisabled,
    PublishFailed,
    PublishOutcome,
    PublishSucceeded,
)

_LOGGER = logging.getLogger("appointments_api")


def configure_logging(level: str = "INFO") -> None:
    """ローカル実行用にパッケージロガーへ StreamHandler を一度だけ付与する。"""

    _LOGGER.setLevel(level)
    if _LOGGER.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    _LOGGER.addHandler(handler)
    _LOGGER.propagate = False


def log_request(*, path: str, status: int, request_id: str, latency_ms: int) -> None:
    payload = {
        "level": "INFO",
        "path": path,
        "status": status,
        "request_id": request_id,
        "latency_ms": latency_ms,
    }
    _LOGGER.info(json.dumps(payload, ensure_ascii=False))


def log_error(
    *,
    path: str,
    status: int,
    request_id: str,
    latency_ms: int,
    error: Any,
) -> None:
    payload = {
        "level": "ERROR",
        "path": path,
        "status": status,
        "request_id": request_id,
        "latency_ms": latency_ms,
        "error_json": _to_error_json(error),
        "traceback": traceback.format_exc(),
    }
    _LOGGER.error(json.dumps(payload, ensure_ascii=False))


def log_publish_error(*, topic: str, error: Any) -> None:
    """ブローカー送信時の例外を ERROR で出力する。"""

    payload = {
        "level": "ERROR",
        "message": "Kafka publish failed.",
        "topic": topic,
        "error_json": _to_error_json(error),
        "traceback": traceback.format_exc(),
    }
    _LOGGER.error(json.dumps(payload, ensure_ascii=False))


def log_publish_outcome(
    outcome: PublishOutcome,
    *,
    kafka_enabled: bool,
    appointment_id: str,
    event_id: str,
    request_id: str | None = None,
) -> None:
    """パブリッシュ結果を記録する。未送信は WARNING とする。"""

    payload: dict[str, Any] = {
        "level": "INFO" if outcome.published else "WARNING",
        "message": "Kafka publish succeeded."
        if outcome.published
        else "Kafka publish skipped or failed.",
        "enabled": kafka_enabled,
        "appointment_id": appointment_id,
        "event_id": event_id,
        "request_id": request_id,
    }
    if isinstance(outcome, PublishSucceeded):
        payload.update(
            topic=outcome.topic, partition=outcome.partition, offset=outcome.offset
        )
        _LOGGER.info(json.dumps(payload, ensure_ascii=False))
        return

    if isinstance(outcome, PublishDisabled):
        payload["error"] = outcome.reason
    elif isinstance(outcome, PublishFailed):
        payload["error"] = outcome.error
    _LOGGER.warning(json.dumps(payload, ensure_ascii=False))


def _to_error_json(error: Any) -> str:
    if isinstance(error, (dict, list)):
        return json.dumps(error, ensure_ascii=False)
    return json.dumps({"message": str(error)}, ensure_ascii=False)
