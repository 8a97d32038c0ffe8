"""FastAPI アプリケーションの組み立てを担当するモジュール。"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse

from .core.middleware import request_id_middleware
from .core.publisher import KafkaPublisher, open_publisher
from .core.settings import Settings, load_settings
from .features.appointments_post.router_appointments_post import router as appointments_router
from .shared.contact_normalizer import ContactNormalizer, PhoneNormalizer
from .shared.notify_policy import notify_policy_from_settings


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    """プロセス起動時に Producer を開き、終了時に flush / close する。"""

    if app.state.publisher_injected:  # type: ignore[attr-defined]
        yield
        return

    settings: Settings = app.state.settings  # type: ignore[attr-defined]
    async with open_publisher(settings) as publisher:
        app.state.publisher = publisher  # type: ignore[attr-defined]
        yield


def create_app(*, publisher: KafkaPublisher | None = None) -> FastAPI:
    """コア設定や共通ミドルウェアを組み込んだ FastAPI アプリを返す。

    `publisher` を渡した場合はそのまま利用し、ライフサイクル管理は呼び出し側に任せる。
    """

    settings = load_settings()
    app = FastAPI(title="appointments-api", version="0.1.0", lifespan=_lifespan)
    app.state.settings = settings  # type: ignore[attr-defined]
    app.state.publisher_injected = publisher is not None  # type: ignore[attr-defined]
    # lifespan 開始前は Producer 未初期化として振る舞う。
    app.state.publisher = publisher or KafkaPublisher(  # type: ignore[attr-defined]
        topic=settings.kafka_topic_appointments_created,
        enabled=settings.kafka_enabled,
    )
    app.state.contact_normalizer = ContactNormalizer(  # type: ignore[attr-defined]
        PhoneNormalizer(settings.default_phone_region)
    )
    app.state.notify_policy = notify_policy_from_settings(settings)  # type: ignore[attr-defined]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.allow_any_origin else settings.allowed_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(request_id_middleware)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)  # type: ignore[arg-type]

    @app.get("/healthz", tags=["health"])
    def healthz() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(appointments_router)

    return app


async def _request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """スキーマ不一致も業務バリデーションと同じ 400 / errors 形式で返す。"""

    errors = [_format_schema_error(error) for error in exc.errors()]
    return JSONResponse(status_code=400, content={"errors": errors})


def _format_schema_error(error: dict[str, Any]) -> str:
    if error.get("type") == "json_invalid":
        return "request body must be valid JSON"
    parts = [str(part) for part in error.get("loc", ()) if part != "body"]
    field = ".".join(parts) or "body"
    return f"{field}: {error.get('msg', 'invalid value')}"
