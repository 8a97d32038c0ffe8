"""ローカル / コンテナ用エントリポイント。"""

from __future__ import annotations

import os

import uvicorn
from dotenv import load_dotenv

from .app import create_app
from .core.logging import configure_logging
from .core.settings import load_settings

app = create_app()


def run_local() -> None:
    """`appointments-api` コマンド用のローカル実行関数。"""

    load_dotenv()
    load_settings.cache_clear()
    settings = load_settings()
    configure_logging(settings.log_level)
    uvicorn.run(
        "appointments_api.app:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=settings.is_local,
    )


if os.getenv("RUN_LOCAL") == "1":
    run_local()
