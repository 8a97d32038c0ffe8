"""appointments_api パッケージ。"""

from .app import create_app
from .main import app, run_local

__all__ = ["create_app", "app", "run_local"]
