"""ASGI entrypoint: ``uvicorn apps.api.main:app``."""

from apps.api.app.main import app

__all__ = ["app"]
