from __future__ import annotations

from typing import Any

from fastapi import FastAPI

from modelcache.config import get_settings
from modelcache.db.listeners import install_load_listener
from modelcache.observability.logging import configure_logging
from modelcache.observability.middleware import CollectorFactory, LoadProbeMiddleware


def create_app(model_base: Any | None = None, collector_factory: CollectorFactory | None = None) -> FastAPI:
    """Build the app with the load probe installed.

    ``model_base`` is the declarative base (or mapped class) whose loads are tracked;
    without it nothing is recorded. Serve with ``uvicorn --factory`` around a
    callable that passes the host's base.
    """

    app = FastAPI(title="Model Cache Probe", version="0.1.0")
    app.add_middleware(LoadProbeMiddleware, collector_factory=collector_factory)

    if model_base is not None:
        install_load_listener(model_base)

    @app.on_event("startup")
    def _startup() -> None:
        configure_logging()
        get_settings().log_path.mkdir(parents=True, exist_ok=True)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app
