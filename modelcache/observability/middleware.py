from __future__ import annotations

import uuid
from typing import Any, Callable

import structlog
from starlette.datastructures import URL

from modelcache.config import SettingsConfigReader, get_settings, profiler_enabled
from modelcache.observability.collector import LoadCollector, bind_collector, reset_collector
from modelcache.observability.sink import FileLogSink


CollectorFactory = Callable[[str], LoadCollector]


def request_url(scope: dict[str, Any]) -> str:
    return str(URL(scope=scope))


class _SettingsCollectorFactory:
    """Builds collectors from the process settings, sharing one file sink."""

    def __init__(self) -> None:
        self._sink: FileLogSink | None = None

    def __call__(self, url: str) -> LoadCollector:
        settings = get_settings()
        if self._sink is None or self._sink.log_dir != settings.log_path:
            if self._sink is not None:
                self._sink.close()
            self._sink = FileLogSink(settings.log_path)
        return LoadCollector(
            config=SettingsConfigReader(),
            sink=self._sink,
            diagnostics_enabled=profiler_enabled,
            current_url=lambda: url,
            path_prefix=settings.path_prefix,
        )


class LoadProbeMiddleware:
    """Gives each HTTP request its own load collector and flushes it at the end."""

    def __init__(self, app: Callable[..., Any], collector_factory: CollectorFactory | None = None) -> None:
        self.app = app
        self.collector_factory = collector_factory or _SettingsCollectorFactory()

    async def __call__(self, scope: dict[str, Any], receive: Callable[..., Any], send: Callable[..., Any]) -> None:
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        structlog.contextvars.bind_contextvars(
            request_id=str(uuid.uuid4()),
            path=scope.get("path"),
            method=scope.get("method"),
        )

        collector = self.collector_factory(request_url(scope))
        token = bind_collector(collector)
        try:
            await self.app(scope, receive, send)
        finally:
            collector.close()
            reset_collector(token)
            structlog.contextvars.clear_contextvars()
