from __future__ import annotations

import enum
import traceback
from collections.abc import Callable, Iterable, Sequence
from contextvars import ContextVar, Token
from dataclasses import dataclass
from typing import Any

import structlog

from modelcache.config import XML_PATH_LOG_ACTIVE, XML_PATH_LOG_FILE, ConfigReader
from modelcache.observability.report import LoadLog, build_report, filter_repeats, format_summary
from modelcache.observability.sink import LogSink


# Frames between the real caller and ``record`` on the dispatch path. Tied to
# the shape of that path; the SQLAlchemy listener aligns its stack to it.
DISPATCH_FRAME_SKIP = 5
MAX_CONTEXT_FRAMES = 3

UNKNOWN_LOCATION = "unknown"


@dataclass(frozen=True)
class StackFrame:
    file: str | None = None
    line: int | None = None

    def render(self) -> str:
        location = self.file or UNKNOWN_LOCATION
        if self.line is not None:
            location += f":{self.line}"
        return location


def frames_from_summaries(summaries: Iterable[traceback.FrameSummary]) -> list[StackFrame]:
    """Convert ``traceback.extract_stack()`` output (oldest first) to innermost-first frames."""

    return [StackFrame(file=s.filename, line=s.lineno) for s in reversed(list(summaries))]


def build_call_site(call_stack: Sequence[StackFrame]) -> str:
    window = call_stack[DISPATCH_FRAME_SKIP : DISPATCH_FRAME_SKIP + MAX_CONTEXT_FRAMES]
    if not window:
        return UNKNOWN_LOCATION
    return ", ".join(frame.render() for frame in window)


class CollectorState(enum.Enum):
    CREATED = "created"
    FLUSHING = "flushing"
    DONE = "done"


class LoadCollector:
    """Collects model loads for one request and reports repeats on teardown.

    ``config`` is read on every call, so toggling ``log_active`` mid-request
    takes effect immediately. ``diagnostics_enabled`` is the separate
    process-level gate consulted only by ``flush``.
    """

    def __init__(
        self,
        *,
        config: ConfigReader,
        sink: LogSink,
        diagnostics_enabled: Callable[[], bool],
        current_url: Callable[[], str],
        path_prefix: str = "",
    ) -> None:
        self.config = config
        self.sink = sink
        self.diagnostics_enabled = diagnostics_enabled
        self.current_url = current_url
        self.path_prefix = path_prefix

        self.data: LoadLog = {}
        self.loaded_models: int = 0
        self.state = CollectorState.CREATED
        self._log = structlog.get_logger("modelcache")

    def _log_active(self) -> bool:
        return bool(self.config.get(XML_PATH_LOG_ACTIVE))

    def record(self, entity_type: str, identifier: Any, call_stack: Sequence[StackFrame] | None = None) -> None:
        if self.state is not CollectorState.CREATED:
            return
        if not self._log_active():
            return

        if call_stack is None:
            call_stack = frames_from_summaries(traceback.extract_stack())

        locations = self.data.setdefault(entity_type, {}).setdefault(str(identifier), [])
        locations.append(build_call_site(call_stack))
        self.loaded_models += 1

    def flush(self) -> None:
        if not self.diagnostics_enabled():
            self._log.debug("model_load_report_skipped", reason="diagnostics_disabled")
            return
        if not self._log_active():
            self._log.debug("model_load_report_skipped", reason="log_inactive")
            return

        repeated = filter_repeats(self.data)
        if not repeated:
            self._log.debug("model_load_report_skipped", reason="no_repeats", loaded_models=self.loaded_models)
            return

        summary = format_summary(repeated, self.path_prefix)
        report = build_report(self.current_url(), self.loaded_models, summary)

        log_file = str(self.config.get(XML_PATH_LOG_FILE))
        self.sink.write(report, file=log_file)
        self._log.info(
            "model_load_report_written",
            log_file=log_file,
            loaded_models=self.loaded_models,
            repeated_models=sum(len(ids) for ids in repeated.values()),
        )

    def close(self) -> None:
        if self.state is not CollectorState.CREATED:
            return
        self.state = CollectorState.FLUSHING
        try:
            self.flush()
        except Exception:
            # The report is best effort; request teardown must still complete.
            self._log.exception("model_load_report_failed")
        finally:
            self.state = CollectorState.DONE

    def __enter__(self) -> LoadCollector:
        return self

    def __exit__(self, exc_type, exc_value, tb) -> None:
        self.close()


_CURRENT: ContextVar[LoadCollector | None] = ContextVar("modelcache_collector", default=None)


def current_collector() -> LoadCollector | None:
    return _CURRENT.get()


def bind_collector(collector: LoadCollector) -> Token:
    return _CURRENT.set(collector)


def reset_collector(token: Token) -> None:
    _CURRENT.reset(token)
