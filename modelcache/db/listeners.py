"""SQLAlchemy ``load`` event hookup for the request-scoped collector."""

from __future__ import annotations

import os
import traceback
from pathlib import Path
from typing import Any

import sqlalchemy
from sqlalchemy import event, inspect

from modelcache.observability.collector import (
    DISPATCH_FRAME_SKIP,
    StackFrame,
    current_collector,
    frames_from_summaries,
)


_PLUMBING_DIRS = (str(Path(sqlalchemy.__file__).resolve().parent) + os.sep,)
_THIS_FILE = str(Path(__file__).resolve())

_INSTALLED: set[Any] = set()


def _is_plumbing(frame: StackFrame) -> bool:
    if not frame.file or frame.file.startswith("<"):
        return True
    path = str(Path(frame.file).resolve())
    return path == _THIS_FILE or path.startswith(_PLUMBING_DIRS)


def align_to_caller(frames: list[StackFrame]) -> list[StackFrame]:
    """Shift an innermost-first stack so the first non-ORM frame sits at DISPATCH_FRAME_SKIP.

    If every frame is ORM plumbing the stack is returned unchanged.
    """

    for index, frame in enumerate(frames):
        if not _is_plumbing(frame):
            return frames[max(index - DISPATCH_FRAME_SKIP, 0) :]
    return frames


def identity_string(instance: Any) -> str:
    identity = inspect(instance).identity
    if identity is None:
        return "None"
    if len(identity) == 1:
        return str(identity[0])
    return ",".join(str(part) for part in identity)


def _on_load(target: Any, context: Any) -> None:
    collector = current_collector()
    if collector is None:
        return

    stack = align_to_caller(frames_from_summaries(traceback.extract_stack()))
    collector.record(type(target).__name__, identity_string(target), call_stack=stack)


def install_load_listener(target: Any) -> None:
    """Listen for loads of ``target`` and its mapped subclasses.

    ``target`` may be a declarative base that is not itself mapped.
    """

    if target in _INSTALLED:
        return
    event.listen(target, "load", _on_load, propagate=True)
    _INSTALLED.add(target)
