"""Span telemetry for service calls.

Off by default; a disabled check is one ContextVar lookup. When enabled
(``configure_logging(verbose=True)``), every :func:`traced` service call
opens a root span, the load and save phases of its transaction open child
spans, and the finished tree is logged as one ``span.complete`` structlog
event. Spans are annotated with the ``project_id`` the call acted on.
"""

from __future__ import annotations

import functools
import inspect
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, ParamSpec, TypeVar

import structlog

_enabled: ContextVar[bool] = ContextVar("architekt_telemetry_enabled", default=False)
_active: ContextVar[Span | None] = ContextVar("architekt_active_span", default=None)

_ANNOTATED_PARAMS = ("project_id",)


@dataclass
class Span:
    """One timed unit of work and the spans opened inside it."""

    name: str
    parent: Span | None = None
    children: list[Span] = field(default_factory=list)
    annotations: dict[str, Any] = field(default_factory=dict)
    started: float = field(default_factory=time.perf_counter)
    finished: float | None = None

    @property
    def duration_ms(self) -> float:
        if self.finished is None:
            return 0.0
        return (self.finished - self.started) * 1000

    def end(self) -> None:
        self.finished = time.perf_counter()

    def annotate(self, key: str, value: Any) -> None:
        self.annotations[key] = value

    def to_dict(self) -> dict[str, Any]:
        node: dict[str, Any] = {"name": self.name, "duration_ms": round(self.duration_ms, 2)}
        if self.annotations:
            node["annotations"] = dict(self.annotations)
        if self.children:
            node["children"] = [child.to_dict() for child in self.children]
        return node


@contextmanager
def _open_span(name: str) -> Iterator[Span]:
    parent = _active.get()
    span = Span(name=name, parent=parent)
    if parent is not None:
        parent.children.append(span)
    token = _active.set(span)
    try:
        yield span
    finally:
        span.end()
        _active.reset(token)


@contextmanager
def trace_span(name: str) -> Iterator[Span | None]:
    """Open a child span of the active one.

    Yields None when telemetry is off or no traced call is running, so
    phases outside a service call are never reported on their own.
    """
    if not _enabled.get() or _active.get() is None:
        yield None
        return
    with _open_span(name) as span:
        yield span


def _emit(span: Span, *, ok: bool) -> None:
    structlog.get_logger("architekt.telemetry").debug(
        "span.complete",
        span_name=span.name,
        duration_ms=round(span.duration_ms, 2),
        ok=ok,
        tree=span.to_dict(),
    )


_P = ParamSpec("_P")
_R = TypeVar("_R")


def traced(func: Callable[_P, _R]) -> Callable[_P, _R]:  # noqa: UP047
    """Decorator: record a service method as a span.

    Only the outermost traced call emits a log event; nested ones appear
    as children in its tree. The return value is passed through as-is.
    """
    signature = inspect.signature(func)
    annotated = [name for name in _ANNOTATED_PARAMS if name in signature.parameters]

    @functools.wraps(func)
    def wrapper(*args: _P.args, **kwargs: _P.kwargs) -> _R:
        if not _enabled.get():
            return func(*args, **kwargs)

        is_root = _active.get() is None
        ok = False
        try:
            with _open_span(func.__qualname__) as span:
                if annotated:
                    bound = signature.bind_partial(*args, **kwargs).arguments
                    for name in annotated:
                        if name in bound:
                            span.annotate(name, bound[name])
                result = func(*args, **kwargs)
                ok = True
        finally:
            if is_root:
                _emit(span, ok=ok)
        return result

    return wrapper


def enable_telemetry() -> None:
    _enabled.set(True)


def disable_telemetry() -> None:
    _enabled.set(False)


def get_current_span() -> Span | None:
    """The active span, for manual annotation. None when telemetry is off."""
    if not _enabled.get():
        return None
    return _active.get()


def reset_telemetry() -> None:
    """Turn telemetry off and drop any active span (test isolation)."""
    _enabled.set(False)
    _active.set(None)
