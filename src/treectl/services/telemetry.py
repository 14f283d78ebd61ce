"""Execution timing — Span, trace_span, and @traced.

Off unless the CLI runs with ``--verbose``. A traced service call opens the
root span; the engine opens one child per CONDITION or LOOP it enters and
records the predicate outcome, iteration count, and abort point on it. The
finished tree lands in ``ServiceResult.meta["telemetry"]``.
"""

from __future__ import annotations

import functools
import time
from collections.abc import Callable, Generator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, ParamSpec, TypeVar

import structlog

from treectl.services.result import ServiceResult

_telemetry_enabled: ContextVar[bool] = ContextVar("_telemetry_enabled", default=False)
_current_span: ContextVar[Span | None] = ContextVar("_current_span", default=None)


@dataclass
class Span:
    """One timed unit of work with nested child spans."""

    name: str
    parent: Span | None = None
    children: list[Span] = field(default_factory=list)
    start_time: float = field(default_factory=time.perf_counter)
    end_time: float | None = None
    annotations: dict[str, Any] = field(default_factory=dict)

    @property
    def duration_ms(self) -> float:
        if self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time) * 1000

    def end(self) -> None:
        self.end_time = time.perf_counter()

    def annotate(self, key: str, value: Any) -> None:
        self.annotations[key] = value

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "duration_ms": round(self.duration_ms, 2),
        }
        if self.annotations:
            data["annotations"] = self.annotations
        if self.children:
            data["children"] = [child.to_dict() for child in self.children]
        return data


@contextmanager
def trace_span(name: str, **annotations: Any) -> Generator[Span | None]:
    """Open a child span under the active span, pre-annotated with *annotations*.

    Yields None when telemetry is off or no span is active. An exception
    escaping the block is recorded on the span as ``error``.
    """
    if not _telemetry_enabled.get():
        yield None
        return

    parent = _current_span.get()
    if parent is None:
        yield None
        return

    child = Span(name=name, parent=parent, annotations=dict(annotations))
    parent.children.append(child)
    token = _current_span.set(child)
    try:
        yield child
    except Exception as exc:
        child.annotate("error", type(exc).__name__)
        raise
    finally:
        child.end()
        _current_span.reset(token)


def annotate_span(**values: Any) -> None:
    """Record outcome values on the active span; no-op when telemetry is off."""
    span = get_current_span()
    if span is not None:
        span.annotations.update(values)


def _log_span(span: Span, *, ok: bool) -> None:
    structlog.get_logger("treectl.telemetry").debug(
        "span.complete",
        span_name=span.name,
        duration_ms=round(span.duration_ms, 2),
        ok=ok,
        nodes=_count_spans(span) - 1,
    )


def _count_spans(span: Span) -> int:
    return 1 + sum(_count_spans(child) for child in span.children)


_P = ParamSpec("_P")
_R = TypeVar("_R")


def traced(func: Callable[_P, _R]) -> Callable[_P, _R]:  # noqa: UP047
    """Time a service method and attach its span tree to ``ServiceResult.meta``."""

    @functools.wraps(func)
    def wrapper(*args: _P.args, **kwargs: _P.kwargs) -> _R:
        if not _telemetry_enabled.get():
            return func(*args, **kwargs)

        span = Span(name=func.__qualname__)
        token = _current_span.set(span)
        try:
            result = func(*args, **kwargs)
        except Exception:
            span.end()
            _log_span(span, ok=False)
            raise
        finally:
            _current_span.reset(token)

        span.end()
        if isinstance(result, ServiceResult):
            meta = {**(result.meta or {}), "telemetry": span.to_dict()}
            result = result.model_copy(update={"meta": meta})  # type: ignore[assignment]
        _log_span(span, ok=True)
        return result

    return wrapper


def enable_telemetry() -> None:
    _telemetry_enabled.set(True)


def disable_telemetry() -> None:
    _telemetry_enabled.set(False)


def get_current_span() -> Span | None:
    """The active span, or None when telemetry is off."""
    if not _telemetry_enabled.get():
        return None
    return _current_span.get()
