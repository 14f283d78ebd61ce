"""EventSink implementations: structured logging and fan-out."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from treectl.domain.collaborators import EventSink
    from treectl.domain.events import ExecutionEvent


class LoggingEventSink:
    """Log each event as ``execution.event``.

    Failure events (``severity == "error"``) log at WARNING, the rest at INFO.
    """

    def __init__(self, logger_name: str = "treectl.execution") -> None:
        self._log = structlog.get_logger(logger_name)

    def emit(self, event: ExecutionEvent) -> None:
        payload = event.model_dump(mode="json")
        kind = payload.pop("type")
        if event.severity == "error":
            self._log.warning("execution.event", event_type=kind, **payload)
        else:
            self._log.info("execution.event", event_type=kind, **payload)


class FanOutEventSink:
    """Forward each event to several sinks, in order."""

    def __init__(self, sinks: Iterable[EventSink]) -> None:
        self._sinks = list(sinks)

    def emit(self, event: ExecutionEvent) -> None:
        for sink in self._sinks:
            sink.emit(event)
