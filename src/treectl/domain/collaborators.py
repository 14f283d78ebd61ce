"""Contracts of the components the engine consumes but does not implement.

Structural protocols: any object with matching methods qualifies. Reference
implementations live in :mod:`treectl.infrastructure`.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from pydantic import BaseModel

if TYPE_CHECKING:
    from treectl.domain.events import ExecutionEvent


class DeliveryResult(BaseModel):
    """Outcome of one notification delivery."""

    model_config = {"frozen": True}

    ok: bool = True
    detail: str | None = None

    @classmethod
    def failed(cls, detail: str) -> DeliveryResult:
        return cls(ok=False, detail=detail)


@runtime_checkable
class ConditionEvaluator(Protocol):
    """Evaluates a predicate against a context.

    Must raise :class:`~treectl.domain.errors.PredicateError` instead of
    executing unrestricted code.
    """

    def evaluate(self, predicate: str, context: Mapping[str, Any]) -> bool: ...


@runtime_checkable
class NotificationService(Protocol):
    """Delivers leaf notifications.

    Ordinary delivery problems are returned as ``DeliveryResult(ok=False)``,
    not raised.
    """

    def send_sms(self, phone_number: str, label: str | None) -> DeliveryResult: ...

    def send_email(self, sender: str, receiver: str, label: str | None) -> DeliveryResult: ...


@runtime_checkable
class EventSink(Protocol):
    """Consumes execution events as they are produced."""

    def emit(self, event: ExecutionEvent) -> None: ...
