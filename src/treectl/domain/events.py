"""Structured execution events.

The engine never writes output itself. Everything it does is recorded as
one of these frozen models, discriminated on ``type``, in execution order.
"""

from __future__ import annotations

from typing import Annotated, ClassVar, Literal

from pydantic import BaseModel, Field

from treectl.domain.types import Channel

Severity = Literal["info", "warning", "error"]


class _Event(BaseModel):
    model_config = {"frozen": True}

    severity: ClassVar[Severity] = "info"

    def describe(self) -> str:
        """One-line human description of the event."""
        raise NotImplementedError


class NotificationSent(_Event):
    type: Literal["notification_sent"] = "notification_sent"
    channel: Channel
    label: str | None = None
    recipient: str
    sender: str | None = None

    def describe(self) -> str:
        origin = f"({self.label}) " if self.label else ""
        if self.channel is Channel.EMAIL:
            return f"{origin}email sent from {self.sender} to {self.recipient}"
        return f"{origin}SMS sent to {self.recipient}"


class NotificationFailed(_Event):
    severity: ClassVar[Severity] = "error"

    type: Literal["notification_failed"] = "notification_failed"
    channel: Channel
    label: str | None = None
    recipient: str
    reason: str

    def describe(self) -> str:
        origin = f"({self.label}) " if self.label else ""
        return f"{origin}{self.channel.value} to {self.recipient} failed: {self.reason}"


class DefaultBranchSelected(_Event):
    type: Literal["default_branch_selected"] = "default_branch_selected"
    label: str
    predicate: str

    def describe(self) -> str:
        return f"Condition {self.predicate!r} is false: default branch {self.label}"


class NoBranchMatched(_Event):
    severity: ClassVar[Severity] = "warning"

    type: Literal["no_branch_matched"] = "no_branch_matched"
    predicate: str

    def describe(self) -> str:
        return f"Condition {self.predicate!r} is false and has no default branch"


class IterationStarted(_Event):
    type: Literal["iteration_started"] = "iteration_started"
    index: int
    total: int

    def describe(self) -> str:
        return f"Iteration #{self.index}/{self.total}"


class PredicateFailed(_Event):
    severity: ClassVar[Severity] = "error"

    type: Literal["predicate_failed"] = "predicate_failed"
    predicate: str
    message: str

    def describe(self) -> str:
        return f"Predicate {self.predicate!r} failed: {self.message}"


class LoopAborted(_Event):
    severity: ClassVar[Severity] = "error"

    type: Literal["loop_aborted"] = "loop_aborted"
    completed: int
    total: int

    def describe(self) -> str:
        return f"Loop aborted after {self.completed}/{self.total} iterations"


class ExecutionCancelled(_Event):
    severity: ClassVar[Severity] = "warning"

    type: Literal["execution_cancelled"] = "execution_cancelled"

    def describe(self) -> str:
        return "Execution cancelled"


ExecutionEvent = Annotated[
    NotificationSent
    | NotificationFailed
    | DefaultBranchSelected
    | NoBranchMatched
    | IterationStarted
    | PredicateFailed
    | LoopAborted
    | ExecutionCancelled,
    Field(discriminator="type"),
]
