"""ExecutionEngine — depth-first interpreter for node trees.

Semantics per kind:

- ``SendSms`` / ``SendEmail``: one notifier call, one event.
- ``Condition``: the predicate is evaluated once and gates every branch
  together. True runs all branches in order; false reports the default
  label if there is one, otherwise a ``NoBranchMatched`` soft failure.
- ``Loop``: ``IterationStarted`` then the subtree, ``iteration_count`` times.

Failure policy:

- Delivery failures are events; siblings and later iterations still run.
- ``PredicateError`` unwinds every enclosing Condition up to the nearest
  Loop, which records it and aborts its remaining iterations (or moves to
  the next one when ``continue_on_predicate_error`` is set). Without an
  enclosing Loop the run stops and the events so far are returned.

INVARIANT: The engine never mutates a tree and keeps no state between
calls. Each ``execute`` gets its own event accumulator.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from treectl.domain.collaborators import (
    ConditionEvaluator,
    DeliveryResult,
    EventSink,
    NotificationService,
)
from treectl.domain.errors import NotificationDeliveryError, PredicateError
from treectl.domain.events import (
    DefaultBranchSelected,
    ExecutionCancelled,
    ExecutionEvent,
    IterationStarted,
    LoopAborted,
    NoBranchMatched,
    NotificationFailed,
    NotificationSent,
    PredicateFailed,
)
from treectl.domain.nodes import Condition, Loop, Node, SendEmail, SendSms
from treectl.domain.types import Channel
from treectl.services.telemetry import annotate_span, trace_span

logger = logging.getLogger(__name__)


class _Cancelled(Exception):
    """Unwinds the walk once the cancel signal is seen."""


@dataclass
class _Run:
    context: Mapping[str, Any]
    cancel: threading.Event | None
    events: list[ExecutionEvent] = field(default_factory=list)


class ExecutionEngine:
    """Walk a node tree, calling the evaluator and notifier collaborators.

    Usage::

        engine = ExecutionEngine(ExpressionEvaluator(), LoggingNotificationService())
        events = engine.execute(tree, {"year": 2024})
    """

    def __init__(
        self,
        evaluator: ConditionEvaluator,
        notifier: NotificationService,
        *,
        sink: EventSink | None = None,
        continue_on_predicate_error: bool = False,
    ) -> None:
        self._evaluator = evaluator
        self._notifier = notifier
        self._sink = sink
        self._continue_on_predicate_error = continue_on_predicate_error

    def execute(
        self,
        node: Node,
        context: Mapping[str, Any] | None = None,
        *,
        cancel: threading.Event | None = None,
    ) -> list[ExecutionEvent]:
        """Run *node* and return the events it produced, in order.

        *cancel* is checked before each branch and each loop iteration;
        a leaf call in progress is never interrupted.
        """
        run = _Run(context=MappingProxyType(dict(context or {})), cancel=cancel)
        try:
            self._execute(node, run, None)
        except PredicateError as exc:
            self._emit(run, PredicateFailed(predicate=exc.predicate or "", message=exc.message))
        except _Cancelled:
            self._emit(run, ExecutionCancelled())
        return run.events

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _execute(self, node: Node, run: _Run, branch_label: str | None) -> None:
        match node:
            case SendSms():
                self._send_sms(node, run, node.label or branch_label)
            case SendEmail():
                self._send_email(node, run, node.label or branch_label)
            case Condition():
                self._condition(node, run)
            case Loop():
                self._loop(node, run, branch_label)
            case _:
                raise TypeError(f"Cannot execute {type(node).__name__}")

    def _emit(self, run: _Run, event: ExecutionEvent) -> None:
        run.events.append(event)
        if self._sink is not None:
            self._sink.emit(event)

    def _check_cancel(self, run: _Run) -> None:
        if run.cancel is not None and run.cancel.is_set():
            raise _Cancelled

    # ------------------------------------------------------------------
    # Leaves
    # ------------------------------------------------------------------

    def _send_sms(self, node: SendSms, run: _Run, label: str | None) -> None:
        try:
            result = self._notifier.send_sms(node.phone_number, label)
        except NotificationDeliveryError as exc:
            result = DeliveryResult.failed(exc.message)
        if result.ok:
            self._emit(
                run,
                NotificationSent(channel=Channel.SMS, label=label, recipient=node.phone_number),
            )
        else:
            self._emit(
                run,
                NotificationFailed(
                    channel=Channel.SMS,
                    label=label,
                    recipient=node.phone_number,
                    reason=result.detail or "delivery failed",
                ),
            )

    def _send_email(self, node: SendEmail, run: _Run, label: str | None) -> None:
        try:
            result = self._notifier.send_email(node.sender, node.receiver, label)
        except NotificationDeliveryError as exc:
            result = DeliveryResult.failed(exc.message)
        if result.ok:
            self._emit(
                run,
                NotificationSent(
                    channel=Channel.EMAIL,
                    label=label,
                    recipient=node.receiver,
                    sender=node.sender,
                ),
            )
        else:
            self._emit(
                run,
                NotificationFailed(
                    channel=Channel.EMAIL,
                    label=label,
                    recipient=node.receiver,
                    reason=result.detail or "delivery failed",
                ),
            )

    # ------------------------------------------------------------------
    # Composites
    # ------------------------------------------------------------------

    def _evaluate(self, node: Condition, run: _Run) -> bool:
        try:
            matched = self._evaluator.evaluate(node.predicate, run.context)
        except PredicateError as exc:
            if exc.predicate is None:
                raise PredicateError(exc.message, predicate=node.predicate) from exc
            raise
        if not isinstance(matched, bool):
            raise PredicateError(
                f"Evaluator returned {type(matched).__name__}, expected bool",
                predicate=node.predicate,
            )
        return matched

    def _condition(self, node: Condition, run: _Run) -> None:
        with trace_span("condition", predicate=node.predicate):
            matched = self._evaluate(node, run)
            annotate_span(matched=matched)

            if matched:
                logger.debug(
                    "Condition %r is true: executing %d branches",
                    node.predicate,
                    len(node.branches),
                )
                for edge in node.branches:
                    self._check_cancel(run)
                    self._execute(edge.child, run, edge.label)
            elif node.default_branch_label is not None:
                logger.debug(
                    "Condition %r is false: default branch %s",
                    node.predicate,
                    node.default_branch_label,
                )
                self._emit(
                    run,
                    DefaultBranchSelected(
                        label=node.default_branch_label,
                        predicate=node.predicate,
                    ),
                )
            else:
                logger.debug("Condition %r is false: no branch found", node.predicate)
                self._emit(run, NoBranchMatched(predicate=node.predicate))

    def _loop(self, node: Loop, run: _Run, branch_label: str | None) -> None:
        total = node.iteration_count
        with trace_span("loop", iterations=total):
            for index in range(1, total + 1):
                self._check_cancel(run)
                self._emit(run, IterationStarted(index=index, total=total))
                try:
                    self._execute(node.subtree, run, branch_label)
                except PredicateError as exc:
                    self._emit(
                        run,
                        PredicateFailed(predicate=exc.predicate or "", message=exc.message),
                    )
                    if self._continue_on_predicate_error:
                        continue
                    logger.debug("Loop aborted at iteration %d/%d", index, total)
                    self._emit(run, LoopAborted(completed=index - 1, total=total))
                    annotate_span(aborted_at=index)
                    return
