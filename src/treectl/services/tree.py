"""TreeService — load, validate, and run decision trees.

The façade the CLI (and any other adapter) talks to. It wires the factory,
serializer, and engine to the configured collaborators and turns every
outcome into a :class:`ServiceResult`.
"""

from __future__ import annotations

import logging
import random
import threading
from collections import Counter
from collections.abc import Mapping
from datetime import date
from pathlib import Path
from typing import Any

import structlog

from treectl.config.models import TreeConfig
from treectl.domain.collaborators import ConditionEvaluator, EventSink, NotificationService
from treectl.domain.errors import TreeError
from treectl.domain.events import ExecutionEvent, NotificationSent
from treectl.domain.nodes import Condition, Node, iter_nodes, tree_depth
from treectl.infrastructure.loader import load_tree_document
from treectl.infrastructure.notifiers import (
    InMemoryNotificationService,
    LoggingNotificationService,
)
from treectl.infrastructure.predicates import ExpressionEvaluator
from treectl.infrastructure.samples import SAMPLE_PREFIX, list_samples, load_sample
from treectl.infrastructure.sinks import FanOutEventSink, LoggingEventSink
from treectl.plugins.manager import PluginEventSink, PluginManager
from treectl.services.contracts import (
    RunResultData,
    SampleData,
    SampleListData,
    ValidateResultData,
    dump_validated,
)
from treectl.services.engine import ExecutionEngine
from treectl.services.factory import ActionFactory
from treectl.services.result import ServiceResult
from treectl.services.serialization import SerializationService
from treectl.services.telemetry import traced

logger = logging.getLogger(__name__)

TreeSource = str | Path | Mapping[str, Any]

PREDICATE_FUNCTIONS = {"random": random.random}


def _event_item(event: ExecutionEvent) -> dict[str, Any]:
    return {
        **event.model_dump(mode="json"),
        "severity": event.severity,
        "description": event.describe(),
    }


class TreeService:
    """Operations over tree documents, returning ServiceResult.

    Collaborators default to the reference implementations chosen by
    *config*; pass them explicitly to substitute fakes or real transports.
    """

    def __init__(
        self,
        config: TreeConfig | None = None,
        *,
        factory: ActionFactory | None = None,
        evaluator: ConditionEvaluator | None = None,
        notifier: NotificationService | None = None,
        sink: EventSink | None = None,
        plugins: PluginManager | None = None,
    ) -> None:
        self._config = config or TreeConfig()
        self._factory = factory or ActionFactory()
        self._serializer = SerializationService()
        self._evaluator = evaluator or ExpressionEvaluator(PREDICATE_FUNCTIONS)
        self._notifier = notifier
        self._plugin_sink = PluginEventSink(plugins) if plugins is not None else None
        sinks: list[EventSink] = [sink or LoggingEventSink()]
        if self._plugin_sink is not None:
            sinks.append(self._plugin_sink)
        self._sink = FanOutEventSink(sinks)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _resolve(source: TreeSource) -> tuple[str, Any]:
        """Return ``(source name, untyped record)`` for *source*."""
        if isinstance(source, Mapping):
            return "<inline>", source
        if isinstance(source, str) and source.startswith(SAMPLE_PREFIX):
            return source, load_sample(source.removeprefix(SAMPLE_PREFIX))
        path = Path(source)
        return str(path), load_tree_document(path)

    def build_context(self, variables: Mapping[str, Any] | None = None) -> dict[str, Any]:
        """Initial evaluation context: configured defaults, then *variables*."""
        context: dict[str, Any] = {}
        if self._config.context.include_year:
            context["year"] = date.today().year
        context.update(variables or {})
        return context

    def _select_notifier(self, dry_run: bool) -> NotificationService:
        if self._notifier is not None:
            return self._notifier
        if dry_run or self._config.notifier.backend == "memory":
            return InMemoryNotificationService()
        return LoggingNotificationService()

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def load(self, source: TreeSource) -> Node:
        """Reconstruct the tree at *source*. Raises TreeError subclasses."""
        _name, record = self._resolve(source)
        return self._factory.create(record)

    @traced
    def run(
        self,
        source: TreeSource,
        variables: Mapping[str, Any] | None = None,
        *,
        continue_on_predicate_error: bool | None = None,
        dry_run: bool = False,
        cancel: threading.Event | None = None,
    ) -> ServiceResult:
        """Reconstruct and execute a tree.

        Reconstruction failures return ``ok=False`` before any notification
        is sent. Execution failures are reported as events on an ``ok=True``
        result.
        """
        op = "run"
        try:
            name, record = self._resolve(source)
            tree = self._factory.create(record)
        except TreeError as exc:
            logger.warning("Cannot run tree: %s", exc.message)
            return ServiceResult.failure(op, exc)

        if continue_on_predicate_error is None:
            continue_on_predicate_error = self._config.execution.continue_on_predicate_error
        notifier = self._select_notifier(dry_run)
        engine = ExecutionEngine(
            self._evaluator,
            notifier,
            sink=self._sink,
            continue_on_predicate_error=continue_on_predicate_error,
        )
        with structlog.contextvars.bound_contextvars(tree=name):
            events = engine.execute(tree, self.build_context(variables), cancel=cancel)

        failures = sum(1 for event in events if event.severity == "error")
        sent = sum(1 for event in events if isinstance(event, NotificationSent))
        deliveries: list[dict[str, Any]] = []
        if isinstance(notifier, InMemoryNotificationService):
            deliveries = [
                {
                    "channel": d.channel.value,
                    "recipient": d.recipient,
                    "label": d.label,
                    "sender": d.sender,
                    "ok": d.ok,
                }
                for d in notifier.deliveries
            ]

        if self._plugin_sink is not None:
            self._plugin_sink.post_run(tree.kind.value, len(events), failures)

        return ServiceResult(
            ok=True,
            op=op,
            data=dump_validated(
                RunResultData,
                {
                    "source": name,
                    "root_kind": tree.kind.value,
                    "event_count": len(events),
                    "notifications_sent": sent,
                    "failures": failures,
                    "events": [_event_item(event) for event in events],
                    "deliveries": deliveries,
                },
            ),
            warnings=[event.describe() for event in events if event.severity != "info"],
        )

    @traced
    def validate(self, source: TreeSource) -> ServiceResult:
        """Reconstruct a tree and report its shape without executing it."""
        op = "validate"
        try:
            name, record = self._resolve(source)
            tree = self._factory.create(record)
        except TreeError as exc:
            return ServiceResult.failure(op, exc)

        canonical = self._serializer.serialize(tree)
        round_trip = canonical == record
        kinds = Counter(node.kind.value for node in iter_nodes(tree))

        warnings: list[str] = []
        if not round_trip:
            warnings.append(
                "Document is not in canonical form; see 'tree' for the canonical record"
            )
        for node in iter_nodes(tree):
            if isinstance(node, Condition) and node.default_branch_label is not None:
                if not node.default_resolves:
                    warnings.append(
                        f"Default branch {node.default_branch_label!r} of condition "
                        f"{node.predicate!r} does not name a branch"
                    )

        return ServiceResult(
            ok=True,
            op=op,
            data=dump_validated(
                ValidateResultData,
                {
                    "source": name,
                    "root_kind": tree.kind.value,
                    "node_count": sum(kinds.values()),
                    "depth": tree_depth(tree),
                    "kinds": dict(kinds),
                    "round_trip": round_trip,
                    "tree": canonical,
                },
            ),
            warnings=warnings,
        )

    def list_samples(self) -> ServiceResult:
        names = list_samples()
        return ServiceResult(
            ok=True,
            op="samples",
            data=dump_validated(SampleListData, {"count": len(names), "items": names}),
        )

    def show_sample(self, name: str) -> ServiceResult:
        op = "sample"
        try:
            tree = self._factory.create(load_sample(name))
        except TreeError as exc:
            return ServiceResult.failure(op, exc)
        return ServiceResult(
            ok=True,
            op=op,
            data=dump_validated(
                SampleData,
                {"name": name, "tree": self._serializer.serialize(tree)},
            ),
        )
