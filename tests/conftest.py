"""Shared pytest fixtures and test doubles for treectl tests."""

from __future__ import annotations

import logging
from collections.abc import Generator, Iterable, Mapping
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from treectl.domain.errors import PredicateError
from treectl.infrastructure.notifiers import InMemoryNotificationService
from treectl.services.factory import ActionFactory
from treectl.services.serialization import SerializationService
from treectl.services.telemetry import disable_telemetry


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def factory() -> ActionFactory:
    return ActionFactory()


@pytest.fixture
def serializer() -> SerializationService:
    return SerializationService()


@pytest.fixture
def notifier() -> InMemoryNotificationService:
    return InMemoryNotificationService()


@pytest.fixture(autouse=True)
def _restore_global_state() -> Generator[None]:
    """Undo logging and telemetry changes made by the CLI under test."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    treectl_logger = logging.getLogger("treectl")
    treectl_level = treectl_logger.level
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)
    treectl_logger.setLevel(treectl_level)
    disable_telemetry()


@pytest.fixture
def _isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Run in an empty temp directory so no treectl.toml is discovered.

    Use via ``@pytest.mark.usefixtures("_isolated_cwd")`` on command test
    classes.
    """
    monkeypatch.delenv("TREECTL_CONFIG", raising=False)
    monkeypatch.chdir(tmp_path)


# ---------------------------------------------------------------------------
# Test doubles
# ---------------------------------------------------------------------------


class ScriptedEvaluator:
    """ConditionEvaluator returning scripted outcomes per predicate.

    Each predicate maps to a single outcome or a list consumed one call at a
    time. An outcome is a bool, or an exception instance to raise.
    """

    def __init__(self, outcomes: Mapping[str, Any] | None = None) -> None:
        self._outcomes: dict[str, Any] = {}
        for predicate, outcome in (outcomes or {}).items():
            self._outcomes[predicate] = list(outcome) if isinstance(outcome, list) else outcome
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def evaluate(self, predicate: str, context: Mapping[str, Any]) -> bool:
        self.calls.append((predicate, dict(context)))
        if predicate not in self._outcomes:
            raise PredicateError(f"No scripted outcome for {predicate!r}")
        outcome = self._outcomes[predicate]
        if isinstance(outcome, list):
            outcome = outcome.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class RecordingSink:
    """EventSink that keeps every event it receives."""

    def __init__(self) -> None:
        self.events: list[Any] = []

    def emit(self, event: Any) -> None:
        self.events.append(event)


def event_types(events: Iterable[Any]) -> list[str]:
    return [event.type for event in events]
