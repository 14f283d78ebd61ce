"""Tests for PluginManager and PluginEventSink."""

from __future__ import annotations

from typing import Any

from treectl.domain.collaborators import EventSink
from treectl.domain.events import IterationStarted, NoBranchMatched
from treectl.plugins import PluginEventSink, PluginManager, hookimpl


class _DummyPlugin:
    """Minimal plugin for registration tests."""

    @hookimpl
    def post_run(self, root_kind: str, event_count: int, failures: int) -> None:
        pass


class _Recorder:
    def __init__(self) -> None:
        self.events: list[dict[str, Any]] = []
        self.runs: list[tuple[str, int, int]] = []

    @hookimpl
    def on_execution_event(self, event: dict[str, Any]) -> None:
        self.events.append(event)

    @hookimpl
    def post_run(self, root_kind: str, event_count: int, failures: int) -> None:
        self.runs.append((root_kind, event_count, failures))


class _Exploding:
    @hookimpl
    def on_execution_event(self, event: dict[str, Any]) -> None:
        raise RuntimeError("boom")

    @hookimpl
    def post_run(self, root_kind: str, event_count: int, failures: int) -> None:
        raise RuntimeError("boom")


class TestPluginManager:
    def test_hook_relay_accessible(self) -> None:
        pm = PluginManager()
        assert hasattr(pm.hook, "on_execution_event")
        assert hasattr(pm.hook, "post_run")

    def test_register_plugin(self) -> None:
        pm = PluginManager()
        pm.register_plugin(_DummyPlugin(), name="dummy")
        assert "dummy" in pm.list_plugin_names()

    def test_register_plugin_default_name(self) -> None:
        pm = PluginManager()
        pm.register_plugin(_DummyPlugin())
        assert "_DummyPlugin" in pm.list_plugin_names()

    def test_discover_returns_registered_names(self) -> None:
        pm = PluginManager()
        pm.register_plugin(_DummyPlugin(), name="dummy")
        names = pm.discover_and_load()
        assert "dummy" in names
        assert isinstance(names, list)


class TestPluginEventSink:
    def test_satisfies_protocol(self) -> None:
        assert isinstance(PluginEventSink(PluginManager()), EventSink)

    def test_forwards_json_ready_events(self) -> None:
        pm = PluginManager()
        recorder = _Recorder()
        pm.register_plugin(recorder)
        sink = PluginEventSink(pm)
        sink.emit(IterationStarted(index=1, total=2))
        sink.emit(NoBranchMatched(predicate="p"))
        assert recorder.events == [
            {"type": "iteration_started", "index": 1, "total": 2},
            {"type": "no_branch_matched", "predicate": "p"},
        ]

    def test_post_run(self) -> None:
        pm = PluginManager()
        recorder = _Recorder()
        pm.register_plugin(recorder)
        PluginEventSink(pm).post_run("LOOP", 11, 0)
        assert recorder.runs == [("LOOP", 11, 0)]

    def test_plugin_failures_are_swallowed_with_warning(self, caplog: Any) -> None:
        pm = PluginManager()
        pm.register_plugin(_Exploding())
        sink = PluginEventSink(pm)
        with caplog.at_level("WARNING", logger="treectl.plugins.manager"):
            sink.emit(IterationStarted(index=1, total=1))
            sink.post_run("LOOP", 1, 0)
        messages = [record.getMessage() for record in caplog.records]
        assert "Plugin hook on_execution_event failed" in messages
        assert "Plugin hook post_run failed" in messages
