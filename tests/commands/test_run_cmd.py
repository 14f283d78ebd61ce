"""Tests for the run command."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import click
import pytest
from click.testing import CliRunner

from treectl.cli import cli
from treectl.commands.run import parse_variables

FAILING_LOOP: dict[str, Any] = {
    "kind": "LOOP",
    "iterationCount": 3,
    "subtree": {
        "kind": "CONDITION",
        "predicate": "segment == 'vip'",
        "branches": [{"label": "VIP", "child": {"kind": "SEND_SMS", "phoneNumber": "555"}}],
    },
}


def _write(path: Path, record: Any) -> str:
    path.write_text(json.dumps(record), encoding="utf-8")
    return str(path)


class TestParseVariables:
    def test_json_values(self) -> None:
        assert parse_variables(None, None, ("year=2024", "vip=true", "ratio=0.5")) == {
            "year": 2024,
            "vip": True,
            "ratio": 0.5,
        }

    def test_plain_strings(self) -> None:
        assert parse_variables(None, None, ("segment=vip",)) == {"segment": "vip"}

    def test_value_may_contain_equals(self) -> None:
        assert parse_variables(None, None, ("expr=a=b",)) == {"expr": "a=b"}

    @pytest.mark.parametrize("item", ["year", "=2024", " =x"])
    def test_bad_format(self, item: str) -> None:
        with pytest.raises(click.BadParameter):
            parse_variables(None, None, (item,))


@pytest.mark.usefixtures("_isolated_cwd")
class TestRunCommand:
    def test_run_sample_json(self, cli_runner: CliRunner) -> None:
        args = ["--json", "run", "sample:condition", "--var", "year=2024"]
        result = cli_runner.invoke(cli, args)
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["ok"] is True
        assert data["op"] == "run"
        assert data["data"]["notifications_sent"] == 2

    def test_run_default_branch(self, cli_runner: CliRunner) -> None:
        args = ["--json", "run", "sample:condition", "--var", "year=2020"]
        result = cli_runner.invoke(cli, args)
        data = json.loads(result.stdout)
        assert [e["type"] for e in data["data"]["events"]] == ["default_branch_selected"]

    def test_human_output(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["run", "sample:email-and-sms"])
        assert result.exit_code == 0
        assert "OK" in result.output
        assert "notification_sent" in result.output

    def test_warning_printed_for_unmatched_condition(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["run", "sample:christmas", "--var", "year=2024"])
        assert result.exit_code == 0
        assert "WARNING: Condition 'year == 2025' is false" in result.output

    def test_quiet(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["-q", "run", "sample:christmas", "--var", "year=2025"])
        assert result.exit_code == 0
        assert result.output.strip() == "OK: run"

    def test_dry_run_lists_deliveries(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(
            cli, ["--json", "run", "sample:christmas", "--var", "year=2025", "--dry-run"]
        )
        data = json.loads(result.stdout)
        assert [d["channel"] for d in data["data"]["deliveries"]] == ["sms", "email"]
        assert [d["label"] for d in data["data"]["deliveries"]] == ["Santa Claus", "Ice Queen"]

    def test_yaml_file(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        path = tmp_path / "tree.yml"
        path.write_text("kind: SEND_SMS\nphoneNumber: '000000000'\n", encoding="utf-8")
        result = cli_runner.invoke(cli, ["--json", "run", str(path)])
        data = json.loads(result.stdout)
        assert data["data"]["root_kind"] == "SEND_SMS"

    def test_loop_aborts_without_flag(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        path = _write(tmp_path / "loop.json", FAILING_LOOP)
        result = cli_runner.invoke(cli, ["-q", "--json", "run", path])
        assert result.exit_code == 0
        events = json.loads(result.stdout)["data"]["events"]
        assert events[-1]["type"] == "loop_aborted"

    def test_continue_on_predicate_error(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        path = _write(tmp_path / "loop.json", FAILING_LOOP)
        result = cli_runner.invoke(
            cli, ["--json", "run", path, "--continue-on-predicate-error"]
        )
        assert result.exit_code == 0
        events = json.loads(result.stdout)["data"]["events"]
        assert [e["type"] for e in events].count("predicate_failed") == 3
        assert "loop_aborted" not in [e["type"] for e in events]

    def test_config_file_sets_policy(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        (tmp_path / "treectl.toml").write_text(
            "[execution]\ncontinue_on_predicate_error = true\n", encoding="utf-8"
        )
        path = _write(tmp_path / "loop.json", FAILING_LOOP)
        result = cli_runner.invoke(cli, ["--json", "run", path])
        events = json.loads(result.stdout)["data"]["events"]
        assert "loop_aborted" not in [e["type"] for e in events]

    def test_invalid_tree_exits_1(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        path = _write(tmp_path / "bad.json", {"kind": "SEND_FAX"})
        result = cli_runner.invoke(cli, ["run", path])
        assert result.exit_code == 1
        assert "Unknown node kind: 'SEND_FAX'" in result.output

    def test_missing_file_exits_1(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        result = cli_runner.invoke(cli, ["run", str(tmp_path / "absent.json")])
        assert result.exit_code == 1
        assert "Cannot read" in result.output

    def test_bad_var_is_usage_error(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["run", "sample:christmas", "--var", "year"])
        assert result.exit_code == 2
        assert "NAME=VALUE" in result.output

    def test_verbose_shows_telemetry(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["-v", "run", "sample:ten-optional-mails", "--dry-run"])
        assert result.exit_code == 0
        assert "TreeService.run" in result.output

    def test_verbose_with_bracketed_predicate(
        self, cli_runner: CliRunner, tmp_path: Path
    ) -> None:
        record = {
            "kind": "CONDITION",
            "predicate": "tag == '[/b]'",
            "branches": [],
            "defaultBranchLabel": "Fallback",
        }
        path = _write(tmp_path / "tree.json", record)
        result = cli_runner.invoke(cli, ["-v", "run", path, "--var", "tag=z"])
        assert result.exit_code == 0, result.output
        assert result.exception is None
        assert "tag == '[/b]'" in result.output
