"""Unified settings — CLI flags, env vars, and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs  — CLI flags passed by Click
  2. Env vars     — ``TREECTL_*`` prefix, ``__`` for nested sections
  3. TOML file    — ``treectl.toml`` or ``[tool.treectl]``, found via walk-up
  4. Code defaults — baked into the section models
"""

from __future__ import annotations

import threading
import tomllib
from pathlib import Path
from typing import Any

import click
from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from treectl.config.discovery import PYPROJECT_FILENAME, find_config
from treectl.config.models import (
    ContextConfig,
    ExecutionConfig,
    NotifierConfig,
    PluginsConfig,
    TreeConfig,
)


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from ``treectl.toml`` or ``[tool.treectl]`` in ``pyproject.toml``."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path and toml_path.is_file():
            raw = toml_path.read_text(encoding="utf-8")
            try:
                data = tomllib.loads(raw)
            except tomllib.TOMLDecodeError as exc:
                raise click.ClickException(f"Invalid TOML in {toml_path}: {exc}") from exc
            if toml_path.name == PYPROJECT_FILENAME:
                data = data.get("tool", {}).get("treectl", {})
            self._data = data

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        return self._data


# Thread-local handoff of the TOML path into settings_customise_sources.
_tls = threading.local()


class TreeSettings(BaseSettings):
    """Settings for one treectl invocation, frozen after construction.

    Attributes:
        config_path: The TOML file in effect, or None when none was found.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "TREECTL_",
        "env_nested_delimiter": "__",
    }

    config_path: Path | None = None

    # --- CLI flags ---
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False

    # --- TOML sections ---
    execution: ExecutionConfig = Field(default_factory=ExecutionConfig)
    notifier: NotifierConfig = Field(default_factory=NotifierConfig)
    context: ContextConfig = Field(default_factory=ContextConfig)
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        toml_path = getattr(_tls, "toml_path", None)
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, toml_path),
        )

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        start_dir: Path | None = None,
        no_plugins: bool = False,
        **cli_flags: Any,
    ) -> TreeSettings:
        """Build settings for a CLI invocation.

        Uses *config_path* if it names a file, otherwise walks up from
        *start_dir* (default: cwd) with :func:`find_config`. *no_plugins*
        overrides ``[plugins] enabled`` from every other source.
        """
        if no_plugins:
            cli_flags["plugins"] = PluginsConfig(enabled=False)
        toml_path: Path | None = None
        if config_path:
            p = Path(config_path)
            if p.is_file():
                toml_path = p
        else:
            toml_path = find_config(start_dir)

        _tls.toml_path = toml_path
        try:
            return cls(config_path=toml_path, **cli_flags)
        finally:
            _tls.toml_path = None

    def tree_config(self) -> TreeConfig:
        """The TOML-section part of the settings."""
        return TreeConfig(
            execution=self.execution,
            notifier=self.notifier,
            context=self.context,
            plugins=self.plugins,
        )
