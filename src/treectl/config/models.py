"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults live here, treectl.toml only holds overrides.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class ExecutionConfig(BaseModel):
    """[execution] section."""

    model_config = {"frozen": True}

    continue_on_predicate_error: bool = False


class NotifierConfig(BaseModel):
    """[notifier] section."""

    model_config = {"frozen": True}

    backend: Literal["log", "memory"] = "log"


class ContextConfig(BaseModel):
    """[context] section: variables every run starts with."""

    model_config = {"frozen": True}

    include_year: bool = True


class PluginsConfig(BaseModel):
    """[plugins] section."""

    model_config = {"frozen": True}

    enabled: bool = True


class TreeConfig(BaseModel):
    """Root configuration composing all sections."""

    model_config = {"frozen": True}

    execution: ExecutionConfig = Field(default_factory=ExecutionConfig)
    notifier: NotifierConfig = Field(default_factory=NotifierConfig)
    context: ContextConfig = Field(default_factory=ContextConfig)
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)
