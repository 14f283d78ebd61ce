"""Typed payload contracts for ``ServiceResult.data``.

Payloads are validated before they leave the service layer so shape
regressions fail fast in tests.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def dump_validated[T: BaseModel](model_cls: type[T], data: dict[str, Any]) -> dict[str, Any]:
    """Validate *data* against *model_cls* and return a normalized payload dict."""
    model = model_cls.model_validate(data)
    return model.model_dump(mode="json")


class EventItem(BaseModel):
    """One execution event, as produced by ``ExecutionEvent.model_dump``."""

    model_config = ConfigDict(extra="allow")

    type: str
    severity: str
    description: str


class DeliveryItem(BaseModel):
    """One delivery recorded by the in-memory notifier."""

    channel: str
    recipient: str
    label: str | None = None
    sender: str | None = None
    ok: bool


class RunResultData(BaseModel):
    """Payload contract for ``TreeService.run``."""

    source: str
    root_kind: str
    event_count: int
    notifications_sent: int
    failures: int
    events: list[EventItem]
    deliveries: list[DeliveryItem] = Field(default_factory=list)


class ValidateResultData(BaseModel):
    """Payload contract for ``TreeService.validate``."""

    source: str
    root_kind: str
    node_count: int
    depth: int
    kinds: dict[str, int]
    round_trip: bool
    tree: dict[str, Any]


class SampleListData(BaseModel):
    """Payload contract for ``TreeService.list_samples``."""

    count: int
    items: list[str]


class SampleData(BaseModel):
    """Payload contract for ``TreeService.show_sample``."""

    name: str
    tree: dict[str, Any]
