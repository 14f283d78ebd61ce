"""ServiceResult and ServiceError — the envelope every TreeService call returns.

INVARIANT: Reconstruction and source errors become ``ok=False`` results;
execution outcomes, including failed deliveries, are ``ok=True`` results
that carry events.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from treectl.domain.errors import TreeError


class ServiceError(BaseModel):
    """Structured error payload within a ServiceResult."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_exception(cls, exc: TreeError) -> ServiceError:
        return cls(code=exc.code, message=exc.message, detail=exc.detail())


class ServiceResult(BaseModel):
    """Uniform return type of service operations.

    Attributes:
        ok: Whether the operation succeeded.
        op: Name of the operation (``"run"``, ``"validate"``, ...).
        data: Operation-specific payload on success.
        warnings: Non-fatal issues, e.g. failed deliveries.
        error: Structured error if ``ok`` is False.
        meta: Optional metadata (telemetry span tree).
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None

    @classmethod
    def failure(cls, op: str, exc: TreeError) -> ServiceResult:
        return cls(ok=False, op=op, error=ServiceError.from_exception(exc))
