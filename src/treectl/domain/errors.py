"""Exception hierarchy for reconstruction, evaluation, and delivery.

Every exception carries a stable ``code`` used as ``ServiceError.code``
at the service boundary.

INVARIANT: Reconstruction errors are all-or-nothing. No partial tree is
ever returned alongside one.
"""

from __future__ import annotations

from typing import Any


class TreeError(Exception):
    """Base class for all treectl errors."""

    code: str = "TREE_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def detail(self) -> dict[str, Any]:
        """Structured detail for ``ServiceError.detail``."""
        return {}


class ReconstructionError(TreeError):
    """A record could not be turned into a node."""

    def __init__(self, message: str, *, path: str = "$") -> None:
        super().__init__(f"{message} (at {path})")
        self.reason = message
        self.path = path

    def detail(self) -> dict[str, Any]:
        return {"path": self.path}


class UnknownNodeKind(ReconstructionError):
    """The ``kind`` tag is missing or not one of the recognized kinds."""

    code = "UNKNOWN_NODE_KIND"

    def __init__(self, kind: object, *, path: str = "$") -> None:
        if kind is None:
            message = "Missing node kind"
        else:
            message = f"Unknown node kind: {kind!r}"
        super().__init__(message, path=path)
        self.kind = kind

    def detail(self) -> dict[str, Any]:
        return {"path": self.path, "kind": self.kind}


class MalformedNode(ReconstructionError):
    """A required field is missing or has the wrong shape."""

    code = "MALFORMED_NODE"

    def __init__(
        self,
        message: str,
        *,
        path: str = "$",
        kind: str | None = None,
        errors: list[str] | None = None,
    ) -> None:
        super().__init__(message, path=path)
        self.kind = kind
        self.errors = errors or []

    def detail(self) -> dict[str, Any]:
        return {"path": self.path, "kind": self.kind, "errors": self.errors}


class PredicateError(TreeError):
    """A condition predicate could not be evaluated."""

    code = "PREDICATE_ERROR"

    def __init__(self, message: str, *, predicate: str | None = None) -> None:
        super().__init__(message)
        self.predicate = predicate

    def detail(self) -> dict[str, Any]:
        return {"predicate": self.predicate}


class NotificationDeliveryError(TreeError):
    """A notifier could not deliver a message."""

    code = "DELIVERY_FAILED"


class TreeSourceError(TreeError):
    """A tree document could not be read or parsed."""

    code = "INVALID_SOURCE"

    def __init__(self, message: str, *, source: str | None = None) -> None:
        super().__init__(message)
        self.source = source

    def detail(self) -> dict[str, Any]:
        return {"source": self.source}
