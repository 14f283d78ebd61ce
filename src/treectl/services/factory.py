"""ActionFactory — reconstruct typed node trees from untyped records.

The factory is the only validation boundary between untrusted data (parsed
JSON or YAML) and the node model. Dispatch is a plain mapping from kind tag
to builder, passed in at construction; there is no global registry.

INVARIANT: Reconstruction is all-or-nothing. Composite builders build every
child before their parent, so a failure anywhere in the subtree aborts the
whole call.

Nesting is capped at ``max_depth`` nodes per root-to-leaf path. Deeper
records fail with :class:`MalformedNode` at the first node past the cap.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from contextvars import ContextVar
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ValidationError

from treectl.domain.errors import MalformedNode, UnknownNodeKind
from treectl.domain.nodes import BranchEdge, Condition, Loop, Node, SendEmail, SendSms
from treectl.domain.types import NodeKind

logger = logging.getLogger(__name__)

NodeBuilder = Callable[["ActionFactory", Mapping[str, Any], str], Node]

MAX_TREE_DEPTH = 100

_nesting: ContextVar[int] = ContextVar("_nesting", default=0)


def _format_errors(exc: ValidationError) -> list[str]:
    messages: list[str] = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err["loc"]) or "<node>"
        messages.append(f"{loc}: {err['msg']}")
    return messages


def _validate[T: BaseModel](
    model_cls: type[T],
    fields: dict[str, Any],
    *,
    kind: NodeKind,
    path: str,
) -> T:
    """Validate *fields* against *model_cls*, translating pydantic errors."""
    try:
        return model_cls.model_validate(fields)
    except ValidationError as exc:
        errors = _format_errors(exc)
        raise MalformedNode(
            f"Invalid {kind} node: {errors[0]}",
            path=path,
            kind=kind.value,
            errors=errors,
        ) from exc


def _present(record: Mapping[str, Any], *keys: str) -> dict[str, Any]:
    return {key: record[key] for key in keys if key in record}


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def build_send_sms(factory: ActionFactory, record: Mapping[str, Any], path: str) -> SendSms:
    fields = _present(record, "label", "phoneNumber")
    return _validate(SendSms, fields, kind=NodeKind.SEND_SMS, path=path)


def build_send_email(factory: ActionFactory, record: Mapping[str, Any], path: str) -> SendEmail:
    fields = _present(record, "label", "sender", "receiver")
    return _validate(SendEmail, fields, kind=NodeKind.SEND_EMAIL, path=path)


def build_condition(factory: ActionFactory, record: Mapping[str, Any], path: str) -> Condition:
    raw_branches = record.get("branches")
    if not isinstance(raw_branches, (list, tuple)):
        raise MalformedNode(
            "'branches' must be a list of {label, child} records",
            path=f"{path}.branches",
            kind=NodeKind.CONDITION.value,
        )

    edges: list[BranchEdge] = []
    for index, raw in enumerate(raw_branches):
        edge_path = f"{path}.branches[{index}]"
        if not isinstance(raw, Mapping):
            raise MalformedNode(
                "Branch must be a record with 'label' and 'child'",
                path=edge_path,
                kind=NodeKind.CONDITION.value,
            )
        label = raw.get("label")
        if not isinstance(label, str):
            raise MalformedNode(
                "Branch 'label' must be a string",
                path=f"{edge_path}.label",
                kind=NodeKind.CONDITION.value,
            )
        if "child" not in raw:
            raise MalformedNode(
                "Branch is missing 'child'",
                path=edge_path,
                kind=NodeKind.CONDITION.value,
            )
        child = factory.create(raw["child"], path=f"{edge_path}.child")
        edges.append(BranchEdge(label=label, child=child))

    fields = _present(record, "predicate", "defaultBranchLabel")
    fields["branches"] = edges
    return _validate(Condition, fields, kind=NodeKind.CONDITION, path=path)


def build_loop(factory: ActionFactory, record: Mapping[str, Any], path: str) -> Loop:
    if "subtree" not in record:
        raise MalformedNode(
            "Loop is missing 'subtree'",
            path=path,
            kind=NodeKind.LOOP.value,
        )
    subtree = factory.create(record["subtree"], path=f"{path}.subtree")

    fields = _present(record, "iterationCount")
    fields["subtree"] = subtree
    return _validate(Loop, fields, kind=NodeKind.LOOP, path=path)


DEFAULT_BUILDERS: Mapping[str, NodeBuilder] = MappingProxyType(
    {
        NodeKind.SEND_SMS: build_send_sms,
        NodeKind.SEND_EMAIL: build_send_email,
        NodeKind.CONDITION: build_condition,
        NodeKind.LOOP: build_loop,
    }
)


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


class ActionFactory:
    """Turn an external node record into a typed node tree.

    Usage::

        factory = ActionFactory()
        tree = factory.create(json.loads(text))

    A custom *builders* mapping replaces the default kind dispatch, e.g. to
    restrict which kinds a caller accepts.
    """

    def __init__(
        self,
        builders: Mapping[str, NodeBuilder] | None = None,
        *,
        max_depth: int = MAX_TREE_DEPTH,
    ) -> None:
        self._builders: dict[str, NodeBuilder] = dict(
            DEFAULT_BUILDERS if builders is None else builders
        )
        self._max_depth = max_depth

    @property
    def kinds(self) -> list[str]:
        """Kind tags this factory accepts."""
        return [str(kind) for kind in self._builders]

    def create(self, record: Any, *, path: str = "$") -> Node:
        """Reconstruct the node described by *record*.

        Raises:
            UnknownNodeKind: ``kind`` is missing or not registered.
            MalformedNode: a required field is missing or ill-typed, or the
                record nests deeper than ``max_depth``.
        """
        if not isinstance(record, Mapping):
            raise MalformedNode(f"Expected a node record, got {type(record).__name__}", path=path)

        kind = record.get("kind")
        builder = self._builders.get(kind) if isinstance(kind, str) else None
        if builder is None:
            raise UnknownNodeKind(kind, path=path)

        depth = _nesting.get() + 1
        if depth > self._max_depth:
            raise MalformedNode(
                f"Tree nests deeper than {self._max_depth} levels",
                path=path,
                kind=kind,
            )
        token = _nesting.set(depth)
        try:
            node = builder(self, record, path)
        finally:
            _nesting.reset(token)
        logger.debug("Reconstructed %s at %s", kind, path)
        return node
