"""SerializationService — node trees back to the external representation.

The structural inverse of :class:`~treectl.services.factory.ActionFactory`:
every field the factory consumes is written back, recursively, and absent
optional fields stay absent. ``serialize(create(x)) == x`` for every
canonical record ``x``.
"""

from __future__ import annotations

import json
from typing import Any

from treectl.domain.nodes import BranchEdge, Condition, Loop, Node, SendEmail, SendSms


class SerializationService:
    """Convert nodes to plain ``dict``/``list``/``str``/``int`` records."""

    def serialize(self, node: Node) -> dict[str, Any]:
        match node:
            case SendSms():
                record: dict[str, Any] = {"kind": node.kind.value}
                if node.label is not None:
                    record["label"] = node.label
                record["phoneNumber"] = node.phone_number
                return record
            case SendEmail():
                record = {"kind": node.kind.value}
                if node.label is not None:
                    record["label"] = node.label
                record["sender"] = node.sender
                record["receiver"] = node.receiver
                return record
            case Condition():
                record = {
                    "kind": node.kind.value,
                    "predicate": node.predicate,
                    "branches": [self._serialize_edge(edge) for edge in node.branches],
                }
                if node.default_branch_label is not None:
                    record["defaultBranchLabel"] = node.default_branch_label
                return record
            case Loop():
                return {
                    "kind": node.kind.value,
                    "iterationCount": node.iteration_count,
                    "subtree": self.serialize(node.subtree),
                }
        raise TypeError(f"Cannot serialize {type(node).__name__}")

    def _serialize_edge(self, edge: BranchEdge) -> dict[str, Any]:
        return {"label": edge.label, "child": self.serialize(edge.child)}

    def to_json(self, node: Node, *, indent: int | None = 2) -> str:
        """Serialize *node* as JSON text."""
        return json.dumps(self.serialize(node), indent=indent, ensure_ascii=False)
