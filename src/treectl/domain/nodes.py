"""Decision tree node model.

A node is one of four frozen pydantic models discriminated on ``kind``:

- ``SendSms`` / ``SendEmail``: leaf notification actions
- ``Condition``: one shared predicate gating an ordered set of branches
- ``Loop``: a subtree repeated a fixed number of times

Attributes are snake_case; the camelCase names of the external
representation are accepted as aliases so records and keyword
construction both work.

INVARIANT: Trees are immutable after construction. Every child is owned
by exactly one parent slot.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from treectl.domain.types import NodeKind

_NODE_CONFIG = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class SendSms(BaseModel):
    """Leaf: send one SMS."""

    model_config = _NODE_CONFIG

    kind: Literal[NodeKind.SEND_SMS] = NodeKind.SEND_SMS
    label: str | None = None
    phone_number: str = Field(alias="phoneNumber")


class SendEmail(BaseModel):
    """Leaf: send one email."""

    model_config = _NODE_CONFIG

    kind: Literal[NodeKind.SEND_EMAIL] = NodeKind.SEND_EMAIL
    label: str | None = None
    sender: str
    receiver: str


class BranchEdge(BaseModel):
    """A labeled child slot under a Condition."""

    model_config = _NODE_CONFIG

    label: str
    child: Node


class Condition(BaseModel):
    """Composite: evaluate ``predicate`` once and run every branch when it holds.

    ``default_branch_label`` is descriptive only. There is no node behind it;
    when the predicate is false it is reported instead of running anything.
    """

    model_config = _NODE_CONFIG

    kind: Literal[NodeKind.CONDITION] = NodeKind.CONDITION
    predicate: str
    branches: tuple[BranchEdge, ...] = ()
    default_branch_label: str | None = Field(default=None, alias="defaultBranchLabel")

    def branch_labels(self) -> list[str]:
        return [edge.label for edge in self.branches]

    @property
    def default_resolves(self) -> bool:
        """Whether the default label names one of the branches."""
        return self.default_branch_label is not None and (
            self.default_branch_label in self.branch_labels()
        )


class Loop(BaseModel):
    """Composite: run ``subtree`` exactly ``iteration_count`` times."""

    model_config = _NODE_CONFIG

    kind: Literal[NodeKind.LOOP] = NodeKind.LOOP
    iteration_count: int = Field(alias="iterationCount", ge=0, strict=True)
    subtree: Node


Node = Annotated[SendSms | SendEmail | Condition | Loop, Field(discriminator="kind")]

BranchEdge.model_rebuild()
Condition.model_rebuild()
Loop.model_rebuild()


def children(node: Node) -> list[Node]:
    """Direct children of *node* in execution order."""
    match node:
        case Condition():
            return [edge.child for edge in node.branches]
        case Loop():
            return [node.subtree]
        case SendSms() | SendEmail():
            return []
    raise TypeError(f"Not a tree node: {type(node).__name__}")


def iter_nodes(node: Node) -> Iterator[Node]:
    """Pre-order walk over *node* and all of its descendants."""
    yield node
    for child in children(node):
        yield from iter_nodes(child)


def tree_depth(node: Node) -> int:
    """Number of nodes on the longest root-to-leaf path."""
    nested = children(node)
    if not nested:
        return 1
    return 1 + max(tree_depth(child) for child in nested)
