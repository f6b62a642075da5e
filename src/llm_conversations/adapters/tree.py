"""
Active-path reconstruction for tree-shaped exports.

Tree exports store every branch of a conversation as nodes linked to their
parent, plus a pointer to the leaf the user last looked at. Each tree
adapter converts its raw nodes into ``TreeNode`` records and hands the
read-only mapping to ``walk_active_path``.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Generic, Mapping, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class TreeNode(Generic[T]):
    node_id: str
    parent: str | None
    # None when the node carries no message (e.g. the synthetic root).
    message: T | None = None
    hidden: bool = False
    content: str = ""

    @property
    def eligible(self) -> bool:
        return self.message is not None and not self.hidden and bool(self.content.strip())


def freeze_nodes(nodes: Mapping[str, TreeNode[T]]) -> Mapping[str, TreeNode[T]]:
    return MappingProxyType(dict(nodes))


def parent_id(value: Any) -> str | None:
    if isinstance(value, str) and value:
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return None


def walk_active_path(nodes: Mapping[str, TreeNode[T]], current: Any) -> list[TreeNode[T]]:
    """Return eligible nodes from the root down to ``current``.

    The walk stops at a missing node, a null or malformed parent pointer, or a
    node already visited. Whatever was collected up to that point is returned.
    """
    collected: list[TreeNode[T]] = []
    seen: set[str] = set()
    node_id = parent_id(current)
    while node_id is not None and node_id not in seen:
        node = nodes.get(node_id)
        if node is None:
            break
        seen.add(node_id)
        if node.eligible:
            collected.append(node)
        node_id = node.parent
    collected.reverse()
    return collected
