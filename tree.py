"""Nested tree reconstruction for flat category sequences.

The store returns trees as flat lists ordered so that parents come before
their children. ``build_forest`` turns such a list back into nested nodes in
a single pass.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List

from models.category import Category


@dataclass
class CategoryNode:
    """A category together with its child nodes."""

    category: Category
    children: List["CategoryNode"] = field(default_factory=list)

    def to_dict(self) -> dict:
        data = self.category.to_dict()
        data["children"] = [child.to_dict() for child in self.children]
        return data


def build_forest(categories: Iterable[Category]) -> List[CategoryNode]:
    """Nest a flat category sequence into trees.

    A category whose parent is not in the sequence becomes a root, so a
    subtree listing yields one tree and a full event listing yields the
    whole forest. Sibling order follows input order.

    Args:
        categories: Categories, each appearing after its parent when the
            parent is present (depth-ordered output of the store qualifies).

    Returns:
        Root nodes in input order.
    """
    nodes: Dict[int, CategoryNode] = {}
    roots: List[CategoryNode] = []

    for category in categories:
        node = CategoryNode(category)
        nodes[category.id] = node
        parent = nodes.get(category.parent_id) if category.parent_id is not None else None
        if parent is None:
            roots.append(node)
        else:
            parent.children.append(node)

    return roots


def walk(nodes: List[CategoryNode], depth: int = 0) -> Iterator[tuple]:
    """Yield (depth, node) pairs in pre-order."""
    for node in nodes:
        yield depth, node
        yield from walk(node.children, depth + 1)
