"""
Hierarchy Tree Module - Nested Document Elements

This module provides the HierarchyNode class used for both the numbered/step
hierarchy and the heading navigation tree of a structure analysis.

Key Components:
- HierarchyNode: Tree node with stack-based construction from leveled items

Usage:
    >>> tree = HierarchyNode.build([("Intro", 1, 0), ("Details", 2, 40)])
    >>> tree.depth()
    2
"""

import logging
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

logger = logging.getLogger(__name__)


class HierarchyNode:
    """
    Node of a document hierarchy tree.

    The root node is virtual (level 0, empty label). Every other node
    corresponds to a heading, numbered item or step of the document. A node's
    children are the items that follow it with a strictly greater level,
    up to the next item of equal or lower level.

    Attributes:
        label: Text of the element (empty for the root)
        level: Nesting level (0 for the root)
        position: Character offset of the element (-1 for the root)
        source: Name of the pattern that produced the element
        children: Child nodes in document order

    Example:
        >>> root = HierarchyNode.build([
        ...     ("1 Setup", 1, 0),
        ...     ("1.1 Install", 2, 10),
        ...     ("2 Usage", 1, 30),
        ... ])
        >>> [child.label for child in root.children]
        ['1 Setup', '2 Usage']
        >>> root.count_nodes()
        4
    """

    def __init__(
        self,
        label: str = "",
        level: int = 0,
        position: int = -1,
        source: str = "",
        children: Optional[List["HierarchyNode"]] = None
    ) -> None:
        if not isinstance(level, int) or level < 0:
            raise ValueError(f"Level must be non-negative integer, got: {level}")
        if not isinstance(label, str):
            raise TypeError(f"Label must be string, got: {type(label)}")

        self.label = label
        self.level = level
        self.position = position
        self.source = source
        self.children: List["HierarchyNode"] = list(children or [])

    @classmethod
    def root_node(cls) -> "HierarchyNode":
        """Create an empty virtual root."""
        return cls()

    @classmethod
    def build(cls, items: Iterable[Tuple[Any, ...]]) -> "HierarchyNode":
        """
        Build a tree from ``(label, level, position[, source])`` items in document order.

        Uses a stack of open nodes: before attaching an item, nodes whose level
        is at least the item's level are closed.

        Args:
            items: Leveled items, levels >= 1

        Returns:
            Virtual root node of the tree
        """
        root = cls.root_node()
        stack: List[HierarchyNode] = [root]

        for item in items:
            label, level, position = item[0], item[1], item[2]
            source = item[3] if len(item) > 3 else ""
            node = cls(label=label, level=level, position=position, source=source)

            while len(stack) > 1 and stack[-1].level >= node.level:
                stack.pop()

            stack[-1].children.append(node)
            stack.append(node)

        logger.debug(f"Built hierarchy with {root.count_nodes() - 1} nodes, depth {root.depth()}")
        return root

    @property
    def is_root(self) -> bool:
        return self.level == 0

    def depth(self) -> int:
        """Number of edges on the longest root-to-leaf path (0 for a lone node)."""
        if not self.children:
            return 0
        return 1 + max(child.depth() for child in self.children)

    def count_nodes(self) -> int:
        """Number of nodes in this subtree, including this node."""
        return 1 + sum(child.count_nodes() for child in self.children)

    def iter_nodes(self) -> Iterator["HierarchyNode"]:
        """Pre-order traversal of the subtree, excluding a virtual root."""
        if not self.is_root:
            yield self
        for child in self.children:
            yield from child.iter_nodes()

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the subtree to a nested dictionary.

        Returns:
            Dictionary with label, level, position, source and children
        """
        return {
            "label": self.label,
            "level": self.level,
            "position": self.position,
            "source": self.source,
            "children": [child.to_dict() for child in self.children],
        }

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"HierarchyNode(label='{self.label}', level={self.level}, "
            f"children={len(self.children)})"
        )
