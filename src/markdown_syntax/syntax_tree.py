"""
Immutable syntax tree for one snapshot of a Markdown document.
"""

import itertools
from typing import Iterator, List

from markdown_syntax.syntax_node import SyntaxNode


# Shared by every tree in the process so that no two trees ever have the same generation
_generation_counter = itertools.count(1)


class SyntaxTree:
    """
    A sealed syntax tree.

    On construction every node is given a sequential arena index in depth-first
    pre-order, and the tree is tagged with a process-wide unique generation.
    """

    def __init__(self, root: SyntaxNode, text: str) -> None:
        """
        Seal a tree of nodes.

        Args:
            root: The document root node
            text: The source text the tree was parsed from
        """
        self._root = root
        self._text = text
        self._generation = next(_generation_counter)
        self._nodes: List[SyntaxNode] = []

        stack = [root]
        while stack:
            node = stack.pop()
            node.index = len(self._nodes)
            self._nodes.append(node)

            # Push in reverse so the leftmost child is visited first
            stack.extend(reversed(node.children))

    @property
    def root(self) -> SyntaxNode:
        """The document root node."""
        return self._root

    @property
    def text(self) -> str:
        """The source text for this tree."""
        return self._text

    @property
    def generation(self) -> int:
        """Unique generation number of this tree."""
        return self._generation

    def __len__(self) -> int:
        return len(self._nodes)

    def node_at(self, index: int) -> SyntaxNode | None:
        """
        Look up a node by its arena index.

        Args:
            index: The arena index

        Returns:
            The node at that index, or None if the index is out of range
        """
        if 0 <= index < len(self._nodes):
            return self._nodes[index]

        return None

    def owns(self, node: SyntaxNode) -> bool:
        """
        Check whether a node belongs to this tree.

        Args:
            node: The node to check

        Returns:
            True if the node is this tree's node at its arena index
        """
        return self.node_at(node.index) is node

    def walk(self) -> Iterator[SyntaxNode]:
        """
        Iterate over all nodes in depth-first pre-order.

        Yields:
            Each node of the tree in source order
        """
        yield from self._nodes

    def node_text(self, node: SyntaxNode) -> str:
        """
        Extract the raw source text spanned by a node.

        Args:
            node: A node of this tree

        Returns:
            The substring of the source text covered by the node
        """
        return self._text[node.start_index:node.end_index]
