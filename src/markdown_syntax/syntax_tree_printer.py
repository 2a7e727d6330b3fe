"""
Visitor class to render syntax trees for debugging
"""
from typing import List

from markdown_syntax.syntax_node import SyntaxNode, SyntaxTreeVisitor
from markdown_syntax.syntax_tree import SyntaxTree


class SyntaxTreePrinter(SyntaxTreeVisitor):
    """Visitor that renders a syntax tree as an s-expression."""

    def __init__(self, with_positions: bool = False) -> None:
        """
        Initialize the printer.

        Args:
            with_positions: Whether to include each node's line/column range
        """
        super().__init__()
        self._with_positions = with_positions

    def generic_visit(self, node: SyntaxNode) -> str:  # type: ignore[override]
        """
        Render a node and all of its children.

        Args:
            node: The node to render

        Returns:
            The s-expression for the node
        """
        parts: List[str] = [node.kind]
        if self._with_positions:
            parts.append(f"[{node.start.line}, {node.start.column}] - [{node.end.line}, {node.end.column}]")

        for child in node.children:
            parts.append(self.visit(child))

        return f"({' '.join(parts)})"


def to_sexp(tree: SyntaxTree, with_positions: bool = False) -> str:
    """
    Render a tree as an s-expression.

    Args:
        tree: The tree to render
        with_positions: Whether to include each node's line/column range

    Returns:
        The s-expression text
    """
    return SyntaxTreePrinter(with_positions).visit(tree.root)
