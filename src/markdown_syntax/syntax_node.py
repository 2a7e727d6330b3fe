"""
Syntax tree nodes for Markdown documents.

Nodes carry a kind tag, a character-offset span and a zero-based line/column
span into the source text they were parsed from.
"""

from typing import Any, List, NamedTuple, Tuple


DOCUMENT = "document"
ATX_HEADING = "atx_heading"
PARAGRAPH = "paragraph"
THEMATIC_BREAK = "thematic_break"
BLOCK_QUOTE = "block_quote"
LIST = "list"
LIST_ITEM = "list_item"
FENCED_CODE_BLOCK = "fenced_code_block"
FENCED_CODE_BLOCK_DELIMITER = "fenced_code_block_delimiter"
INFO_STRING = "info_string"
LANGUAGE = "language"
CODE_FENCE_CONTENT = "code_fence_content"


class SyntaxPosition(NamedTuple):
    """A zero-based (line, column) position within a document."""
    line: int
    column: int


class SyntaxNode:
    """
    A node in a Markdown syntax tree.

    Nodes are built up by the parser and then sealed into a `SyntaxTree`, which
    gives every node its arena index.  Once sealed a node must not be modified.
    """

    def __init__(
        self,
        kind: str,
        start: SyntaxPosition,
        end: SyntaxPosition,
        start_index: int,
        end_index: int,
        value: str | None = None
    ) -> None:
        """
        Initialize a syntax node.

        Args:
            kind: Kind tag for the node (e.g. "fenced_code_block")
            start: Position of the first character of the node
            end: Position just past the last character of the node
            start_index: Character offset of the start of the node in the source text
            end_index: Character offset just past the end of the node in the source text
            value: Optional literal value for leaves whose meaning differs from their raw span
        """
        self.kind = kind
        self.start = start
        self.end = end
        self.start_index = start_index
        self.end_index = end_index
        self.value = value

        self.parent: SyntaxNode | None = None
        self._children: List[SyntaxNode] = []

        # Arena slot, assigned when the owning tree is sealed
        self.index = -1

    @property
    def children(self) -> Tuple["SyntaxNode", ...]:
        """Ordered children of this node."""
        return tuple(self._children)

    def add_child(self, child: "SyntaxNode") -> "SyntaxNode":
        """
        Add a child node to this node.

        Args:
            child: The child node to add

        Returns:
            The added child node for method chaining
        """
        assert self.index < 0, "Cannot add children to a sealed node"
        child.parent = self
        self._children.append(child)
        return child

    def last_child(self) -> "SyntaxNode | None":
        """
        Get the last child of this node, if any.

        Returns:
            The most recently added child, or None if there are no children
        """
        if not self._children:
            return None

        return self._children[-1]

    def extend_to(self, end: SyntaxPosition, end_index: int) -> None:
        """
        Move the end of this node forward.

        Args:
            end: New end position
            end_index: New end character offset
        """
        assert self.index < 0, "Cannot resize a sealed node"
        if end_index > self.end_index:
            self.end = end
            self.end_index = end_index

    def child_of_kind(self, kind: str) -> "SyntaxNode | None":
        """
        Find the first direct child of a given kind.

        Args:
            kind: The kind tag to look for

        Returns:
            The first matching child, or None
        """
        for child in self._children:
            if child.kind == kind:
                return child

        return None

    def __repr__(self) -> str:
        return (
            f"SyntaxNode({self.kind!r}, ({self.start.line}, {self.start.column})"
            f"-({self.end.line}, {self.end.column}))"
        )


class SyntaxTreeVisitor:
    """
    Base visitor class for syntax tree traversal.

    Dispatches on the node kind, so a handler for fenced code blocks is named
    `visit_fenced_code_block`.
    """

    def visit(self, node: SyntaxNode) -> Any:
        """
        Visit a node and dispatch to the appropriate visit method.

        Args:
            node: The node to visit

        Returns:
            The result of visiting the node
        """
        method_name = f'visit_{node.kind}'
        visitor = getattr(self, method_name, self.generic_visit)
        return visitor(node)

    def generic_visit(self, node: SyntaxNode) -> List[Any]:
        """
        Default visit method for nodes without specific handlers.

        Args:
            node: The node to visit

        Returns:
            A list of results from visiting each child
        """
        results = []
        for child in node.children:
            results.append(self.visit(child))

        return results
