"""
Stable addresses for syntax tree nodes.

An address is only meaningful for the tree it was issued from: it carries the
tree's generation alongside the node's arena index, so resolving it against any
other tree fails instead of finding whatever node happens to sit at that index.
"""

from dataclasses import dataclass
from typing import Any, Dict

from markdown_syntax import SyntaxNode, SyntaxTree

from mdnotebook.notebook_error import NotebookAddressNotFoundError, NotebookProtocolError


@dataclass(frozen=True)
class NodeAddress:
    """Identifies one node of one syntax tree."""
    generation: int
    index: int

    def to_json(self) -> Dict[str, int]:
        """
        Convert the address to a JSON-compatible dictionary.

        Returns:
            Dictionary with "generation" and "index" keys
        """
        return {"generation": self.generation, "index": self.index}

    @classmethod
    def from_json(cls, data: Any) -> "NodeAddress":
        """
        Build an address from its JSON form.

        Args:
            data: Value received from the editor

        Returns:
            The decoded address

        Raises:
            NotebookProtocolError: If the value is not a well-formed address
        """
        if not isinstance(data, dict):
            raise NotebookProtocolError(f"Node address must be an object, got {type(data).__name__}")

        generation = data.get("generation")
        index = data.get("index")
        for name, value in (("generation", generation), ("index", index)):
            # bool is a subclass of int, but true/false are never valid here
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                raise NotebookProtocolError(f"Node address field '{name}' must be a non-negative integer")

        return cls(generation=generation, index=index)  # type: ignore[arg-type]

    def __str__(self) -> str:
        return f"{self.generation}:{self.index}"


def address_of(tree: SyntaxTree, node: SyntaxNode) -> NodeAddress:
    """
    Get the address of a node.

    Args:
        tree: The tree the node belongs to
        node: The node

    Returns:
        The node's address

    Raises:
        ValueError: If the node is not part of the tree
    """
    if not tree.owns(node):
        raise ValueError(f"{node!r} does not belong to tree generation {tree.generation}")

    return NodeAddress(tree.generation, node.index)


def resolve_address(tree: SyntaxTree, address: NodeAddress) -> SyntaxNode:
    """
    Find the node an address refers to.

    Args:
        tree: The tree to resolve against
        address: The address to resolve

    Returns:
        The addressed node

    Raises:
        NotebookAddressNotFoundError: If the address was not issued from this tree
    """
    if address.generation != tree.generation:
        raise NotebookAddressNotFoundError(
            f"Address {address} is from tree generation {address.generation}, document is at {tree.generation}"
        )

    node = tree.node_at(address.index)
    if node is None:
        raise NotebookAddressNotFoundError(f"Address {address} does not name a node")

    return node
