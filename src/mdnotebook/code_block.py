from dataclasses import dataclass

from markdown_syntax import (
    CODE_FENCE_CONTENT, FENCED_CODE_BLOCK, FENCED_CODE_BLOCK_DELIMITER, INFO_STRING, LANGUAGE,
    SyntaxNode, SyntaxPosition, SyntaxTree
)

from mdnotebook.node_address import NodeAddress, address_of


# Language tag that marks a fenced block as holding the output of the block before it
OUTPUT_LANGUAGE = "output"


@dataclass(frozen=True)
class CodeBlock:
    """
    A fenced code block, with everything needed to run it copied out of the tree.

    Attributes:
        node: The fenced_code_block node
        address: Address of the node in its tree
        info_string: Full info string from the opening fence (may be empty)
        language: First word of the info string (may be empty)
        content: Text between the fences with container prefixes removed
        fence: The opening fence characters (e.g. "```" or "~~~~")
        closed: Whether the block has a closing fence
    """
    node: SyntaxNode
    address: NodeAddress
    info_string: str
    language: str
    content: str
    fence: str
    closed: bool

    @property
    def start(self) -> SyntaxPosition:
        """Start of the opening fence."""
        return self.node.start

    @property
    def end(self) -> SyntaxPosition:
        """End of the closing fence line, or of the last line of an unclosed block."""
        return self.node.end

    def is_output(self) -> bool:
        """
        Check whether this block holds output from a previous run.

        Returns:
            True if the first word of the info string is "output"
        """
        return self.language == OUTPUT_LANGUAGE

    @classmethod
    def from_node(cls, tree: SyntaxTree, node: SyntaxNode) -> "CodeBlock":
        """
        Build a code block from a fenced_code_block node.

        Args:
            tree: The tree the node belongs to
            node: A node of kind fenced_code_block

        Returns:
            The code block
        """
        assert node.kind == FENCED_CODE_BLOCK, f"Expected {FENCED_CODE_BLOCK}, got {node.kind}"

        info_string = ""
        language = ""
        info_node = node.child_of_kind(INFO_STRING)
        if info_node is not None:
            info_string = info_node.value or ""
            language_node = info_node.child_of_kind(LANGUAGE)
            if language_node is not None:
                language = language_node.value or ""

        delimiters = [child for child in node.children if child.kind == FENCED_CODE_BLOCK_DELIMITER]

        content = ""
        content_node = node.child_of_kind(CODE_FENCE_CONTENT)
        if content_node is not None:
            content = content_node.value if content_node.value is not None else tree.node_text(content_node)

        return cls(
            node=node,
            address=address_of(tree, node),
            info_string=info_string,
            language=language,
            content=content,
            fence=tree.node_text(delimiters[0]),
            closed=len(delimiters) > 1
        )
