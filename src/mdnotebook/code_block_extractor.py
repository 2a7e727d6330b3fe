"""
Collect the fenced code blocks of a document in source order.
"""

import logging
from typing import List

from markdown_syntax import FENCED_CODE_BLOCK, SyntaxTree

from mdnotebook.code_block import CodeBlock


_logger = logging.getLogger("CodeBlockExtractor")


def extract_code_blocks(tree: SyntaxTree) -> List[CodeBlock]:
    """
    Find every fenced code block in a tree.

    Fenced blocks are collected wherever they sit (inside block quotes, list
    items and so on) but their own subtrees are never searched.

    Args:
        tree: The syntax tree to search

    Returns:
        The code blocks in document order
    """
    blocks: List[CodeBlock] = []

    stack = [tree.root]
    while stack:
        node = stack.pop()
        if node.kind == FENCED_CODE_BLOCK:
            if any(child.kind == FENCED_CODE_BLOCK for child in node.children):
                _logger.warning("nested fenced code block inside block at line %d ignored", node.start.line)

            blocks.append(CodeBlock.from_node(tree, node))
            continue

        stack.extend(reversed(node.children))

    return blocks
