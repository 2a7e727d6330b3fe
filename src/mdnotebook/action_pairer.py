"""
Pair code blocks with the output blocks that follow them.
"""

from typing import List, Sequence

from mdnotebook.code_block import CodeBlock
from mdnotebook.notebook_action import NotebookAction


def pair_actions(blocks: Sequence[CodeBlock]) -> List[NotebookAction]:
    """
    Turn an ordered list of code blocks into actions.

    The scan is greedy with one block of lookahead: a block followed directly by
    an "output" block is paired with it and both are consumed, otherwise the
    block becomes an unpaired action on its own.  An "output" block that has
    nothing to pair with is still exposed as an unpaired action.

    Args:
        blocks: Code blocks in document order

    Returns:
        Actions in document order
    """
    actions: List[NotebookAction] = []

    i = 0
    while i < len(blocks):
        source = blocks[i]
        if i + 1 < len(blocks) and blocks[i + 1].is_output():
            actions.append(NotebookAction(source, blocks[i + 1]))
            i += 2
            continue

        actions.append(NotebookAction(source))
        i += 1

    return actions
