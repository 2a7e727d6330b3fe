"""
Work out the text edit that writes a run result back into a document.
"""

from dataclasses import dataclass

from markdown_syntax import DOCUMENT, SyntaxPosition

from mdnotebook.code_block import OUTPUT_LANGUAGE, CodeBlock
from mdnotebook.code_runner import CodeRunResult


OUTPUT_FENCE = "```"


@dataclass(frozen=True)
class PlannedEdit:
    """
    A single text replacement.

    An insertion has `start == end`.
    """
    start: SyntaxPosition
    end: SyntaxPosition
    new_text: str

    def is_insertion(self) -> bool:
        """
        Check whether this edit inserts without replacing anything.

        Returns:
            True if the edit's range is empty
        """
        return self.start == self.end


def format_output_block(result: CodeRunResult) -> str:
    """
    Format a run result as a fenced output block.

    The output is written verbatim.  If it doesn't end with a newline one is
    added so the closing fence sits on its own line.

    Args:
        result: The run result

    Returns:
        The fenced block text, without a trailing newline
    """
    body = result.output
    if body and not body.endswith('\n'):
        body += '\n'

    return f"{OUTPUT_FENCE}{OUTPUT_LANGUAGE} {result.status}\n{body}{OUTPUT_FENCE}"


def plan_edit(source: CodeBlock, output: CodeBlock | None, result: CodeRunResult) -> PlannedEdit:
    """
    Plan the edit for a run result.

    An insertion after an unclosed top-level source block also closes it,
    otherwise the output block would become part of the source.  Block quotes
    and list items need no help: the unprefixed output lines end them, and the
    open fence with them.

    Args:
        source: The block that was run
        output: The existing output block paired with the source, if any
        result: The run result

    Returns:
        An insertion just after the source block if there is no output block,
        otherwise a replacement of exactly the output block's span
    """
    block = format_output_block(result)

    if output is None:
        prefix = '\n'
        parent = source.node.parent
        if not source.closed and parent is not None and parent.kind == DOCUMENT:
            prefix += source.fence + '\n'

        return PlannedEdit(source.end, source.end, prefix + block)

    return PlannedEdit(output.start, output.end, block)
