from dataclasses import dataclass

from mdnotebook.code_block import CodeBlock


@dataclass(frozen=True)
class NotebookAction:
    """
    A runnable code block, optionally paired with the output block written by its last run.

    Attributes:
        source: The block to run
        output: The output block immediately following the source, if there is one
    """
    source: CodeBlock
    output: CodeBlock | None = None
