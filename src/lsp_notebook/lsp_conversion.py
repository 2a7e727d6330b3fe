"""
Conversions between notebook types and LSP protocol types.

Syntax positions count Python string characters.  LSP positions count units of
the position encoding agreed with the client at initialize (UTF-16 unless the
client prefers another), so columns are converted against the text of the
document they refer to.
"""

from typing import Dict, List, Union

from lsprotocol.types import (
    ClientCapabilities,
    CodeAction,
    CodeActionKind,
    CodeLens,
    Command,
    Position,
    PositionEncodingKind,
    Range,
    TextEdit,
    WorkspaceEdit,
)
from pygls.capabilities import ServerCapabilitiesBuilder
from pygls.workspace import PositionCodec

from markdown_syntax import SyntaxPosition
from mdnotebook import DocumentEdit, NotebookAction, PlannedEdit, RunActionRequest


RUN_ACTION_COMMAND = "lsp-notebook.run"


def negotiate_position_encoding(capabilities: ClientCapabilities) -> Union[PositionEncodingKind, str]:
    """
    Pick the position encoding to use with a client.

    This is the encoding pygls advertises in the server capabilities, so the
    columns sent back always match what the client was told.

    Args:
        capabilities: The client's capabilities from initialize

    Returns:
        The agreed encoding
    """
    return ServerCapabilitiesBuilder.choose_position_encoding(capabilities)


class ClientPositions:
    """Converts syntax positions in one document text to client positions."""

    def __init__(self, text: str, codec: PositionCodec) -> None:
        """
        Initialize the converter.

        Args:
            text: The document text the positions refer to
            codec: Codec for the client's position encoding
        """
        self._lines = text.split('\n')
        self._codec = codec

    def position(self, position: SyntaxPosition) -> Position:
        return self._codec.position_to_client_units(
            self._lines, Position(line=position.line, character=position.column)
        )

    def range(self, start: SyntaxPosition, end: SyntaxPosition) -> Range:
        return Range(start=self.position(start), end=self.position(end))


def to_text_edit(edit: PlannedEdit, positions: ClientPositions) -> TextEdit:
    return TextEdit(range=positions.range(edit.start, edit.end), new_text=edit.new_text)


def to_workspace_edit(document_edit: DocumentEdit, codec: PositionCodec) -> WorkspaceEdit:
    """
    Wrap a document edit as a workspace edit.

    Args:
        document_edit: The edit for one document
        codec: Codec for the client's position encoding

    Returns:
        A workspace edit containing a single text edit for the document
    """
    positions = ClientPositions(document_edit.text, codec)
    changes: Dict[str, List[TextEdit]] = {document_edit.uri: [to_text_edit(document_edit.edit, positions)]}
    return WorkspaceEdit(changes=changes)


def action_command(uri: str, action: NotebookAction, title: str) -> Command:
    """
    Build the run command for an action.

    Args:
        uri: Document URI
        action: The action to run
        title: Title shown by the editor

    Returns:
        A command whose single argument is the run request payload
    """
    request = RunActionRequest.for_action(uri, action)
    return Command(title=title, command=RUN_ACTION_COMMAND, arguments=[request.to_payload()])


def action_code_lens(uri: str, action: NotebookAction, title: str, positions: ClientPositions) -> CodeLens:
    """
    Build the code lens for an action, shown over its source block.

    Args:
        uri: Document URI
        action: The action
        title: Lens title
        positions: Position converter for the document

    Returns:
        The code lens
    """
    return CodeLens(
        range=positions.range(action.source.start, action.source.end),
        command=action_command(uri, action, title)
    )


def action_code_action(uri: str, action: NotebookAction, title: str) -> CodeAction:
    """
    Build the code action for an action.

    Args:
        uri: Document URI
        action: The action
        title: Code action title

    Returns:
        The code action
    """
    return CodeAction(
        title=title,
        kind=CodeActionKind.Source,
        command=action_command(uri, action, title)
    )


def ranges_overlap(first: Range, second: Range) -> bool:
    """
    Check whether two LSP ranges overlap or touch.

    Args:
        first: A range
        second: Another range in the same encoding

    Returns:
        True if the ranges share at least one position
    """
    def key(position: Position) -> tuple:
        return position.line, position.character

    return key(first.start) <= key(second.end) and key(second.start) <= key(first.end)
