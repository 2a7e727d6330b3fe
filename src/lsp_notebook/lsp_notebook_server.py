"""
Language server that turns Markdown fenced code blocks into runnable notebook cells.
"""

import logging
import os
from typing import Any, Dict, List

from lsprotocol.types import (
    INITIALIZE,
    TEXT_DOCUMENT_CODE_ACTION,
    TEXT_DOCUMENT_CODE_LENS,
    TEXT_DOCUMENT_DID_CHANGE,
    TEXT_DOCUMENT_DID_CLOSE,
    TEXT_DOCUMENT_DID_OPEN,
    WORKSPACE_DID_CHANGE_CONFIGURATION,
    ApplyWorkspaceEditParams,
    CodeAction,
    CodeActionKind,
    CodeActionOptions,
    CodeActionParams,
    CodeLens,
    CodeLensOptions,
    CodeLensParams,
    DidChangeConfigurationParams,
    DidChangeTextDocumentParams,
    DidCloseTextDocumentParams,
    DidOpenTextDocumentParams,
    InitializeParams,
    MessageType,
    PositionEncodingKind,
    ShowMessageParams,
    TextDocumentSyncKind,
)
from pygls.exceptions import JsonRpcInvalidParams
from pygls.lsp.server import LanguageServer
from pygls.uris import to_fs_path
from pygls.workspace import PositionCodec

from mdnotebook import (
    CodeRunner,
    NotebookAddressNotFoundError,
    NotebookExecutionError,
    NotebookProtocolError,
    NotebookSession,
    RunActionRequest,
    document_actions
)

from lsp_notebook.lsp_conversion import (
    RUN_ACTION_COMMAND,
    ClientPositions,
    action_code_action,
    action_code_lens,
    negotiate_position_encoding,
    ranges_overlap,
    to_workspace_edit
)
from lsp_notebook.lsp_notebook_settings import LspNotebookSettings


SETTINGS_SECTION = "lspNotebook"

_logger = logging.getLogger("LspNotebookServer")


class LspNotebookServer(LanguageServer):
    """Language server holding one notebook session."""

    def __init__(self, settings: LspNotebookSettings, version: str) -> None:
        """
        Initialize the server.

        Args:
            settings: Server settings
            version: Server version reported to the editor
        """
        super().__init__("lsp-notebook", version, text_document_sync_kind=TextDocumentSyncKind.Full)
        self.settings = settings
        self.session = NotebookSession(CodeRunner(settings.command))
        self.position_codec = PositionCodec(PositionEncodingKind.Utf16)

    def apply_settings(self, data: Dict[str, Any]) -> None:
        """
        Apply settings sent by the editor.

        Invalid settings are logged and ignored.

        Args:
            data: Settings dictionary
        """
        try:
            self.settings.update(data)

        except ValueError as e:
            _logger.warning("ignoring invalid settings %r: %s", data, e)
            return

        self.session.runner = CodeRunner(self.settings.command)
        _logger.info("settings updated: %s", self.settings)

    def working_directory(self, uri: str) -> str | None:
        """
        Get the directory code from a document should run in.

        Args:
            uri: Document URI

        Returns:
            The document's directory for file URIs (if enabled), otherwise None
        """
        if not self.settings.run_in_document_directory or not uri.startswith("file:"):
            return None

        path = to_fs_path(uri)
        if path is None:
            return None

        directory = os.path.dirname(path)
        if not os.path.isdir(directory):
            return None

        return directory


def initialize(ls: LspNotebookServer, params: InitializeParams) -> None:
    ls.position_codec = PositionCodec(negotiate_position_encoding(params.capabilities))

    options = params.initialization_options
    if isinstance(options, dict):
        ls.apply_settings(options.get(SETTINGS_SECTION, options))


def did_open(ls: LspNotebookServer, params: DidOpenTextDocumentParams) -> None:
    ls.session.update_document(params.text_document.uri, params.text_document.text)


def did_change(ls: LspNotebookServer, params: DidChangeTextDocumentParams) -> None:
    """Re-parse a document from its full new text."""
    uri = params.text_document.uri

    # Full sync is requested, so the last change is normally the whole document
    for change in reversed(params.content_changes):
        if getattr(change, "range", None) is None:
            ls.session.update_document(uri, change.text)
            return

    # The editor sent ranged changes anyway; pygls has already applied them to its copy
    ls.session.update_document(uri, ls.workspace.get_text_document(uri).source)


def did_close(ls: LspNotebookServer, params: DidCloseTextDocumentParams) -> None:
    ls.session.close_document(params.text_document.uri)


def did_change_configuration(ls: LspNotebookServer, params: DidChangeConfigurationParams) -> None:
    settings = params.settings
    if isinstance(settings, dict) and isinstance(settings.get(SETTINGS_SECTION), dict):
        ls.apply_settings(settings[SETTINGS_SECTION])


def code_lens(ls: LspNotebookServer, params: CodeLensParams) -> List[CodeLens]:
    """List a run lens for every action in a document."""
    uri = params.text_document.uri
    state = ls.session.document(uri)
    if state is None:
        return []

    positions = ClientPositions(state.text, ls.position_codec)
    return [action_code_lens(uri, action, ls.settings.lens_title, positions) for action in document_actions(state)]


def code_action(ls: LspNotebookServer, params: CodeActionParams) -> List[CodeAction]:
    """List run actions for the blocks that overlap the requested range."""
    uri = params.text_document.uri
    state = ls.session.document(uri)
    if state is None:
        return []

    positions = ClientPositions(state.text, ls.position_codec)
    return [
        action_code_action(uri, action, ls.settings.lens_title)
        for action in document_actions(state)
        if ranges_overlap(params.range, positions.range(action.source.start, action.source.end))
    ]


async def run_action(ls: LspNotebookServer, *arguments: Any) -> None:
    """
    Run one action and write its output back into the document.

    Args:
        ls: The server
        arguments: Command arguments; a single run request payload

    Raises:
        JsonRpcInvalidParams: If the arguments are malformed
    """
    try:
        request = RunActionRequest.from_arguments(arguments)

    except NotebookProtocolError as e:
        raise JsonRpcInvalidParams(str(e)) from e

    try:
        document_edit = await ls.session.run_action(request, ls.working_directory(request.uri))

    except NotebookAddressNotFoundError as e:
        _logger.warning("run ignored: %s", e)
        ls.window_show_message(
            ShowMessageParams(type=MessageType.Warning, message="No such action; the document has changed")
        )
        return

    except NotebookExecutionError as e:
        ls.window_show_message(ShowMessageParams(type=MessageType.Error, message=str(e)))
        return

    workspace_edit = to_workspace_edit(document_edit, ls.position_codec)
    response = await ls.workspace_apply_edit_async(
        ApplyWorkspaceEditParams(edit=workspace_edit, label="Run code block")
    )
    if not response.applied:
        _logger.warning("editor did not apply edit to %s: %s", request.uri, response.failure_reason)


def create_server(settings: LspNotebookSettings, version: str) -> LspNotebookServer:
    """
    Create a server with all features registered.

    Args:
        settings: Server settings
        version: Server version

    Returns:
        The server, ready to start
    """
    server = LspNotebookServer(settings, version)

    server.feature(INITIALIZE)(initialize)
    server.feature(TEXT_DOCUMENT_DID_OPEN)(did_open)
    server.feature(TEXT_DOCUMENT_DID_CHANGE)(did_change)
    server.feature(TEXT_DOCUMENT_DID_CLOSE)(did_close)
    server.feature(WORKSPACE_DID_CHANGE_CONFIGURATION)(did_change_configuration)
    server.feature(TEXT_DOCUMENT_CODE_LENS, CodeLensOptions(resolve_provider=False))(code_lens)
    server.feature(
        TEXT_DOCUMENT_CODE_ACTION, CodeActionOptions(code_action_kinds=[CodeActionKind.Source])
    )(code_action)
    server.command(RUN_ACTION_COMMAND)(run_action)

    return server
