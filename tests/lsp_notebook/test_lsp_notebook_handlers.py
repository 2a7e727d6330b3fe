"""
Tests for the language server's feature and command handlers
"""
import asyncio
import os
import sys
from unittest.mock import AsyncMock, MagicMock, PropertyMock, patch

import pytest
from lsprotocol.types import (
    ApplyWorkspaceEditResult,
    ClientCapabilities,
    CodeActionContext,
    CodeActionParams,
    CodeLensParams,
    DidChangeConfigurationParams,
    DidChangeTextDocumentParams,
    DidCloseTextDocumentParams,
    DidOpenTextDocumentParams,
    GeneralClientCapabilities,
    InitializeParams,
    MessageType,
    Position,
    PositionEncodingKind,
    Range,
    TextDocumentContentChangePartial,
    TextDocumentContentChangeWholeDocument,
    TextDocumentIdentifier,
    TextDocumentItem,
    VersionedTextDocumentIdentifier,
)
from pygls.exceptions import JsonRpcInvalidParams
from pygls.uris import from_fs_path

from mdnotebook import CodeRunResult, RunActionRequest

from lsp_notebook import LspNotebookServer, LspNotebookSettings
from lsp_notebook.lsp_notebook_server import (
    code_action,
    code_lens,
    create_server,
    did_change,
    did_change_configuration,
    did_close,
    did_open,
    initialize,
    run_action,
)


URI = "file:///tmp/notes.md"


class FixedRunner:
    """Runner stand-in returning a fixed result."""

    def __init__(self, result):
        self.result = result
        self.calls = []

    async def run(self, text, cwd=None):
        self.calls.append((text, cwd))
        return self.result


@pytest.fixture
def server():
    """Fixture providing a server whose client-facing calls are mocked."""
    ls = LspNotebookServer(LspNotebookSettings(), "test")
    ls.window_show_message = MagicMock()
    ls.workspace_apply_edit_async = AsyncMock(return_value=ApplyWorkspaceEditResult(applied=True))
    return ls


def open_document(ls, text, uri=URI):
    """Send a didOpen for a document."""
    did_open(ls, DidOpenTextDocumentParams(
        text_document=TextDocumentItem(uri=uri, language_id="markdown", version=1, text=text)
    ))


def lenses(ls, uri=URI):
    """Request the code lenses of a document."""
    return code_lens(ls, CodeLensParams(text_document=TextDocumentIdentifier(uri=uri)))


def test_create_server():
    """Test a server can be created with every handler registered."""
    ls = create_server(LspNotebookSettings(), "test")
    assert isinstance(ls, LspNotebookServer)
    assert ls.session.runner.command == ["sh"]


class TestDocumentSync:
    """Test the document lifecycle notifications."""

    def test_open(self, server):
        """Test opening a document makes its actions available."""
        open_document(server, "```sh\nls\n```\n")
        assert len(lenses(server)) == 1

    def test_change_full_text(self, server):
        """Test a full-text change replaces the document."""
        open_document(server, "```sh\nls\n```\n")
        did_change(server, DidChangeTextDocumentParams(
            text_document=VersionedTextDocumentIdentifier(uri=URI, version=2),
            content_changes=[TextDocumentContentChangeWholeDocument(text="```sh\na\n```\n```sh\nb\n```\n")]
        ))

        assert len(lenses(server)) == 2

    def test_change_with_ranges(self, server):
        """Test ranged changes fall back to the workspace copy of the document."""
        open_document(server, "```sh\nls\n```\n")
        workspace = MagicMock()
        workspace.get_text_document.return_value.source = "no code here\n"

        with patch.object(LspNotebookServer, "workspace", new_callable=PropertyMock, return_value=workspace):
            did_change(server, DidChangeTextDocumentParams(
                text_document=VersionedTextDocumentIdentifier(uri=URI, version=2),
                content_changes=[TextDocumentContentChangePartial(
                    range=Range(start=Position(line=0, character=0), end=Position(line=2, character=3)),
                    text="no code here"
                )]
            ))

        workspace.get_text_document.assert_called_once_with(URI)
        assert lenses(server) == []

    def test_close(self, server):
        """Test closing a document removes its actions."""
        open_document(server, "```sh\nls\n```\n")
        did_close(server, DidCloseTextDocumentParams(text_document=TextDocumentIdentifier(uri=URI)))
        assert lenses(server) == []


class TestSettings:
    """Test settings from the editor."""

    def test_initialization_options(self, server):
        """Test settings passed at initialization."""
        initialize(server, InitializeParams(
            process_id=None,
            capabilities=ClientCapabilities(),
            initialization_options={"lspNotebook": {"command": "python3 -", "lensTitle": "Go"}}
        ))

        assert server.session.runner.command == ["python3", "-"]
        assert server.settings.lens_title == "Go"

    def test_unwrapped_initialization_options(self, server):
        """Test initialization options given without the section name."""
        initialize(server, InitializeParams(
            process_id=None,
            capabilities=ClientCapabilities(),
            initialization_options={"command": ["bash"]}
        ))

        assert server.session.runner.command == ["bash"]

    def test_no_initialization_options(self, server):
        """Test initializing without options keeps the defaults."""
        initialize(server, InitializeParams(process_id=None, capabilities=ClientCapabilities()))
        assert server.session.runner.command == ["sh"]

    def test_configuration_change(self, server):
        """Test settings pushed after initialization."""
        did_change_configuration(server, DidChangeConfigurationParams(
            settings={"lspNotebook": {"command": ["zsh"]}}
        ))

        assert server.session.runner.command == ["zsh"]

    def test_configuration_for_other_sections(self, server):
        """Test configuration for other tools is ignored."""
        did_change_configuration(server, DidChangeConfigurationParams(settings={"python": {"command": "x"}}))
        assert server.session.runner.command == ["sh"]

    def test_invalid_configuration_ignored(self, server):
        """Test invalid settings leave the old ones in place."""
        did_change_configuration(server, DidChangeConfigurationParams(
            settings={"lspNotebook": {"command": [], "lensTitle": "Go"}}
        ))

        assert server.session.runner.command == ["sh"]
        assert server.settings.lens_title == "Run"


class TestLensesAndActions:
    """Test code lenses and code actions."""

    TEXT = "# Notes\n\n```sh\nls\n```\n```output 0\nx\n```\n\n```sh\npwd\n```\n"

    def test_lens_per_action(self, server):
        """Test one lens per action, placed over the source block."""
        open_document(server, self.TEXT)
        result = lenses(server)

        assert [lens.range.start.line for lens in result] == [2, 9]
        assert all(lens.command.title == "Run" for lens in result)

    def test_lens_title_setting(self, server):
        """Test the lens title comes from the settings."""
        server.apply_settings({"lensTitle": "Execute"})
        open_document(server, self.TEXT)
        assert {lens.command.title for lens in lenses(server)} == {"Execute"}

    def test_lenses_for_unknown_document(self, server):
        """Test an unopened document has no lenses."""
        assert lenses(server, "file:///tmp/unknown.md") == []

    def test_code_actions_for_range(self, server):
        """Test code actions are offered only for blocks under the cursor."""
        open_document(server, self.TEXT)

        def actions_at(line):
            return code_action(server, CodeActionParams(
                text_document=TextDocumentIdentifier(uri=URI),
                range=Range(start=Position(line=line, character=0), end=Position(line=line, character=0)),
                context=CodeActionContext(diagnostics=[])
            ))

        assert actions_at(0) == []
        assert len(actions_at(3)) == 1
        assert len(actions_at(10)) == 1
        assert actions_at(3)[0].command != actions_at(10)[0].command

    def test_lens_columns_in_utf16_by_default(self, server):
        """Test an emoji counts as two columns for a client that only speaks UTF-16."""
        open_document(server, "```sh\necho \U0001F600")
        [lens] = lenses(server)
        assert lens.range.end == Position(line=1, character=7)

    def test_lens_columns_in_negotiated_encoding(self, server):
        """Test a client offering only UTF-32 gets code point columns."""
        initialize(server, InitializeParams(
            process_id=None,
            capabilities=ClientCapabilities(
                general=GeneralClientCapabilities(position_encodings=[PositionEncodingKind.Utf32])
            )
        ))
        open_document(server, "```sh\necho \U0001F600")

        [lens] = lenses(server)
        assert server.position_codec.encoding == PositionEncodingKind.Utf32
        assert lens.range.end == Position(line=1, character=6)


class TestRunCommand:
    """Test the run command."""

    def payload(self, ls, uri=URI, index=0):
        """Build the command payload for one action of an open document."""
        action = ls.session.list_actions(uri)[index]
        return RunActionRequest.for_action(uri, action).to_payload()

    def test_run_applies_edit(self, server):
        """Test running an action applies its edit to the document."""
        server.session.runner = FixedRunner(CodeRunResult(0, "hi\n"))
        open_document(server, "```sh\necho hi\n```\n")

        asyncio.run(run_action(server, self.payload(server)))

        server.workspace_apply_edit_async.assert_awaited_once()
        params = server.workspace_apply_edit_async.call_args.args[0]
        [text_edit] = params.edit.changes[URI]
        assert text_edit.range.start == Position(line=2, character=3)
        assert text_edit.range.end == Position(line=2, character=3)
        assert text_edit.new_text == "\n```output 0\nhi\n```"
        server.window_show_message.assert_not_called()

    def test_run_replaces_output(self, server):
        """Test rerunning replaces the paired output block."""
        server.session.runner = FixedRunner(CodeRunResult(1, "new\n"))
        open_document(server, "```sh\nfalse\n```\n```output 0\nold\n```\n")

        asyncio.run(run_action(server, self.payload(server)))

        params = server.workspace_apply_edit_async.call_args.args[0]
        [text_edit] = params.edit.changes[URI]
        assert text_edit.range == Range(start=Position(line=3, character=0), end=Position(line=5, character=3))
        assert text_edit.new_text == "```output 1\nnew\n```"

    def test_run_unclosed_block_after_emoji(self, server):
        """Test the edit after an unclosed block lands past an emoji in UTF-16 columns."""
        server.session.runner = FixedRunner(CodeRunResult(0, "\U0001F600\n"))
        open_document(server, "```sh\necho \U0001F600")

        asyncio.run(run_action(server, self.payload(server)))

        params = server.workspace_apply_edit_async.call_args.args[0]
        [text_edit] = params.edit.changes[URI]
        assert text_edit.range.start == Position(line=1, character=7)
        assert text_edit.range.end == Position(line=1, character=7)
        assert text_edit.new_text == "\n```\n```output 0\n\U0001F600\n```"

    @pytest.mark.parametrize("arguments", [(), ({}, {}), ("not a payload",), ({"uri": URI},)])
    def test_malformed_arguments(self, server, arguments):
        """Test malformed command arguments are an invalid-params error."""
        with pytest.raises(JsonRpcInvalidParams):
            asyncio.run(run_action(server, *arguments))

        server.workspace_apply_edit_async.assert_not_called()

    def test_stale_request(self, server):
        """Test a request from an older version of the document is refused with a warning."""
        runner = FixedRunner(CodeRunResult(0, ""))
        server.session.runner = runner
        open_document(server, "```sh\nls\n```\n")
        payload = self.payload(server)
        open_document(server, "```sh\nls\n```\n")

        asyncio.run(run_action(server, payload))

        assert runner.calls == []
        server.workspace_apply_edit_async.assert_not_called()
        server.window_show_message.assert_called_once()
        assert server.window_show_message.call_args.args[0].type == MessageType.Warning

    def test_execution_failure(self, server):
        """Test an interpreter that can't start is reported as an error."""
        server.apply_settings({"command": ["/nonexistent/interpreter"]})
        open_document(server, "```sh\nls\n```\n")

        asyncio.run(run_action(server, self.payload(server)))

        server.workspace_apply_edit_async.assert_not_called()
        message = server.window_show_message.call_args.args[0]
        assert message.type == MessageType.Error
        assert "/nonexistent/interpreter" in message.message

    def test_rejected_edit_is_not_an_error(self, server):
        """Test the editor refusing the edit doesn't fail the command."""
        server.session.runner = FixedRunner(CodeRunResult(0, ""))
        server.workspace_apply_edit_async.return_value = ApplyWorkspaceEditResult(
            applied=False, failure_reason="document changed"
        )
        open_document(server, "```sh\nls\n```\n")

        asyncio.run(run_action(server, self.payload(server)))

        server.window_show_message.assert_not_called()

    @pytest.mark.skipif(sys.platform == "win32", reason="needs a POSIX shell")
    def test_runs_in_document_directory(self, server, tmp_path):
        """Test blocks run in the directory of the document."""
        uri = from_fs_path(str(tmp_path / "notes.md"))
        open_document(server, "```sh\npwd -P\n```\n", uri)

        asyncio.run(run_action(server, self.payload(server, uri)))

        params = server.workspace_apply_edit_async.call_args.args[0]
        [text_edit] = params.edit.changes[uri]
        assert text_edit.new_text == f"\n```output 0\n{os.path.realpath(tmp_path)}\n```"


class TestWorkingDirectory:
    """Test choosing the directory blocks run in."""

    def test_file_uri(self, server, tmp_path):
        """Test a file URI runs in the file's directory."""
        uri = from_fs_path(str(tmp_path / "notes.md"))
        assert server.working_directory(uri) == str(tmp_path)

    def test_missing_directory(self, server, tmp_path):
        """Test a directory that doesn't exist isn't used."""
        uri = from_fs_path(str(tmp_path / "gone" / "notes.md"))
        assert server.working_directory(uri) is None

    def test_non_file_uri(self, server):
        """Test documents that aren't files run in the server's directory."""
        assert server.working_directory("untitled:Untitled-1") is None

    def test_disabled(self, server, tmp_path):
        """Test the setting turns the behaviour off."""
        server.apply_settings({"runInDocumentDirectory": False})
        assert server.working_directory(from_fs_path(str(tmp_path / "notes.md"))) is None
