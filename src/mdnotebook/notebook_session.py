"""
Notebook session: the open documents and the operations the editor can ask for.
"""

from dataclasses import dataclass
import logging
from typing import List, Tuple

from mdnotebook.action_pairer import pair_actions
from mdnotebook.code_block_extractor import extract_code_blocks
from mdnotebook.code_runner import CodeRunner, CodeRunResult
from mdnotebook.document_store import DocumentState, DocumentStore
from mdnotebook.edit_planner import PlannedEdit, plan_edit
from mdnotebook.node_address import resolve_address
from mdnotebook.notebook_action import NotebookAction
from mdnotebook.notebook_error import NotebookAddressNotFoundError
from mdnotebook.run_action_request import RunActionRequest


@dataclass(frozen=True)
class DocumentEdit:
    """
    An edit to apply to one document after running an action.

    Attributes:
        uri: Document URI the edit applies to
        text: Document text the edit's positions refer to
        edit: The planned text edit
        result: The run result the edit was planned from
    """
    uri: str
    text: str
    edit: PlannedEdit
    result: CodeRunResult


def document_actions(state: DocumentState) -> List[NotebookAction]:
    """
    List the runnable actions of a document snapshot.

    Args:
        state: The document state

    Returns:
        Actions in document order; empty if the document failed to parse
    """
    if state.tree is None:
        return []

    return pair_actions(extract_code_blocks(state.tree))


class NotebookSession:
    """
    Owns the document store and code runner for one editor session.
    """

    def __init__(self, runner: CodeRunner) -> None:
        """
        Initialize the session.

        Args:
            runner: Runner used to execute code blocks
        """
        self._store = DocumentStore()
        self._runner = runner
        self._logger = logging.getLogger("NotebookSession")

    @property
    def runner(self) -> CodeRunner:
        """The code runner used for new runs."""
        return self._runner

    @runner.setter
    def runner(self, runner: CodeRunner) -> None:
        self._runner = runner

    def update_document(self, uri: str, text: str) -> DocumentState:
        """
        Record new full text for a document.

        Args:
            uri: Document URI
            text: Full document text

        Returns:
            The new document state
        """
        self._logger.debug("update %s (%d chars)", uri, len(text))
        return self._store.put(uri, text)

    def close_document(self, uri: str) -> None:
        """
        Forget a document.

        Args:
            uri: Document URI
        """
        if not self._store.remove(uri):
            self._logger.debug("close for unknown document %s", uri)

    def document(self, uri: str) -> DocumentState | None:
        """
        Get the current state of a document.

        Args:
            uri: Document URI

        Returns:
            The document state, or None if the document is not open
        """
        return self._store.get(uri)

    def list_actions(self, uri: str) -> List[NotebookAction]:
        """
        List the runnable actions of a document.

        Args:
            uri: Document URI

        Returns:
            Actions in document order; empty if the document is unknown or failed to parse
        """
        state = self._store.get(uri)
        if state is None:
            return []

        return document_actions(state)

    def _find_action(self, request: RunActionRequest) -> Tuple[DocumentState, NotebookAction]:
        """
        Find the action a run request refers to in the document's current tree.

        Args:
            request: The run request

        Returns:
            The document state searched and the matching action

        Raises:
            NotebookAddressNotFoundError: If no current action matches the request
        """
        state = self._store.get(request.uri)
        if state is None:
            raise NotebookAddressNotFoundError(f"Document {request.uri} is not open")

        tree = state.tree
        if tree is None:
            raise NotebookAddressNotFoundError(f"Document {request.uri} has no syntax tree")

        # Both of these raise if the addresses are from an older tree
        resolve_address(tree, request.source)
        if request.output is not None:
            resolve_address(tree, request.output)

        for action in document_actions(state):
            output_address = action.output.address if action.output is not None else None
            if action.source.address == request.source and output_address == request.output:
                return state, action

        raise NotebookAddressNotFoundError(f"No action for {request.source} in {request.uri}")

    async def run_action(self, request: RunActionRequest, cwd: str | None = None) -> DocumentEdit:
        """
        Run an action and plan the edit that records its result.

        The document store is only consulted before the run starts; the blocks
        needed afterwards have already been copied out by then.

        Args:
            request: The run request
            cwd: Working directory for the interpreter, or None for ours

        Returns:
            The edit to apply to the request's document

        Raises:
            NotebookAddressNotFoundError: If the request doesn't name a current action
            NotebookExecutionError: If the interpreter cannot be started
        """
        state, action = self._find_action(request)

        self._logger.info("running block at line %d of %s", action.source.start.line, request.uri)
        result = await self._runner.run(action.source.content, cwd)
        self._logger.info("block at line %d exited with status %s", action.source.start.line, result.status)

        return DocumentEdit(request.uri, state.text, plan_edit(action.source, action.output, result), result)
