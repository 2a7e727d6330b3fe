"""
Per-document cache of source text and syntax tree.
"""

from dataclasses import dataclass
import logging
import threading
from typing import Dict

from markdown_syntax import MarkdownSyntaxError, SyntaxTree, parse


@dataclass(frozen=True)
class DocumentState:
    """
    One snapshot of an open document.

    Attributes:
        uri: Document URI
        text: Full document text
        tree: Syntax tree for the text, or None if the text could not be parsed
    """
    uri: str
    text: str
    tree: SyntaxTree | None


class DocumentStore:
    """
    Holds the latest state of every open document.

    States are immutable and are replaced wholesale on every update, so a caller
    holding a state never sees it change.  One lock guards the whole map and is
    only ever held for the duration of a single call.
    """

    def __init__(self) -> None:
        """Initialize an empty store."""
        self._documents: Dict[str, DocumentState] = {}
        self._lock = threading.Lock()
        self._logger = logging.getLogger("DocumentStore")

    def put(self, uri: str, text: str) -> DocumentState:
        """
        Parse a document's text and store it, replacing any previous state.

        Args:
            uri: Document URI
            text: Full document text

        Returns:
            The new document state
        """
        with self._lock:
            try:
                tree: SyntaxTree | None = parse(text)

            except MarkdownSyntaxError as e:
                self._logger.warning("failed to parse %s: %s", uri, e)
                tree = None

            state = DocumentState(uri, text, tree)
            self._documents[uri] = state

        return state

    def get(self, uri: str) -> DocumentState | None:
        """
        Get the current state of a document.

        Args:
            uri: Document URI

        Returns:
            The document state, or None if the document is not open
        """
        with self._lock:
            return self._documents.get(uri)

    def remove(self, uri: str) -> bool:
        """
        Discard a document.

        Args:
            uri: Document URI

        Returns:
            True if the document was open
        """
        with self._lock:
            return self._documents.pop(uri, None) is not None
