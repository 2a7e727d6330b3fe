"""Exception classes for notebook operations."""

from typing import List


class NotebookError(Exception):
    """Base exception for notebook-related errors."""


class NotebookAddressNotFoundError(NotebookError):
    """Raised when a node address (or the action it names) no longer exists."""


class NotebookExecutionError(NotebookError):
    """Raised when the interpreter for a code block cannot be started."""

    def __init__(self, message: str, command: List[str]):
        """
        Initialize execution error.

        Args:
            message: Error message
            command: The command line that failed to start
        """
        super().__init__(message)
        self.command = command


class NotebookProtocolError(NotebookError):
    """Raised when a request from the editor carries malformed arguments."""
