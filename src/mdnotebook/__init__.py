"""Executable Markdown notebooks: runnable code blocks and their output blocks."""

from mdnotebook.action_pairer import pair_actions
from mdnotebook.code_block import OUTPUT_LANGUAGE, CodeBlock
from mdnotebook.code_block_extractor import extract_code_blocks
from mdnotebook.code_runner import CodeRunner, CodeRunResult
from mdnotebook.document_store import DocumentState, DocumentStore
from mdnotebook.edit_planner import PlannedEdit, format_output_block, plan_edit
from mdnotebook.node_address import NodeAddress, address_of, resolve_address
from mdnotebook.notebook_action import NotebookAction
from mdnotebook.notebook_error import (
    NotebookAddressNotFoundError,
    NotebookError,
    NotebookExecutionError,
    NotebookProtocolError
)
from mdnotebook.notebook_session import DocumentEdit, NotebookSession, document_actions
from mdnotebook.run_action_request import RunActionRequest


__all__ = [
    "OUTPUT_LANGUAGE",
    "CodeBlock",
    "CodeRunResult",
    "CodeRunner",
    "DocumentEdit",
    "DocumentState",
    "DocumentStore",
    "NodeAddress",
    "NotebookAction",
    "NotebookAddressNotFoundError",
    "NotebookError",
    "NotebookExecutionError",
    "NotebookProtocolError",
    "NotebookSession",
    "PlannedEdit",
    "RunActionRequest",
    "address_of",
    "document_actions",
    "extract_code_blocks",
    "format_output_block",
    "pair_actions",
    "plan_edit",
    "resolve_address"
]
