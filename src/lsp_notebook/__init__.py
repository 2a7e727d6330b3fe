"""Language server for running Markdown code blocks as notebook cells."""

from lsp_notebook.lsp_conversion import RUN_ACTION_COMMAND
from lsp_notebook.lsp_notebook_server import LspNotebookServer, create_server
from lsp_notebook.lsp_notebook_settings import LspNotebookSettings


__version__ = "0.1.0"


__all__ = [
    "RUN_ACTION_COMMAND",
    "LspNotebookServer",
    "LspNotebookSettings",
    "create_server"
]
