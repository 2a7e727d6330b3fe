"""Main entry point for the notebook language server."""

import argparse
from datetime import datetime, timezone
import glob
import logging
from logging.handlers import RotatingFileHandler
import os
import sys
from types import TracebackType
from typing import List

from markdown_syntax import MarkdownSyntaxError, parse, to_sexp
from mdnotebook import extract_code_blocks, pair_actions

from lsp_notebook import __version__
from lsp_notebook.lsp_notebook_server import create_server
from lsp_notebook.lsp_notebook_settings import LspNotebookSettings


LOG_FILE_BYTES = 1024 * 1024
MAX_LOG_FILES = 50


def setup_logging(log_dir: str, level: int) -> None:
    """
    Send logging to a new log file for this server process.

    stdout carries the protocol, so the console only sees warnings and errors,
    on stderr.  Each process gets its own file, named after its start time and
    pid so that several editors can run servers at once.

    Args:
        log_dir: Directory to write log files to
        level: Level for the log file
    """
    os.makedirs(log_dir, exist_ok=True)

    started = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S")
    file_handler = RotatingFileHandler(
        os.path.join(log_dir, f"lsp-notebook-{started}-{os.getpid()}.log"),
        maxBytes=LOG_FILE_BYTES,
        backupCount=MAX_LOG_FILES - 1,
        encoding='utf-8'
    )
    file_handler.setLevel(level)

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(logging.WARNING)

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[file_handler, stderr_handler]
    )

    prune_logs(log_dir, MAX_LOG_FILES)


def prune_logs(log_dir: str, keep: int) -> List[str]:
    """
    Delete all but the newest log files in a directory.

    Args:
        log_dir: Directory holding the log files
        keep: Number of files to keep

    Returns:
        The paths that were deleted
    """
    logs = sorted(glob.glob(os.path.join(log_dir, "*.log*")), key=os.path.getmtime, reverse=True)

    removed = []
    for path in logs[keep:]:
        try:
            os.remove(path)

        except OSError as e:
            logging.getLogger("LspNotebook").debug("could not remove old log %s: %s", path, e)
            continue

        removed.append(path)

    return removed


def log_uncaught_exceptions() -> None:
    """Route exceptions that escape the server to the log file."""
    logger = logging.getLogger("LspNotebook")

    def excepthook(exc_type: type[BaseException], exc_value: BaseException, exc_traceback: TracebackType | None) -> None:
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_traceback)
            return

        logger.critical("server stopped by %s", exc_type.__name__, exc_info=(exc_type, exc_value, exc_traceback))

    sys.excepthook = excepthook


def dump_document(path: str) -> int:
    """
    Print the syntax tree and actions for a Markdown file.

    Args:
        path: Path to the Markdown file

    Returns:
        Process exit code
    """
    with open(path, 'r', encoding='utf-8') as f:
        content = f.read()

    try:
        tree = parse(content)

    except MarkdownSyntaxError as e:
        print(f"{path}: {e}", file=sys.stderr)
        return 1

    print(to_sexp(tree, with_positions=True))
    for action in pair_actions(extract_code_blocks(tree)):
        source = action.source
        paired = f" -> output at line {action.output.start.line}" if action.output is not None else ""
        print(f"{source.address} line {source.start.line} [{source.info_string}]{paired}")

    return 0


def parse_arguments(argv: List[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="lsp-notebook",
        description="Language server that runs Markdown code blocks and writes their output back."
    )
    parser.add_argument("--settings", help="JSON settings file")
    parser.add_argument(
        "--log-dir",
        default=os.path.expanduser("~/.lsp-notebook/logs"),
        help="directory for log files (default: %(default)s)"
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="log file level (default: %(default)s)"
    )
    parser.add_argument("--dump", metavar="FILE", help="print the syntax tree and actions for FILE, then exit")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def main(argv: List[str] | None = None) -> int:
    """Main function to run the server."""
    args = parse_arguments(sys.argv[1:] if argv is None else argv)

    if args.dump:
        return dump_document(args.dump)

    setup_logging(args.log_dir, getattr(logging, args.log_level))
    log_uncaught_exceptions()

    settings = LspNotebookSettings.create_default()
    if args.settings:
        try:
            settings = LspNotebookSettings.load(args.settings)

        except (OSError, ValueError) as e:
            logging.getLogger("LspNotebook").error("failed to load settings from %s: %s", args.settings, e)
            return 1

    server = create_server(settings, __version__)

    try:
        server.start_io()

    except KeyboardInterrupt:
        return 0

    return 0


if __name__ == "__main__":
    sys.exit(main())
