"""A block-level syntax tree parser for Markdown."""

from markdown_syntax.markdown_syntax_error import MarkdownSyntaxError
from markdown_syntax.markdown_syntax_parser import MarkdownSyntaxParser, parse
from markdown_syntax.syntax_node import (
    ATX_HEADING,
    BLOCK_QUOTE,
    CODE_FENCE_CONTENT,
    DOCUMENT,
    FENCED_CODE_BLOCK,
    FENCED_CODE_BLOCK_DELIMITER,
    INFO_STRING,
    LANGUAGE,
    LIST,
    LIST_ITEM,
    PARAGRAPH,
    THEMATIC_BREAK,
    SyntaxNode,
    SyntaxPosition,
    SyntaxTreeVisitor
)
from markdown_syntax.syntax_tree import SyntaxTree
from markdown_syntax.syntax_tree_printer import SyntaxTreePrinter, to_sexp


__all__ = [
    "ATX_HEADING",
    "BLOCK_QUOTE",
    "CODE_FENCE_CONTENT",
    "DOCUMENT",
    "FENCED_CODE_BLOCK",
    "FENCED_CODE_BLOCK_DELIMITER",
    "INFO_STRING",
    "LANGUAGE",
    "LIST",
    "LIST_ITEM",
    "PARAGRAPH",
    "THEMATIC_BREAK",
    "MarkdownSyntaxError",
    "MarkdownSyntaxParser",
    "SyntaxNode",
    "SyntaxPosition",
    "SyntaxTree",
    "SyntaxTreePrinter",
    "SyntaxTreeVisitor",
    "parse",
    "to_sexp"
]
