"""
Parser to construct a syntax tree from Markdown.

The parser works a line at a time.  Block quotes and list items are tracked on a
container stack; each line first has to match the continuation markers of every
open container, and anything left over is classified as a leaf block.
"""

import logging
import re
from typing import List, Tuple

from markdown_syntax.markdown_syntax_error import MarkdownSyntaxError
from markdown_syntax.syntax_node import (
    ATX_HEADING, BLOCK_QUOTE, CODE_FENCE_CONTENT, DOCUMENT, FENCED_CODE_BLOCK,
    FENCED_CODE_BLOCK_DELIMITER, INFO_STRING, LANGUAGE, LIST, LIST_ITEM, PARAGRAPH,
    THEMATIC_BREAK, SyntaxNode, SyntaxPosition
)
from markdown_syntax.syntax_tree import SyntaxTree


MAX_BLOCKQUOTE_DEPTH = 32


class ContainerContext:
    """
    Represents an open container block (block quote or list item).
    """

    def __init__(
        self,
        node: SyntaxNode,
        container_type: str,
        content_indent: int = 0,
        list_node: SyntaxNode | None = None
    ) -> None:
        """
        Initialize a container context.

        Args:
            node: The syntax node for this container
            container_type: Either BLOCK_QUOTE or LIST_ITEM
            content_indent: Columns of indentation a continuation line needs (list items only)
            list_node: The list node that owns this item (list items only)
        """
        self.node = node
        self.container_type = container_type
        self.content_indent = content_indent
        self.list_node = list_node


class FenceState:
    """Tracks a fenced code block while its lines are being consumed."""

    def __init__(self, node: SyntaxNode, fence_char: str, fence_length: int, indent: int) -> None:
        self.node = node
        self.fence_char = fence_char
        self.fence_length = fence_length
        self.indent = indent
        self.content_lines: List[str] = []
        self.content_start: Tuple[SyntaxPosition, int] | None = None
        self.content_end: Tuple[SyntaxPosition, int] | None = None


class MarkdownSyntaxParser:
    """
    Builds `SyntaxTree` objects from Markdown text.

    Every call to `parse` is a full parse of the given text; nothing is carried
    over from a previous call.
    """

    def __init__(self) -> None:
        """Initialize the parser with regex patterns for markdown block elements."""
        self._blockquote_pattern = re.compile(r' {0,3}> ?')
        self._list_item_pattern = re.compile(r'( {0,3})([-+*]|\d{1,9}[.)])(?=[ \t]|$)')
        self._fence_open_pattern = re.compile(r'( {0,3})(`{3,}|~{3,})(.*)$')
        self._fence_close_pattern = re.compile(r' {0,3}(`{3,}|~{3,})[ \t]*$')
        self._heading_pattern = re.compile(r' {0,3}#{1,6}(?:[ \t].*)?$')
        self._thematic_break_pattern = re.compile(r' {0,3}(?:(?:\*[ \t]*){3,}|(?:-[ \t]*){3,}|(?:_[ \t]*){3,})$')

        self._logger = logging.getLogger("MarkdownSyntaxParser")

        self._lines: List[str] = []
        self._line_offsets: List[int] = []
        self._document = SyntaxNode(DOCUMENT, SyntaxPosition(0, 0), SyntaxPosition(0, 0), 0, 0)
        self._container_stack: List[ContainerContext] = []
        self._paragraph: SyntaxNode | None = None
        self._fence: FenceState | None = None

    def parse(self, text: str) -> SyntaxTree:
        """
        Build a complete syntax tree from the given text.

        Args:
            text: The markdown text to parse

        Returns:
            The sealed syntax tree

        Raises:
            MarkdownSyntaxError: If the text cannot be parsed
        """
        self._split_lines(text)

        if text.endswith('\n'):
            document_end = SyntaxPosition(len(self._lines), 0)

        else:
            document_end = SyntaxPosition(max(len(self._lines) - 1, 0), len(self._lines[-1]) if self._lines else 0)

        self._document = SyntaxNode(DOCUMENT, SyntaxPosition(0, 0), document_end, 0, len(text))
        self._container_stack = [ContainerContext(self._document, DOCUMENT)]
        self._paragraph = None
        self._fence = None

        for line_num in range(len(self._lines)):
            self._parse_line(line_num)

        # Anything still open runs to the end of the document
        self._close_containers(1)

        return SyntaxTree(self._document, text)

    def _split_lines(self, text: str) -> None:
        """
        Split text into lines, recording the character offset of each line.

        Args:
            text: The markdown text
        """
        raw_lines = text.split('\n')
        if text.endswith('\n'):
            raw_lines.pop()

        self._lines = []
        self._line_offsets = []
        offset = 0
        for raw_line in raw_lines:
            self._line_offsets.append(offset)
            offset += len(raw_line) + 1
            self._lines.append(raw_line[:-1] if raw_line.endswith('\r') else raw_line)

    def _position(self, line_num: int, column: int) -> Tuple[SyntaxPosition, int]:
        """
        Build a position and its character offset.

        Args:
            line_num: Zero-based line number
            column: Zero-based column within the line

        Returns:
            Tuple of (position, character offset)
        """
        return SyntaxPosition(line_num, column), self._line_offsets[line_num] + column

    def _line_end(self, line_num: int) -> Tuple[SyntaxPosition, int]:
        """
        Get the position just past the last character of a line.

        Args:
            line_num: Zero-based line number

        Returns:
            Tuple of (position, character offset)
        """
        return self._position(line_num, len(self._lines[line_num]))

    def _new_node(self, kind: str, line_num: int, start_col: int, end_col: int, value: str | None = None) -> SyntaxNode:
        """
        Create a node spanning part of a single line.

        Args:
            kind: The node kind
            line_num: Line the node sits on
            start_col: First column of the node
            end_col: Column just past the node
            value: Optional literal value

        Returns:
            The new node
        """
        start, start_index = self._position(line_num, start_col)
        end, end_index = self._position(line_num, end_col)
        return SyntaxNode(kind, start, end, start_index, end_index, value)

    def _current_container(self) -> SyntaxNode:
        """
        Get the current container for adding block elements.

        Returns:
            The syntax node that should receive new block elements
        """
        assert self._container_stack, "Container stack should never be empty"
        return self._container_stack[-1].node

    def _match_blockquote_marker(self, line: str, col: int) -> Tuple[int, int] | None:
        """
        Match a block quote marker at a column.

        Args:
            line: The line text
            col: Column to start matching at

        Returns:
            Tuple of (column of the '>' marker, column after the marker), or None
        """
        match = self._blockquote_pattern.match(line[col:])
        if not match:
            return None

        return line.index('>', col), col + match.end()

    def _parse_line(self, line_num: int) -> None:
        """
        Parse a single line of markdown.

        Args:
            line_num: Zero-based line number
        """
        line = self._lines[line_num]

        # Match the continuation markers of every open container
        col = 0
        matched = 1
        for context in self._container_stack[1:]:
            if context.container_type == BLOCK_QUOTE:
                marker = self._match_blockquote_marker(line, col)
                if marker is None:
                    break

                col = marker[1]

            else:
                rest = line[col:]
                if rest.strip():
                    indent = len(rest) - len(rest.lstrip(' '))
                    if indent < context.content_indent:
                        break

                    col += context.content_indent

                else:
                    col = len(line)

            matched += 1

        all_matched = matched == len(self._container_stack)

        if self._fence is not None:
            if all_matched:
                self._continue_fence(line_num, col)
                return

            self._close_fence()

        if not all_matched:
            self._close_containers(matched)

        col = self._open_containers(line_num, col)
        self._parse_leaf(line_num, col)

    def _open_containers(self, line_num: int, col: int) -> int:
        """
        Open any new block quotes or list items that start on this line.

        Args:
            line_num: Zero-based line number
            col: Column after all existing containers were matched

        Returns:
            The column at which leaf content starts
        """
        line = self._lines[line_num]

        while True:
            rest = line[col:]
            if not rest.strip() or self._thematic_break_pattern.match(rest):
                return col

            marker = self._match_blockquote_marker(line, col)
            if marker is not None:
                depth = sum(1 for c in self._container_stack if c.container_type == BLOCK_QUOTE)
                if depth >= MAX_BLOCKQUOTE_DEPTH:
                    raise MarkdownSyntaxError(
                        f"Block quotes nested more than {MAX_BLOCKQUOTE_DEPTH} levels deep", line_num
                    )

                self._paragraph = None
                node = self._new_node(BLOCK_QUOTE, line_num, marker[0], len(line))
                self._current_container().add_child(node)
                self._container_stack.append(ContainerContext(node, BLOCK_QUOTE))
                col = marker[1]
                continue

            list_match = self._list_item_pattern.match(rest)
            if list_match is not None:
                col = self._open_list_item(line_num, col, list_match)
                continue

            return col

    def _open_list_item(self, line_num: int, col: int, match: re.Match) -> int:
        """
        Open a list item, creating or continuing the enclosing list.

        Args:
            line_num: Zero-based line number
            col: Column at which the list item marker match started
            match: Match of the list item pattern against the rest of the line

        Returns:
            The column at which the list item's content starts
        """
        line = self._lines[line_num]
        marker = match.group(2)
        marker_type = marker[-1] if marker[-1] in '.)' else marker

        after = line[col + match.end():]
        spaces = len(after) - len(after.lstrip(' '))
        if not after.strip() or spaces > 4:
            content_indent = match.end() + 1

        else:
            content_indent = match.end() + spaces

        self._paragraph = None
        parent = self._current_container()
        list_node = parent.last_child()
        if list_node is None or list_node.kind != LIST or list_node.value != marker_type:
            list_node = parent.add_child(
                self._new_node(LIST, line_num, col + len(match.group(1)), len(line), marker_type)
            )

        item = self._new_node(LIST_ITEM, line_num, col + len(match.group(1)), len(line))
        list_node.add_child(item)
        list_node.extend_to(item.end, item.end_index)
        self._container_stack.append(ContainerContext(item, LIST_ITEM, content_indent, list_node))

        return min(col + content_indent, len(line))

    def _close_containers(self, keep: int) -> None:
        """
        Close containers until only `keep` remain on the stack.

        Args:
            keep: Number of containers (including the document) to keep open
        """
        if self._fence is not None:
            self._close_fence()

        if len(self._container_stack) > keep:
            self._paragraph = None
            del self._container_stack[keep:]

    def _extend_open_containers(self, line_num: int) -> None:
        """
        Extend every open container (and its list) to the end of a line.

        Args:
            line_num: Zero-based line number
        """
        end, end_index = self._line_end(line_num)
        for context in self._container_stack[1:]:
            context.node.extend_to(end, end_index)
            if context.list_node is not None:
                context.list_node.extend_to(end, end_index)

    def _parse_leaf(self, line_num: int, col: int) -> None:
        """
        Classify and handle the leaf content of a line.

        Args:
            line_num: Zero-based line number
            col: Column at which leaf content starts
        """
        line = self._lines[line_num]
        rest = line[col:]

        if not rest.strip():
            self._paragraph = None
            return

        self._extend_open_containers(line_num)

        fence_match = self._fence_open_pattern.match(rest)
        if fence_match and not (fence_match.group(2)[0] == '`' and '`' in fence_match.group(3)):
            self._open_fence(line_num, col, fence_match)
            return

        if self._heading_pattern.match(rest):
            self._paragraph = None
            indent = len(rest) - len(rest.lstrip(' '))
            self._current_container().add_child(self._new_node(ATX_HEADING, line_num, col + indent, len(line)))
            return

        if self._thematic_break_pattern.match(rest):
            self._paragraph = None
            indent = len(rest) - len(rest.lstrip(' '))
            self._current_container().add_child(self._new_node(THEMATIC_BREAK, line_num, col + indent, len(line)))
            return

        if self._paragraph is not None:
            end, end_index = self._line_end(line_num)
            self._paragraph.extend_to(end, end_index)
            return

        indent = len(rest) - len(rest.lstrip())
        self._paragraph = self._new_node(PARAGRAPH, line_num, col + indent, len(line))
        self._current_container().add_child(self._paragraph)

    def _open_fence(self, line_num: int, col: int, match: re.Match) -> None:
        """
        Start a fenced code block.

        Args:
            line_num: Zero-based line number of the opening fence
            col: Column at which leaf content starts
            match: Match of the opening fence pattern
        """
        line = self._lines[line_num]
        indent = len(match.group(1))
        fence = match.group(2)
        fence_col = col + indent

        self._paragraph = None
        node = self._new_node(FENCED_CODE_BLOCK, line_num, fence_col, len(line))
        self._current_container().add_child(node)
        node.add_child(
            self._new_node(FENCED_CODE_BLOCK_DELIMITER, line_num, fence_col, fence_col + len(fence))
        )

        info_raw = match.group(3)
        info = info_raw.strip()
        if info:
            info_col = fence_col + len(fence) + (len(info_raw) - len(info_raw.lstrip()))
            info_node = self._new_node(INFO_STRING, line_num, info_col, info_col + len(info), info)
            language = info.split()[0]
            info_node.add_child(self._new_node(LANGUAGE, line_num, info_col, info_col + len(language), language))
            node.add_child(info_node)

        self._fence = FenceState(node, fence[0], len(fence), indent)

    def _continue_fence(self, line_num: int, col: int) -> None:
        """
        Consume a line inside an open fenced code block.

        Args:
            line_num: Zero-based line number
            col: Column after all containers were matched
        """
        fence = self._fence
        assert fence is not None, "No fenced code block is open"

        line = self._lines[line_num]
        rest = line[col:]
        end, end_index = self._line_end(line_num)

        close_match = self._fence_close_pattern.match(rest)
        if (close_match and close_match.group(1)[0] == fence.fence_char and
                len(close_match.group(1)) >= fence.fence_length):
            self._extend_open_containers(line_num)
            fence.node.extend_to(end, end_index)
            delimiter_col = col + rest.index(close_match.group(1))
            self._close_fence(
                self._new_node(
                    FENCED_CODE_BLOCK_DELIMITER, line_num, delimiter_col, delimiter_col + len(close_match.group(1))
                )
            )
            return

        # Content lines lose up to as much indentation as the opening fence had
        strip = min(fence.indent, len(rest) - len(rest.lstrip(' ')))
        fence.content_lines.append(rest[strip:])
        if fence.content_start is None:
            fence.content_start = self._position(line_num, col)

        fence.content_end = (end, end_index)
        fence.node.extend_to(end, end_index)
        self._extend_open_containers(line_num)

    def _close_fence(self, closing_delimiter: SyntaxNode | None = None) -> None:
        """
        Finalize the open fenced code block.

        Args:
            closing_delimiter: Delimiter node for the closing fence, or None if the block is unclosed
        """
        fence = self._fence
        assert fence is not None, "No fenced code block is open"

        if fence.content_start is not None and fence.content_end is not None:
            start, start_index = fence.content_start
            end, end_index = fence.content_end
            content = '\n'.join(fence.content_lines) + '\n'
            fence.node.add_child(SyntaxNode(CODE_FENCE_CONTENT, start, end, start_index, end_index, content))

        if closing_delimiter is not None:
            fence.node.add_child(closing_delimiter)

        else:
            self._logger.debug("unclosed fenced code block at line %d", fence.node.start.line)

        self._fence = None


def parse(text: str) -> SyntaxTree:
    """
    Parse Markdown text into a syntax tree.

    Args:
        text: The markdown text to parse

    Returns:
        The sealed syntax tree

    Raises:
        MarkdownSyntaxError: If the text cannot be parsed
    """
    return MarkdownSyntaxParser().parse(text)
