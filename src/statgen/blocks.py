"""Block parser: splits Markdown text into a tree of block nodes.

Constructs are tried in a fixed order on every line: fenced code, thematic
break, heading, list item, table, blockquote, raw HTML block, paragraph.
List items are tried before tables; a table also needs a separator line
below its header, so a line that looks like both is treated as a list item.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Sequence, Union

from .errors import ParseError
from .inline import scan
from .nodes import (
    Alignment,
    Block,
    BlockQuote,
    CodeBlock,
    Heading,
    ListBlock,
    Paragraph,
    RawHtml,
    Table,
    Text,
    ThematicBreak,
    plain_text,
)
from .sanitize import HTML_BLOCK_TAGS

MAX_NESTING = 64

TABLE_ROW_MISMATCH = "TABLE_ROW_MISMATCH"

_FENCE_RE = re.compile(r"^(?P<indent> {0,3})(?P<fence>`{3,}|~{3,})[ \t]*(?P<info>.*)$")
_FENCE_CLOSE_RE = re.compile(r"^ {0,3}(?P<fence>`{3,}|~{3,})[ \t]*$")
_THEMATIC_RE = re.compile(r"^ {0,3}([-*_])(?:[ \t]*\1){2,}[ \t]*$")
_HEADING_RE = re.compile(r"^ {0,3}(?P<marks>#{1,6})(?:[ \t]+(?P<text>.*?))?(?:[ \t]+#+)?[ \t]*$")
_LIST_ITEM_RE = re.compile(r"^(?P<indent> *)(?P<marker>[-*+]|\d{1,9}[.)])(?P<space> +)(?P<text>.*)$")
_BLOCKQUOTE_RE = re.compile(r"^ {0,3}> ?(?P<text>.*)$")
_HTML_BLOCK_RE = re.compile(r"^ {0,3}</?(?P<tag>[A-Za-z][A-Za-z0-9]*)(?=[\s/>]|$)")
_TABLE_SEPARATOR_RE = re.compile(r"^ {0,3}\|?[ \t]*:?-+:?[ \t]*(?:\|[ \t]*:?-+:?[ \t]*)*\|?[ \t]*$")


@dataclass(slots=True)
class _ListItem:
    content_indent: int
    parts: list[Union[list[str], "_OpenList"]] = field(default_factory=list)

    def add_line(self, line: str) -> None:
        if not self.parts or not isinstance(self.parts[-1], list):
            self.parts.append([])
        self.parts[-1].append(line)


@dataclass(slots=True)
class _OpenList:
    indent: int
    ordered: bool
    start: int
    items: list[_ListItem] = field(default_factory=list)
    loose: bool = False


def _split_lines(text: str) -> list[str]:
    normalized = text.replace("\r\n", "\n").replace("\r", "\n").replace("\0", "\ufffd")
    return [line.expandtabs(4).rstrip() for line in normalized.split("\n")]


def _indent_of(line: str) -> int:
    return len(line) - len(line.lstrip(" "))


def _dedent(line: str, amount: int) -> str:
    return line[min(amount, _indent_of(line)) :]


def _match_fence(line: str) -> re.Match[str] | None:
    match = _FENCE_RE.match(line)
    if match is None:
        return None
    if match.group("fence")[0] == "`" and "`" in match.group("info"):
        return None
    return match


def _closes_fence(line: str, fence: str) -> bool:
    match = _FENCE_CLOSE_RE.match(line)
    if match is None:
        return False
    closing = match.group("fence")
    return closing[0] == fence[0] and len(closing) >= len(fence)


def _split_row(line: str) -> list[str]:
    row = line.strip()
    if row.startswith("|"):
        row = row[1:]
    if row.endswith("|") and not row.endswith("\\|"):
        row = row[:-1]
    cells: list[str] = []
    current: list[str] = []
    index = 0
    while index < len(row):
        char = row[index]
        if char == "\\" and row[index + 1 : index + 2] == "|":
            current.append("|")
            index += 2
            continue
        if char == "|":
            cells.append("".join(current).strip())
            current = []
        else:
            current.append(char)
        index += 1
    cells.append("".join(current).strip())
    return cells


def _alignment(cell: str) -> Alignment:
    left = cell.startswith(":")
    right = cell.endswith(":")
    if left and right:
        return "center"
    if right:
        return "right"
    if left:
        return "left"
    return None


def _is_list_item(line: str) -> bool:
    return _LIST_ITEM_RE.match(line) is not None and _THEMATIC_RE.match(line) is None


def _is_html_block(line: str) -> bool:
    match = _HTML_BLOCK_RE.match(line)
    return match is not None and match.group("tag").lower() in HTML_BLOCK_TAGS


def _is_table_start(lines: Sequence[str], index: int) -> bool:
    if index + 1 >= len(lines) or "|" not in lines[index]:
        return False
    separator = lines[index + 1]
    if "|" not in separator or _TABLE_SEPARATOR_RE.match(separator) is None:
        return False
    return len(_split_row(lines[index])) == len(_split_row(separator))


class BlockParser:
    """Parse Markdown text into block nodes.

    Parsing never fails on malformed input: unterminated fences close at the
    end of the document and table rows with the wrong number of cells become
    literal paragraphs (recorded in ``warnings``). Only nesting deeper than
    ``MAX_NESTING`` levels raises ``ParseError``.
    """

    def __init__(self) -> None:
        self.warnings: list[str] = []

    def parse(self, text: str) -> list[Block]:
        return self._parse_lines(_split_lines(text), 0)

    def _check_depth(self, depth: int) -> None:
        if depth > MAX_NESTING:
            raise ParseError(f"Document nesting exceeds {MAX_NESTING} levels")

    def _parse_lines(self, lines: list[str], depth: int) -> list[Block]:
        self._check_depth(depth)
        blocks: list[Block] = []
        index = 0
        while index < len(lines):
            line = lines[index]
            if not line.strip():
                index += 1
                continue
            fence = _match_fence(line)
            if fence is not None:
                block, index = self._parse_fence(lines, index, fence)
                blocks.append(block)
                continue
            if _THEMATIC_RE.match(line):
                blocks.append(ThematicBreak())
                index += 1
                continue
            heading = _HEADING_RE.match(line)
            if heading is not None:
                content = heading.group("text") or ""
                blocks.append(Heading(level=len(heading.group("marks")), children=tuple(scan(content))))
                index += 1
                continue
            if _is_list_item(line):
                block, index = self._parse_list(lines, index, depth)
                blocks.append(block)
                continue
            if _is_table_start(lines, index):
                parsed, index = self._parse_table(lines, index)
                blocks.extend(parsed)
                continue
            if _BLOCKQUOTE_RE.match(line):
                block, index = self._parse_blockquote(lines, index, depth)
                blocks.append(block)
                continue
            if _is_html_block(line):
                end = index
                while end < len(lines) and lines[end].strip():
                    end += 1
                blocks.append(RawHtml("\n".join(lines[index:end])))
                index = end
                continue
            block, index = self._parse_paragraph(lines, index)
            blocks.append(block)
        return blocks

    def _interrupts_paragraph(self, lines: Sequence[str], index: int) -> bool:
        line = lines[index]
        if _match_fence(line) or _THEMATIC_RE.match(line) or _HEADING_RE.match(line):
            return True
        if _BLOCKQUOTE_RE.match(line) or _is_html_block(line) or _is_table_start(lines, index):
            return True
        item = _LIST_ITEM_RE.match(line)
        if item is None:
            return False
        marker = item.group("marker")
        return marker in "-*+" or int(marker[:-1]) == 1

    def _parse_paragraph(self, lines: list[str], index: int) -> tuple[Paragraph, int]:
        end = index + 1
        while end < len(lines) and lines[end].strip() and not self._interrupts_paragraph(lines, end):
            end += 1
        text = "\n".join(line.strip() for line in lines[index:end])
        return Paragraph(tuple(scan(text))), end

    def _parse_fence(self, lines: list[str], index: int, match: re.Match[str]) -> tuple[CodeBlock, int]:
        indent = len(match.group("indent"))
        fence = match.group("fence")
        info = match.group("info").strip()
        language = info.split()[0] if info else None
        body: list[str] = []
        end = index + 1
        while end < len(lines):
            if _closes_fence(lines[end], fence):
                end += 1
                break
            body.append(_dedent(lines[end], indent))
            end += 1
        text = "\n".join(body) + ("\n" if body else "")
        return CodeBlock(language=language, text=text), end

    def _parse_blockquote(self, lines: list[str], index: int, depth: int) -> tuple[BlockQuote, int]:
        quoted: list[str] = []
        end = index
        while end < len(lines):
            line = lines[end]
            match = _BLOCKQUOTE_RE.match(line)
            if match is not None:
                quoted.append(match.group("text"))
            elif line.strip() and quoted[-1].strip() and not self._interrupts_paragraph(lines, end):
                quoted.append(line)
            else:
                break
            end += 1
        return BlockQuote(tuple(self._parse_lines(quoted, depth + 1))), end

    def _parse_table(self, lines: list[str], index: int) -> tuple[list[Block], int]:
        """Rows with the wrong cell count become paragraphs after the table; the table keeps going."""

        header = _split_row(lines[index])
        alignments = tuple(_alignment(cell) for cell in _split_row(lines[index + 1]))
        rows: list[list[str]] = []
        trailing: list[Block] = []
        end = index + 2
        while end < len(lines) and lines[end].strip() and "|" in lines[end]:
            cells = _split_row(lines[end])
            end += 1
            if len(cells) != len(header):
                self.warnings.append(TABLE_ROW_MISMATCH)
                trailing.append(Paragraph((Text(lines[end - 1].strip()),)))
                continue
            rows.append(cells)
        table = Table(
            header=tuple(tuple(scan(cell)) for cell in header),
            alignments=alignments,
            rows=tuple(tuple(tuple(scan(cell)) for cell in row) for row in rows),
        )
        return [table, *trailing], end

    def _parse_list(self, lines: list[str], index: int, depth: int) -> tuple[ListBlock, int]:
        stack: list[_OpenList] = []
        fence: str | None = None
        fence_owner: _ListItem | None = None
        previous_blank = False
        end = index
        while end < len(lines):
            line = lines[end]
            if fence is not None and fence_owner is not None:
                content = _dedent(line, fence_owner.content_indent)
                fence_owner.add_line(content)
                if _closes_fence(content, fence):
                    fence = None
                end += 1
                continue
            if not line.strip():
                stack[-1].items[-1].add_line("")
                previous_blank = True
                end += 1
                continue
            indent = _indent_of(line)
            item = _LIST_ITEM_RE.match(line) if _is_list_item(line) else None
            if item is not None:
                marker = item.group("marker")
                ordered = marker not in "-*+"
                if not self._place_item(stack, indent, ordered, marker, depth):
                    break
                current = stack[-1]
                if previous_blank and current.items:
                    current.loose = True
                owner = _ListItem(content_indent=indent + len(marker) + len(item.group("space")))
                owner.add_line(item.group("text"))
                current.items.append(owner)
            else:
                owner = self._continuation_owner(lines, end, stack, indent, previous_blank)
                if owner is None:
                    break
                owner.add_line(_dedent(line, owner.content_indent))
            opened = _match_fence(owner.parts[-1][-1]) if isinstance(owner.parts[-1], list) else None
            if opened is not None:
                fence = opened.group("fence")
                fence_owner = owner
            previous_blank = False
            end += 1
        return self._build_list(stack[0], depth + 1), end

    def _place_item(self, stack: list[_OpenList], indent: int, ordered: bool, marker: str, depth: int) -> bool:
        start = int(marker[:-1]) if ordered else 1
        if not stack:
            stack.append(_OpenList(indent=indent, ordered=ordered, start=start))
            return True
        while len(stack) > 1 and stack[-1].indent > indent:
            stack.pop()
        top = stack[-1]
        if indent > top.indent:
            self._check_depth(depth + len(stack))
            nested = _OpenList(indent=indent, ordered=ordered, start=start)
            top.items[-1].parts.append(nested)
            stack.append(nested)
        elif ordered != top.ordered:
            if len(stack) == 1:
                return False
            stack.pop()
            sibling = _OpenList(indent=indent, ordered=ordered, start=start)
            stack[-1].items[-1].parts.append(sibling)
            stack.append(sibling)
        return True

    def _continuation_owner(
        self,
        lines: Sequence[str],
        index: int,
        stack: list[_OpenList],
        indent: int,
        previous_blank: bool,
    ) -> _ListItem | None:
        if not previous_blank:
            deepest = stack[-1].items[-1]
            if indent >= deepest.content_indent or not self._interrupts_paragraph(lines, index):
                return deepest
            return None
        while len(stack) > 1 and indent < stack[-1].items[-1].content_indent:
            stack.pop()
        owner = stack[-1].items[-1]
        if indent < owner.content_indent:
            return None
        stack[-1].loose = True
        return owner

    def _build_list(self, open_list: _OpenList, depth: int) -> ListBlock:
        self._check_depth(depth)
        items: list[tuple[Block, ...]] = []
        for item in open_list.items:
            children: list[Block] = []
            for part in item.parts:
                if isinstance(part, _OpenList):
                    children.append(self._build_list(part, depth + 1))
                else:
                    children.extend(self._parse_lines(part, depth + 1))
            items.append(tuple(children))
        return ListBlock(
            ordered=open_list.ordered,
            items=tuple(items),
            start=open_list.start,
            tight=not open_list.loose,
        )


def parse(text: str) -> list[Block]:
    return BlockParser().parse(text)


def extract_title(blocks: Sequence[Block]) -> str | None:
    """Return the plain text of the first level-one heading, if any."""

    for block in blocks:
        if isinstance(block, Heading) and block.level == 1:
            title = plain_text(block.children).strip()
            if title:
                return title
    return None


__all__ = ["BlockParser", "parse", "extract_title", "MAX_NESTING", "TABLE_ROW_MISMATCH"]
