"""Inline scanner: turns the text of one block into inline spans.

The scanner makes one left-to-right pass. Closing backticks, brackets,
parentheses and quotes are looked up in offset tables built at most once per
scanner, and emphasis is resolved on a delimiter stack, so an opener that
never finds its closer costs constant time instead of a scan to the end of
the text.
"""

from __future__ import annotations

import re
import string
from bisect import bisect_left
from dataclasses import dataclass, field
from typing import Iterable

from .nodes import Code, Emphasis, Image, Inline, Link, RawHtmlInline, Text, plain_text
from .sanitize import INLINE_TAGS

MAX_DEPTH = 64

_ESCAPABLE = frozenset(string.punctuation)
_PLAIN_RE = re.compile(r"[^\\`!\[<*_]+")
_UNESCAPE_RE = re.compile(r"\\([!-/:-@\[-`{-~])")
_AUTOLINK_RE = re.compile(r"<([A-Za-z][A-Za-z0-9+.\-]{1,31}:[^\s<>]*)>")
_EMAIL_AUTOLINK_RE = re.compile(
    r"<([A-Za-z0-9.!#$%&'*+/=?^_`{|}~\-]+@[A-Za-z0-9](?:[A-Za-z0-9\-]{0,61}[A-Za-z0-9])?"
    r"(?:\.[A-Za-z0-9](?:[A-Za-z0-9\-]{0,61}[A-Za-z0-9])?)*)>"
)
_ATTRIBUTE = r"""\s+[A-Za-z_:][\w:.\-]*(?:\s*=\s*(?:"[^"]*"|'[^']*'|[^\s"'=<>`]+))?"""
_RAW_TAG_RE = re.compile(
    rf"<(?P<open>[A-Za-z][A-Za-z0-9]*)(?:{_ATTRIBUTE})*\s*/?>|</(?P<close>[A-Za-z][A-Za-z0-9]*)\s*>"
)

_BACKTICK_RUN_RE = re.compile(r"`+")
_BRACKET_TOKEN_RE = re.compile(r"\\.|`+|[\[\]]", re.DOTALL)
_PAREN_TOKEN_RE = re.compile(r"\\.|[()]", re.DOTALL)
# Patterns with a group record only the group's offsets, which skips escaped characters.
_LOOKUPS: dict[str, re.Pattern[str]] = {
    "break": re.compile(r"[\s\x00-\x1f]"),
    "destination": re.compile(r"[\s\x00-\x1f()\\]"),
    "angle_end": re.compile(">"),
    "angle_break": re.compile(r"[<\n]"),
    '"': re.compile(r'\\.|(")', re.DOTALL),
    "'": re.compile(r"\\.|(')", re.DOTALL),
    ")": re.compile(r"\\.|(\))", re.DOTALL),
}


def scan(text: str) -> list[Inline]:
    return _InlineScanner(text, 0).scan()


def _scan_nested(text: str, depth: int) -> tuple[Inline, ...]:
    if depth >= MAX_DEPTH:
        return (Text(text),) if text else ()
    return tuple(_InlineScanner(text, depth).scan())


def _unescape(value: str) -> str:
    return _UNESCAPE_RE.sub(r"\1", value)


def _run_length(text: str, start: int, char: str) -> int:
    end = start
    while end < len(text) and text[end] == char:
        end += 1
    return end - start


def _skip_whitespace(text: str, index: int) -> int:
    while index < len(text) and text[index] in " \t\n":
        index += 1
    return index


def _can_open(text: str, start: int, end: int, char: str) -> bool:
    if end >= len(text) or text[end].isspace():
        return False
    if char == "_" and start > 0 and text[start - 1].isalnum():
        return False
    return True


def _can_close(text: str, start: int, end: int, char: str) -> bool:
    if start == 0 or text[start - 1].isspace():
        return False
    if char == "_" and end < len(text) and text[end].isalnum():
        return False
    return True


def _span_depth(span: Inline) -> int:
    if isinstance(span, (Emphasis, Link)):
        return 1 + max((_span_depth(child) for child in span.children), default=0)
    return 0


def _merge_text(spans: Iterable[Inline]) -> list[Inline]:
    merged: list[Inline] = []
    pending: list[str] = []
    for span in spans:
        if isinstance(span, Text):
            if span.text:
                pending.append(span.text)
            continue
        if pending:
            merged.append(Text("".join(pending)))
            pending = []
        merged.append(span)
    if pending:
        merged.append(Text("".join(pending)))
    return merged


class _Offsets:
    """Sorted offsets of one pattern's matches, searched with ``bisect``."""

    __slots__ = ("_offsets",)

    def __init__(self, pattern: re.Pattern[str], text: str) -> None:
        if pattern.groups:
            self._offsets = [m.start(1) for m in pattern.finditer(text) if m.group(1) is not None]
        else:
            self._offsets = [m.start() for m in pattern.finditer(text)]

    def next(self, index: int) -> int | None:
        position = bisect_left(self._offsets, index)
        if position == len(self._offsets):
            return None
        return self._offsets[position]


@dataclass(slots=True)
class _Delimiter:
    char: str
    length: int
    count: int
    can_open: bool
    can_close: bool


@dataclass(slots=True)
class _Frame:
    """An open emphasis delimiter and the spans scanned since it."""

    opener: _Delimiter
    children: list[tuple[Inline, int]] = field(default_factory=list)


class _InlineScanner:
    def __init__(self, text: str, depth: int) -> None:
        self._text = text
        self._depth = depth
        self._pos = 0
        self._root: list[tuple[Inline, int]] = []
        self._frames: list[_Frame] = []
        self._bottoms: dict[tuple[str, bool, int], int] = {}
        self._buffer: list[str] = []
        self._offsets: dict[str, _Offsets] = {}
        self._backticks: dict[int, list[int]] | None = None
        self._brackets: dict[int, int] | None = None
        self._parens: dict[int, int] | None = None

    def scan(self) -> list[Inline]:
        text = self._text
        while self._pos < len(text):
            char = text[self._pos]
            if char == "\\":
                consumed = self._scan_escape()
            elif char == "`":
                consumed = self._scan_code()
            elif char == "!":
                consumed = text.startswith("[", self._pos + 1) and self._scan_link(image=True)
            elif char == "[":
                consumed = self._scan_link(image=False)
            elif char == "<":
                consumed = self._scan_angle()
            elif char in "*_":
                consumed = self._scan_delimiter(char)
            else:
                match = _PLAIN_RE.match(text, self._pos)
                end = match.end() if match is not None else self._pos + 1
                self._buffer.append(text[self._pos : end])
                self._pos = end
                continue
            if not consumed:
                self._buffer.append(char)
                self._pos += 1
        self._flush()
        self._close_frames(0)
        return _merge_text(span for span, _ in self._root)

    @property
    def _container(self) -> list[tuple[Inline, int]]:
        return self._frames[-1].children if self._frames else self._root

    def _flush(self) -> None:
        if self._buffer:
            self._container.append((Text("".join(self._buffer)), 0))
            self._buffer.clear()

    def _emit(self, span: Inline, end: int) -> bool:
        self._flush()
        self._container.append((span, _span_depth(span)))
        self._pos = end
        return True

    def _next(self, key: str, index: int) -> int | None:
        offsets = self._offsets.get(key)
        if offsets is None:
            offsets = self._offsets[key] = _Offsets(_LOOKUPS[key], self._text)
        return offsets.next(index)

    def _backtick_closer(self, start: int, run: int) -> int | None:
        if self._backticks is None:
            runs: dict[int, list[int]] = {}
            for match in _BACKTICK_RUN_RE.finditer(self._text):
                runs.setdefault(len(match.group(0)), []).append(match.start())
            self._backticks = runs
        offsets = self._backticks.get(run, [])
        position = bisect_left(offsets, start)
        return offsets[position] if position < len(offsets) else None

    def _label_end(self, bracket: int) -> int | None:
        """Return the ``]`` matching the ``[`` at ``bracket``, ignoring code spans."""

        if self._brackets is None:
            pairs: dict[int, int] = {}
            stack: list[int] = []
            pos = 0
            while (match := _BRACKET_TOKEN_RE.search(self._text, pos)) is not None:
                token = match.group(0)
                pos = match.end()
                if token[0] == "`":
                    closer = self._backtick_closer(pos, len(token))
                    if closer is not None:
                        pos = closer + len(token)
                elif token == "[":
                    stack.append(match.start())
                elif token == "]" and stack:
                    pairs[stack.pop()] = match.start()
            self._brackets = pairs
        return self._brackets.get(bracket)

    def _paren_end(self, paren: int) -> int | None:
        if self._parens is None:
            pairs: dict[int, int] = {}
            stack: list[int] = []
            for match in _PAREN_TOKEN_RE.finditer(self._text):
                token = match.group(0)
                if token == "(":
                    stack.append(match.start())
                elif token == ")" and stack:
                    pairs[stack.pop()] = match.start()
            self._parens = pairs
        return self._parens.get(paren)

    def _parse_destination(self, index: int) -> tuple[str, str | None, int] | None:
        """Parse ``(href "title")`` starting just after the opening parenthesis."""

        text = self._text
        index = _skip_whitespace(text, index)
        if index < len(text) and text[index] == "<":
            end = self._next("angle_end", index + 1)
            if end is None:
                return None
            stop = self._next("angle_break", index + 1)
            if stop is not None and stop < end:
                return None
            href = text[index + 1 : end]
            index = end + 1
        else:
            start = index
            while True:
                stop = self._next("destination", index)
                if stop is None:
                    index = len(text)
                    break
                current = text[stop]
                if current == "\\":
                    following = text[stop + 1 : stop + 2]
                    index = stop + 2 if following and following in _ESCAPABLE else stop + 1
                    continue
                if current == "(":
                    close = self._paren_end(stop)
                    if close is None:
                        return None
                    space = self._next("break", stop)
                    if space is not None and space < close:
                        return None
                    index = close + 1
                    continue
                index = stop
                break
            href = text[start:index]
        after = _skip_whitespace(text, index)
        title: str | None = None
        if after > index and after < len(text) and text[after] in "\"'(":
            closing = ")" if text[after] == "(" else text[after]
            end = self._next(closing, after + 1)
            if end is None:
                return None
            title = _unescape(text[after + 1 : end])
            after = _skip_whitespace(text, end + 1)
        if after >= len(text) or text[after] != ")":
            return None
        return _unescape(href), title, after + 1

    def _scan_escape(self) -> bool:
        following = self._text[self._pos + 1 : self._pos + 2]
        if following and following in _ESCAPABLE:
            self._buffer.append(following)
            self._pos += 2
            return True
        return False

    def _scan_code(self) -> bool:
        text = self._text
        run = _run_length(text, self._pos, "`")
        closer = self._backtick_closer(self._pos + run, run)
        if closer is None:
            self._buffer.append("`" * run)
            self._pos += run
            return True
        content = text[self._pos + run : closer].replace("\n", " ")
        if len(content) >= 2 and content[0] == " " and content[-1] == " " and content.strip(" "):
            content = content[1:-1]
        return self._emit(Code(content), closer + run)

    def _scan_link(self, *, image: bool) -> bool:
        text = self._text
        label_start = self._pos + (2 if image else 1)
        label_end = self._label_end(label_start - 1)
        if label_end is None or not text.startswith("(", label_end + 1):
            return False
        destination = self._parse_destination(label_end + 2)
        if destination is None:
            return False
        href, title, end = destination
        children = _scan_nested(text[label_start:label_end], self._depth + 1)
        if image:
            return self._emit(Image(src=href, alt=plain_text(children), title=title), end)
        return self._emit(Link(href=href, children=children, title=title), end)

    def _scan_angle(self) -> bool:
        text = self._text
        match = _AUTOLINK_RE.match(text, self._pos)
        if match:
            url = match.group(1)
            return self._emit(Link(href=url, children=(Text(url),)), match.end())
        match = _EMAIL_AUTOLINK_RE.match(text, self._pos)
        if match:
            address = match.group(1)
            return self._emit(Link(href=f"mailto:{address}", children=(Text(address),)), match.end())
        match = _RAW_TAG_RE.match(text, self._pos)
        if match:
            name = (match.group("open") or match.group("close")).lower()
            if name in INLINE_TAGS:
                return self._emit(RawHtmlInline(match.group(0)), match.end())
        return False

    def _scan_delimiter(self, char: str) -> bool:
        text = self._text
        start = self._pos
        run = _run_length(text, start, char)
        end = start + run
        can_open = _can_open(text, start, end, char)
        can_close = _can_close(text, start, end, char)
        self._pos = end
        if self._depth >= MAX_DEPTH or not (can_open or can_close):
            self._buffer.append(char * run)
            return True
        self._flush()
        delimiter = _Delimiter(char, run, run, can_open, can_close)
        if can_close:
            self._match_closer(delimiter)
        if delimiter.count:
            if can_open:
                self._frames.append(_Frame(delimiter))
            else:
                self._container.append((Text(char * delimiter.count), 0))
        return True

    def _find_opener(self, closer: _Delimiter, bottom: int) -> int | None:
        for index in range(len(self._frames) - 1, bottom - 1, -1):
            opener = self._frames[index].opener
            if opener.char != closer.char:
                continue
            both = opener.can_close or closer.can_open
            if both and (opener.length + closer.length) % 3 == 0 and (opener.length % 3 or closer.length % 3):
                continue
            return index
        return None

    def _match_closer(self, closer: _Delimiter) -> None:
        """Pair ``closer`` with open delimiters, innermost first, wrapping what lies between."""

        key = (closer.char, closer.can_open, closer.length % 3)
        while closer.count:
            index = self._find_opener(closer, self._bottoms.get(key, 0))
            if index is None:
                # Openers below this height can never match a closer of this kind.
                self._bottoms[key] = len(self._frames)
                return
            self._close_frames(index + 1)
            frame = self._frames[-1]
            opener = frame.opener
            used = 2 if opener.count >= 2 and closer.count >= 2 else 1
            opener.count -= used
            closer.count -= used
            depth = 1 + max((child_depth for _, child_depth in frame.children), default=0)
            if self._depth + depth > MAX_DEPTH:
                marker = (Text(closer.char * used), 0)
                wrapped = [marker, *frame.children, marker]
            else:
                node = Emphasis(strong=used == 2, children=tuple(_merge_text(span for span, _ in frame.children)))
                wrapped = [(node, depth)]
            if opener.count:
                frame.children = wrapped
            else:
                self._frames.pop()
                self._lower_bottoms()
                self._container.extend(wrapped)

    def _close_frames(self, height: int) -> None:
        """Turn every frame above ``height`` back into literal text."""

        if len(self._frames) <= height:
            return
        closed = self._frames[height:]
        del self._frames[height:]
        self._lower_bottoms()
        target = self._container
        for frame in closed:
            target.append((Text(frame.opener.char * frame.opener.count), 0))
            target.extend(frame.children)

    def _lower_bottoms(self) -> None:
        height = len(self._frames)
        for key, bottom in self._bottoms.items():
            if bottom > height:
                self._bottoms[key] = height


__all__ = ["scan", "MAX_DEPTH"]
