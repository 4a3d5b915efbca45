"""Escaping helpers and the allow-list filter for raw HTML.

Every string that reaches rendered output either went through ``escape_text``
or through ``HtmlAllowList``. Both return ``SafeHtml`` so the document
assembler can refuse anything else.
"""

from __future__ import annotations

import html
import re
from html.parser import HTMLParser
from types import MappingProxyType
from typing import Iterable, Mapping


class SafeHtml(str):
    """A string that is already escaped or filtered and may be emitted as-is."""

    __slots__ = ()


ALLOWED_SCHEMES: frozenset[str] = frozenset({"http", "https", "mailto"})

INLINE_TAGS: frozenset[str] = frozenset(
    {
        "a",
        "abbr",
        "b",
        "br",
        "code",
        "del",
        "em",
        "i",
        "img",
        "ins",
        "kbd",
        "mark",
        "s",
        "small",
        "span",
        "strong",
        "sub",
        "sup",
        "u",
    }
)

# Tags that open a raw HTML block when they start a line.
HTML_BLOCK_TAGS: frozenset[str] = frozenset(
    {
        "article",
        "blockquote",
        "br",
        "caption",
        "dd",
        "details",
        "div",
        "dl",
        "dt",
        "figcaption",
        "figure",
        "h1",
        "h2",
        "h3",
        "h4",
        "h5",
        "h6",
        "hr",
        "img",
        "li",
        "ol",
        "p",
        "pre",
        "section",
        "span",
        "summary",
        "table",
        "tbody",
        "td",
        "tfoot",
        "th",
        "thead",
        "tr",
        "ul",
    }
)

BLOCK_TAGS: frozenset[str] = HTML_BLOCK_TAGS | INLINE_TAGS

VOID_TAGS: frozenset[str] = frozenset({"br", "hr", "img", "wbr"})

GLOBAL_ATTRIBUTES: frozenset[str] = frozenset({"class", "title"})

ALLOWED_ATTRIBUTES: Mapping[str, frozenset[str]] = MappingProxyType(
    {
        "a": frozenset({"href"}),
        "img": frozenset({"src", "alt", "width", "height"}),
        "ol": frozenset({"start"}),
        "td": frozenset({"align", "colspan", "rowspan"}),
        "th": frozenset({"align", "colspan", "rowspan"}),
        "details": frozenset({"open"}),
    }
)

URL_ATTRIBUTES: frozenset[str] = frozenset({"href", "src"})

_SCHEME_RE = re.compile(r"^([A-Za-z][A-Za-z0-9+.\-]*):")
_IGNORED_URL_CHARS_RE = re.compile(r"[\x00-\x20\x7f]+")


def escape_text(value: str) -> SafeHtml:
    return SafeHtml(html.escape(value, quote=True))


def is_safe_url(url: str) -> bool:
    """Return True for relative URLs and for the allowed absolute schemes."""

    cleaned = _IGNORED_URL_CHARS_RE.sub("", url)
    match = _SCHEME_RE.match(cleaned)
    if match is None:
        return True
    return match.group(1).lower() in ALLOWED_SCHEMES


def format_attributes(tag: str, attrs: Iterable[tuple[str, str | None]]) -> str:
    allowed = ALLOWED_ATTRIBUTES.get(tag, frozenset()) | GLOBAL_ATTRIBUTES
    parts: list[str] = []
    seen: set[str] = set()
    for name, value in attrs:
        name = name.lower()
        if name not in allowed or name in seen:
            continue
        if name in URL_ATTRIBUTES and (value is None or not is_safe_url(value)):
            continue
        seen.add(name)
        if value is None:
            parts.append(name)
        else:
            parts.append(f'{name}="{html.escape(value, quote=True)}"')
    return "".join(f" {part}" for part in parts)


class HtmlAllowList(HTMLParser):
    """Re-emit an HTML fragment keeping only allow-listed tags and attributes.

    Disallowed tags are dropped while their text content is kept and escaped.
    Comments, declarations and processing instructions are dropped. Unclosed
    allowed tags are closed by ``finish`` so a fragment cannot leak markup
    into the rest of the page.
    """

    def __init__(self, allowed_tags: frozenset[str]) -> None:
        super().__init__(convert_charrefs=True)
        self._allowed_tags = allowed_tags
        self._out: list[str] = []
        self._open: list[str] = []

    def filter(self, fragment: str) -> SafeHtml:
        self.feed(fragment)
        return self._drain()

    def finish(self) -> SafeHtml:
        self.close()
        while self._open:
            self._out.append(f"</{self._open.pop()}>")
        return self._drain()

    def _drain(self) -> SafeHtml:
        output = "".join(self._out)
        self._out.clear()
        return SafeHtml(output)

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        if tag not in self._allowed_tags:
            return
        self._out.append(f"<{tag}{format_attributes(tag, attrs)}>")
        if tag not in VOID_TAGS:
            self._open.append(tag)

    def handle_startendtag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        self.handle_starttag(tag, attrs)
        if tag not in VOID_TAGS:
            self.handle_endtag(tag)

    def handle_endtag(self, tag: str) -> None:
        if tag not in self._allowed_tags or tag not in self._open:
            return
        while self._open:
            current = self._open.pop()
            self._out.append(f"</{current}>")
            if current == tag:
                break

    def handle_data(self, data: str) -> None:
        self._out.append(html.escape(data, quote=True))

    def handle_comment(self, data: str) -> None:
        return

    def handle_decl(self, decl: str) -> None:
        return

    def handle_pi(self, data: str) -> None:
        return

    def unknown_decl(self, data: str) -> None:
        return


def sanitize_fragment(fragment: str, allowed_tags: frozenset[str] = BLOCK_TAGS) -> SafeHtml:
    allow_list = HtmlAllowList(allowed_tags)
    return SafeHtml(allow_list.filter(fragment) + allow_list.finish())


__all__ = [
    "SafeHtml",
    "ALLOWED_SCHEMES",
    "INLINE_TAGS",
    "HTML_BLOCK_TAGS",
    "BLOCK_TAGS",
    "VOID_TAGS",
    "GLOBAL_ATTRIBUTES",
    "ALLOWED_ATTRIBUTES",
    "URL_ATTRIBUTES",
    "escape_text",
    "is_safe_url",
    "format_attributes",
    "HtmlAllowList",
    "sanitize_fragment",
]
