"""Block and inline node types produced by the parser."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Union

Alignment = Literal["left", "center", "right"] | None


@dataclass(frozen=True, slots=True)
class Text:
    text: str


@dataclass(frozen=True, slots=True)
class Emphasis:
    strong: bool
    children: tuple[Inline, ...]


@dataclass(frozen=True, slots=True)
class Code:
    text: str


@dataclass(frozen=True, slots=True)
class Link:
    href: str
    children: tuple[Inline, ...]
    title: str | None = None


@dataclass(frozen=True, slots=True)
class Image:
    src: str
    alt: str
    title: str | None = None


@dataclass(frozen=True, slots=True)
class RawHtmlInline:
    html: str


Inline = Union[Text, Emphasis, Code, Link, Image, RawHtmlInline]


@dataclass(frozen=True, slots=True)
class Heading:
    level: int
    children: tuple[Inline, ...]


@dataclass(frozen=True, slots=True)
class Paragraph:
    children: tuple[Inline, ...]


@dataclass(frozen=True, slots=True)
class ListBlock:
    ordered: bool
    items: tuple[tuple[Block, ...], ...]
    start: int = 1
    tight: bool = True


@dataclass(frozen=True, slots=True)
class CodeBlock:
    language: str | None
    text: str


@dataclass(frozen=True, slots=True)
class BlockQuote:
    children: tuple[Block, ...]


@dataclass(frozen=True, slots=True)
class Table:
    header: tuple[tuple[Inline, ...], ...]
    alignments: tuple[Alignment, ...]
    rows: tuple[tuple[tuple[Inline, ...], ...], ...]


@dataclass(frozen=True, slots=True)
class RawHtml:
    html: str


@dataclass(frozen=True, slots=True)
class ThematicBreak:
    pass


Block = Union[Heading, Paragraph, ListBlock, CodeBlock, BlockQuote, Table, RawHtml, ThematicBreak]


def plain_text(spans: tuple[Inline, ...] | list[Inline]) -> str:
    """Flatten inline spans to their visible text."""

    parts: list[str] = []
    for span in spans:
        if isinstance(span, (Text, Code)):
            parts.append(span.text)
        elif isinstance(span, (Emphasis, Link)):
            parts.append(plain_text(span.children))
        elif isinstance(span, Image):
            parts.append(span.alt)
    return "".join(parts)


__all__ = [
    "Alignment",
    "Text",
    "Emphasis",
    "Code",
    "Link",
    "Image",
    "RawHtmlInline",
    "Inline",
    "Heading",
    "Paragraph",
    "ListBlock",
    "CodeBlock",
    "BlockQuote",
    "Table",
    "RawHtml",
    "ThematicBreak",
    "Block",
    "plain_text",
]
