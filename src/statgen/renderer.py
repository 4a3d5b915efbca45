"""HTML renderer for parsed block trees.

Text from the document is always escaped. Raw HTML nodes are re-emitted
through ``HtmlAllowList``; link and image URLs must pass ``is_safe_url``.
"""

from __future__ import annotations

import re
from typing import Sequence

from .nodes import (
    Alignment,
    Block,
    BlockQuote,
    Code,
    CodeBlock,
    Emphasis,
    Heading,
    Image,
    Inline,
    Link,
    ListBlock,
    Paragraph,
    RawHtml,
    RawHtmlInline,
    Table,
    Text,
    ThematicBreak,
)
from .sanitize import BLOCK_TAGS, INLINE_TAGS, HtmlAllowList, SafeHtml, escape_text, is_safe_url, sanitize_fragment

_LANGUAGE_RE = re.compile(r"[^A-Za-z0-9_+\-]")


class HtmlRenderer:
    def render(self, blocks: Sequence[Block]) -> SafeHtml:
        return SafeHtml("\n".join(self._render_block(block) for block in blocks))

    def _render_block(self, block: Block, *, tight: bool = False) -> str:
        if isinstance(block, Heading):
            return f"<h{block.level}>{self._render_inlines(block.children)}</h{block.level}>"
        if isinstance(block, Paragraph):
            content = self._render_inlines(block.children)
            return content if tight else f"<p>{content}</p>"
        if isinstance(block, ListBlock):
            return self._render_list(block)
        if isinstance(block, CodeBlock):
            language = _LANGUAGE_RE.sub("", block.language or "")
            class_attr = f' class="language-{language}"' if language else ""
            return f"<pre><code{class_attr}>{escape_text(block.text)}</code></pre>"
        if isinstance(block, BlockQuote):
            inner = "\n".join(self._render_block(child) for child in block.children)
            return f"<blockquote>\n{inner}\n</blockquote>" if inner else "<blockquote></blockquote>"
        if isinstance(block, Table):
            return self._render_table(block)
        if isinstance(block, RawHtml):
            return sanitize_fragment(block.html, BLOCK_TAGS)
        if isinstance(block, ThematicBreak):
            return "<hr>"
        raise TypeError(f"Unsupported block node: {block!r}")

    def _render_list(self, block: ListBlock) -> str:
        tag = "ol" if block.ordered else "ul"
        start = f' start="{block.start}"' if block.ordered and block.start != 1 else ""
        lines = [f"<{tag}{start}>"]
        for item in block.items:
            parts = [self._render_block(child, tight=block.tight) for child in item]
            if not parts:
                body = ""
            elif block.tight and isinstance(item[0], Paragraph):
                body = "\n".join(parts)
            else:
                body = "\n" + "\n".join(parts) + "\n"
            lines.append(f"<li>{body}</li>")
        lines.append(f"</{tag}>")
        return "\n".join(lines)

    def _render_table(self, table: Table) -> str:
        lines = ["<table>", "<thead>", "<tr>"]
        for cell, alignment in zip(table.header, table.alignments):
            lines.append(f"<th{_align(alignment)}>{self._render_inlines(cell)}</th>")
        lines.extend(["</tr>", "</thead>"])
        if table.rows:
            lines.append("<tbody>")
            for row in table.rows:
                lines.append("<tr>")
                for cell, alignment in zip(row, table.alignments):
                    lines.append(f"<td{_align(alignment)}>{self._render_inlines(cell)}</td>")
                lines.append("</tr>")
            lines.append("</tbody>")
        lines.append("</table>")
        return "\n".join(lines)

    def _render_inlines(self, spans: Sequence[Inline]) -> str:
        # Raw inline tags opened in this span list are closed before it ends.
        allow_list = HtmlAllowList(INLINE_TAGS)
        parts = [self._render_inline(span, allow_list) for span in spans]
        parts.append(allow_list.finish())
        return "".join(parts)

    def _render_inline(self, span: Inline, allow_list: HtmlAllowList) -> str:
        if isinstance(span, Text):
            return escape_text(span.text)
        if isinstance(span, Code):
            return f"<code>{escape_text(span.text)}</code>"
        if isinstance(span, Emphasis):
            tag = "strong" if span.strong else "em"
            return f"<{tag}>{self._render_inlines(span.children)}</{tag}>"
        if isinstance(span, Link):
            label = self._render_inlines(span.children)
            if not is_safe_url(span.href):
                return label
            return f'<a href="{escape_text(span.href)}"{_title(span.title)}>{label}</a>'
        if isinstance(span, Image):
            if not is_safe_url(span.src):
                return escape_text(span.alt)
            return f'<img src="{escape_text(span.src)}" alt="{escape_text(span.alt)}"{_title(span.title)}>'
        if isinstance(span, RawHtmlInline):
            return allow_list.filter(span.html)
        raise TypeError(f"Unsupported inline node: {span!r}")


def _align(alignment: Alignment) -> str:
    if alignment is None:
        return ""
    return f' style="text-align: {alignment}"'


def _title(title: str | None) -> str:
    if not title:
        return ""
    return f' title="{escape_text(title)}"'


def render(blocks: Sequence[Block]) -> SafeHtml:
    return HtmlRenderer().render(blocks)


__all__ = ["HtmlRenderer", "render"]
