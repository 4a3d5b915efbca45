"""Page assembly and the ``render_document`` entry point."""

from __future__ import annotations

import re

from .blocks import BlockParser, extract_title
from .errors import InvalidStyleConfig, ParseError
from .favicon import encode
from .models import FaviconSpec, RenderedDocument, StyleConfig
from .renderer import render
from .sanitize import SafeHtml, escape_text
from .theme import compose

DEFAULT_TITLE = "Static Site"

FAVICON_IGNORED = "FAVICON_IGNORED"
CUSTOM_FONT = "CUSTOM_FONT"

_FAVICON_URI_RE = re.compile(r"data:image/svg\+xml;base64,[A-Za-z0-9+/]*={0,2}")

_PAGE_TEMPLATE = """\
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{title}</title>
{icon}    <style>
{css}
    </style>
</head>
<body>
    <div class="container">
        <div class="content">
{body}
        </div>
    </div>
</body>
</html>
"""


def _require_safe(name: str, value: object) -> SafeHtml:
    if not isinstance(value, SafeHtml):
        raise TypeError(f"{name} must be escaped or generated HTML, got {type(value).__name__}")
    return value


def assemble(body: SafeHtml, css: SafeHtml, favicon: str | None, title: SafeHtml) -> RenderedDocument:
    """Compose the final page from already-sanitized parts.

    Nothing is escaped here, so every textual argument must be ``SafeHtml``
    and the favicon must be a base64 SVG data URI.
    """

    icon = ""
    if favicon is not None:
        if not _FAVICON_URI_RE.fullmatch(favicon):
            raise ValueError("favicon must be a base64 SVG data URI")
        icon = f'    <link rel="icon" href="{favicon}">\n'
    page = _PAGE_TEMPLATE.format(
        title=_require_safe("title", title),
        icon=icon,
        css=_require_safe("css", css),
        body=_require_safe("body", body),
    )
    return RenderedDocument(html=page)


def render_document(
    markdown_text: str,
    style_config: StyleConfig,
    favicon_spec: FaviconSpec | None = None,
    title: str | None = None,
) -> RenderedDocument:
    """Convert Markdown text into a complete, styled HTML page.

    When ``title`` is empty the first level-one heading is used, falling back
    to ``DEFAULT_TITLE``. Raises a ``RenderError`` subclass on failure; no
    partial document is ever returned.
    """

    if not isinstance(markdown_text, str):
        raise ParseError(f"Markdown input must be text, got {type(markdown_text).__name__}")
    if not isinstance(style_config, StyleConfig):
        raise InvalidStyleConfig(f"Expected a StyleConfig, got {type(style_config).__name__}")

    parser = BlockParser()
    blocks = parser.parse(markdown_text)
    warnings = list(parser.warnings)

    favicon = encode(favicon_spec)
    if favicon_spec is not None and favicon is None:
        warnings.append(FAVICON_IGNORED)
    if style_config.font is not None:
        warnings.append(CUSTOM_FONT)

    resolved_title = title or extract_title(blocks) or DEFAULT_TITLE
    document = assemble(render(blocks), compose(style_config), favicon, escape_text(resolved_title))
    return RenderedDocument(html=document.html, warnings=tuple(dict.fromkeys(warnings)))


__all__ = ["DEFAULT_TITLE", "FAVICON_IGNORED", "CUSTOM_FONT", "assemble", "render_document"]
