"""Stylesheet generation for rendered documents."""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from .models import StyleConfig, Theme
from .sanitize import SafeHtml

LIGHT_PALETTE: Mapping[str, str] = MappingProxyType(
    {
        "bg-color": "#f4f4f4",
        "text-color": "#333",
        "header-color": "#2c3e50",
        "code-bg": "#e7e7e7",
        "code-color": "#333",
        "blockquote-bg": "#f9f9f9",
        "border-color": "#e0e0e0",
    }
)

DARK_PALETTE: Mapping[str, str] = MappingProxyType(
    {
        "bg-color": "#1a1a1a",
        "text-color": "#e0e0e0",
        "header-color": "#ffffff",
        "code-bg": "#2d2d2d",
        "code-color": "#cccccc",
        "blockquote-bg": "#2a2a2a",
        "border-color": "#404040",
    }
)

SANS_SERIF = "sans-serif"
SERIF = "serif"
MONOSPACE = "monospace"

FONT_CLASSES: Mapping[str, str] = MappingProxyType(
    {
        "arial": SANS_SERIF,
        "helvetica": SANS_SERIF,
        "helvetica neue": SANS_SERIF,
        "verdana": SANS_SERIF,
        "tahoma": SANS_SERIF,
        "trebuchet ms": SANS_SERIF,
        "segoe ui": SANS_SERIF,
        "roboto": SANS_SERIF,
        "open sans": SANS_SERIF,
        "lato": SANS_SERIF,
        "inter": SANS_SERIF,
        "sans-serif": SANS_SERIF,
        "times new roman": SERIF,
        "times": SERIF,
        "georgia": SERIF,
        "garamond": SERIF,
        "palatino": SERIF,
        "cambria": SERIF,
        "merriweather": SERIF,
        "serif": SERIF,
        "courier new": MONOSPACE,
        "courier": MONOSPACE,
        "consolas": MONOSPACE,
        "menlo": MONOSPACE,
        "monaco": MONOSPACE,
        "fira code": MONOSPACE,
        "jetbrains mono": MONOSPACE,
        "source code pro": MONOSPACE,
        "monospace": MONOSPACE,
    }
)

FALLBACK_CHAINS: Mapping[str, tuple[str, ...]] = MappingProxyType(
    {
        SANS_SERIF: ("-apple-system", "BlinkMacSystemFont", "Segoe UI", "Roboto", "Helvetica Neue", "Arial", "sans-serif"),
        SERIF: ("Georgia", "Times New Roman", "Times", "serif"),
        MONOSPACE: ("SF Mono", "Menlo", "Consolas", "Courier New", "monospace"),
    }
)

_GENERIC_FAMILIES = frozenset({SANS_SERIF, SERIF, MONOSPACE})

_LAYOUT_CSS = """\
* {
  box-sizing: border-box;
  margin: 0;
  padding: 0;
}

.container {
  width: 100%;
  padding: 3rem 2rem;
  display: flex;
  justify-content: flex-start;
}

.content {
  text-align: left;
  width: 100%;
}

h1, h2, h3, h4, h5, h6 {
  color: var(--header-color);
  font-weight: 600;
  line-height: 1.3;
  margin-top: 3rem;
  margin-bottom: 1.5rem;
}

h1 {
  font-size: 2.8rem;
  font-weight: 700;
  text-align: center;
  margin-bottom: 4rem;
  padding-bottom: 1.5rem;
  border-bottom: 2px solid var(--link-color);
}

h2 {
  font-size: 1.8rem;
  padding-bottom: 0.5rem;
  border-bottom: 1px solid var(--border-color);
}

h3 {
  font-size: 1.5rem;
  color: var(--link-color);
}

h4 {
  font-size: 1.25rem;
}

h5 {
  font-size: 1.1rem;
}

h6 {
  font-size: 1rem;
  color: var(--code-color);
}

p {
  margin-bottom: 2rem;
  text-align: left;
  line-height: 1.7;
}

ul, ol {
  margin-bottom: 2rem;
  padding-left: 2rem;
}

li {
  margin-bottom: 0.75rem;
  line-height: 1.6;
}

blockquote {
  border-left: 4px solid var(--link-color);
  padding: 1.5rem 2rem;
  margin: 3rem 0;
  background-color: var(--blockquote-bg);
  font-style: italic;
  border-radius: 0 8px 8px 0;
}

code {
  background-color: var(--code-bg);
  color: var(--code-color);
  padding: 0.2rem 0.4rem;
  border-radius: 3px;
  font-family: "SF Mono", Monaco, "Cascadia Code", "Roboto Mono", Consolas, "Courier New", monospace;
  font-size: 0.9em;
}

pre {
  background-color: var(--code-bg);
  padding: 2rem;
  border-radius: 8px;
  overflow-x: auto;
  margin: 3rem 0;
  border: 1px solid var(--border-color);
  box-shadow: var(--shadow);
}

pre code {
  background-color: transparent;
  padding: 0;
}

table {
  width: 100%;
  border-collapse: collapse;
  margin: 3rem 0;
  background-color: var(--blockquote-bg);
  border-radius: 8px;
  overflow: hidden;
  box-shadow: var(--shadow);
}

th, td {
  padding: 1rem 1.25rem;
  text-align: left;
  border-bottom: 1px solid var(--border-color);
}

th {
  background-color: var(--code-bg);
  color: var(--header-color);
  font-weight: 600;
  text-transform: uppercase;
  font-size: 0.8rem;
  letter-spacing: 0.05em;
}

tr:nth-child(even) {
  background-color: var(--bg-color);
}

a {
  color: var(--link-color);
  text-decoration: none;
  transition: color 0.2s ease;
}

a:hover {
  color: var(--text-color);
  text-decoration: underline;
}

hr {
  border: none;
  height: 2px;
  background: linear-gradient(90deg, transparent, var(--border-color), transparent);
  margin: 3rem 0;
}

img {
  max-width: 100%;
  height: auto;
  border-radius: 8px;
  margin: 3rem 0;
  box-shadow: 0 2px 12px rgba(0, 0, 0, 0.15);
}

@media (max-width: 768px) {
  .container {
    padding: 1.5rem 1rem;
  }

  h1 {
    font-size: 2.2rem;
    margin-bottom: 2.5rem;
  }

  h2 {
    font-size: 1.6rem;
  }

  p {
    margin-bottom: 1.5rem;
    line-height: 1.6;
  }

  pre {
    padding: 1.25rem;
    margin: 2rem 0;
  }

  blockquote {
    padding: 1rem 1.25rem;
    margin: 2rem 0;
  }
}
"""


def classify_font(font: str | None) -> str:
    if not font:
        return SANS_SERIF
    return FONT_CLASSES.get(font.strip().lower(), SANS_SERIF)


def _quote_family(name: str) -> str:
    if name.lower() in _GENERIC_FAMILIES or name.startswith("-") or " " not in name:
        return name
    return f'"{name}"'


def font_stack(font: str | None) -> str:
    names = ([font.strip()] if font else []) + list(FALLBACK_CHAINS[classify_font(font)])
    seen: set[str] = set()
    stack: list[str] = []
    for name in names:
        key = name.lower()
        if key in seen:
            continue
        seen.add(key)
        stack.append(_quote_family(name))
    return ", ".join(stack)


def _variables(palette: Mapping[str, str], accent: str, indent: str) -> list[str]:
    lines = [f"{indent}--{name}: {value};" for name, value in palette.items()]
    lines.append(f"{indent}--link-color: {accent};")
    return lines


def _root_rule(palette: Mapping[str, str], accent: str, scheme: str, indent: str = "") -> str:
    inner = indent + "  "
    lines = [f"{indent}:root {{", f"{inner}color-scheme: {scheme};"]
    lines.extend(_variables(palette, accent, inner))
    lines.append(f"{inner}--shadow: 0 2px 8px rgba(0, 0, 0, 0.1);")
    lines.append(f"{indent}}}")
    return "\n".join(lines)


def _media_rule(scheme: str, palette: Mapping[str, str], accent: str) -> str:
    return "\n".join(
        [
            f"@media (prefers-color-scheme: {scheme}) {{",
            _root_rule(palette, accent, scheme, indent="  "),
            "}",
        ]
    )


def _body_rule(config: StyleConfig) -> str:
    return "\n".join(
        [
            "body {",
            f"  font-family: {font_stack(config.font)};",
            f"  font-size: {config.font_size_px}px;",
            "  line-height: 1.6;",
            "  color: var(--text-color);",
            "  background-color: var(--bg-color);",
            "  -webkit-font-smoothing: antialiased;",
            "  -moz-osx-font-smoothing: grayscale;",
            "  text-rendering: optimizeLegibility;",
            "}",
        ]
    )


def compose(config: StyleConfig) -> SafeHtml:
    """Build the stylesheet for ``config``.

    Light and dark themes get a single ``:root`` rule. The auto theme keeps the
    light palette as the default and switches palettes and accents with
    ``prefers-color-scheme`` media queries.
    """

    if config.theme is Theme.DARK:
        rules = [_root_rule(DARK_PALETTE, config.accent, "dark")]
    elif config.theme is Theme.LIGHT:
        rules = [_root_rule(LIGHT_PALETTE, config.accent, "light")]
    else:
        rules = [
            _root_rule(LIGHT_PALETTE, config.light_accent, "light dark"),
            _media_rule("light", LIGHT_PALETTE, config.light_accent),
            _media_rule("dark", DARK_PALETTE, config.dark_accent),
        ]
    rules.append(_body_rule(config))
    return SafeHtml("\n\n".join(rules) + "\n\n" + _LAYOUT_CSS)


__all__ = [
    "LIGHT_PALETTE",
    "DARK_PALETTE",
    "FONT_CLASSES",
    "FALLBACK_CHAINS",
    "classify_font",
    "font_stack",
    "compose",
]
