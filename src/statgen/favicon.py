"""Emoji favicons encoded as inline SVG data URIs."""

from __future__ import annotations

import base64
import html
import unicodedata

from .errors import InvalidFaviconInput
from .models import FaviconSpec

ZWJ = "\u200d"
_REGIONAL_INDICATORS = range(0x1F1E6, 0x1F200)
_SKIN_TONES = range(0x1F3FB, 0x1F400)
_TAG_CHARACTERS = range(0xE0020, 0xE0080)
_VARIATION_SELECTORS = frozenset({"\ufe0e", "\ufe0f"})
# A cluster led by a combining mark has no base character to draw.
_NON_DISPLAYABLE = frozenset({"Cc", "Cf", "Cs", "Co", "Cn", "Zs", "Zl", "Zp", "Mn", "Mc", "Me"})

_SVG_TEMPLATE = (
    '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 100 100">'
    '<text x="50" y="50" font-size="90" text-anchor="middle" dominant-baseline="central">{glyph}</text>'
    "</svg>"
)


def _extends_cluster(char: str) -> bool:
    code = ord(char)
    if char in _VARIATION_SELECTORS or char == ZWJ:
        return True
    if code in _SKIN_TONES or code in _TAG_CHARACTERS:
        return True
    return unicodedata.category(char) in {"Mn", "Me", "Mc"}


def split_graphemes(text: str) -> list[str]:
    """Split ``text`` into user-perceived characters.

    Covers the cluster rules emoji rely on: combining marks, variation
    selectors, skin-tone modifiers, tag sequences, zero-width-joiner
    sequences and regional-indicator flag pairs.
    """

    clusters: list[str] = []
    for char in text:
        if not clusters:
            clusters.append(char)
            continue
        previous = clusters[-1]
        joined = previous.endswith(ZWJ)
        flag_pair = (
            ord(char) in _REGIONAL_INDICATORS
            and all(ord(c) in _REGIONAL_INDICATORS for c in previous)
            and len(previous) % 2 == 1
        )
        if joined or flag_pair or _extends_cluster(char) or (previous.endswith("\r") and char == "\n"):
            clusters[-1] = previous + char
        else:
            clusters.append(char)
    return clusters


def is_single_grapheme(text: str) -> bool:
    if not isinstance(text, str):
        return False
    clusters = split_graphemes(text)
    if len(clusters) != 1:
        return False
    return unicodedata.category(clusters[0][0]) not in _NON_DISPLAYABLE


def parse_favicon(value: str | None) -> FaviconSpec | None:
    """Validate a configured favicon, raising ``InvalidFaviconInput`` when it is not one symbol."""

    if value is None or value == "":
        return None
    if not is_single_grapheme(value):
        raise InvalidFaviconInput(f"Favicon must be a single emoji or symbol: {value!r}")
    return FaviconSpec(value)


def encode(spec: FaviconSpec | str | None) -> str | None:
    if spec is None:
        return None
    glyph = spec.emoji if isinstance(spec, FaviconSpec) else spec
    if not is_single_grapheme(glyph):
        return None
    svg = _SVG_TEMPLATE.format(glyph=html.escape(glyph, quote=True))
    payload = base64.b64encode(svg.encode("utf-8")).decode("ascii")
    return f"data:image/svg+xml;base64,{payload}"


__all__ = ["split_graphemes", "is_single_grapheme", "parse_favicon", "encode"]
