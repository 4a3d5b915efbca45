from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from .utils import MARKDOWN_SUFFIXES


class SourceType(str, Enum):
    MARKDOWN = "markdown"


@dataclass(slots=True)
class DetectionResult:
    source_type: SourceType
    extension: str
    encoding: str


_BOMS: dict[bytes, str] = {
    b"\xff\xfe\x00\x00": "utf-32",
    b"\x00\x00\xfe\xff": "utf-32",
    b"\xff\xfe": "utf-16",
    b"\xfe\xff": "utf-16",
}


class DetectionError(RuntimeError):
    """Raised when a source cannot be treated as Markdown."""


def sniff_encoding(path: Path) -> str:
    with path.open("rb") as handle:
        header = handle.read(4)
    for bom, encoding in _BOMS.items():
        if header.startswith(bom):
            return encoding
    return "utf-8-sig"


def detect_source(path: Path) -> DetectionResult:
    extension = path.suffix.lower()
    if extension not in MARKDOWN_SUFFIXES:
        raise DetectionError(f"Unsupported file extension: {extension or '<none>'}")
    encoding = sniff_encoding(path)
    if encoding != "utf-8-sig":
        raise DetectionError(f"Expected UTF-8 text, found a {encoding} byte order mark")
    return DetectionResult(source_type=SourceType.MARKDOWN, extension=extension, encoding=encoding)


__all__ = ["SourceType", "DetectionResult", "DetectionError", "sniff_encoding", "detect_source"]
