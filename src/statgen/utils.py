from __future__ import annotations

import hashlib
import os
import re
import tempfile
import time
from collections.abc import Iterable
from pathlib import Path
from typing import Iterator

MARKDOWN_SUFFIXES = frozenset({".md", ".markdown", ".mdown", ".mkd"})

_HEADING_WITHOUT_SPACE_RE = re.compile(r"^(\s*)(#{1,6})(?=[^#\s])")


def generate_run_id(prefix: str = "run") -> str:
    epoch_ms = int(time.time() * 1000)
    random_bits = hashlib.sha256(os.urandom(16)).hexdigest()[:8]
    return f"{prefix}-{epoch_ms}-{random_bits}"


def atomic_write(path: Path, data: str, encoding: str = "utf-8") -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile("w", delete=False, dir=path.parent, encoding=encoding) as tmp:
        tmp.write(data)
        tmp.flush()
        os.fsync(tmp.fileno())
    try:
        os.replace(tmp.name, path)
    except OSError:
        Path(tmp.name).unlink(missing_ok=True)
        raise


def iter_markdown_files(paths: Iterable[Path], *, recursive: bool = False) -> Iterator[tuple[Path, Path]]:
    """Yield ``(source, relative)`` pairs; ``relative`` names the output location."""

    for path in paths:
        if path.is_file():
            yield path, Path(path.name)
        elif path.is_dir():
            candidates = path.rglob("*") if recursive else path.glob("*")
            for file_path in sorted(candidates):
                if file_path.is_file() and file_path.suffix.lower() in MARKDOWN_SUFFIXES:
                    yield file_path, file_path.relative_to(path)


def size_within_limit(path: Path, max_mb: int) -> bool:
    return path.stat().st_size <= max_mb * 1024 * 1024


def unescape_inline(text: str) -> str:
    """Turn shell-escaped inline Markdown into real text.

    ``\\n``, ``\\t`` and ``\\r`` become control
    characters, and ``#Title`` lines are repaired to ``# Title``.
    """

    result = (
        text.replace("\\n", "\n")
        .replace("\\t", "\t")
        .replace("\\r", "\r")
        .replace("\\\\", "\\")
        .replace(" \n", "\n")
        .replace("\n ", "\n")
    )
    return "\n".join(_HEADING_WITHOUT_SPACE_RE.sub(r"\1\2 ", line) for line in result.split("\n"))
