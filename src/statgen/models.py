"""Domain models for the rendering pipeline and the conversion service."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from .colors import is_valid_color
from .errors import InvalidStyleConfig
from .logging import BatchSummary

DEFAULT_ACCENT = "#3498db"
DEFAULT_FONT_SIZE_PX = 16

FONT_NAME_RE = re.compile(r"[A-Za-z0-9][A-Za-z0-9 _\-]{0,63}")


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"
    AUTO = "auto"


@dataclass(frozen=True, slots=True)
class StyleConfig:
    """Validated visual options for one document.

    Construction rejects malformed values with ``InvalidStyleConfig``; nothing
    is coerced except a theme given by its string value.
    """

    font: str | None = None
    font_size_px: int = DEFAULT_FONT_SIZE_PX
    theme: Theme = Theme.AUTO
    accent: str = DEFAULT_ACCENT
    accent_light: str | None = None
    accent_dark: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.theme, Theme):
            try:
                object.__setattr__(self, "theme", Theme(self.theme))
            except ValueError as exc:
                raise InvalidStyleConfig(f"Unknown theme: {self.theme!r}. Use light, dark or auto") from exc
        size = self.font_size_px
        if isinstance(size, bool) or not isinstance(size, int) or size <= 0:
            raise InvalidStyleConfig(f"Font size must be a positive number of pixels: {size!r}")
        if self.font is not None and (not isinstance(self.font, str) or not FONT_NAME_RE.fullmatch(self.font)):
            raise InvalidStyleConfig(f"Invalid font name: {self.font!r}")
        for field_name in ("accent", "accent_light", "accent_dark"):
            value = getattr(self, field_name)
            if value is None and field_name != "accent":
                continue
            if not is_valid_color(value):
                label = field_name.replace("_", "-")
                raise InvalidStyleConfig(
                    f"Invalid {label} color: {value!r}. Use hex codes (#ff0000) or named colors (red, blue, etc)"
                )

    @property
    def light_accent(self) -> str:
        return self.accent_light or self.accent

    @property
    def dark_accent(self) -> str:
        return self.accent_dark or self.accent


@dataclass(frozen=True, slots=True)
class FaviconSpec:
    emoji: str


@dataclass(frozen=True, slots=True)
class RenderedDocument:
    html: str
    warnings: tuple[str, ...] = ()


@dataclass(slots=True)
class ConversionResult:
    """Result metadata for an individual conversion."""

    run_id: str
    source: str
    output_path: Path
    warnings: list[str]
    summary: str


@dataclass(slots=True)
class BatchConversionResult:
    """Aggregate results for a batch conversion request."""

    runs: list[ConversionResult]
    summary: BatchSummary


__all__ = [
    "DEFAULT_ACCENT",
    "DEFAULT_FONT_SIZE_PX",
    "Theme",
    "StyleConfig",
    "FaviconSpec",
    "RenderedDocument",
    "ConversionResult",
    "BatchConversionResult",
]
