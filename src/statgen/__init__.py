"""Markdown to styled, self-contained HTML pages."""

__version__ = "0.1.0"

from .config import AppConfig, load_config
from .core import ConversionError, ConversionService
from .document import render_document
from .errors import ConfigError, InvalidFaviconInput, InvalidStyleConfig, ParseError, RenderError
from .models import BatchConversionResult, ConversionResult, FaviconSpec, RenderedDocument, StyleConfig, Theme

__all__ = [
    "__version__",
    "AppConfig",
    "load_config",
    "ConversionError",
    "ConversionService",
    "render_document",
    "RenderError",
    "ParseError",
    "InvalidStyleConfig",
    "InvalidFaviconInput",
    "ConfigError",
    "BatchConversionResult",
    "ConversionResult",
    "FaviconSpec",
    "RenderedDocument",
    "StyleConfig",
    "Theme",
]
