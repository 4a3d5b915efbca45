from __future__ import annotations


class RenderError(RuntimeError):
    """Base class for failures surfaced by the rendering pipeline."""

    code = "RENDER_ERROR"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code


class ParseError(RenderError):
    code = "PARSE_ERROR"


class InvalidStyleConfig(RenderError):
    code = "INVALID_STYLE"


class InvalidFaviconInput(RenderError):
    code = "INVALID_FAVICON"


class ConfigError(RenderError):
    code = "CONFIG_ERROR"


__all__ = [
    "RenderError",
    "ParseError",
    "InvalidStyleConfig",
    "InvalidFaviconInput",
    "ConfigError",
]
