from __future__ import annotations

import dataclasses
import json
import re
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml

from .errors import ConfigError, InvalidStyleConfig
from .favicon import parse_favicon
from .models import DEFAULT_ACCENT, DEFAULT_FONT_SIZE_PX, FaviconSpec, StyleConfig, Theme

CONFIG_FILES = (
    Path("statgen.toml"),
    Path("statgen.json"),
    Path("statgen.yaml"),
    Path("statgen.yml"),
)

STYLE_KEYS = ("font", "font_size", "theme", "accent", "accent_light", "accent_dark", "favicon")

_FONT_SIZE_RE = re.compile(r"^\s*(\d+)\s*(?:px)?\s*$", re.IGNORECASE)


@dataclass(slots=True)
class RuntimeConfig:
    output_dir: Path = Path("dist")
    log_file: str = "log.jsonl"
    summary_csv: str = "summary.csv"
    max_file_size_mb: int = 25
    parallelism: int = 1
    enable_local_api: bool = False


@dataclass(slots=True)
class StyleSettings:
    """Style options as written by the user, before validation."""

    font: str | None = None
    font_size: int | str = f"{DEFAULT_FONT_SIZE_PX}px"
    theme: str = Theme.AUTO.value
    accent: str = DEFAULT_ACCENT
    accent_light: str | None = None
    accent_dark: str | None = None
    favicon: str | None = None


@dataclass(slots=True)
class APIConfig:
    host: str = "127.0.0.1"
    port: int = 8000


@dataclass(slots=True)
class AppConfig:
    runtime: RuntimeConfig = field(default_factory=RuntimeConfig)
    style: StyleSettings = field(default_factory=StyleSettings)
    api: APIConfig = field(default_factory=APIConfig)


def find_config_file(directory: Path | None = None) -> Path | None:
    base = directory or Path.cwd()
    for candidate in CONFIG_FILES:
        path = base / candidate
        if path.is_file():
            return path
    return None


def _read_file(path: Path) -> Mapping[str, object]:
    suffix = path.suffix.lower()
    try:
        if suffix == ".toml":
            with path.open("rb") as handle:
                data = tomllib.load(handle)
        elif suffix == ".json":
            with path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
        elif suffix in {".yaml", ".yml"}:
            with path.open("r", encoding="utf-8") as handle:
                data = yaml.safe_load(handle)
        else:
            raise ConfigError(f"Unsupported configuration format: {path.name}")
    except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError, json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigError(f"Failed to read configuration {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ConfigError(f"Configuration root must be a table: {path}")
    return data


def _optional_str(value: object | None) -> str | None:
    if value is None:
        return None
    return str(value)


def _build_runtime(data: Mapping[str, object] | None, output: object | None) -> RuntimeConfig:
    data = data or {}
    output_dir = data.get("output_dir", output if output is not None else "dist")
    return RuntimeConfig(
        output_dir=Path(str(output_dir)),
        log_file=str(data.get("log_file", "log.jsonl")),
        summary_csv=str(data.get("summary_csv", "summary.csv")),
        max_file_size_mb=int(data.get("max_file_size_mb", 25)),
        parallelism=int(data.get("parallelism", 1)),
        enable_local_api=bool(data.get("enable_local_api", False)),
    )


def _build_style(data: Mapping[str, object]) -> StyleSettings:
    defaults = StyleSettings()
    font_size = data.get("font_size", defaults.font_size)
    if not isinstance(font_size, (int, str)):
        raise ConfigError(f"font_size must be a number or a string like '16px': {font_size!r}")
    return StyleSettings(
        font=_optional_str(data.get("font")),
        font_size=font_size,
        theme=str(data.get("theme", defaults.theme)),
        accent=str(data.get("accent", defaults.accent)),
        accent_light=_optional_str(data.get("accent_light")),
        accent_dark=_optional_str(data.get("accent_dark")),
        favicon=_optional_str(data.get("favicon")),
    )


def _build_api(data: Mapping[str, object] | None) -> APIConfig:
    if not data:
        return APIConfig()
    return APIConfig(host=str(data.get("host", "127.0.0.1")), port=int(data.get("port", 8000)))


def _section(raw: Mapping[str, object], name: str) -> Mapping[str, object] | None:
    value = raw.get(name)
    if value is None:
        return None
    if not isinstance(value, Mapping):
        raise ConfigError(f"[{name}] must be a table")
    return value


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from ``path`` or the first ``statgen.*`` file in the working directory.

    An explicit path that does not exist is an error; finding no file at all
    yields the defaults.
    """

    if path is not None and not path.is_file():
        raise ConfigError(f"Configuration file not found: {path}")
    path = path or find_config_file()
    if path is None:
        return AppConfig()
    raw = _read_file(path)
    style_data = _section(raw, "style")
    if style_data is None:
        style_data = {key: raw[key] for key in STYLE_KEYS if key in raw}
    try:
        runtime = _build_runtime(_section(raw, "runtime"), raw.get("output"))
        api = _build_api(_section(raw, "api"))
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid value in {path}: {exc}") from exc
    return AppConfig(runtime=runtime, style=_build_style(style_data), api=api)


def merge_style(settings: StyleSettings, overrides: Mapping[str, Any]) -> StyleSettings:
    """Return ``settings`` with every non-``None`` override applied."""

    changes = {key: value for key, value in overrides.items() if key in STYLE_KEYS and value is not None}
    return dataclasses.replace(settings, **changes)


def parse_font_size(value: object) -> int:
    if isinstance(value, bool):
        raise InvalidStyleConfig(f"Invalid font size: {value!r}")
    if isinstance(value, int):
        size = value
    elif isinstance(value, str) and (match := _FONT_SIZE_RE.match(value)):
        size = int(match.group(1))
    else:
        raise InvalidStyleConfig(f"Invalid font size: {value!r}. Use a pixel value such as 16px")
    if size <= 0:
        raise InvalidStyleConfig(f"Font size must be positive: {value!r}")
    return size


def build_style(settings: StyleSettings) -> tuple[StyleConfig, FaviconSpec | None]:
    style = StyleConfig(
        font=settings.font or None,
        font_size_px=parse_font_size(settings.font_size),
        theme=settings.theme,
        accent=settings.accent,
        accent_light=settings.accent_light or None,
        accent_dark=settings.accent_dark or None,
    )
    return style, parse_favicon(settings.favicon)


def dump_config(config: AppConfig) -> str:
    payload = {
        "runtime": {
            "output_dir": str(config.runtime.output_dir),
            "log_file": config.runtime.log_file,
            "summary_csv": config.runtime.summary_csv,
            "max_file_size_mb": config.runtime.max_file_size_mb,
            "parallelism": config.runtime.parallelism,
            "enable_local_api": config.runtime.enable_local_api,
        },
        "style": dataclasses.asdict(config.style),
        "api": {
            "host": config.api.host,
            "port": config.api.port,
        },
    }
    return json.dumps(payload, indent=2, ensure_ascii=False)


__all__ = [
    "CONFIG_FILES",
    "RuntimeConfig",
    "StyleSettings",
    "APIConfig",
    "AppConfig",
    "find_config_file",
    "load_config",
    "merge_style",
    "parse_font_size",
    "build_style",
    "dump_config",
]
