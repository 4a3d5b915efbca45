from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from .config import AppConfig, build_style, dump_config, load_config, merge_style
from .core import ConversionError, ConversionService
from .errors import ConfigError, RenderError
from .models import Theme
from .utils import unescape_inline

console = Console()

app = typer.Typer(help="Turn Markdown into styled, self-contained HTML pages")

CONFIG_OPTION = typer.Option(None, "--config", "-c", help="Path to statgen.toml/.json/.yaml")


def _load_config(path: Path | None) -> AppConfig:
    try:
        return load_config(path)
    except ConfigError as exc:
        console.print(f"[red]Configuration error[/red]: {exc}")
        raise typer.Exit(1) from exc


def _build_service(cfg: AppConfig, output: Path | None, overrides: dict[str, object]) -> ConversionService:
    if output is not None:
        cfg.runtime.output_dir = output
    try:
        style, favicon = build_style(merge_style(cfg.style, overrides))
    except RenderError as exc:
        console.print(f"[red]Error[/red]: {exc}")
        raise typer.Exit(1) from exc
    if style.font is not None:
        console.print("[yellow]Warning[/yellow]: Make sure font you requested is installed on your system")
    return ConversionService(cfg, style=style, favicon=favicon)


@app.command()
def build(
    file: Path | None = typer.Option(None, "--file", "-f", help="Markdown file to convert"),
    inline: str | None = typer.Option(None, "--inline", "-i", help="Markdown text to convert"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Output directory"),
    title: str | None = typer.Option(None, "--title", help="Page title (defaults to the first heading)"),
    font: str | None = typer.Option(None, "--font", "-F", help="Font family"),
    font_size: str | None = typer.Option(None, "--font-size", "-s", help="Font size, e.g. 16px"),
    theme: Theme | None = typer.Option(None, "--theme", "-t", case_sensitive=False, help="light, dark or auto"),
    accent: str | None = typer.Option(None, "--accent", "-a", help="Accent color for both themes"),
    accent_light: str | None = typer.Option(None, "--accent-light", help="Accent color for the light theme"),
    accent_dark: str | None = typer.Option(None, "--accent-dark", help="Accent color for the dark theme"),
    favicon: str | None = typer.Option(None, "--favicon", help="Emoji used as the favicon"),
    config: Path | None = CONFIG_OPTION,
) -> None:
    if (file is None) == (inline is None):
        console.print("[red]Error[/red]: pass exactly one of --file or --inline")
        raise typer.Exit(1)
    cfg = _load_config(config)
    overrides = {
        "font": font,
        "font_size": font_size,
        "theme": theme.value if theme is not None else None,
        "accent": accent,
        "accent_light": accent_light,
        "accent_dark": accent_dark,
        "favicon": favicon,
    }
    service = _build_service(cfg, output, overrides)
    try:
        if file is not None:
            result = service.convert_file(file, title=title)
        else:
            result = service.convert_text(unescape_inline(inline or ""), title=title)
    except ConversionError as exc:
        console.print(f"[red]Conversion failed[/red]: {exc.code} - {exc}")
        raise typer.Exit(1) from exc
    console.print(f"[green]Success[/green]: {result.summary}")
    for warning in result.warnings:
        console.print(f"[yellow]Warning[/yellow]: {warning}")


@app.command()
def batch(
    path: list[Path],
    output: Path | None = typer.Option(None, "--output", "-o", help="Output directory"),
    parallel: int | None = typer.Option(None, "--parallel", min=1, help="Parallel workers"),
    recursive: bool = typer.Option(False, "--recursive", "-r", help="Descend into subdirectories"),
    config: Path | None = CONFIG_OPTION,
) -> None:
    cfg = _load_config(config)
    service = _build_service(cfg, output, {})
    batch_result = service.batch_convert(path, parallelism=parallel, recursive=recursive)
    table = Table(title="Batch summary")
    table.add_column("Run ID")
    table.add_column("Output")
    table.add_column("Warnings")
    for result in batch_result.runs:
        table.add_row(result.run_id, str(result.output_path), ", ".join(result.warnings) or "-")
    console.print(table)
    summary = batch_result.summary
    console.print(
        f"Processed {summary.total} files: {summary.successes} succeeded, {summary.failures} failed."
    )
    if summary.failures:
        raise typer.Exit(1)


@app.command("config")
def show_config(config: Path | None = CONFIG_OPTION) -> None:
    """Print the effective configuration as JSON."""

    console.print_json(dump_config(_load_config(config)))


@app.command()
def serve(
    host: str | None = typer.Option(None, "--host", help="Bind address"),
    port: int | None = typer.Option(None, "--port", help="Bind port"),
    config: Path | None = CONFIG_OPTION,
) -> None:
    import uvicorn

    from .api import create_app

    cfg = _load_config(config)
    try:
        api_app = create_app(config, require_enabled=False)
    except ConfigError as exc:
        console.print(f"[red]Configuration error[/red]: {exc}")
        raise typer.Exit(1) from exc
    uvicorn.run(api_app, host=host or cfg.api.host, port=port or cfg.api.port)


if __name__ == "__main__":
    app()
