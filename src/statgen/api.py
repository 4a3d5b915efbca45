from __future__ import annotations

from pathlib import Path

from fastapi import FastAPI, HTTPException

from . import __version__
from .config import AppConfig, build_style, load_config, merge_style
from .document import render_document
from .errors import RenderError
from .schemas import HealthStatus, RenderRequest, RenderResponse
from .settings import get_settings


def _prepare_config(config_path: Path | None) -> AppConfig:
    settings = get_settings()
    config = load_config(config_path or settings.config_path)
    if settings.enable_local_api is not None:
        config.runtime.enable_local_api = settings.enable_local_api
    return config


def create_app(config_path: Path | None = None, *, require_enabled: bool = True) -> FastAPI:
    config = _prepare_config(config_path)
    if require_enabled and not config.runtime.enable_local_api:
        raise RuntimeError("Local API is disabled. Enable it via runtime.enable_local_api")
    app = FastAPI(title="StatGen", version=__version__)
    app.state.config = config

    @app.get("/health", response_model=HealthStatus)
    async def health() -> HealthStatus:
        return HealthStatus(status="ok", version=__version__)

    @app.post("/render", response_model=RenderResponse)
    def render(request: RenderRequest) -> RenderResponse:
        max_bytes = config.runtime.max_file_size_mb * 1024 * 1024
        if len(request.markdown.encode("utf-8")) > max_bytes:
            raise HTTPException(status_code=413, detail="SIZE_LIMIT")
        try:
            style, favicon = build_style(merge_style(config.style, request.style_overrides()))
            document = render_document(request.markdown, style, favicon, request.title)
        except RenderError as exc:
            raise HTTPException(status_code=400, detail=exc.code) from exc
        return RenderResponse(html=document.html, warnings=list(document.warnings))

    return app


__all__ = ["create_app"]
