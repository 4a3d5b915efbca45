from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field


class HealthStatus(BaseModel):
    status: str
    version: str


class RenderRequest(BaseModel):
    markdown: str
    title: str | None = None
    font: str | None = None
    font_size: int | str | None = None
    theme: Literal["light", "dark", "auto"] | None = None
    accent: str | None = None
    accent_light: str | None = None
    accent_dark: str | None = None
    favicon: str | None = None

    def style_overrides(self) -> dict[str, Any]:
        return self.model_dump(exclude={"markdown", "title"}, exclude_none=True)


class RenderResponse(BaseModel):
    html: str
    warnings: list[str] = Field(default_factory=list)


__all__ = ["HealthStatus", "RenderRequest", "RenderResponse"]
