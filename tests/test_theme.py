import pytest

from statgen.errors import InvalidStyleConfig
from statgen.models import StyleConfig, Theme
from statgen.theme import classify_font, compose, font_stack


def test_auto_theme_uses_media_queries_for_both_schemes() -> None:
    css = compose(StyleConfig())
    assert "@media (prefers-color-scheme: light)" in css
    assert "@media (prefers-color-scheme: dark)" in css
    assert css.count("--link-color: #3498db;") == 3
    assert "<script" not in css


def test_auto_theme_uses_per_scheme_accents() -> None:
    css = compose(StyleConfig(accent="red", accent_light="navy", accent_dark="gold"))
    light_block, dark_block = css.split("@media (prefers-color-scheme: dark)")
    assert "--link-color: navy;" in light_block
    assert "--link-color: gold;" in dark_block
    assert "red" not in css.split("body {")[0]


def test_dark_theme_has_single_palette() -> None:
    css = compose(StyleConfig(theme=Theme.DARK, accent="#ff0000"))
    assert "prefers-color-scheme" not in css
    assert "--bg-color: #1a1a1a;" in css
    assert "--link-color: #ff0000;" in css


def test_light_theme_ignores_dark_accent() -> None:
    css = compose(StyleConfig(theme="light", accent_dark="gold"))
    assert "--bg-color: #f4f4f4;" in css
    assert "gold" not in css


def test_font_size_and_family() -> None:
    css = compose(StyleConfig(font="Georgia", font_size_px=18))
    assert 'font-family: Georgia, "Times New Roman", Times, serif;' in css
    assert "font-size: 18px;" in css


def test_compose_is_deterministic() -> None:
    config = StyleConfig(font="Fira Code", theme=Theme.AUTO, accent="teal")
    assert compose(config) == compose(config)


def test_unknown_font_falls_back_to_sans_serif() -> None:
    assert classify_font("Comic Neue") == "sans-serif"
    assert classify_font(None) == "sans-serif"
    assert font_stack("Comic Neue").startswith('"Comic Neue", -apple-system')


def test_monospace_font_stack() -> None:
    assert font_stack("Menlo") == 'Menlo, "SF Mono", Consolas, "Courier New", monospace'


@pytest.mark.parametrize(
    "kwargs",
    [
        {"accent": "#12345"},
        {"accent": "notacolor"},
        {"accent_dark": "rgb(1,2,3)"},
        {"theme": "sepia"},
        {"font_size_px": 0},
        {"font_size_px": True},
        {"font": "Evil; } body {"},
        {"accent": "#fff\n"},
        {"accent_light": "red\n"},
        {"font": "Arial\n"},
    ],
)
def test_invalid_style_config(kwargs: dict) -> None:
    with pytest.raises(InvalidStyleConfig):
        StyleConfig(**kwargs)
