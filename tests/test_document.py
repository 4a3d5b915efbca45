import pytest

from statgen.document import CUSTOM_FONT, DEFAULT_TITLE, FAVICON_IGNORED, assemble, render_document
from statgen.errors import InvalidStyleConfig, ParseError
from statgen.models import FaviconSpec, StyleConfig
from statgen.sanitize import SafeHtml


def test_render_document_produces_full_page() -> None:
    result = render_document("# Hello World\n\nSome *text*.", StyleConfig())
    html = result.html
    assert html.startswith("<!DOCTYPE html>")
    assert "<title>Hello World</title>" in html
    assert "<h1>Hello World</h1>" in html
    assert "<p>Some <em>text</em>.</p>" in html
    assert '<div class="container">' in html
    assert result.warnings == ()


def test_title_defaults_and_is_escaped() -> None:
    assert f"<title>{DEFAULT_TITLE}</title>" in render_document("no heading", StyleConfig()).html
    html = render_document("# x", StyleConfig(), title="<b>&</b>").html
    assert "<title>&lt;b&gt;&amp;&lt;/b&gt;</title>" in html


def test_favicon_link_is_embedded() -> None:
    html = render_document("hi", StyleConfig(), FaviconSpec("\U0001f680")).html
    assert '<link rel="icon" href="data:image/svg+xml;base64,' in html


def test_invalid_favicon_is_ignored_with_warning() -> None:
    result = render_document("hi", StyleConfig(), FaviconSpec("ab"))
    assert 'rel="icon"' not in result.html
    assert FAVICON_IGNORED in result.warnings


def test_custom_font_warning() -> None:
    result = render_document("hi", StyleConfig(font="Georgia"))
    assert result.warnings == (CUSTOM_FONT,)


def test_script_never_reaches_output() -> None:
    markdown = "<script>alert(1)</script>\n\n- <script>x</script>\n\n> <div><script>y</script></div>"
    html = render_document(markdown, StyleConfig()).html
    assert "<script" not in html


def test_rejects_wrong_input_types() -> None:
    with pytest.raises(ParseError):
        render_document(b"# bytes", StyleConfig())
    with pytest.raises(InvalidStyleConfig):
        render_document("# text", {"theme": "dark"})


def test_assemble_requires_safe_html() -> None:
    with pytest.raises(TypeError):
        assemble("<p>raw</p>", SafeHtml(""), None, SafeHtml("t"))
    with pytest.raises(ValueError):
        assemble(SafeHtml(""), SafeHtml(""), "javascript:alert(1)", SafeHtml("t"))


def test_table_with_extra_cell_degrades_to_paragraph() -> None:
    result = render_document("| a | b |\n|---|---|\n| 1 | 2 | 3 |", StyleConfig())
    assert "<p>| 1 | 2 | 3 |</p>" in result.html
    assert result.warnings == ("TABLE_ROW_MISMATCH",)
