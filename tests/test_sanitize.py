import pytest

from statgen.sanitize import (
    BLOCK_TAGS,
    INLINE_TAGS,
    SafeHtml,
    escape_text,
    format_attributes,
    is_safe_url,
    sanitize_fragment,
)


def test_escape_text_covers_all_special_characters() -> None:
    escaped = escape_text("<a href='x'>&\"</a>")
    assert isinstance(escaped, SafeHtml)
    assert escaped == "&lt;a href=&#x27;x&#x27;&gt;&amp;&quot;&lt;/a&gt;"


@pytest.mark.parametrize(
    "url",
    ["https://example.com", "http://x", "mailto:me@example.com", "/relative/path", "#anchor", "page.html"],
)
def test_safe_urls(url: str) -> None:
    assert is_safe_url(url)


@pytest.mark.parametrize(
    "url",
    ["javascript:alert(1)", "JavaScript:alert(1)", "java\tscript:alert(1)", " vbscript:x", "data:text/html,x"],
)
def test_unsafe_urls(url: str) -> None:
    assert not is_safe_url(url)


def test_format_attributes_applies_allow_list() -> None:
    attrs = [("href", "https://a"), ("onclick", "x()"), ("style", "color:red"), ("CLASS", "c"), ("class", "d")]
    assert format_attributes("a", attrs) == ' href="https://a" class="c"'
    assert format_attributes("span", [("href", "https://a")]) == ""


def test_sanitize_fragment_strips_disallowed_tags_and_comments() -> None:
    fragment = "<div><!-- hidden --><iframe src='x'>frame</iframe><p>ok</div>"
    assert sanitize_fragment(fragment) == "<div>frame<p>ok</p></div>"


def test_inline_allow_list_rejects_block_tags() -> None:
    assert sanitize_fragment("<div><b>x</b></div>", INLINE_TAGS) == "<b>x</b>"


def test_void_tags_are_not_closed() -> None:
    assert sanitize_fragment('<p>a<br/><img src="i.png" onerror="x">', BLOCK_TAGS) == '<p>a<br><img src="i.png"></p>'


def test_entities_in_text_are_re_escaped() -> None:
    assert sanitize_fragment("<p>&lt;script&gt;</p>") == "<p>&lt;script&gt;</p>"
