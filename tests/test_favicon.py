import base64

import pytest

from statgen.errors import InvalidFaviconInput
from statgen.favicon import encode, is_single_grapheme, parse_favicon, split_graphemes
from statgen.models import FaviconSpec


def test_encode_single_emoji() -> None:
    uri = encode(FaviconSpec("\U0001f680"))
    assert uri is not None
    assert uri.startswith("data:image/svg+xml;base64,")
    svg = base64.b64decode(uri.split(",", 1)[1]).decode("utf-8")
    assert "\U0001f680" in svg
    assert svg.startswith("<svg")


def test_encode_rejects_multiple_characters() -> None:
    assert encode("ab") is None
    assert encode("") is None
    assert encode(None) is None


def test_encode_escapes_markup_characters() -> None:
    svg = base64.b64decode(encode("<").split(",", 1)[1]).decode("utf-8")
    assert ">&lt;</text>" in svg


@pytest.mark.parametrize(
    "value",
    [
        "\U0001f44d\U0001f3fd",
        "\U0001f468\u200d\U0001f469\u200d\U0001f467",
        "\U0001f1fa\U0001f1f8",
        "\u2764\ufe0f",
        "e\u0301",
        "★",
    ],
)
def test_clusters_count_as_one_grapheme(value: str) -> None:
    assert is_single_grapheme(value)


def test_two_flags_are_two_graphemes() -> None:
    assert len(split_graphemes("\U0001f1fa\U0001f1f8\U0001f1e9\U0001f1ea")) == 2


def test_whitespace_and_controls_are_rejected() -> None:
    assert not is_single_grapheme(" ")
    assert not is_single_grapheme("\n")
    assert not is_single_grapheme("\u200d")


def test_lone_combining_mark_is_rejected() -> None:
    assert not is_single_grapheme("\u0301")
    assert not is_single_grapheme("\u20dd")
    assert encode("\u0301") is None
    with pytest.raises(InvalidFaviconInput):
        parse_favicon("\u0301")
    assert is_single_grapheme("e\u0301")


def test_parse_favicon() -> None:
    assert parse_favicon(None) is None
    assert parse_favicon("") is None
    assert parse_favicon("\U0001f680") == FaviconSpec("\U0001f680")
    with pytest.raises(InvalidFaviconInput):
        parse_favicon("rocket")
