import pytest

from statgen.blocks import TABLE_ROW_MISMATCH, BlockParser, extract_title, parse
from statgen.errors import ParseError
from statgen.nodes import (
    BlockQuote,
    CodeBlock,
    Heading,
    ListBlock,
    Paragraph,
    RawHtml,
    Table,
    Text,
    ThematicBreak,
    plain_text,
)


def test_heading_and_paragraph() -> None:
    blocks = parse("# Hello World\n\nfirst line\nsecond line\n")
    assert blocks[0] == Heading(level=1, children=(Text("Hello World"),))
    assert blocks[1] == Paragraph((Text("first line\nsecond line"),))


def test_heading_requires_space() -> None:
    blocks = parse("#hashtag")
    assert isinstance(blocks[0], Paragraph)


def test_thematic_break_wins_over_list_item() -> None:
    blocks = parse("- - -\n***")
    assert blocks == [ThematicBreak(), ThematicBreak()]


def test_fenced_code_keeps_content_verbatim() -> None:
    blocks = parse("```python\nprint('<b>')\n# not a heading\n```\nafter")
    assert blocks[0] == CodeBlock(language="python", text="print('<b>')\n# not a heading\n")
    assert blocks[1] == Paragraph((Text("after"),))


def test_closing_fence_must_match_character_and_length() -> None:
    blocks = parse("````\n```\n~~~~\n````")
    assert blocks == [CodeBlock(language=None, text="```\n~~~~\n")]


def test_unterminated_fence_closes_at_end() -> None:
    blocks = parse("~~~\nline one\nline two")
    assert blocks == [CodeBlock(language=None, text="line one\nline two\n")]


def test_nested_list_by_indentation() -> None:
    blocks = parse("- a\n  - b\n  - c\n- d")
    outer = blocks[0]
    assert isinstance(outer, ListBlock)
    assert not outer.ordered
    assert len(outer.items) == 2
    first = outer.items[0]
    assert first[0] == Paragraph((Text("a"),))
    nested = first[1]
    assert isinstance(nested, ListBlock)
    assert [item[0] for item in nested.items] == [Paragraph((Text("b"),)), Paragraph((Text("c"),))]
    assert outer.items[1] == (Paragraph((Text("d"),)),)


def test_ordered_list_keeps_start_number() -> None:
    blocks = parse("3. three\n4. four")
    assert blocks[0].ordered
    assert blocks[0].start == 3
    assert len(blocks[0].items) == 2


def test_blank_line_between_items_makes_list_loose() -> None:
    tight = parse("- a\n- b")[0]
    loose = parse("- a\n\n- b")[0]
    assert tight.tight
    assert not loose.tight


def test_list_ends_at_unindented_paragraph() -> None:
    blocks = parse("- item\n\nparagraph")
    assert isinstance(blocks[0], ListBlock)
    assert blocks[1] == Paragraph((Text("paragraph"),))


def test_list_item_wins_over_table_row() -> None:
    blocks = parse("- a | b\n- c | d")
    assert len(blocks) == 1
    assert isinstance(blocks[0], ListBlock)


def test_table_with_alignment() -> None:
    blocks = parse("| Name | Qty |\n|:-----|----:|\n| pen | 2 |")
    table = blocks[0]
    assert isinstance(table, Table)
    assert table.alignments == ("left", "right")
    assert table.header == ((Text("Name"),), (Text("Qty"),))
    assert table.rows == (((Text("pen"),), (Text("2"),)),)


def test_mismatched_table_row_becomes_paragraph() -> None:
    parser = BlockParser()
    blocks = parser.parse("| a | b |\n|---|---|\n| 1 | 2 |\n| 3 |")
    assert isinstance(blocks[0], Table)
    assert len(blocks[0].rows) == 1
    assert blocks[1] == Paragraph((Text("| 3 |"),))
    assert parser.warnings == [TABLE_ROW_MISMATCH]


def test_rows_after_a_mismatched_row_stay_in_the_table() -> None:
    parser = BlockParser()
    blocks = parser.parse("| a | b |\n|---|---|\n| 1 | 2 |\n| x | y | z |\n| 3 | 4 |\n| 5 | 6 |")
    assert len(blocks) == 2
    table = blocks[0]
    assert isinstance(table, Table)
    assert [[plain_text(cell) for cell in row] for row in table.rows] == [["1", "2"], ["3", "4"], ["5", "6"]]
    assert blocks[1] == Paragraph((Text("| x | y | z |"),))
    assert parser.warnings == [TABLE_ROW_MISMATCH]


def test_blockquote_with_lazy_continuation() -> None:
    blocks = parse("> quoted\nlazy line\n\nafter")
    quote = blocks[0]
    assert isinstance(quote, BlockQuote)
    assert quote.children == (Paragraph((Text("quoted\nlazy line"),)),)
    assert blocks[1] == Paragraph((Text("after"),))


def test_raw_html_block_requires_allowed_tag() -> None:
    blocks = parse('<div class="note">\nhello\n</div>\n\n<script>x</script>')
    assert blocks[0] == RawHtml('<div class="note">\nhello\n</div>')
    assert isinstance(blocks[1], Paragraph)


def test_excessive_nesting_raises_parse_error() -> None:
    with pytest.raises(ParseError) as exc:
        parse(">" * 80 + " deep")
    assert exc.value.code == "PARSE_ERROR"


def test_extract_title_uses_first_level_one_heading() -> None:
    blocks = parse("## Sub\n\n# *Main* Title\n\n# Other")
    assert extract_title(blocks) == "Main Title"
    assert extract_title(parse("no headings")) is None
