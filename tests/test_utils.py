from pathlib import Path

from statgen.utils import atomic_write, generate_run_id, iter_markdown_files, size_within_limit, unescape_inline


def test_unescape_inline_newlines_and_headings() -> None:
    assert unescape_inline("#Title\\n\\nSome text") == "# Title\n\nSome text"
    assert unescape_inline("a\\tb") == "a\tb"
    assert unescape_inline("## Already fine") == "## Already fine"


def test_atomic_write_creates_parents(tmp_path: Path) -> None:
    target = tmp_path / "nested" / "out.html"
    atomic_write(target, "<p>x</p>")
    assert target.read_text(encoding="utf-8") == "<p>x</p>"
    assert list(target.parent.iterdir()) == [target]


def test_iter_markdown_files(tmp_path: Path) -> None:
    (tmp_path / "a.md").write_text("a", encoding="utf-8")
    (tmp_path / "notes.txt").write_text("n", encoding="utf-8")
    sub = tmp_path / "sub"
    sub.mkdir()
    (sub / "b.markdown").write_text("b", encoding="utf-8")
    flat = list(iter_markdown_files([tmp_path]))
    assert flat == [(tmp_path / "a.md", Path("a.md"))]
    deep = list(iter_markdown_files([tmp_path], recursive=True))
    assert (sub / "b.markdown", Path("sub/b.markdown")) in deep
    single = list(iter_markdown_files([tmp_path / "notes.txt"]))
    assert single == [(tmp_path / "notes.txt", Path("notes.txt"))]


def test_size_within_limit(tmp_path: Path) -> None:
    path = tmp_path / "a.md"
    path.write_text("x" * 10, encoding="utf-8")
    assert size_within_limit(path, 1)


def test_generate_run_id_unique() -> None:
    first = generate_run_id("test")
    second = generate_run_id("test")
    assert first != second
    assert first.startswith("test-")
