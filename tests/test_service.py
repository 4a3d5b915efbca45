import csv
import json
from pathlib import Path

import pytest

from statgen.config import AppConfig, RuntimeConfig, StyleSettings
from statgen.core import ConversionError, ConversionService
from statgen.errors import InvalidStyleConfig
from statgen.models import StyleConfig, Theme


def build_config(output_dir: Path, **style: object) -> AppConfig:
    runtime = RuntimeConfig()
    runtime.output_dir = output_dir
    runtime.log_file = "log.jsonl"
    runtime.summary_csv = "summary.csv"
    return AppConfig(runtime=runtime, style=StyleSettings(**style))


def read_log(config: AppConfig) -> list[dict]:
    log_path = config.runtime.output_dir / config.runtime.log_file
    return [json.loads(line) for line in log_path.read_text(encoding="utf-8").splitlines()]


def test_convert_file_writes_html(tmp_path: Path) -> None:
    source = tmp_path / "README.md"
    source.write_text("# Project\n\nhello world", encoding="utf-8")
    config = build_config(tmp_path / "dist", theme="dark")
    service = ConversionService(config)
    result = service.convert_file(source)
    assert result.output_path == tmp_path / "dist" / "README.html"
    html = result.output_path.read_text(encoding="utf-8")
    assert "<title>Project</title>" in html
    assert "<p>hello world</p>" in html
    entry = read_log(config)[0]
    assert entry["status"] == "success"
    assert set(entry["timings"]) == {"read_ms", "render_ms", "write_ms"}


def test_convert_text_writes_index(tmp_path: Path) -> None:
    config = build_config(tmp_path / "dist")
    service = ConversionService(config, style=StyleConfig(theme=Theme.LIGHT))
    result = service.convert_text("# Inline", title="Custom")
    assert result.output_path == tmp_path / "dist" / "index.html"
    assert "<title>Custom</title>" in result.output_path.read_text(encoding="utf-8")


def test_missing_file_is_reported(tmp_path: Path) -> None:
    config = build_config(tmp_path / "dist")
    service = ConversionService(config)
    with pytest.raises(ConversionError) as exc:
        service.convert_file(tmp_path / "absent.md")
    assert exc.value.code == "NOT_FOUND"
    assert read_log(config)[0]["error_code"] == "NOT_FOUND"


def test_unsupported_and_undecodable_sources(tmp_path: Path) -> None:
    service = ConversionService(build_config(tmp_path / "dist"))
    text_file = tmp_path / "notes.txt"
    text_file.write_text("x", encoding="utf-8")
    with pytest.raises(ConversionError) as exc:
        service.convert_file(text_file)
    assert exc.value.code == "UNSUPPORTED_SOURCE"
    binary = tmp_path / "bad.md"
    binary.write_bytes(b"# ok\n\xff\xfe\xfa")
    with pytest.raises(ConversionError) as exc:
        service.convert_file(binary)
    assert exc.value.code == "DECODE_ERROR"


def test_render_error_keeps_code_and_writes_nothing(tmp_path: Path) -> None:
    source = tmp_path / "deep.md"
    source.write_text(">" * 80 + " too deep", encoding="utf-8")
    config = build_config(tmp_path / "dist")
    service = ConversionService(config)
    with pytest.raises(ConversionError) as exc:
        service.convert_file(source)
    assert exc.value.code == "PARSE_ERROR"
    assert not (tmp_path / "dist" / "deep.html").exists()


def test_batch_converts_directory_and_counts_failures(tmp_path: Path) -> None:
    docs = tmp_path / "docs"
    (docs / "guide").mkdir(parents=True)
    (docs / "index.md").write_text("# Home", encoding="utf-8")
    (docs / "guide" / "start.md").write_text("| a | b |\n|---|---|\n| 1 |", encoding="utf-8")
    (docs / "broken.md").write_bytes(b"# x\n\xfa\xfb")
    config = build_config(tmp_path / "site")
    service = ConversionService(config)
    result = service.batch_convert([docs], recursive=True, parallelism=2)
    assert result.summary.total == 3
    assert result.summary.successes == 2
    assert result.summary.failures == 1
    assert result.summary.warnings == {"TABLE_ROW_MISMATCH": 1}
    assert (tmp_path / "site" / "index.html").exists()
    assert (tmp_path / "site" / "guide" / "start.html").exists()
    with (tmp_path / "site" / "summary.csv").open(encoding="utf-8", newline="") as handle:
        rows = list(csv.reader(handle))
    assert rows[0] == ["batch_id", "timestamp", "total", "successes", "failures", "warnings"]
    assert rows[1][2:5] == ["3", "2", "1"]


def test_invalid_style_in_config_fails_fast(tmp_path: Path) -> None:
    with pytest.raises(InvalidStyleConfig):
        ConversionService(build_config(tmp_path / "dist", accent="not-a-color"))


def test_write_failure_is_reported_as_conversion_error(tmp_path: Path) -> None:
    source = tmp_path / "page.md"
    source.write_text("# Page", encoding="utf-8")
    config = build_config(tmp_path / "dist")
    blocked = tmp_path / "dist" / "page.html"
    blocked.mkdir(parents=True)
    service = ConversionService(config)
    with pytest.raises(ConversionError) as excinfo:
        service.convert_file(source)
    assert excinfo.value.code == "WRITE_ERROR"
    assert blocked.is_dir()
    assert sorted(p.name for p in blocked.parent.iterdir()) == ["log.jsonl", "page.html"]
    entry = read_log(config)[0]
    assert entry["status"] == "failure"
    assert entry["error_code"] == "WRITE_ERROR"


def test_parallel_batch_counts_write_failures(tmp_path: Path) -> None:
    docs = tmp_path / "docs"
    docs.mkdir()
    (docs / "a.md").write_text("# A", encoding="utf-8")
    (docs / "b.md").write_text("# B", encoding="utf-8")
    (tmp_path / "site" / "b.html").mkdir(parents=True)
    service = ConversionService(build_config(tmp_path / "site"))
    result = service.batch_convert([docs], parallelism=2)
    assert result.summary.total == 2
    assert result.summary.successes == 1
    assert result.summary.failures == 1


def test_batch_reports_sources_that_share_an_output(tmp_path: Path) -> None:
    for folder in ("a", "b"):
        (tmp_path / folder).mkdir()
        (tmp_path / folder / "x.md").write_text(f"# {folder}", encoding="utf-8")
    config = build_config(tmp_path / "site")
    service = ConversionService(config)
    result = service.batch_convert([tmp_path / "a" / "x.md", tmp_path / "b" / "x.md"])
    assert result.summary.total == 2
    assert result.summary.successes == 1
    assert result.summary.failures == 1
    assert "<title>a</title>" in (tmp_path / "site" / "x.html").read_text(encoding="utf-8")
    failures = [entry for entry in read_log(config) if entry["status"] == "failure"]
    assert [entry["error_code"] for entry in failures] == ["OUTPUT_COLLISION"]
    assert failures[0]["source"] == str(tmp_path / "b" / "x.md")
