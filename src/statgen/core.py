from __future__ import annotations

import concurrent.futures
import csv
import time
from pathlib import Path
from typing import Sequence

from .config import AppConfig, build_style
from .detection import DetectionError, detect_source
from .document import render_document
from .errors import RenderError
from .logging import BatchSummary, RunLogEntry, RunLogger, StageTimings, write_summary_csv
from .models import BatchConversionResult, ConversionResult, FaviconSpec, StyleConfig
from .utils import atomic_write, generate_run_id, iter_markdown_files, size_within_limit

INLINE_OUTPUT = "index.html"
INLINE_SOURCE = "<inline>"


class ConversionError(RuntimeError):
    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code


class ConversionService:
    """Render Markdown sources into HTML pages under ``runtime.output_dir``.

    Style comes from the configuration unless an already validated
    ``StyleConfig`` is passed in. The service holds no per-document state,
    so ``batch_convert`` may run conversions on several threads.
    """

    def __init__(
        self,
        config: AppConfig,
        *,
        style: StyleConfig | None = None,
        favicon: FaviconSpec | None = None,
    ) -> None:
        self._config = config
        if style is None:
            style, favicon = build_style(config.style)
        self._style = style
        self._favicon = favicon
        self._logger = RunLogger(config.runtime.output_dir / config.runtime.log_file)

    @property
    def style(self) -> StyleConfig:
        return self._style

    def convert_text(
        self,
        markdown: str,
        *,
        title: str | None = None,
        output_name: str = INLINE_OUTPUT,
        run_id: str | None = None,
    ) -> ConversionResult:
        run_id = run_id or generate_run_id()
        output_path = self._config.runtime.output_dir / output_name
        start = time.perf_counter()
        return self._render_and_write(
            markdown,
            run_id=run_id,
            source=INLINE_SOURCE,
            output_path=output_path,
            title=title,
            read_ms=0.0,
            size_bytes=len(markdown.encode("utf-8")),
            start=start,
        )

    def convert_file(
        self,
        path: Path,
        *,
        output_path: Path | None = None,
        title: str | None = None,
        run_id: str | None = None,
    ) -> ConversionResult:
        run_id = run_id or generate_run_id()
        output_path = output_path or self._config.runtime.output_dir / f"{path.stem}.html"
        start = time.perf_counter()
        try:
            markdown = self._read_source(path)
        except ConversionError as exc:
            self._log_failure(run_id, str(path), output_path, exc)
            raise
        read_ms = (time.perf_counter() - start) * 1000
        return self._render_and_write(
            markdown,
            run_id=run_id,
            source=str(path),
            output_path=output_path,
            title=title,
            read_ms=read_ms,
            size_bytes=path.stat().st_size,
            start=start,
        )

    def _read_source(self, path: Path) -> str:
        if not path.is_file():
            raise ConversionError("NOT_FOUND", f"Source file does not exist: {path}")
        try:
            detection = detect_source(path)
        except DetectionError as exc:
            raise ConversionError("UNSUPPORTED_SOURCE", str(exc)) from exc
        if not size_within_limit(path, self._config.runtime.max_file_size_mb):
            raise ConversionError("SIZE_LIMIT", f"File exceeds configured limit: {path.name}")
        try:
            return path.read_text(encoding=detection.encoding)
        except UnicodeDecodeError as exc:
            raise ConversionError("DECODE_ERROR", f"{path.name} is not valid UTF-8: {exc.reason}") from exc

    def _render_and_write(
        self,
        markdown: str,
        *,
        run_id: str,
        source: str,
        output_path: Path,
        title: str | None,
        read_ms: float,
        size_bytes: int,
        start: float,
    ) -> ConversionResult:
        render_start = time.perf_counter()
        try:
            document = render_document(markdown, self._style, self._favicon, title)
        except RenderError as exc:
            error = ConversionError(exc.code, str(exc))
            self._log_failure(run_id, source, output_path, error)
            raise error from exc
        render_ms = (time.perf_counter() - render_start) * 1000

        write_start = time.perf_counter()
        try:
            atomic_write(output_path, document.html)
        except OSError as exc:
            error = ConversionError("WRITE_ERROR", f"Could not write {output_path}: {exc.strerror or exc}")
            self._log_failure(run_id, source, output_path, error)
            raise error from exc
        write_ms = (time.perf_counter() - write_start) * 1000

        warnings = list(document.warnings)
        self._logger.append(
            RunLogEntry(
                run_id=run_id,
                source=source,
                status="success",
                warnings=warnings,
                error_code=None,
                timings=StageTimings(read_ms=read_ms, render_ms=render_ms, write_ms=write_ms),
                output_path=str(output_path),
                size_bytes=size_bytes,
            )
        )
        elapsed = time.perf_counter() - start
        name = Path(source).name if source != INLINE_SOURCE else "inline markdown"
        return ConversionResult(
            run_id=run_id,
            source=source,
            output_path=output_path,
            warnings=warnings,
            summary=f"Converted {name} -> {output_path} in {elapsed:.2f}s",
        )

    def _log_failure(self, run_id: str, source: str, output_path: Path, exc: ConversionError) -> None:
        path = Path(source)
        size_bytes = path.stat().st_size if source != INLINE_SOURCE and path.is_file() else 0
        self._logger.append(
            RunLogEntry(
                run_id=run_id,
                source=source,
                status="failure",
                warnings=[],
                error_code=exc.code,
                timings=StageTimings(0, 0, 0),
                output_path=str(output_path),
                size_bytes=size_bytes,
            )
        )

    def batch_convert(
        self,
        inputs: Sequence[Path],
        *,
        parallelism: int | None = None,
        recursive: bool = False,
    ) -> BatchConversionResult:
        jobs: list[tuple[Path, Path]] = []
        claimed: dict[Path, Path] = {}
        summary = BatchSummary()
        for path, relative in iter_markdown_files(inputs, recursive=recursive):
            output_path = self._config.runtime.output_dir / relative.with_suffix(".html")
            if output_path in claimed:
                # Two sources with the same relative name; the first one keeps the output.
                error = ConversionError(
                    "OUTPUT_COLLISION", f"{path} and {claimed[output_path]} both map to {output_path}"
                )
                self._log_failure(generate_run_id(), str(path), output_path, error)
                summary.failures += 1
                continue
            claimed[output_path] = path
            jobs.append((path, output_path))
        collisions = summary.failures
        parallelism = max(1, parallelism or self._config.runtime.parallelism)
        if parallelism == 1:
            results = self._run_sequential_batch(jobs, summary)
        else:
            results = self._run_parallel_batch(jobs, summary, parallelism)

        summary.total = len(jobs) + collisions
        self._accumulate_warnings(results, summary)
        if summary.total:
            self._write_batch_summary(summary)
        return BatchConversionResult(runs=results, summary=summary)

    def _run_sequential_batch(
        self, jobs: Sequence[tuple[Path, Path]], summary: BatchSummary
    ) -> list[ConversionResult]:
        results: list[ConversionResult] = []
        for path, output_path in jobs:
            try:
                result = self.convert_file(path, output_path=output_path)
            except ConversionError:
                summary.failures += 1
                continue
            results.append(result)
            summary.successes += 1
        return results

    def _run_parallel_batch(
        self, jobs: Sequence[tuple[Path, Path]], summary: BatchSummary, parallelism: int
    ) -> list[ConversionResult]:
        results: list[ConversionResult] = []
        with concurrent.futures.ThreadPoolExecutor(max_workers=parallelism) as executor:
            futures = [
                executor.submit(self.convert_file, path, output_path=output_path)
                for path, output_path in jobs
            ]
            for future in futures:
                try:
                    result = future.result()
                except ConversionError:
                    summary.failures += 1
                    continue
                results.append(result)
                summary.successes += 1
        return results

    def _accumulate_warnings(self, results: Sequence[ConversionResult], summary: BatchSummary) -> None:
        for result in results:
            for warning in result.warnings:
                summary.warnings[warning] = summary.warnings.get(warning, 0) + 1

    def _write_batch_summary(self, summary: BatchSummary) -> None:
        summary_path = self._config.runtime.output_dir / self._config.runtime.summary_csv
        default_header = [
            "batch_id",
            "timestamp",
            "total",
            "successes",
            "failures",
            "warnings",
        ]
        header = default_header
        rows: list[list[str]] = []
        if summary_path.exists():
            with summary_path.open("r", encoding="utf-8", newline="") as handle:
                reader = list(csv.reader(handle))
            if reader:
                header = reader[0]
                rows = reader[1:]
        rows.append(summary.as_row(generate_run_id("batch")))
        write_summary_csv(summary_path, header, rows)


__all__ = [
    "INLINE_OUTPUT",
    "ConversionService",
    "ConversionResult",
    "ConversionError",
    "BatchConversionResult",
]
