from __future__ import annotations

import io
import re
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import TYPE_CHECKING, Self, TextIO

from repo_to_text.config import (
    LARGE_FILE_THRESHOLD,
    OUTPUT_FILE,
    RECORD_BANNER,
    RECORD_FOOTER,
    RUN_SEPARATOR,
    RUN_TITLE,
    FileCandidate,
    IgnoreRules,
    ProcessedRecord,
    RunSummary,
)
from repo_to_text.exceptions import WriteError
from repo_to_text.file_manipulation import now_iso, read_text_lossy, walk_candidates
from repo_to_text.large_files import apply_large_file_gate, include_all
from repo_to_text.logging import logger
from repo_to_text.redaction import redact
from repo_to_text.report import ProgressReporter

if TYPE_CHECKING:
    from pathlib import Path
    from types import TracebackType

    from repo_to_text.large_files import Decider

_RECORD_RE = re.compile(
    rf"^{RECORD_BANNER}\n--- File: (?P<path>.*?) ---\n{RECORD_BANNER}\n\n"
    rf"(?P<content>.*?\n)\n{RECORD_FOOTER}\n\n{RECORD_BANNER}\n",
    re.DOTALL | re.MULTILINE,
)


def format_run_header(generated_at: str) -> str:
    """Build the header written once at the top of the artifact."""
    return f"{RUN_TITLE}\nGenerated on: {generated_at}\n{RUN_SEPARATOR}\n\n"


def format_record(record: ProcessedRecord) -> str:
    """Frame one file's redacted content as a self-delimited record.

    Exactly one blank line separates the content from the footer: a
    newline is added first when the content does not already end with one.

    Args:
        record (ProcessedRecord): the redacted file

    Returns:
        str: the record text, ending with the closing banner and a newline
    """
    out = io.StringIO()
    out.write(f"{RECORD_BANNER}\n")
    out.write(f"--- File: {record.rel} ---\n")
    out.write(f"{RECORD_BANNER}\n")
    out.write("\n")
    out.write(record.content)
    if not record.content.endswith("\n"):
        out.write("\n")
    out.write("\n")
    out.write(f"{RECORD_FOOTER}\n")
    out.write("\n")
    out.write(f"{RECORD_BANNER}\n")
    return out.getvalue()


def parse_records(text: str) -> list[tuple[str, str]]:
    """Split an artifact back into (path, content) pairs.

    The trailing newline of each content block is not recoverable and is
    dropped.

    Args:
        text (str): the artifact text

    Returns:
        list[tuple[str, str]]: one pair per record, in artifact order
    """
    return [(m["path"], m["content"][:-1]) for m in _RECORD_RE.finditer(text)]


def process_file(candidate: FileCandidate) -> ProcessedRecord:
    """Read and redact one candidate.

    Raises:
        ReadError: if the file cannot be read; undecodable bytes are replaced instead
    """
    return ProcessedRecord(rel=candidate.rel, content=redact(read_text_lossy(candidate.path)))


class OutputSink:
    """The output artifact, shared by all workers behind a lock.

    Opening truncates any previous artifact. Each `append` is a single write
    performed while holding the lock.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._lock = threading.Lock()
        self._records = 0
        try:
            self._handle: TextIO = path.open("w", encoding="utf-8", newline="")
        except OSError as e:
            raise WriteError(path=path, reason=e.strerror or str(e)) from e

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    @property
    def records(self) -> int:
        with self._lock:
            return self._records

    def write_header(self, generated_at: str) -> None:
        self._write(format_run_header(generated_at))

    def append(self, record: ProcessedRecord) -> None:
        text = format_record(record)
        with self._lock:
            self._write(text)
            self._records += 1

    def close(self) -> None:
        try:
            self._handle.close()
        except OSError as e:
            raise WriteError(path=self.path, reason=e.strerror or str(e)) from e

    def _write(self, text: str) -> None:
        try:
            self._handle.write(text)
        except OSError as e:
            raise WriteError(path=self.path, reason=e.strerror or str(e)) from e
        except UnicodeError as e:
            raise WriteError(path=self.path, reason=str(e)) from e


def _process_and_append(candidate: FileCandidate, sink: OutputSink, reporter: ProgressReporter) -> None:
    reporter.advance(candidate)
    sink.append(process_file(candidate))


def run(
    root: Path,
    rules: IgnoreRules,
    *,
    output: Path | None = None,
    decide: Decider = include_all,
    workers: int | None = None,
    stream: TextIO | None = None,
    show_progress: bool = True,
    threshold: int = LARGE_FILE_THRESHOLD,
) -> RunSummary:
    """Flatten the eligible files under `root` into a single artifact.

    Steps, in order: enumerate candidates, apply the large-file gate, write
    the run header, then process files on a thread pool. Records are
    appended in completion order. The first failing file cancels the
    pending work and its error propagates; the artifact is then partial.

    Args:
        root (Path): the traversal root
        rules (IgnoreRules): the run's rules
        output (Path | None): the artifact path, `root/repo_content.txt` by default
        decide (Decider): inclusion decision for each large file
        workers (int | None): thread pool size, the executor default when None
        stream (TextIO | None): where progress lines go, stdout by default
        show_progress (bool): whether to print progress lines
        threshold (int): large-file size threshold in bytes

    Raises:
        TraversalError: if a directory cannot be listed
        ReadError: if a candidate cannot be read
        WriteError: if the artifact cannot be written

    Returns:
        RunSummary: counts for the finished run
    """
    started = time.monotonic()
    root = root.resolve()
    output = (output or root / OUTPUT_FILE).resolve()

    candidates = walk_candidates(root, rules, exclude=[output])
    kept, excluded = apply_large_file_gate(candidates, decide, threshold)

    reporter = ProgressReporter(len(kept), stream, enabled=show_progress)
    reporter.start(f"Processing {len(kept)} files...")

    with reporter, OutputSink(output) as sink:
        sink.write_header(now_iso())
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="repo_to_text") as pool:
            futures = [pool.submit(_process_and_append, c, sink, reporter) for c in kept]
            try:
                for fut in as_completed(futures):
                    fut.result()
            except BaseException:
                pool.shutdown(wait=True, cancel_futures=True)
                logger.exception("run_aborted", output=str(output), written=sink.records)
                raise
        written = sink.records

    summary = RunSummary(
        output=output,
        files_processed=written,
        large_files_excluded=len(excluded),
        elapsed_seconds=time.monotonic() - started,
    )
    reporter.finish(summary)
    logger.info("run_finished", **summary.model_dump(mode="json"))
    return summary
