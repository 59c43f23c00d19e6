from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Self, TextIO

from rich.console import Console
from rich.markup import escape
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskID, TaskProgressColumn, TextColumn

if TYPE_CHECKING:
    from types import TracebackType

    from repo_to_text.config import FileCandidate, RunSummary


class ProgressReporter:
    """Thread-safe progress bar advanced once per processed file.

    The counter and the bar description are updated together under the
    lock, so each file gets a distinct position. Leaving the context stops
    the bar on success and on failure.
    """

    def __init__(self, total: int, stream: TextIO | None = None, *, enabled: bool = True) -> None:
        self.total = total
        self.enabled = enabled
        self.console = Console(file=stream) if stream is not None else Console()
        self._count = 0
        self._lock = threading.Lock()
        self._task: TaskID | None = None
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(bar_width=20),
            TaskProgressColumn(),
            console=self.console,
        )

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.stop()

    def start(self, message: str) -> None:
        if not self.enabled:
            return
        self.console.print(message, markup=False, highlight=False, soft_wrap=True)
        self._task = self._progress.add_task("Processing", total=self.total)
        self._progress.start()

    def advance(self, candidate: FileCandidate) -> None:
        with self._lock:
            self._count += 1
            if self._task is not None:
                self._progress.update(
                    self._task,
                    advance=1,
                    description=f"Processing file {self._count} of {self.total}: {escape(candidate.rel)}",
                )

    def stop(self) -> None:
        if self._task is not None:
            self._progress.stop()
            self._task = None

    def finish(self, summary: RunSummary) -> None:
        self.stop()
        if self.enabled:
            self.console.print(render_summary(summary), markup=False, highlight=False, soft_wrap=True)


def render_summary(summary: RunSummary) -> str:
    """Format the end-of-run message shown to the operator."""
    text = f"Finished processing {summary.files_processed} files. Output saved to {summary.output}"
    if summary.large_files_excluded:
        text += f" ({summary.large_files_excluded} large files excluded)"
    return text
