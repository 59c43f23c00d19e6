from __future__ import annotations

import sys
from typing import TYPE_CHECKING

from rich.console import Console
from rich.prompt import Confirm

from repo_to_text.config import LARGE_FILE_THRESHOLD, FileCandidate
from repo_to_text.logging import logger

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    Decider = Callable[[FileCandidate], bool]


def find_large_files(
    candidates: Sequence[FileCandidate],
    threshold: int = LARGE_FILE_THRESHOLD,
) -> list[FileCandidate]:
    """Return the candidates strictly larger than `threshold` bytes."""
    return [c for c in candidates if c.size > threshold]


def include_all(candidate: FileCandidate) -> bool:  # noqa: ARG001
    """Non-interactive policy: keep every large file."""
    return True


def make_confirm_decider(console: Console | None = None) -> Decider:
    """Build a decider that asks the operator about each large file.

    The default answer is "yes". When input ends (closed stdin, piped run)
    the file is kept.

    Args:
        console (Console | None): the rich console to prompt on

    Returns:
        Decider: a function answering whether a large candidate is kept
    """
    console = console or Console()

    def decide(candidate: FileCandidate) -> bool:
        try:
            return Confirm.ask(
                f"Include [bold]{candidate.rel}[/bold] ({candidate.size_mb:.2f}MB)?",
                default=True,
                console=console,
            )
        except EOFError:
            return True

    return decide


def choose_decider(*, assume_yes: bool, console: Console | None = None) -> Decider:
    """Pick the interactive decider only when a terminal is attached."""
    if assume_yes or not sys.stdin.isatty():
        return include_all
    return make_confirm_decider(console)


def apply_large_file_gate(
    candidates: Sequence[FileCandidate],
    decide: Decider = include_all,
    threshold: int = LARGE_FILE_THRESHOLD,
) -> tuple[list[FileCandidate], list[FileCandidate]]:
    """Offer selective exclusion of oversized candidates.

    Runs synchronously, once, before any file is processed. Candidates at or
    below the threshold always pass; `decide` is consulted for the others in
    candidate order.

    Args:
        candidates (Sequence[FileCandidate]): the traversal result
        decide (Decider): inclusion decision for one large candidate
        threshold (int): size in bytes above which a file is "large"

    Returns:
        tuple[list[FileCandidate], list[FileCandidate]]: the kept candidates
            (original order) and the excluded ones
    """
    large = find_large_files(candidates, threshold)
    if not large:
        return list(candidates), []

    logger.info("large_files_found", count=len(large), threshold=threshold)
    rejected = {c.path for c in large if not decide(c)}
    kept = [c for c in candidates if c.path not in rejected]
    excluded = [c for c in candidates if c.path in rejected]
    for c in excluded:
        logger.info("large_file_excluded", path=c.rel, size=c.size)
    return kept, excluded
