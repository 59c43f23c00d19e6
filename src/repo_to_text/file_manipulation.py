from __future__ import annotations

import os
from datetime import UTC, datetime
from pathlib import Path, PurePath
from typing import TYPE_CHECKING

from repo_to_text.config import (
    BINARY_EXTENSIONS,
    DEFAULT_IGNORED_DIRS,
    DEFAULT_IGNORED_EXTENSIONS,
    SIDECAR_PREFIX,
    VERSIONED_SHARED_OBJECT,
    FileCandidate,
    IgnoreRules,
)
from repo_to_text.exceptions import ReadError, TraversalError
from repo_to_text.logging import logger

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence


def relpath(path: Path, root: Path) -> str:
    """Send the relative path of path from root.

    Args:
        path (Path): the path to "relativise"
        root (Path): the root to relativise from

    Returns:
        str: the relative path from root to path, with POSIX separators.
            If path is not under root, returns the original path as a string.
            Bytes that are not valid UTF-8 are shown as U+FFFD.
    """
    try:
        rel = path.relative_to(root).as_posix()
    except ValueError:
        rel = str(path)
    return os.fsencode(rel).decode("utf-8", errors="replace")


def now_iso() -> str:
    """Return the current date and time in ISO 8601 format with timezone.

    Returns:
        str: the current date and time in ISO 8601 format with timezone
    """
    return datetime.now(UTC).astimezone().isoformat(timespec="seconds")


def normalize_entries(entries: Iterable[str] | None) -> list[str]:
    """Normalize user supplied ignore/include entries.

    Entries may be comma separated, padded with whitespace or written with
    leading dots (".json"); all of these collapse to the bare name.

    Args:
        entries (Iterable[str] | None): raw entries from the CLI, config file or a suggestion source

    Returns:
        list[str]: the cleaned entries in input order, without empties or duplicates
    """
    out: list[str] = []
    for entry in entries or ():
        for part in (entry or "").split(","):
            cleaned = part.strip().lstrip(".")
            if cleaned and cleaned not in out:
                out.append(cleaned)
    return out


def build_ignore_rules(
    ignore: Iterable[str] | None = None,
    include: Iterable[str] | None = None,
) -> IgnoreRules:
    """Merge the built-in denylists with user additions and overrides.

    Every `ignore` entry is treated both as a directory name and as an
    extension. Every `include` entry is removed from the directory denylist
    and lands in the extension allow-set, which wins over any denylist.

    Args:
        ignore (Iterable[str] | None): extra directory names and/or extensions to exclude
        include (Iterable[str] | None): extensions to force-include

    Returns:
        IgnoreRules: the immutable rules for this run
    """
    extra = normalize_entries(ignore)
    allowed = {e.lower() for e in normalize_entries(include)}

    dirs = set(DEFAULT_IGNORED_DIRS) | set(extra)
    exts = set(DEFAULT_IGNORED_EXTENSIONS) | {e.lower() for e in extra}

    for name in normalize_entries(include):
        dirs.discard(name)
        dirs.discard(name.lower())
    exts -= allowed

    return IgnoreRules(
        ignored_dirs=frozenset(dirs),
        ignored_exts=frozenset(exts),
        included_exts=frozenset(allowed),
    )


def is_directory_eligible(name: str, rules: IgnoreRules) -> bool:
    """Check whether traversal may descend into a directory.

    The base name is compared verbatim and with its leading dots removed,
    so ".git" is caught by the "git" entry. No substring matching.

    Args:
        name (str): the directory base name
        rules (IgnoreRules): the run's rules

    Returns:
        bool: True if the directory should be walked
    """
    return name not in rules.ignored_dirs and name.lstrip(".") not in rules.ignored_dirs


def file_extension(name: str) -> str:
    """Return the lower-cased extension of a file name, without the dot."""
    if "." not in name or name.endswith("."):
        return ""
    return PurePath(name).suffix.lstrip(".").lower()


def is_file_eligible(path: str | PurePath, rules: IgnoreRules) -> bool:
    """Check whether a file belongs in the output artifact.

    Rejected unconditionally: macOS sidecar files ("._name") and files
    without an extension. Otherwise an extension in the allow-set is always
    accepted; versioned shared objects, built-in binary extensions and
    ignored extensions are rejected.

    Args:
        path (str | PurePath): the file path or bare file name
        rules (IgnoreRules): the run's rules

    Returns:
        bool: True if the file should be included
    """
    name = PurePath(path).name
    if name.startswith(SIDECAR_PREFIX):
        return False
    ext = file_extension(name)
    if not ext:
        return False
    if ext in rules.included_exts:
        return True
    if VERSIONED_SHARED_OBJECT in name.lower():
        return False
    return ext not in BINARY_EXTENSIONS and ext not in rules.ignored_exts


def _raise_traversal_error(err: OSError) -> None:
    raise TraversalError(path=Path(err.filename or "."), reason=err.strerror or str(err)) from err


def walk_candidates(
    root: Path,
    rules: IgnoreRules,
    *,
    exclude: Sequence[Path] = (),
) -> list[FileCandidate]:
    """Recursively collect the eligible files under `root`.

    Ignored directories are pruned before descent, so nothing beneath them
    is ever listed. Symlinked directories are not followed; symlinked files
    pointing at regular files are kept.

    Args:
        root (Path): the traversal root
        rules (IgnoreRules): the run's rules
        exclude (Sequence[Path]): absolute paths never returned (the output artifact)

    Raises:
        TraversalError: if a directory cannot be listed
        ReadError: if an eligible file vanishes or cannot be stat'ed

    Returns:
        list[FileCandidate]: the candidates, sorted by relative path
    """
    root = root.resolve()
    excluded = {p.resolve() for p in exclude}
    candidates: list[FileCandidate] = []
    for dirpath, dirs, files in os.walk(root, onerror=_raise_traversal_error, followlinks=False):
        dirs[:] = sorted(d for d in dirs if is_directory_eligible(d, rules))
        for name in files:
            if not is_file_eligible(name, rules):
                continue
            p = Path(dirpath) / name
            if p in excluded or not p.is_file():
                continue
            try:
                size = p.stat().st_size
            except OSError as e:
                raise ReadError(path=p, reason=e.strerror or str(e)) from e
            candidates.append(FileCandidate(path=p, rel=relpath(p, root), size=size))
    logger.info("collected_files", root=str(root), count=len(candidates))
    return sorted(candidates, key=lambda c: c.rel)


def read_text_lossy(path: Path) -> str:
    """Read a file as UTF-8, substituting U+FFFD for undecodable bytes.

    Args:
        path (Path): the file to read

    Raises:
        ReadError: if the file cannot be opened or read

    Returns:
        str: the decoded text
    """
    try:
        data = path.read_bytes()
    except OSError as e:
        raise ReadError(path=path, reason=e.strerror or str(e)) from e
    return data.decode("utf-8", errors="replace")
