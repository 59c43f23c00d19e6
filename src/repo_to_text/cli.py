"""
repo_to_text: flatten the current directory into one text file for an LLM.

Overview
--------
Walks the tree, skips ignored directories, binary and noise extensions,
replaces embedded binary literals (triple-quoted `DATA = b` blobs,
`b85decode(...)`, `base64.*decode(...)`) with a placeholder and writes every surviving file as
a framed record into `repo_content.txt`.

Usage
-----
Run `python -m repo_to_text --help` for full options. Common examples:
    - Everything under the current directory:
        repo-to-text

    - Also skip `docs/` and `.md`, keep `.json`:
        repo-to-text --ignore docs md --include json

    - Non-interactive, with a log file:
        repo-to-text --yes --log-file export.log
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from repo_to_text import __version__
from repo_to_text.exceptions import RepoToTextError
from repo_to_text.file_manipulation import build_ignore_rules, normalize_entries
from repo_to_text.large_files import choose_decider
from repo_to_text.logging import logger, setup_logging
from repo_to_text.output_construction import run
from repo_to_text.settings import Settings, load_project_config
from repo_to_text.suggestions import OpenAICompatibleSuggester

if TYPE_CHECKING:
    from collections.abc import Sequence

    from repo_to_text.config import IgnoreRules
    from repo_to_text.suggestions import IgnoreSuggester


def positive_int(value: str) -> int:
    """Argparse type for counts that must be at least 1."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {value!r}") from None
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def parse_args(argv: Sequence[str] | None = None) -> Settings:
    p = argparse.ArgumentParser(
        prog="repo-to-text",
        description="Concatenate the source files of a directory tree into one text file.",
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument(
        "-i",
        "--ignore",
        nargs="+",
        action="extend",
        default=[],
        help="Additional directories and extensions to ignore (space or comma separated).",
    )
    p.add_argument(
        "-I",
        "--include",
        nargs="+",
        action="extend",
        default=[],
        help="Extensions to include even if ignored by default (space or comma separated).",
    )
    p.add_argument("--root", type=Path, default=Path.cwd(), help="Directory to flatten.")
    p.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path("repo_content.txt"),
        help="Output file, relative to the root unless absolute.",
    )
    p.add_argument("--workers", type=positive_int, default=None, help="Worker threads.")
    p.add_argument(
        "-y",
        "--yes",
        dest="assume_yes",
        action="store_true",
        help="Keep large files without asking.",
    )
    p.add_argument("--no-suggest", action="store_true", help="Never ask an LLM for ignore suggestions.")
    p.add_argument("--no-progress", action="store_true", help="Do not print progress lines.")
    p.add_argument("--config", dest="config_file", type=Path, default=None, help="Project config file.")
    p.add_argument("--log-file", type=str, default="", help="Log file path.")
    args = p.parse_args(argv)
    return Settings(**vars(args))


def resolve_rules(settings: Settings, suggester: IgnoreSuggester | None = None) -> IgnoreRules:
    """Merge CLI lists, the project config file and optional suggestions.

    Suggestions are only requested when neither the CLI nor the config file
    names anything to ignore or include.

    Args:
        settings (Settings): the parsed settings
        suggester (IgnoreSuggester | None): the suggestion source, built from settings when None

    Raises:
        ConfigError: if the project config file is malformed

    Returns:
        IgnoreRules: the rules for this run
    """
    project = load_project_config(settings.root, settings.config_file)
    ignore = normalize_entries([*project.ignore, *settings.ignore])
    include = normalize_entries([*project.include, *settings.include])

    if not ignore and not include and not settings.no_suggest:
        if suggester is None and settings.api_key:
            suggester = OpenAICompatibleSuggester(
                settings.api_key,
                api_base=settings.api_base,
                model=settings.model,
            )
        if suggester is not None:
            ignore = suggester.suggest(settings.root, build_ignore_rules())

    return build_ignore_rules(ignore, include)


def main(argv: Sequence[str] | None = None) -> int:
    settings = parse_args(argv)
    if settings.log_file:
        setup_logging(settings.log_file)

    try:
        rules = resolve_rules(settings)
        summary = run(
            settings.root,
            rules,
            output=settings.output_path,
            decide=choose_decider(assume_yes=settings.assume_yes),
            workers=settings.workers,
            show_progress=not settings.no_progress,
        )
    except RepoToTextError as e:
        logger.error("run_failed", error=str(e))
        print(f"\nError: {e}", file=sys.stderr)
        return 1

    logger.info("exported", files=summary.files_processed, output=str(summary.output))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
