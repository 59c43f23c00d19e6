from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, computed_field

OUTPUT_FILE = "repo_content.txt"
CONFIG_FILE = ".repo_to_text.yaml"

LARGE_FILE_THRESHOLD = 1024 * 1024  # 1 MiB

SIDECAR_PREFIX = "._"
VERSIONED_SHARED_OBJECT = ".so."

RUN_TITLE = "Repository Content Extraction"
RUN_SEPARATOR = "=" * 49
RECORD_BANNER = "=" * 47
RECORD_FOOTER = "--- End of File ---"
REDACTION_PLACEHOLDER = "<binary data removed>"

DEFAULT_IGNORED_DIRS = frozenset(
    {
        "git",
        "svn",
        "node_modules",
        "vendor",
        "idea",
        "target",
    },
)

BINARY_EXTENSIONS = frozenset(
    {
        # archives and packages
        "pack",
        "xz",
        "7z",
        "bz2",
        "gz",
        "lz",
        "lzma",
        "lzo",
        "rar",
        "tar",
        "z",
        "zip",
        "deb",
        "rpm",
        "apk",
        "ipa",
        "app",
        "dmg",
        "pkg",
        "jar",
        "war",
        # executables, objects and bytecode
        "exe",
        "dll",
        "so",
        "o",
        "a",
        "pyc",
        "pyo",
        "pyd",
        "class",
        # fonts
        "woff",
        "woff2",
        "ttf",
        "eot",
        "otf",
        "cff",
        "fon",
        "pfb",
        "pfm",
        "afm",
        "bcmap",
        # images and documents
        "jpg",
        "jpeg",
        "png",
        "gif",
        "bmp",
        "ico",
        "svg",
        "webp",
        "pdf",
    },
)

DEFAULT_IGNORED_EXTENSIONS = frozenset(
    {
        "lock",
        "csv",
        "env",
        "log",
        "gitignore",
        "json",
        "npmrc",
        "prettierrc",
        "eslintrc",
        "babelrc",
        "yml",
        "yaml",
    },
)


class IgnoreRules(BaseModel):
    """Directory and extension denylists plus the extension allow-set.

    Built once per run and never mutated. Extensions are stored without a
    leading dot and in lower case; directory names keep their case.

    Attributes:
        ignored_dirs: Directory base names that are never descended into.
        ignored_exts: Extensions excluded on top of the built-in binary set.
        included_exts: Extensions that are always accepted.
    """

    model_config = ConfigDict(frozen=True)

    ignored_dirs: frozenset[str] = Field(default=DEFAULT_IGNORED_DIRS)
    ignored_exts: frozenset[str] = Field(default=DEFAULT_IGNORED_EXTENSIONS)
    included_exts: frozenset[str] = Field(default_factory=frozenset)


class FileCandidate(BaseModel):
    """A file selected during traversal for possible inclusion.

    Attributes:
        path: Absolute path to the file on disk.
        rel: Path relative to the traversal root, with POSIX separators.
        size: File size in bytes.
    """

    model_config = ConfigDict(frozen=True)

    path: Path = Field(..., description="Absolute file path")
    rel: str = Field(..., description="File path relative to the traversal root")
    size: int = Field(..., ge=0, description="File size in bytes")

    @computed_field
    @property
    def size_mb(self) -> float:
        """Size in mebibytes, for display."""
        return self.size / (1024 * 1024)


class ProcessedRecord(BaseModel):
    """The redacted text of one file, owned by its worker until written."""

    model_config = ConfigDict(frozen=True)

    rel: str
    content: str


class RunSummary(BaseModel):
    """Outcome of a successful aggregation run."""

    model_config = ConfigDict(frozen=True)

    output: Path
    files_processed: int = Field(..., ge=0)
    large_files_excluded: int = Field(default=0, ge=0)
    elapsed_seconds: float = Field(default=0.0, ge=0)
