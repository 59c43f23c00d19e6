from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class RepoToTextError(Exception):
    """Base exception for errors in the repo_to_text package."""

    def __str__(self) -> str:
        return self.describe()

    def describe(self) -> str:
        """Human-readable message shown to the operator."""
        return self.__class__.__name__


@dataclass(frozen=True)
class TraversalError(RepoToTextError):
    """Raised when a directory cannot be listed during traversal."""

    path: Path
    reason: str

    def describe(self) -> str:
        return f"cannot list directory {self.path}: {self.reason}"


@dataclass(frozen=True)
class ReadError(RepoToTextError):
    """Raised when a candidate file cannot be opened or read."""

    path: Path
    reason: str

    def describe(self) -> str:
        return f"cannot read {self.path}: {self.reason}"


@dataclass(frozen=True)
class WriteError(RepoToTextError):
    """Raised when the output artifact cannot be created or appended to."""

    path: Path
    reason: str

    def describe(self) -> str:
        return f"cannot write output {self.path}: {self.reason}"


@dataclass(frozen=True)
class ConfigError(RepoToTextError):
    """Raised when the project configuration file is malformed."""

    path: Path
    reason: str

    def describe(self) -> str:
        return f"invalid configuration {self.path}: {self.reason}"


@dataclass(frozen=True)
class SuggestionError(RepoToTextError):
    """Raised when the ignore-suggestion endpoint fails or answers nonsense."""

    reason: str

    def describe(self) -> str:
        return f"ignore suggestion failed: {self.reason}"
