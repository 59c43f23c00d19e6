from __future__ import annotations

import os
from pathlib import Path

import yaml
from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, ConfigDict, Field

from repo_to_text.config import CONFIG_FILE, OUTPUT_FILE
from repo_to_text.exceptions import ConfigError
from repo_to_text.suggestions import DEFAULT_API_BASE, DEFAULT_MODEL

ENV_FILE = find_dotenv(usecwd=True)
load_dotenv(ENV_FILE)


class Settings(BaseModel):
    """Configuration settings for the repo_to_text package."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    root: Path = Field(default_factory=Path.cwd, description="Traversal root.")
    output: Path = Field(default=Path(OUTPUT_FILE), description="Output file, relative to root.")
    ignore: list[str] = Field(default_factory=list, description="Extra directories/extensions to ignore.")
    include: list[str] = Field(default_factory=list, description="Extensions to force-include.")
    workers: int | None = Field(default=None, ge=1, description="Worker threads.")
    assume_yes: bool = Field(default=False, description="Keep large files without asking.")
    no_suggest: bool = Field(default=False, description="Never ask for ignore suggestions.")
    no_progress: bool = Field(default=False, description="Do not print progress lines.")
    config_file: Path | None = Field(default=None, description="Project config file.")
    log_file: str = Field(default="", description="Log file path.")

    api_key: str = Field(
        default_factory=lambda: os.getenv("REPO_TO_TEXT_API_KEY", ""),
        description="API key for ignore suggestions.",
    )
    api_base: str = Field(
        default_factory=lambda: os.getenv("REPO_TO_TEXT_API_BASE", DEFAULT_API_BASE),
        description="OpenAI-compatible API base URL.",
    )
    model: str = Field(
        default_factory=lambda: os.getenv("REPO_TO_TEXT_MODEL", DEFAULT_MODEL),
        description="Model used for ignore suggestions.",
    )

    @property
    def output_path(self) -> Path:
        """The artifact path; relative outputs are placed under the root."""
        return self.output if self.output.is_absolute() else self.root / self.output


class ProjectConfig(BaseModel):
    """Ignore/include lists read from the project config file."""

    model_config = ConfigDict(extra="forbid")

    ignore: list[str] = Field(default_factory=list)
    include: list[str] = Field(default_factory=list)


def load_project_config(root: Path, path: Path | None = None) -> ProjectConfig:
    """Load `.repo_to_text.yaml` (or an explicit file) if present.

    A missing default file yields an empty config; a missing explicit file
    or malformed content is an error.

    Args:
        root (Path): the traversal root holding the default config file
        path (Path | None): an explicit config file

    Raises:
        ConfigError: if the file cannot be read or does not hold `ignore`/`include` lists

    Returns:
        ProjectConfig: the parsed lists
    """
    cfg_path = path or root / CONFIG_FILE
    if path is None and not cfg_path.is_file():
        return ProjectConfig()
    try:
        data = yaml.safe_load(cfg_path.read_text(encoding="utf-8")) or {}
    except OSError as e:
        raise ConfigError(path=cfg_path, reason=e.strerror or str(e)) from e
    except yaml.YAMLError as e:
        raise ConfigError(path=cfg_path, reason=str(e)) from e
    if not isinstance(data, dict):
        raise ConfigError(path=cfg_path, reason="top level must be a mapping")
    try:
        return ProjectConfig.model_validate(data)
    except ValueError as e:
        raise ConfigError(path=cfg_path, reason=str(e)) from e
