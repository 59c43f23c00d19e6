"""Ask an OpenAI-compatible chat endpoint which directories and extensions to skip.

The suggestion source is optional: with no API key, an unreachable server or
an unusable answer, the run simply proceeds with the built-in rules.
"""

from __future__ import annotations

import json
import os
import re
from collections import Counter
from typing import TYPE_CHECKING, Any, Protocol

import httpx

from repo_to_text.exceptions import SuggestionError
from repo_to_text.file_manipulation import file_extension, is_directory_eligible, normalize_entries
from repo_to_text.logging import logger

if TYPE_CHECKING:
    from pathlib import Path

    from repo_to_text.config import IgnoreRules

DEFAULT_API_BASE = "https://api.openai.com/v1"
DEFAULT_MODEL = "gpt-4o-mini"

_JSON_ARRAY_RE = re.compile(r"\[.*?\]", re.DOTALL)

SYSTEM_PROMPT = (
    "You help prepare a source repository for a language model context window. "
    "Given directory names and file extension counts, answer with a JSON array of "
    "directory names and file extensions (without dots) that hold generated, vendored, "
    "binary or data content and should be skipped. Answer with the JSON array only."
)


class IgnoreSuggester(Protocol):
    def suggest(self, root: Path, rules: IgnoreRules) -> list[str]: ...


def collect_inventory(root: Path, rules: IgnoreRules, *, max_dirs: int = 200) -> dict[str, Any]:
    """Summarize a tree for the suggestion prompt.

    Walks the tree with the same directory pruning as the real traversal and
    counts extensions. Unreadable directories are skipped silently.

    Args:
        root (Path): the traversal root
        rules (IgnoreRules): the rules currently in force
        max_dirs (int): cap on the number of directory names reported

    Returns:
        dict[str, Any]: `directories` (sorted names) and `extensions` (name -> count)
    """
    dirs: set[str] = set()
    exts: Counter[str] = Counter()
    for _dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = [d for d in dirnames if is_directory_eligible(d, rules)]
        dirs.update(dirnames)
        exts.update(ext for ext in map(file_extension, filenames) if ext)
    return {
        "directories": sorted(dirs)[:max_dirs],
        "extensions": dict(exts.most_common()),
    }


def parse_suggestions(content: str) -> list[str]:
    """Extract a list of names from a model answer.

    Accepts a bare JSON array, an object with an `ignore` array, or an array
    embedded in prose or a code fence.

    Raises:
        SuggestionError: if no array of strings can be found
    """
    try:
        data = json.loads(content)
    except json.JSONDecodeError:
        match = _JSON_ARRAY_RE.search(content)
        if not match:
            raise SuggestionError(reason="answer holds no JSON array") from None
        try:
            data = json.loads(match.group(0))
        except json.JSONDecodeError as e:
            raise SuggestionError(reason=f"malformed JSON array: {e}") from e
    if isinstance(data, dict):
        data = data.get("ignore")
    if not isinstance(data, list) or not all(isinstance(x, str) for x in data):
        raise SuggestionError(reason="answer is not a list of strings")
    return normalize_entries(data)


class OpenAICompatibleSuggester:
    """Ignore-list suggestions from an OpenAI-compatible `/chat/completions` API."""

    def __init__(
        self,
        api_key: str,
        *,
        api_base: str = DEFAULT_API_BASE,
        model: str = DEFAULT_MODEL,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._api_base = api_base.rstrip("/")
        self._model = model
        self._timeout = timeout
        self._transport = transport

    def request_suggestions(self, inventory: dict[str, Any]) -> list[str]:
        """Send the inventory and parse the answer.

        Raises:
            SuggestionError: on transport errors, HTTP errors or unusable answers
        """
        payload = {
            "model": self._model,
            "temperature": 0,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": json.dumps(inventory)},
            ],
        }
        headers = {"Authorization": f"Bearer {self._api_key}"}
        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                response = client.post(f"{self._api_base}/chat/completions", json=payload, headers=headers)
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPError as e:
            raise SuggestionError(reason=str(e) or e.__class__.__name__) from e
        except ValueError as e:
            raise SuggestionError(reason=f"response is not JSON: {e}") from e

        try:
            content = body["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise SuggestionError(reason="unexpected response shape") from e
        if not isinstance(content, str):
            raise SuggestionError(reason="unexpected response shape")
        return parse_suggestions(content)

    def suggest(self, root: Path, rules: IgnoreRules) -> list[str]:
        """Return suggested ignore entries, or an empty list on any failure."""
        try:
            suggestions = self.request_suggestions(collect_inventory(root, rules))
        except SuggestionError as e:
            logger.warning("ignore_suggestion_failed", reason=e.reason)
            return []
        logger.info("ignore_suggestions", entries=suggestions)
        return suggestions
