from __future__ import annotations

import re
from typing import TYPE_CHECKING, NamedTuple

from repo_to_text.config import REDACTION_PLACEHOLDER

if TYPE_CHECKING:
    from collections.abc import Sequence


class RedactionRule(NamedTuple):
    """A compiled pattern and the replacement template applied to its matches."""

    name: str
    pattern: re.Pattern[str]
    replacement: str


def make_rule(name: str, pattern: str, replacement: str) -> RedactionRule:
    """Compile a redaction rule spanning newlines.

    Args:
        name (str): a short identifier used in logs and tests
        pattern (str): the regular expression; payloads must be matched non-greedily
        replacement (str): the `re.sub` template, with group references for the kept delimiters

    Returns:
        RedactionRule: the compiled rule
    """
    return RedactionRule(name=name, pattern=re.compile(pattern, re.DOTALL), replacement=replacement)


REDACTION_RULES: tuple[RedactionRule, ...] = (
    make_rule(
        "data_bytes_literal",
        r'(DATA = b""")[^"]*?(""")',
        rf"\g<1>{REDACTION_PLACEHOLDER}\g<2>",
    ),
    make_rule(
        "b85decode_call",
        r"(b85decode\().*?(\))",
        rf'\g<1>"{REDACTION_PLACEHOLDER}"\g<2>',
    ),
    make_rule(
        "base64_decode_call",
        r"(base64\.[^(]*decode\().*?(\))",
        rf'\g<1>"{REDACTION_PLACEHOLDER}"\g<2>',
    ),
)


def redact(text: str, rules: Sequence[RedactionRule] = REDACTION_RULES) -> str:
    """Replace the payload of known binary-data literals with a placeholder.

    Rules run in order, each over the output of the previous one. The
    enclosing delimiters (triple quotes, call parentheses) are kept. Text
    that matches no rule comes back unchanged.

    Args:
        text (str): the file content to redact
        rules (Sequence[RedactionRule]): the rules to apply, in order

    Returns:
        str: the redacted text
    """
    for rule in rules:
        text = rule.pattern.sub(rule.replacement, text)
    return text
