"""Sensitive-information masking applied to every text before it is stored.

Rules run in list order, each on the output of the previous one. The most
specific patterns come first; the generic API-key rule is last so it cannot
swallow spans an earlier rule would have recognized.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Sequence


@dataclass(frozen=True)
class MaskRule:
    name: str
    pattern: re.Pattern[str]
    replacement: str

    def apply(self, text: str) -> str:
        return self.pattern.sub(self.replacement, text)


SENSITIVE_PATTERNS: tuple[MaskRule, ...] = (
    MaskRule(
        "Private Key",
        re.compile(r"-----BEGIN[A-Z ]+PRIVATE KEY-----[\s\S]+?-----END[A-Z ]+PRIVATE KEY-----"),
        "***PRIVATE_KEY***",
    ),
    MaskRule(
        "JWT Token",
        re.compile(r"eyJ[a-zA-Z0-9_-]{10,}\.[a-zA-Z0-9_-]{10,}\.[a-zA-Z0-9_-]{10,}"),
        "***JWT_TOKEN***",
    ),
    MaskRule(
        "GitHub Token",
        re.compile(r"gh[pousr]_[a-zA-Z0-9]{36,}"),
        "***GITHUB_TOKEN***",
    ),
    MaskRule(
        "AWS Key",
        re.compile(r"AKIA[0-9A-Z]{16}"),
        "***AWS_KEY***",
    ),
    MaskRule(
        "Bearer Token",
        re.compile(r"Bearer\s+[a-zA-Z0-9._-]+"),
        "Bearer ***TOKEN***",
    ),
    MaskRule(
        "Password",
        re.compile(r"password\s*[:=]\s*\S+", re.IGNORECASE),
        "password: ***",
    ),
    # Requires a key-ish prefix to keep false positives down:
    # api_key=..., API-KEY: ..., secret key: ..., access_key=...
    MaskRule(
        "API Key",
        re.compile(
            r"(api[_\s-]?key|secret[_\s-]?key|access[_\s-]?key)\s*[:=]\s*[a-zA-Z0-9_-]{16,}",
            re.IGNORECASE,
        ),
        r"\1: ***REDACTED***",
    ),
)


class SensitiveInfoMasker:
    """Redacts secrets from free text. Never raises; masking twice is a no-op."""

    def __init__(self, rules: Sequence[MaskRule] | None = None) -> None:
        self._rules = tuple(SENSITIVE_PATTERNS if rules is None else rules)

    @property
    def rules(self) -> tuple[MaskRule, ...]:
        return self._rules

    def mask(self, text: str) -> str:
        if not text:
            return text
        masked = text
        for rule in self._rules:
            masked = rule.apply(masked)
        return masked

    def mask_many(self, *texts: str) -> list[str]:
        return [self.mask(t) for t in texts]


_default_masker = SensitiveInfoMasker()


def mask(text: str) -> str:
    """Mask ``text`` with the default rule set."""
    return _default_masker.mask(text)
