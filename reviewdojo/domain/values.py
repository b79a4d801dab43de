"""Validated value types for the knowledge base.

Each type validates itself in ``__post_init__`` and offers a smart constructor
(``from_string`` / ``create``) that normalizes raw input first.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from reviewdojo.config import get_github_config
from reviewdojo.domain.errors import (
    InvalidCategoryError,
    InvalidLanguageError,
    InvalidPathComponentError,
    InvalidPRReferenceError,
    InvalidSeverityError,
)

CATEGORIES = (
    "security",
    "performance",
    "readability",
    "design",
    "testing",
    "error-handling",
    "other",
)

KNOWN_LANGUAGES = (
    "java",
    "javascript",
    "typescript",
    "python",
    "nodejs",
    "go",
    "rust",
    "php",
    "perl",
    "ruby",
    "csharp",
    "cpp",
    "kotlin",
    "swift",
    "other",
)

EXTENSION_LANGUAGES = {
    "java": "java",
    "js": "nodejs",
    "jsx": "nodejs",
    "ts": "typescript",
    "tsx": "typescript",
    "py": "python",
    "go": "go",
    "rs": "rust",
    "php": "php",
    "pl": "perl",
    "pm": "perl",
    "rb": "ruby",
    "cs": "csharp",
    "cpp": "cpp",
    "cc": "cpp",
    "cxx": "cpp",
    "kt": "kotlin",
    "kts": "kotlin",
    "swift": "swift",
}

SEVERITIES = ("critical", "warning", "info")
SEVERITY_RANK = {"critical": 3, "warning": 2, "info": 1}

LANGUAGE_MAX_LENGTH = 50
PATH_COMPONENT_MAX_LENGTH = 100

_LANGUAGE_PATTERN = re.compile(r"[a-z0-9._-]+")
_PATH_COMPONENT_PATTERN = re.compile(r"[A-Za-z0-9_.-]+")


def severity_rank(value: str) -> int:
    """critical=3, warning=2, info=1, anything else 0."""
    return SEVERITY_RANK.get(value, 0)


@dataclass(frozen=True)
class Category:
    value: str

    def __post_init__(self) -> None:
        if self.value not in CATEGORIES:
            raise InvalidCategoryError(
                f"Invalid category: {self.value}. Must be one of: {', '.join(CATEGORIES)}"
            )

    @classmethod
    def from_string(cls, value: str) -> Category:
        if not isinstance(value, str):
            raise InvalidCategoryError(f"Invalid category: {value!r}")
        return cls(value.lower())

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Language:
    """Lowercase language token. Unknown languages are allowed; see ``is_known``."""

    value: str

    def __post_init__(self) -> None:
        if not self.value or not isinstance(self.value, str):
            raise InvalidLanguageError("Language must be a non-empty string")
        if len(self.value) > LANGUAGE_MAX_LENGTH:
            raise InvalidLanguageError(
                f"Language name too long: {len(self.value)} characters (max: {LANGUAGE_MAX_LENGTH})"
            )
        if not _LANGUAGE_PATTERN.fullmatch(self.value):
            raise InvalidLanguageError(
                f"Invalid language name: {self.value}. Only alphanumeric characters, "
                "dots, hyphens, and underscores are allowed"
            )

    @classmethod
    def from_string(cls, value: str) -> Language:
        if not value or not isinstance(value, str):
            raise InvalidLanguageError("Language must be a non-empty string")
        return cls(value.lower())

    @classmethod
    def from_extension(cls, extension: str) -> Language:
        """Map a file extension (with or without the dot) to a language tag."""
        ext = extension.lower().lstrip(".")
        return cls(EXTENSION_LANGUAGES.get(ext, "other"))

    @classmethod
    def from_path(cls, file_path: str) -> Language | None:
        """Infer the language of a file path, or None if it has no extension."""
        name = file_path.replace("\\", "/").rsplit("/", 1)[-1]
        if "." not in name:
            return None
        ext = name.rsplit(".", 1)[-1]
        if not ext:
            return None
        return cls.from_extension(ext)

    @property
    def is_known(self) -> bool:
        return self.value in KNOWN_LANGUAGES

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Severity:
    value: str = "info"

    def __post_init__(self) -> None:
        if self.value not in SEVERITIES:
            raise InvalidSeverityError(
                f"Invalid severity: {self.value}. Must be one of: {', '.join(SEVERITIES)}"
            )

    @classmethod
    def from_string(cls, value: str | None) -> Severity:
        """Parse a severity; empty input means the default, ``info``."""
        if not value:
            return cls()
        if not isinstance(value, str):
            raise InvalidSeverityError(f"Invalid severity: {value!r}")
        return cls(value.lower())

    @property
    def rank(self) -> int:
        return severity_rank(self.value)

    @property
    def is_critical(self) -> bool:
        return self.value == "critical"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class CodeExample:
    bad: str = ""
    good: str = ""

    @classmethod
    def from_dict(cls, data: dict | None) -> CodeExample:
        if not data:
            return cls()
        return cls(bad=data.get("bad") or "", good=data.get("good") or "")

    @property
    def is_empty(self) -> bool:
        return not self.bad and not self.good

    def to_dict(self) -> dict[str, str]:
        return {"bad": self.bad, "good": self.good}

    def __str__(self) -> str:
        if self.is_empty:
            return "(no code example)"
        parts = []
        if self.bad:
            parts.append(f"Bad: {self.bad[:50]}...")
        if self.good:
            parts.append(f"Good: {self.good[:50]}...")
        return " | ".join(parts)


def _pr_url_pattern(host: str) -> re.Pattern[str]:
    return re.compile(
        rf"https://{re.escape(host)}/(?P<owner>[^/]+)/(?P<repo>[^/]+)/pull/(?P<number>\d+)"
    )


@dataclass(frozen=True)
class PRReference:
    """URL of a pull request on the configured GitHub host.

    Two references are equal when their URLs are equal.
    """

    url: str
    host: str = field(default="", compare=False)
    owner: str = field(default="", init=False, compare=False, repr=False)
    repository: str = field(default="", init=False, compare=False, repr=False)
    number: int = field(default=0, init=False, compare=False, repr=False)

    def __post_init__(self) -> None:
        if not self.url or not isinstance(self.url, str):
            raise InvalidPRReferenceError("PR reference URL must be a non-empty string")
        if not self.host:
            object.__setattr__(self, "host", get_github_config().host)
        match = _pr_url_pattern(self.host).fullmatch(self.url)
        if match is None:
            raise InvalidPRReferenceError(
                f"Invalid PR reference URL: {self.url}. Must be a GitHub PR URL "
                f"(e.g., https://{self.host}/owner/repo/pull/123)"
            )
        object.__setattr__(self, "owner", match.group("owner"))
        object.__setattr__(self, "repository", match.group("repo"))
        object.__setattr__(self, "number", int(match.group("number")))

    @classmethod
    def create(cls, url: str, host: str | None = None) -> PRReference:
        return cls(url=url, host=host or "")

    def __str__(self) -> str:
        return self.url


@dataclass(frozen=True)
class PathComponent:
    """A single, traversal-safe file system segment."""

    value: str

    def __post_init__(self) -> None:
        value = self.value
        if not value or not isinstance(value, str):
            raise InvalidPathComponentError(
                "Invalid path component: must be a non-empty string"
            )
        if ".." in value or "/" in value or "\\" in value:
            raise InvalidPathComponentError(f"Invalid path component: {value}")
        if not _PATH_COMPONENT_PATTERN.fullmatch(value):
            raise InvalidPathComponentError(f"Invalid path component: {value}")
        if len(value) > PATH_COMPONENT_MAX_LENGTH:
            raise InvalidPathComponentError(f"Path component too long: {value}")
        if value.startswith("."):
            raise InvalidPathComponentError(f"Invalid path component: {value}")

    @classmethod
    def create(cls, value: str) -> PathComponent:
        return cls(value)

    def __str__(self) -> str:
        return self.value
