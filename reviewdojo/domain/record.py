"""Knowledge record entity and the raw input it is built from."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

from reviewdojo.domain.errors import InvalidPRReferenceError
from reviewdojo.domain.masker import mask
from reviewdojo.domain.values import CodeExample, PRReference, Severity

logger = logging.getLogger(__name__)


@dataclass
class KnowledgeInput:
    """One lesson as extracted from review activity, before validation."""

    title: str
    summary: str = ""
    recommendation: str = ""
    severity: str | None = None
    code_example: dict[str, str] | None = None
    file_path: str = ""
    pr_url: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> KnowledgeInput:
        return cls(
            title=str(data.get("title") or ""),
            summary=str(data.get("summary") or ""),
            recommendation=str(data.get("recommendation") or ""),
            severity=data.get("severity") or None,
            code_example=data.get("code_example") or None,
            file_path=str(data.get("file_path") or ""),
            pr_url=data.get("pr_url") or None,
        )


def _parse_reference(url: str, context: str) -> PRReference | None:
    try:
        return PRReference.create(url)
    except InvalidPRReferenceError as e:
        logger.warning(f"Invalid PR URL{context}: {url} ({e})")
        return None


@dataclass
class KnowledgeRecord:
    """A single deduplicated lesson, identified by its case-insensitive title.

    Records are only mutated through ``merge``; summary and recommendation are
    always masked before they are stored.
    """

    title: str
    severity: Severity = field(default_factory=Severity)
    occurrences: int = 1
    summary: str = ""
    recommendation: str = ""
    code_example: CodeExample = field(default_factory=CodeExample)
    target_file: str = ""
    references: list[PRReference] = field(default_factory=list)

    def __post_init__(self) -> None:
        # Surrounding whitespace is not part of the stored format
        self.title = self.title.strip()
        self.summary = self.summary.strip()
        self.recommendation = self.recommendation.strip()
        self.target_file = self.target_file.strip()

    @classmethod
    def create(cls, item: KnowledgeInput) -> KnowledgeRecord:
        """Build a new record with one occurrence.

        Raises InvalidSeverityError for an unknown severity. An invalid PR URL
        is dropped with a warning instead.
        """
        references = []
        if item.pr_url:
            ref = _parse_reference(item.pr_url, "")
            if ref is not None:
                references.append(ref)

        return cls(
            title=item.title,
            severity=Severity.from_string(item.severity),
            occurrences=1,
            summary=mask(item.summary),
            recommendation=mask(item.recommendation),
            code_example=CodeExample.from_dict(item.code_example),
            target_file=item.file_path or "",
            references=references,
        )

    @classmethod
    def from_serialized(
        cls,
        title: str,
        summary: str,
        recommendation: str,
        occurrences: int,
        severity: str | None = None,
        code_example: CodeExample | None = None,
        file_path: str = "",
        pr_urls: Iterable[str] = (),
    ) -> KnowledgeRecord:
        """Restore a stored record with its recorded occurrence count.

        Equivalent to creating the record from the first reference and merging
        once per further occurrence, keeping references beyond the occurrence
        count as well. Stored text is masked again.
        """
        record = cls(
            title=title,
            severity=Severity.from_string(severity),
            occurrences=max(1, occurrences),
            summary=mask(summary),
            recommendation=mask(recommendation),
            code_example=code_example or CodeExample(),
            target_file=file_path or "",
        )
        for url in pr_urls:
            ref = _parse_reference(url, " during deserialization")
            if ref is not None:
                record._add_reference(ref)
        return record

    @property
    def normalized_title(self) -> str:
        return self.title.lower()

    def merge(self, pr_url: str | None = None) -> None:
        """Count one more occurrence and remember ``pr_url`` if it is new."""
        self.occurrences += 1
        if pr_url:
            ref = _parse_reference(pr_url, " during merge")
            if ref is not None:
                self._add_reference(ref)

    def _add_reference(self, ref: PRReference) -> None:
        if ref not in self.references:
            self.references.append(ref)

    @property
    def reference_urls(self) -> list[str]:
        return [ref.url for ref in self.references]

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "severity": self.severity.value,
            "occurrences": self.occurrences,
            "summary": self.summary,
            "recommendation": self.recommendation,
            "code_example": self.code_example.to_dict(),
            "target_file": self.target_file,
            "references": self.reference_urls,
        }
