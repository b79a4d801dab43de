"""Filtering, ranking and addressing of records across the whole corpus.

The corpus is a nested mapping ``{category: {language: [records]}}`` as
returned by ``KnowledgeRepository.find_all``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List

from reviewdojo.domain.errors import DomainError
from reviewdojo.domain.record import KnowledgeRecord
from reviewdojo.domain.values import Category, Language, severity_rank

Corpus = Dict[str, Dict[str, List[KnowledgeRecord]]]

DEFAULT_MAX_RESULTS = 10
SLUG_MAX_LENGTH = 50

_ID_PATTERN = re.compile(r"([^/]+)/([^/]+)/([^/]+)")


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


@dataclass(frozen=True)
class KnowledgeQuery:
    """Search filters. ``None`` means the filter is inactive."""

    text: str | None = None
    category: str | None = None
    language: str | None = None
    severity: str | None = None
    file_path: str | None = None
    max_results: int = DEFAULT_MAX_RESULTS

    @classmethod
    def create(
        cls,
        text: str | None = None,
        category: str | None = None,
        language: str | None = None,
        severity: str | None = None,
        file_path: str | None = None,
        max_results: int | None = None,
    ) -> KnowledgeQuery:
        """Trim inputs and fall back to 10 results for a missing or non-positive limit."""
        return cls(
            text=_clean(text),
            category=_clean(category),
            language=_clean(language),
            severity=_clean(severity),
            file_path=_clean(file_path),
            max_results=max_results if max_results and max_results > 0 else DEFAULT_MAX_RESULTS,
        )

    @classmethod
    def all(cls, max_results: int = 100) -> KnowledgeQuery:
        return cls(max_results=max_results)

    @property
    def is_empty(self) -> bool:
        return not any((self.text, self.category, self.language, self.severity, self.file_path))


@dataclass(frozen=True)
class SearchResult:
    category: str
    language: str
    record: KnowledgeRecord


def slugify(title: str) -> str:
    """Lowercase, whitespace runs to hyphens, non-word characters dropped, 50 chars max.

    Distinct titles can share a slug; lookups then return the first match.
    """
    slug = re.sub(r"\s+", "-", title.lower())
    slug = re.sub(r"[^\w-]", "", slug)
    return slug[:SLUG_MAX_LENGTH]


class KnowledgeSearchService:
    """Stateless search over a corpus snapshot."""

    def search(self, corpus: Corpus, query: KnowledgeQuery) -> list[SearchResult]:
        results: list[SearchResult] = []
        text = query.text.lower() if query.text else None

        for category, languages in corpus.items():
            if query.category and category != query.category:
                continue
            for language, records in languages.items():
                if query.language and language != query.language:
                    continue
                for record in records:
                    if query.severity and record.severity.value != query.severity:
                        continue
                    if query.file_path and query.file_path not in record.target_file:
                        continue
                    if text and text not in record.title.lower() and text not in record.summary.lower():
                        continue
                    results.append(SearchResult(category, language, record))

        results.sort(
            key=lambda r: (r.record.occurrences, severity_rank(r.record.severity.value)),
            reverse=True,
        )
        return results[: query.max_results]

    def list_categories(self, corpus: Corpus) -> list[dict]:
        counts = {
            category: sum(len(records) for records in languages.values())
            for category, languages in corpus.items()
        }
        return [
            {"name": name, "knowledge_count": count}
            for name, count in sorted(counts.items())
        ]

    def list_languages(self, corpus: Corpus) -> list[dict]:
        counts: dict[str, int] = {}
        for languages in corpus.values():
            for language, records in languages.items():
                counts[language] = counts.get(language, 0) + len(records)
        return [
            {"name": name, "knowledge_count": count}
            for name, count in sorted(counts.items())
        ]

    def generate_id(self, category: str, language: str, record: KnowledgeRecord) -> str:
        return f"{category}/{language}/{slugify(record.title)}"

    def find_by_id(self, corpus: Corpus, record_id: str) -> SearchResult | None:
        """Resolve ``category/language/slug``; None for malformed or unknown IDs."""
        if not record_id or not isinstance(record_id, str):
            return None

        match = _ID_PATTERN.fullmatch(record_id.strip())
        if not match:
            return None
        category, language, slug = (part.strip() for part in match.groups())
        if not category or not language or not slug:
            return None

        try:
            Category.from_string(category)
            Language.from_string(language)
        except DomainError:
            return None

        records = corpus.get(category, {}).get(language)
        if not records:
            return None

        for record in records:
            if slugify(record.title) == slug:
                return SearchResult(category, language, record)
        return None
