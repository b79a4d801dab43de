"""Duplicate detection strategies for incoming lessons."""

from __future__ import annotations

from typing import Protocol, Sequence, TypeVar


class HasTitle(Protocol):
    title: str


T = TypeVar("T", bound=HasTitle)


class KnowledgeMatcher(Protocol):
    """Decides whether a candidate duplicates one of the existing records."""

    def find_similar(self, candidate: HasTitle, existing: Sequence[T]) -> T | None: ...


class ExactTitleMatcher:
    """Case-insensitive exact title match, ignoring surrounding whitespace; first hit wins."""

    def find_similar(self, candidate: HasTitle, existing: Sequence[T]) -> T | None:
        wanted = candidate.title.strip().lower()
        for record in existing:
            if record.title.strip().lower() == wanted:
                return record
        return None
