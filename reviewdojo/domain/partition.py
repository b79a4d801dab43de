"""Knowledge partition: the bounded record set for one (category, language)."""

from __future__ import annotations

from typing import Iterable

from reviewdojo.domain.events import (
    DomainEvent,
    KnowledgeAdded,
    KnowledgeArchived,
    KnowledgeMerged,
)
from reviewdojo.domain.matcher import ExactTitleMatcher, KnowledgeMatcher
from reviewdojo.domain.record import KnowledgeInput, KnowledgeRecord
from reviewdojo.domain.values import Category, Language

MAX_RECORDS = 100


class KnowledgePartition:
    """Owns the records of one ``<category>/<language>.md`` file.

    Built from whatever the repository holds, updated in memory, persisted,
    then discarded. Holds at most ``max_records`` records after every
    ``add_record``; overflow is evicted lowest-occurrence first and reported
    as a ``KnowledgeArchived`` notification.

    Usage:
        partition = KnowledgePartition(category, language, existing, ExactTitleMatcher())
        partition.add_record(KnowledgeInput(title="SQL Injection", ...))
        repo.save(category, language, partition.get_records())
        partition.clear_notifications()
    """

    def __init__(
        self,
        category: Category,
        language: Language,
        records: Iterable[KnowledgeRecord] = (),
        matcher: KnowledgeMatcher | None = None,
        max_records: int = MAX_RECORDS,
    ) -> None:
        self._category = category
        self._language = language
        self._records: list[KnowledgeRecord] = list(records)
        self._matcher = matcher or ExactTitleMatcher()
        self._max_records = max_records
        self._notifications: list[DomainEvent] = []

    @property
    def category(self) -> Category:
        return self._category

    @property
    def language(self) -> Language:
        return self._language

    @property
    def file_path(self) -> str:
        return f"{self._category.value}/{self._language.value}.md"

    def __len__(self) -> int:
        return len(self._records)

    def add_record(self, item: KnowledgeInput) -> KnowledgeRecord:
        """Merge ``item`` into its duplicate, or insert it as a new record.

        Returns the merged or newly created record. Raises a DomainError if a
        new record cannot be built; the partition is unchanged in that case.
        """
        similar = self._matcher.find_similar(item, self._records)
        if similar is not None:
            similar.merge(item.pr_url)
            self._notifications.append(KnowledgeMerged(similar.title, similar.occurrences))
            record = similar
        else:
            record = KnowledgeRecord.create(item)
            self._records.append(record)
            self._notifications.append(KnowledgeAdded(record.title, record.severity.value))

        self._enforce_limit()
        return record

    def _enforce_limit(self) -> None:
        if len(self._records) <= self._max_records:
            return

        # sorted() is stable, so ties keep their current relative order
        ranked = sorted(self._records, key=lambda r: r.occurrences, reverse=True)
        self._records = ranked[: self._max_records]
        evicted = ranked[self._max_records :]
        self._notifications.append(
            KnowledgeArchived(
                records=tuple(evicted),
                archived_count=len(evicted),
                category=self._category.value,
                language=self._language.value,
            )
        )

    def get_records(self) -> list[KnowledgeRecord]:
        return list(self._records)

    def get_notifications(self) -> list[DomainEvent]:
        return list(self._notifications)

    def archived_batches(self) -> list[KnowledgeArchived]:
        return [n for n in self._notifications if isinstance(n, KnowledgeArchived)]

    def clear_notifications(self) -> None:
        """Drop pending notifications; call after the partition was persisted."""
        self._notifications.clear()
