"""Apply a batch of lessons to one knowledge partition."""

from __future__ import annotations

import logging
from typing import Iterable

from reviewdojo.domain.errors import DomainError
from reviewdojo.domain.events import KnowledgeArchived
from reviewdojo.domain.matcher import ExactTitleMatcher, KnowledgeMatcher
from reviewdojo.domain.partition import KnowledgePartition
from reviewdojo.domain.record import KnowledgeInput
from reviewdojo.domain.values import Category, Language
from reviewdojo.storage.repository import KnowledgeRepository

logger = logging.getLogger(__name__)


class KnowledgeArchivedHandler:
    """Writes records evicted from a partition to its archive file."""

    def __init__(self, repository: KnowledgeRepository) -> None:
        self._repository = repository

    def handle(self, event: KnowledgeArchived) -> None:
        category = Category.from_string(event.category)
        language = Language.from_string(event.language)
        logger.info(f"Archiving {event.archived_count} items for {category}/{language}")
        self._repository.archive(category, language, list(event.records))


class ApplyKnowledge:
    """Load a partition, fold new lessons into it, archive overflow, save.

    Usage:
        use_case = ApplyKnowledge(FileSystemKnowledgeRepository(root))
        count = use_case.execute("security", "java", [KnowledgeInput(...)])
    """

    def __init__(
        self,
        repository: KnowledgeRepository,
        matcher: KnowledgeMatcher | None = None,
        archive_handler: KnowledgeArchivedHandler | None = None,
    ) -> None:
        self._repository = repository
        self._matcher = matcher or ExactTitleMatcher()
        self._archive_handler = archive_handler or KnowledgeArchivedHandler(repository)

    def execute(self, category: str, language: str, items: Iterable[KnowledgeInput]) -> int:
        """Returns the number of records in the partition after saving.

        Raises DomainError for an invalid category or language. Items that
        fail validation are logged and skipped.
        """
        cat = Category.from_string(category)
        lang = Language.from_string(language)

        partition = KnowledgePartition(
            cat, lang, self._repository.find_by_path(cat, lang), self._matcher
        )

        for item in items:
            try:
                partition.add_record(item)
            except DomainError as e:
                logger.warning(f"Skipping item '{item.title}': {e}")

        for event in partition.archived_batches():
            self._archive_handler.handle(event)

        self._repository.save(cat, lang, partition.get_records())
        partition.clear_notifications()
        return len(partition)
