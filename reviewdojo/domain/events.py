"""Notifications emitted by a knowledge partition while it is being updated."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import ClassVar, Union

from reviewdojo.domain.record import KnowledgeRecord


@dataclass(frozen=True)
class KnowledgeAdded:
    event_type: ClassVar[str] = "KnowledgeAdded"
    title: str
    severity: str
    occurred_on: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True)
class KnowledgeMerged:
    event_type: ClassVar[str] = "KnowledgeMerged"
    title: str
    occurrences: int  # count after the merge
    occurred_on: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True)
class KnowledgeArchived:
    """Records evicted from a partition in one enforcement pass."""

    event_type: ClassVar[str] = "KnowledgeArchived"
    records: tuple[KnowledgeRecord, ...]
    archived_count: int
    category: str
    language: str
    occurred_on: datetime = field(default_factory=datetime.now)


DomainEvent = Union[KnowledgeAdded, KnowledgeMerged, KnowledgeArchived]
