"""Knowledge repository port and its directory-tree implementation.

Layout under the knowledge root::

    <category>/<language>.md            live partitions
    archive/<category>/<language>.md    evicted records
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Protocol, Sequence

from reviewdojo.domain.errors import DomainError
from reviewdojo.domain.record import KnowledgeRecord
from reviewdojo.domain.search import Corpus
from reviewdojo.domain.values import Category, Language
from reviewdojo.storage.codec import MarkdownCodec

logger = logging.getLogger(__name__)

ARCHIVE_DIR = "archive"
ARCHIVE_SIZE_LIMIT = 10_000


class ReadOnlyRepositoryError(RuntimeError):
    """A write was attempted against a read-only knowledge source."""


class KnowledgeRepository(Protocol):
    def find_by_path(self, category: Category, language: Language) -> list[KnowledgeRecord]: ...

    def save(
        self, category: Category, language: Language, records: Sequence[KnowledgeRecord]
    ) -> None: ...

    def exists(self, category: Category, language: Language) -> bool: ...

    def archive(
        self, category: Category, language: Language, records: Sequence[KnowledgeRecord]
    ) -> None: ...

    def find_all(self) -> Corpus: ...


class FileSystemKnowledgeRepository:
    """Reads and writes Markdown partitions under a local directory."""

    def __init__(
        self,
        base_dir: Path,
        codec: MarkdownCodec | None = None,
        archive_limit: int = ARCHIVE_SIZE_LIMIT,
    ) -> None:
        self._base_dir = Path(base_dir)
        self._codec = codec or MarkdownCodec()
        self._archive_limit = archive_limit

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    def file_path(self, category: Category, language: Language) -> Path:
        return self._base_dir / category.value / f"{language.value}.md"

    def archive_path(self, category: Category, language: Language) -> Path:
        return self._base_dir / ARCHIVE_DIR / category.value / f"{language.value}.md"

    def find_by_path(self, category: Category, language: Language) -> list[KnowledgeRecord]:
        path = self.file_path(category, language)
        if not path.exists():
            return []
        return self._codec.deserialize(path.read_text(encoding="utf-8"))

    def save(
        self, category: Category, language: Language, records: Sequence[KnowledgeRecord]
    ) -> None:
        path = self.file_path(category, language)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self._codec.serialize(category, language, list(records)), encoding="utf-8")

    def exists(self, category: Category, language: Language) -> bool:
        return self.file_path(category, language).exists()

    def archive(
        self, category: Category, language: Language, records: Sequence[KnowledgeRecord]
    ) -> None:
        """Append ``records`` to the archive, rotating it when it would grow too large.

        Rotation copies the current archive to a timestamped sibling and starts
        a fresh file. I/O errors propagate to the caller.
        """
        path = self.archive_path(category, language)
        path.parent.mkdir(parents=True, exist_ok=True)
        header = self._codec.title_line(category, language, prefix="Archive: ")

        if path.exists():
            content = path.read_text(encoding="utf-8")
            existing = self._codec.count_records(content)
            if existing + len(records) > self._archive_limit:
                logger.warning(f"Archive file too large: {path}. Rotating...")
                timestamp = datetime.now().isoformat().replace(":", "-").replace(".", "-")
                rotated = path.with_name(f"{path.stem}-{timestamp}{path.suffix}")
                rotated.write_text(content, encoding="utf-8")
                content = header
        else:
            content = header

        for record in records:
            content += self._codec.record_to_markdown(record)
        path.write_text(content, encoding="utf-8")

    def find_all(self) -> Corpus:
        """Load every valid partition, keyed by category then language."""
        corpus: Corpus = {}
        if not self._base_dir.is_dir():
            return corpus

        for category_dir in sorted(self._base_dir.iterdir()):
            name = category_dir.name
            if not category_dir.is_dir() or name == ARCHIVE_DIR or name.startswith("."):
                continue
            try:
                category = Category(name)
            except DomainError:
                logger.debug(f"Skipping non-category directory: {name}")
                continue

            languages: dict[str, list[KnowledgeRecord]] = {}
            for md_file in sorted(category_dir.glob("*.md")):
                try:
                    language = Language(md_file.stem)
                except DomainError as e:
                    logger.warning(f"Invalid language file: {md_file.name} ({e})")
                    continue
                languages[language.value] = self.find_by_path(category, language)

            if languages:
                corpus[category.value] = languages
        return corpus
