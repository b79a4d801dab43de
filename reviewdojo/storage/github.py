"""Read-only knowledge repository backed by the GitHub contents API.

Used by the tool server in remote mode, so that a team can point every
developer at one shared knowledge repository without cloning it.
"""

from __future__ import annotations

import logging
import time
from typing import Sequence

from github import GithubException, UnknownObjectException

from reviewdojo.config import REPO_PATTERN
from reviewdojo.domain.errors import DomainError
from reviewdojo.domain.record import KnowledgeRecord
from reviewdojo.domain.search import Corpus
from reviewdojo.domain.values import Category, Language
from reviewdojo.github.client import GitHubClient
from reviewdojo.storage.codec import MarkdownCodec
from reviewdojo.storage.repository import ARCHIVE_DIR, ReadOnlyRepositoryError

logger = logging.getLogger(__name__)

CACHE_TTL_SECONDS = 5 * 60


class GitHubKnowledgeRepository:
    """Loads partitions from ``owner/repo`` and caches them for five minutes.

    ``save`` and ``archive`` raise ReadOnlyRepositoryError; use a local
    checkout to write.
    """

    def __init__(
        self,
        repo: str,
        codec: MarkdownCodec | None = None,
        token: str | None = None,
        api_url: str | None = None,
        client: GitHubClient | None = None,
        cache_ttl: float = CACHE_TTL_SECONDS,
    ) -> None:
        if not REPO_PATTERN.fullmatch(repo or ""):
            raise ValueError(f"Invalid repository path: {repo}. Expected format: owner/repo")
        self._client = client or GitHubClient(repo=repo, token=token, api_url=api_url)
        self._codec = codec or MarkdownCodec()
        self._cache_ttl = cache_ttl
        self._cache: dict[str, tuple[float, list[KnowledgeRecord]]] = {}
        self._corpus_cache: tuple[float, Corpus] | None = None

    def _fresh(self, timestamp: float) -> bool:
        return time.monotonic() - timestamp < self._cache_ttl

    def find_by_path(self, category: Category, language: Language) -> list[KnowledgeRecord]:
        key = f"{category.value}/{language.value}"
        cached = self._cache.get(key)
        if cached and self._fresh(cached[0]):
            return list(cached[1])

        try:
            contents = self._client.repo.get_contents(f"{key}.md")
        except UnknownObjectException:
            return []

        if isinstance(contents, list) or contents.type != "file":
            return []

        records = self._codec.deserialize(contents.decoded_content.decode("utf-8"))
        self._cache[key] = (time.monotonic(), list(records))
        return records

    def exists(self, category: Category, language: Language) -> bool:
        try:
            self._client.repo.get_contents(f"{category.value}/{language.value}.md")
        except UnknownObjectException:
            return False
        return True

    def save(
        self, category: Category, language: Language, records: Sequence[KnowledgeRecord]
    ) -> None:
        raise ReadOnlyRepositoryError(
            "save() is not supported in GitHub remote mode. Use local mode for writing."
        )

    def archive(
        self, category: Category, language: Language, records: Sequence[KnowledgeRecord]
    ) -> None:
        raise ReadOnlyRepositoryError(
            "archive() is not supported in GitHub remote mode. Use local mode for archiving."
        )

    def find_all(self) -> Corpus:
        if self._corpus_cache and self._fresh(self._corpus_cache[0]):
            return self._corpus_cache[1]

        corpus: Corpus = {}
        root = self._client.repo.get_contents("")
        if not isinstance(root, list):
            return corpus

        for entry in root:
            if entry.type != "dir" or entry.name == ARCHIVE_DIR or entry.name.startswith("."):
                continue
            try:
                category = Category(entry.name)
            except DomainError as e:
                logger.warning(f"Invalid category directory: {entry.name} ({e})")
                continue

            try:
                listing = self._client.repo.get_contents(entry.name)
            except GithubException as e:
                logger.warning(f"Failed to list {entry.name}: {e}")
                continue
            if not isinstance(listing, list):
                continue

            languages: dict[str, list[KnowledgeRecord]] = {}
            for file in listing:
                if file.type != "file" or not file.name.endswith(".md"):
                    continue
                try:
                    language = Language(file.name[: -len(".md")])
                except DomainError as e:
                    logger.warning(f"Invalid language file: {file.name} ({e})")
                    continue
                languages[language.value] = self.find_by_path(category, language)

            if languages:
                corpus[category.value] = languages

        self._corpus_cache = (time.monotonic(), corpus)
        return corpus

    def clear_cache(self) -> None:
        self._cache.clear()
        self._corpus_cache = None

    def close(self) -> None:
        self._client.close()
