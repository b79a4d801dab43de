"""Bulk apply: load a knowledge document and update every partition it touches.

Input document (as produced by the review-comment extraction step)::

    {
      "knowledge_items": [
        {"category": "security", "language": "java", "title": "...",
         "severity": "critical", "summary": "...", "recommendation": "...",
         "code_example": {"bad": "...", "good": "..."},
         "file_path": "src/UserDao.java", "pr_url": "https://github.com/o/r/pull/1"}
      ],
      "skipped_comments": [...]
    }
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from reviewdojo.domain.errors import DomainError, InvalidKnowledgeDocumentError
from reviewdojo.domain.record import KnowledgeInput
from reviewdojo.domain.values import PathComponent
from reviewdojo.ingest.apply import ApplyKnowledge

logger = logging.getLogger(__name__)

MAX_INPUT_SIZE = 10 * 1024 * 1024
MAX_KNOWLEDGE_ITEMS = 1000
CONCURRENCY_LIMIT = 10


@dataclass
class KnowledgeDocument:
    items: list[dict[str, Any]]
    skipped_comments: int = 0


@dataclass
class BatchResult:
    processed: int = 0
    partitions: dict[str, int] = field(default_factory=dict)  # key -> records after save
    failures: dict[str, str] = field(default_factory=dict)  # key -> error message
    skipped_comments: int = 0


def load_document(path: Path) -> KnowledgeDocument:
    """Read and validate a knowledge document.

    Raises InvalidKnowledgeDocumentError for oversized, malformed or
    overlong input; OSError propagates if the file cannot be read.
    """
    size = path.stat().st_size
    if size > MAX_INPUT_SIZE:
        raise InvalidKnowledgeDocumentError(
            f"JSON file too large: {size} bytes (max: {MAX_INPUT_SIZE})"
        )

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise InvalidKnowledgeDocumentError(f"Invalid JSON format: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get("knowledge_items"), list):
        raise InvalidKnowledgeDocumentError("Invalid JSON format: missing knowledge_items array")

    items = data["knowledge_items"]
    if len(items) > MAX_KNOWLEDGE_ITEMS:
        raise InvalidKnowledgeDocumentError(
            f"Too many knowledge items: {len(items)} (max: {MAX_KNOWLEDGE_ITEMS})"
        )

    skipped = data.get("skipped_comments")
    return KnowledgeDocument(
        items=items,
        skipped_comments=len(skipped) if isinstance(skipped, list) else 0,
    )


def group_by_partition(items: list[dict[str, Any]]) -> dict[str, list[KnowledgeInput]]:
    """Group raw items by ``category/language``, skipping unsafe or incomplete ones."""
    grouped: dict[str, list[KnowledgeInput]] = {}
    for item in items:
        if not isinstance(item, dict) or not item.get("category") or not item.get("language"):
            logger.warning("Skipping item: missing category or language")
            continue
        try:
            category = PathComponent.create(item["category"])
            language = PathComponent.create(item["language"])
        except DomainError as e:
            logger.warning(f"Skipping item: {e}")
            continue
        key = f"{category.value.lower()}/{language.value.lower()}"
        grouped.setdefault(key, []).append(KnowledgeInput.from_dict(item))
    return grouped


async def _apply_one(
    use_case: ApplyKnowledge, key: str, items: list[KnowledgeInput], result: BatchResult
) -> int:
    category, language = key.split("/", 1)
    try:
        count = await asyncio.to_thread(use_case.execute, category, language, items)
    except Exception as e:
        logger.error(f"Error updating {key}: {e}")
        result.failures[key] = str(e)
        return 0
    logger.debug(f"Updated {key}.md: {count} items")
    result.partitions[key] = count
    return len(items)


async def apply_batch(
    use_case: ApplyKnowledge,
    grouped: dict[str, list[KnowledgeInput]],
    concurrency: int = CONCURRENCY_LIMIT,
) -> BatchResult:
    """Apply every group, ``concurrency`` partitions at a time.

    Each chunk finishes before the next starts. A failing partition is logged
    and contributes nothing to ``processed``; its siblings still run.
    """
    result = BatchResult()
    entries = list(grouped.items())
    for start in range(0, len(entries), concurrency):
        chunk = entries[start : start + concurrency]
        counts = await asyncio.gather(
            *(_apply_one(use_case, key, items, result) for key, items in chunk)
        )
        result.processed += sum(counts)
    return result


def apply_document(use_case: ApplyKnowledge, path: Path) -> BatchResult:
    """Load ``path`` and apply it; the synchronous entry point used by the CLI."""
    document = load_document(path)
    logger.info(f"Processing {len(document.items)} knowledge items...")
    result = asyncio.run(apply_batch(use_case, group_by_partition(document.items)))
    result.skipped_comments = document.skipped_comments
    return result
