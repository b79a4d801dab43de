"""Query use cases: search, detail lookup and corpus metadata.

Each call loads the corpus from the repository (the remote repository caches
it), runs the search service over it and returns JSON-ready dataclasses.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field

from reviewdojo.domain.search import KnowledgeQuery, KnowledgeSearchService, SearchResult
from reviewdojo.storage.repository import KnowledgeRepository

SEARCH_REFERENCE_LIMIT = 3

CATEGORY_DESCRIPTIONS = {
    "security": "セキュリティ関連（SQLインジェクション、XSS、認証・認可など）",
    "performance": "パフォーマンス関連（N+1問題、メモリリーク、最適化など）",
    "readability": "可読性・命名関連（命名規則、コメント、コード構造など）",
    "design": "設計・アーキテクチャ関連（デザインパターン、SOLID原則など）",
    "testing": "テスト関連（テストカバレッジ、テスト設計、モックなど）",
    "error-handling": "エラーハンドリング関連（例外処理、ログ出力、リトライ処理など）",
    "other": "その他",
}


def _dumps(data: object) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False)


@dataclass
class SearchHit:
    id: str
    category: str
    language: str
    severity: str
    title: str
    summary: str
    occurrences: int
    file_path_example: str
    pr_references: list[str] = field(default_factory=list)


@dataclass
class SearchResponse:
    total_count: int
    results: list[SearchHit] = field(default_factory=list)

    def to_json(self) -> str:
        return _dumps(asdict(self))

    def to_text(self) -> str:
        if not self.results:
            return "No knowledge found."
        lines = [f"{self.total_count} result(s)", ""]
        for hit in self.results:
            lines.append(f"[{hit.severity}] {hit.title}  (x{hit.occurrences})")
            lines.append(f"  id: {hit.id}")
            if hit.summary:
                lines.append(f"  {hit.summary}")
        return "\n".join(lines)


@dataclass
class KnowledgeDetail:
    category: str
    language: str
    severity: str
    title: str
    summary: str
    recommendation: str
    occurrences: int
    file_path_example: str
    pr_references: list[str] = field(default_factory=list)
    code_example: dict[str, str] | None = None

    def to_dict(self) -> dict:
        data = asdict(self)
        if data["code_example"] is None:
            del data["code_example"]
        return data

    def to_json(self) -> str:
        return _dumps(self.to_dict())


class KnowledgeQueryService:
    """Read-side entry point shared by the CLI and the tool server."""

    def __init__(
        self,
        repository: KnowledgeRepository,
        search_service: KnowledgeSearchService | None = None,
    ) -> None:
        self._repository = repository
        self._search = search_service or KnowledgeSearchService()

    def search(
        self,
        query: str | None = None,
        category: str | None = None,
        language: str | None = None,
        severity: str | None = None,
        file_path: str | None = None,
        max_results: int | None = None,
    ) -> SearchResponse:
        knowledge_query = KnowledgeQuery.create(
            text=query,
            category=category,
            language=language,
            severity=severity,
            file_path=file_path,
            max_results=max_results,
        )
        results = self._search.search(self._repository.find_all(), knowledge_query)
        hits = [self._to_hit(result) for result in results]
        return SearchResponse(total_count=len(hits), results=hits)

    def _to_hit(self, result: SearchResult) -> SearchHit:
        record = result.record
        return SearchHit(
            id=self._search.generate_id(result.category, result.language, record),
            category=result.category,
            language=result.language,
            severity=record.severity.value,
            title=record.title,
            summary=record.summary,
            occurrences=record.occurrences,
            file_path_example=record.target_file,
            pr_references=record.reference_urls[:SEARCH_REFERENCE_LIMIT],
        )

    def get_detail(self, record_id: str) -> KnowledgeDetail | None:
        result = self._search.find_by_id(self._repository.find_all(), record_id)
        if result is None:
            return None

        record = result.record
        return KnowledgeDetail(
            category=result.category,
            language=result.language,
            severity=record.severity.value,
            title=record.title,
            summary=record.summary,
            recommendation=record.recommendation,
            occurrences=record.occurrences,
            file_path_example=record.target_file,
            pr_references=record.reference_urls,
            code_example=None if record.code_example.is_empty else record.code_example.to_dict(),
        )

    def list_categories(self) -> list[dict]:
        return [
            {
                "name": entry["name"],
                "description": CATEGORY_DESCRIPTIONS.get(entry["name"], ""),
                "knowledge_count": entry["knowledge_count"],
            }
            for entry in self._search.list_categories(self._repository.find_all())
        ]

    def list_languages(self) -> list[dict]:
        return self._search.list_languages(self._repository.find_all())
