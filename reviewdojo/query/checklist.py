"""PR checklist generation from the files a change touches."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field

from reviewdojo.domain.errors import DomainError
from reviewdojo.domain.search import Corpus, KnowledgeQuery, KnowledgeSearchService
from reviewdojo.domain.values import SEVERITIES, Language, Severity, severity_rank
from reviewdojo.storage.repository import KnowledgeRepository

logger = logging.getLogger(__name__)

CHECKLIST_MAX_PER_QUERY = 20
CHECKLIST_TITLE = "## Review Dojo Checklist"
EMPTY_MESSAGE = "関連する知見は見つかりませんでした。"

SEVERITY_HEADINGS = {
    "critical": "重要 (critical)",
    "warning": "警告 (warning)",
    "info": "情報 (info)",
}


@dataclass
class ChecklistItem:
    category: str
    severity: str
    title: str
    check_item: str
    knowledge_id: str


@dataclass
class ChecklistResult:
    checklist: list[ChecklistItem] = field(default_factory=list)
    summary: str = ""

    def to_json(self) -> str:
        return json.dumps(asdict(self), indent=2, ensure_ascii=False)

    def to_markdown(self) -> str:
        lines = [CHECKLIST_TITLE, ""]
        if not self.checklist:
            lines.append(EMPTY_MESSAGE)
            return "\n".join(lines) + "\n"

        if self.summary:
            lines.extend([self.summary, ""])
        for severity in SEVERITIES:
            items = [item for item in self.checklist if item.severity == severity]
            if not items:
                continue
            lines.append(f"### {SEVERITY_HEADINGS[severity]}")
            lines.append("")
            for item in items:
                lines.append(f"- [ ] {item.check_item} (`{item.knowledge_id}`)")
            lines.append("")
        return "\n".join(lines)


def to_check_item(title: str) -> str:
    """Phrase a record title as a yes/no review question."""
    if title.endswith(("?", "？")):
        return title
    if "対策" in title:
        return f"{title}を実施しましたか？"
    if "確認" in title:
        return f"{title}を行いましたか？"
    return f"{title}を確認しましたか？"


def detect_languages(file_paths: list[str]) -> list[str]:
    """Distinct languages of ``file_paths`` in first-seen order; paths without an extension are ignored."""
    languages: list[str] = []
    for path in file_paths:
        language = Language.from_path(path)
        if language is not None and language.value not in languages:
            languages.append(language.value)
    return languages


def parse_severity_filter(severity_filter: str | None) -> list[str | None]:
    """Split ``"critical,warning"`` into severities; ``[None]`` means no filter."""
    if not severity_filter:
        return [None]
    severities: list[str | None] = []
    for raw in severity_filter.split(","):
        raw = raw.strip()
        if not raw:
            continue
        try:
            value = Severity.from_string(raw).value
        except DomainError as e:
            logger.warning(f"Ignoring severity filter entry: {e}")
            continue
        if value not in severities:
            severities.append(value)
    return severities or [None]


class ChecklistGenerator:
    def __init__(
        self,
        repository: KnowledgeRepository,
        search_service: KnowledgeSearchService | None = None,
    ) -> None:
        self._repository = repository
        self._search = search_service or KnowledgeSearchService()

    def generate(
        self,
        file_paths: list[str],
        languages: list[str] | None = None,
        severity_filter: str | None = None,
    ) -> ChecklistResult:
        """Build a checklist for ``file_paths``.

        ``languages`` overrides extension-based detection. Each language is
        searched once per requested severity, at most 20 records per search.
        """
        targets = languages if languages else detect_languages(file_paths)
        severities = parse_severity_filter(severity_filter)
        corpus = self._repository.find_all()

        items: list[ChecklistItem] = []
        for language in targets:
            for severity in severities:
                items.extend(self._collect(corpus, language, severity))

        items.sort(key=lambda item: severity_rank(item.severity), reverse=True)
        return ChecklistResult(checklist=items, summary=self._summary(items, targets))

    def _collect(self, corpus: Corpus, language: str, severity: str | None) -> list[ChecklistItem]:
        query = KnowledgeQuery.create(
            language=language, severity=severity, max_results=CHECKLIST_MAX_PER_QUERY
        )
        return [
            ChecklistItem(
                category=result.category,
                severity=result.record.severity.value,
                title=result.record.title,
                check_item=to_check_item(result.record.title),
                knowledge_id=self._search.generate_id(
                    result.category, result.language, result.record
                ),
            )
            for result in self._search.search(corpus, query)
        ]

    @staticmethod
    def _summary(items: list[ChecklistItem], languages: list[str]) -> str:
        parts = [f"対象言語: {', '.join(languages)}", f"チェック項目数: {len(items)}件"]
        for severity, label in (("critical", "重要"), ("warning", "警告"), ("info", "情報")):
            count = sum(1 for item in items if item.severity == severity)
            if count:
                parts.append(f"{label}: {count}件")
        return " | ".join(parts)
