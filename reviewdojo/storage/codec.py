"""Markdown codec for knowledge files.

File layout (labels are part of the format other tooling reads)::

    # Security - Java

    ## SQL Injection

    - **重要度**: critical
    - **発生回数**: 3
    - **概要**: String concatenation in queries
    - **推奨対応**: Use PreparedStatement
    - **コード例**:
      ```
      // NG
      stmt.executeQuery("... " + id);
      ```
      ```
      // OK
      ps.setInt(1, id);
      ```
    - **対象ファイル例**: `src/UserDao.java`
    - **参照PR**:
      - https://github.com/org/repo/pull/1

    ---

Continuation lines of a field are indented by two spaces, which is how
multi-line summaries and code survive a round trip. A snippet that contains
backtick runs of three or more is fenced with a longer run.
"""

from __future__ import annotations

import logging
import re

from reviewdojo.domain.errors import DomainError
from reviewdojo.domain.record import KnowledgeRecord
from reviewdojo.domain.values import Category, CodeExample, Language

logger = logging.getLogger(__name__)

LABEL_SEVERITY = "重要度"
LABEL_OCCURRENCES = "発生回数"
LABEL_SUMMARY = "概要"
LABEL_RECOMMENDATION = "推奨対応"
LABEL_CODE_EXAMPLE = "コード例"
LABEL_TARGET_FILE = "対象ファイル例"
LABEL_REFERENCES = "参照PR"

BAD_MARKER = "// NG"
GOOD_MARKER = "// OK"
FENCE = "```"
INDENT = "  "
DELIMITER = "---"

_TITLE_LINE = re.compile(r"^#\s+.+\n\n?", re.MULTILINE)
_SECTION_SPLIT = re.compile(r"^## ", re.MULTILINE)
_FIELD_LINE = re.compile(r"^- \*\*(?P<label>[^*]+)\*\*:\s?(?P<value>.*)$")
_URL = re.compile(r"https?://\S+")
_BACKTICKED = re.compile(r"`(.+?)`")
_DIGITS = re.compile(r"\d+")
_BACKTICK_RUN = re.compile(r"`+")
_FENCE_LINE = re.compile(r"`{3,}")


def capitalize(value: str) -> str:
    return value[:1].upper() + value[1:]


def _indent(text: str) -> str:
    return "\n".join(INDENT + line for line in text.split("\n"))


def _dedent_line(line: str) -> str:
    return line[len(INDENT):] if line.startswith(INDENT) else line.lstrip()


def _fence_for(snippet: str) -> str:
    """Backtick fence longer than any backtick run inside ``snippet``."""
    longest = max((len(run) for run in _BACKTICK_RUN.findall(snippet)), default=0)
    return "`" * max(len(FENCE), longest + 1)


class MarkdownCodec:
    """Serializes partitions to Markdown and parses them back."""

    def title_line(self, category: Category, language: Language, prefix: str = "") -> str:
        return f"# {prefix}{capitalize(category.value)} - {capitalize(language.value)}\n\n"

    def serialize(
        self,
        category: Category,
        language: Language,
        records: list[KnowledgeRecord],
    ) -> str:
        content = self.title_line(category, language)
        for record in records:
            content += self.record_to_markdown(record)
        return content

    def record_to_markdown(self, record: KnowledgeRecord) -> str:
        lines = [f"## {record.title}", ""]
        lines.append(self._field(LABEL_SEVERITY, record.severity.value))
        lines.append(self._field(LABEL_OCCURRENCES, str(record.occurrences)))
        lines.append(self._field(LABEL_SUMMARY, record.summary))
        lines.append(self._field(LABEL_RECOMMENDATION, record.recommendation))

        code = record.code_example
        if not code.is_empty:
            lines.append(f"- **{LABEL_CODE_EXAMPLE}**:")
            for marker, snippet in ((BAD_MARKER, code.bad), (GOOD_MARKER, code.good)):
                if snippet:
                    fence = _fence_for(snippet)
                    lines.append(INDENT + fence)
                    lines.append(INDENT + marker)
                    lines.append(_indent(snippet))
                    lines.append(INDENT + fence)

        if record.target_file:
            lines.append(f"- **{LABEL_TARGET_FILE}**: `{record.target_file}`")

        if record.references:
            lines.append(f"- **{LABEL_REFERENCES}**:")
            for url in record.reference_urls:
                lines.append(f"{INDENT}- {url}")

        lines.extend(["", DELIMITER, ""])
        return "\n".join(lines)

    def _field(self, label: str, value: str) -> str:
        first, *rest = value.split("\n")
        line = f"- **{label}**: {first}"
        if rest:
            line += "\n" + _indent("\n".join(rest))
        return line

    def deserialize(self, markdown: str) -> list[KnowledgeRecord]:
        """Parse every record block; malformed blocks are logged and skipped."""
        content = _TITLE_LINE.sub("", markdown, count=1)
        records: list[KnowledgeRecord] = []
        for section in _SECTION_SPLIT.split(content):
            if not section.strip():
                continue
            try:
                record = self._parse_section(section)
            except (DomainError, ValueError) as e:
                logger.warning(f"Failed to parse knowledge section: {e}")
                continue
            if record is not None:
                records.append(record)
        return records

    def count_records(self, markdown: str) -> int:
        return len(self.deserialize(markdown))

    def _parse_section(self, section: str) -> KnowledgeRecord | None:
        lines = section.split("\n")
        title = lines[0].strip()
        if not title:
            return None

        fields = self._collect_fields(lines[1:])
        severity = self._first_line(fields.get(LABEL_SEVERITY))
        occurrences_match = _DIGITS.search(self._first_line(fields.get(LABEL_OCCURRENCES)) or "")
        target_match = _BACKTICKED.search(self._first_line(fields.get(LABEL_TARGET_FILE)) or "")
        references = _URL.findall("\n".join(fields.get(LABEL_REFERENCES, [])))

        return KnowledgeRecord.from_serialized(
            title=title,
            severity=severity.strip() if severity else None,
            occurrences=int(occurrences_match.group()) if occurrences_match else 1,
            summary=self._text(fields.get(LABEL_SUMMARY)),
            recommendation=self._text(fields.get(LABEL_RECOMMENDATION)),
            code_example=self._code_example(fields.get(LABEL_CODE_EXAMPLE, [])),
            file_path=target_match.group(1).strip() if target_match else "",
            pr_urls=references,
        )

    def _collect_fields(self, lines: list[str]) -> dict[str, list[str]]:
        """Group block lines by field label; index 0 holds the text after the label."""
        fields: dict[str, list[str]] = {}
        current: list[str] | None = None
        for line in lines:
            if line.rstrip() == DELIMITER:
                break
            match = _FIELD_LINE.match(line)
            if match:
                current = fields.setdefault(match.group("label"), [])
                current.clear()
                current.append(match.group("value"))
            elif current is not None and line.startswith(INDENT):
                current.append(_dedent_line(line))
            elif current is not None and line.strip():
                current.append(line.strip())
        return fields

    @staticmethod
    def _first_line(values: list[str] | None) -> str | None:
        return values[0] if values else None

    @staticmethod
    def _text(values: list[str] | None) -> str:
        if not values:
            return ""
        return "\n".join(values).strip()

    @staticmethod
    def _code_example(values: list[str]) -> CodeExample:
        snippets = {BAD_MARKER: [], GOOD_MARKER: []}
        target: list[str] | None = None
        # A snippet closes only on the exact fence that opened it
        fence: str | None = None
        for line in values[1:]:
            stripped = line.strip()
            if fence is None:
                if _FENCE_LINE.fullmatch(stripped):
                    fence = stripped
                    target = None
                continue
            if stripped == fence:
                fence = None
                target = None
                continue
            if target is None and stripped in snippets:
                target = snippets[stripped]
                continue
            if target is not None:
                target.append(line)
        return CodeExample(
            bad="\n".join(snippets[BAD_MARKER]),
            good="\n".join(snippets[GOOD_MARKER]),
        )
