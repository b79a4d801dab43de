"""Tests for reviewdojo.domain.record and reviewdojo.domain.matcher."""

from __future__ import annotations

import pytest

from reviewdojo.domain.errors import InvalidSeverityError
from reviewdojo.domain.matcher import ExactTitleMatcher
from reviewdojo.domain.record import KnowledgeInput, KnowledgeRecord

PR_URL = "https://github.com/acme/webapp/pull/42"


class TestKnowledgeInput:
    def test_from_dict(self):
        item = KnowledgeInput.from_dict(
            {
                "category": "security",
                "title": "XSS",
                "severity": "warning",
                "code_example": {"bad": "innerHTML = x"},
                "pr_url": PR_URL,
            }
        )
        assert item.title == "XSS"
        assert item.severity == "warning"
        assert item.summary == ""
        assert item.code_example == {"bad": "innerHTML = x"}
        assert item.pr_url == PR_URL

    def test_from_dict_missing_optionals(self):
        item = KnowledgeInput.from_dict({"title": "T"})
        assert item.severity is None
        assert item.pr_url is None
        assert item.file_path == ""


class TestCreate:
    def test_new_record(self, sql_injection_input):
        record = KnowledgeRecord.create(sql_injection_input)
        assert record.occurrences == 1
        assert record.severity.value == "critical"
        assert record.target_file == "src/main/java/UserDao.java"
        assert record.reference_urls == [PR_URL]
        assert not record.code_example.is_empty

    def test_masks_summary_and_recommendation(self):
        record = KnowledgeRecord.create(
            KnowledgeInput(
                title="SQL Injection",
                severity="critical",
                summary="password: secret123",
                recommendation="rotate api_key=ABCDEFGHIJKLMNOPQRST",
            )
        )
        assert "password: ***" in record.summary
        assert "secret123" not in record.summary
        assert "ABCDEFGHIJKLMNOPQRST" not in record.recommendation

    def test_default_severity(self):
        assert KnowledgeRecord.create(KnowledgeInput(title="T")).severity.value == "info"

    def test_invalid_severity_raises(self):
        with pytest.raises(InvalidSeverityError):
            KnowledgeRecord.create(KnowledgeInput(title="T", severity="blocker"))

    def test_invalid_pr_url_is_dropped(self, caplog):
        record = KnowledgeRecord.create(KnowledgeInput(title="T", pr_url="not a url"))
        assert record.references == []
        assert "Invalid PR URL" in caplog.text


class TestMerge:
    def test_increments_by_one(self, sql_injection_input):
        record = KnowledgeRecord.create(sql_injection_input)
        record.merge()
        assert record.occurrences == 2

    def test_appends_new_reference(self, sql_injection_input):
        record = KnowledgeRecord.create(sql_injection_input)
        record.merge("https://github.com/acme/webapp/pull/43")
        assert record.reference_urls == [PR_URL, "https://github.com/acme/webapp/pull/43"]

    def test_duplicate_reference_not_appended(self, sql_injection_input):
        record = KnowledgeRecord.create(sql_injection_input)
        record.merge(PR_URL)
        assert record.occurrences == 2
        assert record.reference_urls == [PR_URL]

    def test_invalid_reference_still_counts(self, sql_injection_input):
        record = KnowledgeRecord.create(sql_injection_input)
        record.merge("https://example.com/nope")
        assert record.occurrences == 2
        assert record.reference_urls == [PR_URL]


class TestFromSerialized:
    def test_restores_occurrences_and_references(self):
        record = KnowledgeRecord.from_serialized(
            title="T",
            summary="s",
            recommendation="r",
            occurrences=4,
            severity="warning",
            pr_urls=[
                "https://github.com/a/b/pull/1",
                "https://github.com/a/b/pull/2",
                "https://github.com/a/b/pull/1",
            ],
        )
        assert record.occurrences == 4
        assert record.reference_urls == [
            "https://github.com/a/b/pull/1",
            "https://github.com/a/b/pull/2",
        ]

    def test_keeps_references_beyond_occurrences(self):
        urls = [f"https://github.com/a/b/pull/{n}" for n in range(1, 4)]
        record = KnowledgeRecord.from_serialized("T", "", "", occurrences=1, pr_urls=urls)
        assert record.reference_urls == urls

    def test_occurrences_clamped_to_one(self):
        assert KnowledgeRecord.from_serialized("T", "", "", occurrences=0).occurrences == 1

    def test_masks_stored_text(self):
        record = KnowledgeRecord.from_serialized("T", "password=abc", "", occurrences=1)
        assert record.summary == "password: ***"


class TestExactTitleMatcher:
    def test_case_insensitive(self, sql_injection_input):
        existing = [KnowledgeRecord(title="XSS"), KnowledgeRecord(title="sql injection")]
        assert ExactTitleMatcher().find_similar(sql_injection_input, existing) is existing[1]

    def test_first_match_wins(self):
        existing = [KnowledgeRecord(title="Dup"), KnowledgeRecord(title="DUP")]
        assert ExactTitleMatcher().find_similar(KnowledgeInput(title="dup"), existing) is existing[0]

    def test_no_match(self):
        assert ExactTitleMatcher().find_similar(KnowledgeInput(title="X"), []) is None

    def test_not_fuzzy(self):
        existing = [KnowledgeRecord(title="SQL Injection")]
        assert ExactTitleMatcher().find_similar(KnowledgeInput(title="SQL injections"), existing) is None

    def test_ignores_surrounding_whitespace(self):
        existing = [KnowledgeRecord(title="SQL Injection")]
        candidate = KnowledgeInput(title="  sql injection \n")
        assert ExactTitleMatcher().find_similar(candidate, existing) is existing[0]


class TestNormalization:
    def test_strips_surrounding_whitespace(self):
        record = KnowledgeRecord.create(
            KnowledgeInput(
                title=" N+1 Query ",
                summary="\n  lazy loading\n  in a loop  \n",
                recommendation="  join fetch\n",
                file_path=" src/OrderService.java ",
            )
        )
        assert record.title == "N+1 Query"
        assert record.summary == "lazy loading\n  in a loop"
        assert record.recommendation == "join fetch"
        assert record.target_file == "src/OrderService.java"
