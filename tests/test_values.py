"""Tests for reviewdojo.domain.values."""

from __future__ import annotations

import os
from unittest.mock import patch

import pytest

from reviewdojo.domain.errors import (
    DomainError,
    InvalidCategoryError,
    InvalidLanguageError,
    InvalidPathComponentError,
    InvalidPRReferenceError,
    InvalidSeverityError,
)
from reviewdojo.domain.values import (
    CATEGORIES,
    Category,
    CodeExample,
    Language,
    PathComponent,
    PRReference,
    Severity,
    severity_rank,
)


class TestCategory:
    def test_all_known_categories(self):
        for name in CATEGORIES:
            assert Category(name).value == name

    def test_from_string_lowercases(self):
        assert Category.from_string("Security") == Category("security")

    def test_rejects_unknown(self):
        with pytest.raises(InvalidCategoryError):
            Category.from_string("style")

    def test_direct_construction_validates(self):
        with pytest.raises(InvalidCategoryError):
            Category("Security")

    def test_is_a_value_error(self):
        with pytest.raises(ValueError):
            Category("nope")


class TestLanguage:
    def test_from_string_normalizes(self):
        assert Language.from_string("Java").value == "java"

    def test_unknown_language_allowed_but_flagged(self):
        lang = Language.from_string("elixir")
        assert lang.value == "elixir"
        assert not lang.is_known
        assert Language("java").is_known

    def test_rejects_empty(self):
        with pytest.raises(InvalidLanguageError):
            Language.from_string("")

    def test_rejects_bad_characters(self):
        with pytest.raises(InvalidLanguageError):
            Language.from_string("c sharp")
        with pytest.raises(InvalidLanguageError):
            Language("java\n")

    def test_rejects_too_long(self):
        with pytest.raises(InvalidLanguageError):
            Language("a" * 51)
        assert Language("a" * 50).value == "a" * 50

    @pytest.mark.parametrize(
        "ext,expected",
        [
            ("java", "java"),
            (".ts", "typescript"),
            ("tsx", "typescript"),
            ("js", "nodejs"),
            ("py", "python"),
            ("RB", "ruby"),
            ("kts", "kotlin"),
            ("xyz", "other"),
        ],
    )
    def test_from_extension(self, ext, expected):
        assert Language.from_extension(ext).value == expected

    def test_from_path(self):
        assert Language.from_path("src/main/java/UserDao.java") == Language("java")
        assert Language.from_path("C:\\code\\app.py") == Language("python")

    def test_from_path_without_extension(self):
        assert Language.from_path("Makefile") is None
        assert Language.from_path("docs/") is None
        assert Language.from_path("weird.") is None


class TestSeverity:
    def test_default_is_info(self):
        assert Severity().value == "info"
        assert Severity.from_string(None).value == "info"
        assert Severity.from_string("").value == "info"

    def test_from_string_lowercases(self):
        assert Severity.from_string("CRITICAL").is_critical

    def test_rejects_unknown(self):
        with pytest.raises(InvalidSeverityError):
            Severity.from_string("high")

    def test_rank(self):
        assert Severity("critical").rank == 3
        assert Severity("warning").rank == 2
        assert Severity("info").rank == 1
        assert severity_rank("bogus") == 0


class TestCodeExample:
    def test_empty_when_both_absent(self):
        assert CodeExample().is_empty
        assert CodeExample.from_dict(None).is_empty
        assert CodeExample.from_dict({}).is_empty

    def test_not_empty_with_one_side(self):
        example = CodeExample.from_dict({"bad": "eval(x)"})
        assert not example.is_empty
        assert example.good == ""

    def test_to_dict(self):
        assert CodeExample("a", "b").to_dict() == {"bad": "a", "good": "b"}


class TestPRReference:
    def test_parses_parts(self):
        ref = PRReference.create("https://github.com/acme/webapp/pull/42")
        assert ref.owner == "acme"
        assert ref.repository == "webapp"
        assert ref.number == 42

    def test_equality_by_url(self):
        a = PRReference("https://github.com/acme/webapp/pull/1")
        b = PRReference("https://github.com/acme/webapp/pull/1", host="github.com")
        assert a == b
        assert a != PRReference("https://github.com/acme/webapp/pull/2")

    @pytest.mark.parametrize(
        "url",
        [
            "",
            "https://github.com/acme/webapp/issues/1",
            "https://gitlab.com/acme/webapp/pull/1",
            "http://github.com/acme/webapp/pull/1",
            "https://github.com/acme/webapp/pull/abc",
            "https://github.com/acme/webapp/pull/1\n",
        ],
    )
    def test_rejects_invalid(self, url):
        with pytest.raises(InvalidPRReferenceError):
            PRReference.create(url)

    def test_follows_configured_host(self):
        with patch.dict(os.environ, {"GITHUB_HOST": "github.example.com"}):
            ref = PRReference.create("https://github.example.com/team/app/pull/7")
            assert ref.number == 7
            with pytest.raises(InvalidPRReferenceError):
                PRReference.create("https://github.com/team/app/pull/7")

    def test_explicit_host(self):
        ref = PRReference.create("https://ghe.corp/team/app/pull/3", host="ghe.corp")
        assert ref.owner == "team"

    def test_parts_fixed_at_construction(self):
        ref = PRReference.create("https://github.com/acme/webapp/pull/9")
        with patch.dict(os.environ, {"GITHUB_HOST": "github.example.com"}):
            assert (ref.owner, ref.repository, ref.number) == ("acme", "webapp", 9)
        assert hash(ref) == hash(PRReference("https://github.com/acme/webapp/pull/9"))


class TestPathComponent:
    def test_valid_round_trips(self):
        assert PathComponent.create("test-123").value == "test-123"
        assert str(PathComponent.create("error-handling")) == "error-handling"

    @pytest.mark.parametrize(
        "value",
        ["../etc", "/etc/passwd", "a\\b", "..", ".hidden", "rm -rf", "a;b", "$(x)", "", "x" * 101],
    )
    def test_rejects_unsafe(self, value):
        with pytest.raises(InvalidPathComponentError):
            PathComponent.create(value)

    def test_errors_share_base(self):
        with pytest.raises(DomainError):
            PathComponent.create("../etc")
