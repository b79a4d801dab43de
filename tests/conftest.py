"""Shared test fixtures for review-dojo."""

from __future__ import annotations

from pathlib import Path

import pytest

from reviewdojo.domain.record import KnowledgeInput, KnowledgeRecord
from reviewdojo.domain.values import Category, CodeExample, Language, PRReference, Severity
from reviewdojo.storage.repository import FileSystemKnowledgeRepository

PR_URL = "https://github.com/acme/webapp/pull/42"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Tests must not depend on the developer's GitHub or knowledge-base settings."""
    for name in (
        "GITHUB_HOST",
        "GITHUB_API_URL",
        "GITHUB_ORG_NAME",
        "GITHUB_TOKEN",
        "REVIEW_DOJO_KNOWLEDGE_DIR",
        "REVIEW_DOJO_GITHUB_REPO",
        "REVIEW_DOJO_ACTIVITY_LOG",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def knowledge_dir(tmp_path: Path) -> Path:
    path = tmp_path / "knowledge"
    path.mkdir()
    return path


@pytest.fixture
def fs_repo(knowledge_dir: Path) -> FileSystemKnowledgeRepository:
    return FileSystemKnowledgeRepository(knowledge_dir)


@pytest.fixture
def security() -> Category:
    return Category("security")


@pytest.fixture
def java() -> Language:
    return Language("java")


@pytest.fixture
def sql_injection_input() -> KnowledgeInput:
    return KnowledgeInput(
        title="SQL Injection",
        severity="critical",
        summary="String concatenation in JDBC queries",
        recommendation="Use PreparedStatement with bound parameters",
        code_example={
            "bad": 'stmt.executeQuery("SELECT * FROM users WHERE id = " + id);',
            "good": "ps.setInt(1, id);",
        },
        file_path="src/main/java/UserDao.java",
        pr_url=PR_URL,
    )


@pytest.fixture
def sample_record() -> KnowledgeRecord:
    return KnowledgeRecord(
        title="N+1 Query",
        severity=Severity("warning"),
        occurrences=3,
        summary="Lazy loading inside a loop\nissues one query per row",
        recommendation="Fetch with a JOIN",
        code_example=CodeExample(
            bad="for (User u : users) {\n  u.getOrders();\n}",
            good="repo.findAllWithOrders();",
        ),
        target_file="src/main/java/OrderService.java",
        references=[
            PRReference("https://github.com/acme/webapp/pull/1"),
            PRReference("https://github.com/acme/webapp/pull/2"),
        ],
    )


@pytest.fixture
def populated_repo(fs_repo: FileSystemKnowledgeRepository) -> FileSystemKnowledgeRepository:
    """Repository pre-loaded with a small corpus across categories and languages."""
    fs_repo.save(
        Category("security"),
        Language("java"),
        [
            KnowledgeRecord(
                title="SQL Injection対策",
                severity=Severity("critical"),
                occurrences=5,
                summary="Queries built by string concatenation",
                target_file="src/main/java/UserDao.java",
                references=[PRReference(f"https://github.com/acme/webapp/pull/{n}") for n in range(1, 6)],
            ),
            KnowledgeRecord(
                title="Log injection",
                severity=Severity("warning"),
                occurrences=2,
                summary="User input written to logs verbatim",
                target_file="src/main/java/AuthController.java",
            ),
        ],
    )
    fs_repo.save(
        Category("performance"),
        Language("java"),
        [
            KnowledgeRecord(
                title="N+1 Query",
                severity=Severity("warning"),
                occurrences=5,
                summary="Lazy loading inside a loop",
                target_file="src/main/java/OrderService.java",
            ),
        ],
    )
    fs_repo.save(
        Category("readability"),
        Language("typescript"),
        [
            KnowledgeRecord(
                title="命名規則の確認",
                severity=Severity("info"),
                occurrences=1,
                summary="Boolean names should read as predicates",
                target_file="src/components/Form.tsx",
            ),
        ],
    )
    return fs_repo
