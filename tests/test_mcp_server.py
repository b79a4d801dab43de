"""Tests for the MCP tool handlers."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import pytest

from reviewdojo import mcp_server
from reviewdojo.activity import read_activity_log
from reviewdojo.config import Config
from reviewdojo.storage.github import GitHubKnowledgeRepository
from reviewdojo.storage.repository import FileSystemKnowledgeRepository


@pytest.fixture
def activity_log(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    path = tmp_path / "activity.jsonl"
    monkeypatch.setenv("REVIEW_DOJO_ACTIVITY_LOG", str(path))
    return path


@pytest.fixture(autouse=True)
def repository(populated_repo, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(mcp_server, "_repository", populated_repo)
    return populated_repo


def _call(name: str, arguments: dict | None = None) -> str:
    [content] = asyncio.run(mcp_server.call_tool(name, arguments or {}))
    return content.text


class TestCreateRepository:
    def test_local(self, knowledge_dir: Path):
        repository = mcp_server.create_repository(Config(knowledge_dir=knowledge_dir))
        assert isinstance(repository, FileSystemKnowledgeRepository)

    def test_missing_directory(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError, match="REVIEW_DOJO_KNOWLEDGE_DIR"):
            mcp_server.create_repository(Config(knowledge_dir=tmp_path / "missing"))

    def test_github(self, tmp_path: Path):
        config = Config(knowledge_dir=tmp_path / "missing", github_repo="acme/review-knowledge")
        repository = mcp_server.create_repository(config)
        assert isinstance(repository, GitHubKnowledgeRepository)


class TestListTools:
    def test_tool_names(self):
        tools = asyncio.run(mcp_server.list_tools())
        assert [t.name for t in tools] == [
            "search_knowledge",
            "get_knowledge_detail",
            "generate_pr_checklist",
            "list_categories",
            "list_languages",
        ]


class TestCallTool:
    def test_search(self, activity_log):
        data = json.loads(_call("search_knowledge", {"language": "java", "maxResults": 2}))
        assert data["total_count"] == 2
        assert data["results"][0]["title"] == "SQL Injection対策"

    def test_detail(self, activity_log):
        data = json.loads(_call("get_knowledge_detail", {"id": "performance/java/n1-query"}))
        assert data["title"] == "N+1 Query"
        assert data["occurrences"] == 5

    def test_detail_not_found(self, activity_log):
        assert _call("get_knowledge_detail", {"id": "security/java/nope"}) == (
            "Knowledge not found: security/java/nope"
        )

    def test_checklist(self, activity_log):
        data = json.loads(
            _call(
                "generate_pr_checklist",
                {"filePaths": ["src/Foo.java"], "severityFilter": "critical"},
            )
        )
        assert [item["title"] for item in data["checklist"]] == ["SQL Injection対策"]

    @pytest.mark.parametrize(
        "arguments,message",
        [
            ({}, "filePaths must be a non-empty array of strings"),
            ({"filePaths": []}, "filePaths must be a non-empty array of strings"),
            ({"filePaths": "Foo.java"}, "filePaths must be a non-empty array of strings"),
            ({"filePaths": ["Foo.java", "  "]}, "All filePaths must be non-empty strings"),
            ({"filePaths": ["Foo.java", 3]}, "All filePaths must be non-empty strings"),
        ],
    )
    def test_checklist_validation(self, activity_log, arguments, message):
        assert _call("generate_pr_checklist", arguments) == f"Error: {message}"

    def test_list_categories(self, activity_log):
        data = json.loads(_call("list_categories"))
        assert [c["name"] for c in data["categories"]] == ["performance", "readability", "security"]

    def test_list_languages(self, activity_log):
        data = json.loads(_call("list_languages"))
        assert data["languages"][0] == {"name": "java", "knowledge_count": 3}

    def test_unknown_tool(self, activity_log):
        assert _call("delete_everything") == "Error: Unknown tool: delete_everything"

    def test_calls_are_logged(self, activity_log):
        _call("list_languages")
        _call("delete_everything")
        entries = read_activity_log(log_path=activity_log)
        assert [e["tool_name"] for e in entries] == ["delete_everything", "list_languages"]
        assert entries[0]["error"] == "Unknown tool: delete_everything"
        assert entries[1]["error"] is None
        assert '"languages"' in entries[1]["result_preview"]
