"""MCP server for review-dojo.

Exposes the accumulated review knowledge to AI coding agents via the Model
Context Protocol, so an agent can check a change against past review
feedback before it is submitted.

Usage:
    reviewdojo serve
    python -m reviewdojo.mcp_server

Configure in Claude Code (~/.claude.json):
    {
      "mcpServers": {
        "review-dojo": {
          "command": "reviewdojo",
          "args": ["serve"],
          "env": {"REVIEW_DOJO_KNOWLEDGE_DIR": "/path/to/knowledge"}
        }
      }
    }

Set REVIEW_DOJO_GITHUB_REPO=owner/repo instead to read a shared knowledge
repository through the GitHub API (read-only).
"""

from __future__ import annotations

import json
import logging
import time

import mcp.server.stdio
import mcp.types as types
from mcp.server import Server

from reviewdojo.activity import log_tool_call
from reviewdojo.config import Config
from reviewdojo.query.checklist import ChecklistGenerator
from reviewdojo.query.engine import KnowledgeQueryService
from reviewdojo.storage.github import GitHubKnowledgeRepository
from reviewdojo.storage.repository import FileSystemKnowledgeRepository, KnowledgeRepository
from reviewdojo.version_check import check_for_updates

logger = logging.getLogger(__name__)

server = Server("review-dojo")

_repository: KnowledgeRepository | None = None


def create_repository(config: Config) -> KnowledgeRepository:
    """Remote read-only repository when one is configured, local directory otherwise."""
    if config.mode == "github":
        logger.info(f"Using GitHub repository: {config.github_repo}")
        return GitHubKnowledgeRepository(
            config.github_repo,
            token=config.github_token or None,
            api_url=config.github.api_url,
        )
    if not config.knowledge_dir.is_dir():
        raise FileNotFoundError(
            f"Directory not found: {config.knowledge_dir.resolve()}. "
            "Please check REVIEW_DOJO_KNOWLEDGE_DIR."
        )
    logger.info(f"Using local directory: {config.knowledge_dir.resolve()}")
    return FileSystemKnowledgeRepository(config.knowledge_dir)


def _get_repository() -> KnowledgeRepository:
    # Kept for the life of the process so the remote cache is effective.
    global _repository
    if _repository is None:
        _repository = create_repository(Config.load())
    return _repository


def _json_content(data: object) -> list[types.TextContent]:
    return [types.TextContent(type="text", text=json.dumps(data, indent=2, ensure_ascii=False))]


@server.list_tools()
async def list_tools() -> list[types.Tool]:
    return [
        types.Tool(
            name="search_knowledge",
            description=(
                "Search lessons learned from past code reviews. "
                "Filter by category, language, severity, or file path. "
                "Results are ranked by how often the issue was raised, then by severity."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "query": {
                        "type": "string",
                        "description": "Text to look for in titles and summaries",
                    },
                    "category": {
                        "type": "string",
                        "description": (
                            "Category filter (security, performance, readability, design, "
                            "testing, error-handling, other)"
                        ),
                    },
                    "language": {
                        "type": "string",
                        "description": "Language filter (java, nodejs, typescript, python, ...)",
                    },
                    "severity": {
                        "type": "string",
                        "description": "Severity filter (critical, warning, info)",
                    },
                    "filePath": {
                        "type": "string",
                        "description": "Substring of the example file path",
                    },
                    "maxResults": {
                        "type": "number",
                        "description": "Maximum number of results (default: 10)",
                    },
                },
            },
        ),
        types.Tool(
            name="get_knowledge_detail",
            description="Get the full record for one lesson, including code examples and PR links.",
            inputSchema={
                "type": "object",
                "properties": {
                    "id": {
                        "type": "string",
                        "description": "Knowledge ID (category/language/slug) from search_knowledge",
                    },
                },
                "required": ["id"],
            },
        ),
        types.Tool(
            name="generate_pr_checklist",
            description=(
                "Generate a review checklist for the files a change touches. "
                "Call this before opening a pull request."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "filePaths": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": "Paths of the changed files",
                    },
                    "languages": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": "Languages to check (detected from extensions if omitted)",
                    },
                    "severityFilter": {
                        "type": "string",
                        "description": "Comma-separated severities, e.g. 'critical,warning'",
                    },
                },
                "required": ["filePaths"],
            },
        ),
        types.Tool(
            name="list_categories",
            description="List categories with a description and the number of lessons in each.",
            inputSchema={"type": "object", "properties": {}},
        ),
        types.Tool(
            name="list_languages",
            description="List languages with the number of lessons in each.",
            inputSchema={"type": "object", "properties": {}},
        ),
    ]


@server.call_tool()
async def call_tool(name: str, arguments: dict) -> list[types.TextContent]:
    start = time.time()
    result: list[types.TextContent] = []
    error: str | None = None
    try:
        result = _dispatch_tool(name, arguments or {})
        return result
    except Exception as e:
        error = str(e)
        result = [types.TextContent(type="text", text=f"Error: {e}")]
        return result
    finally:
        duration_ms = int((time.time() - start) * 1000)
        result_text = result[0].text if result else ""
        log_tool_call(name, arguments, result_text, error, duration_ms)


def _dispatch_tool(name: str, arguments: dict) -> list[types.TextContent]:
    """Route a tool call to the appropriate handler."""
    if name == "search_knowledge":
        return _handle_search(arguments)
    elif name == "get_knowledge_detail":
        return _handle_detail(arguments.get("id", ""))
    elif name == "generate_pr_checklist":
        return _handle_checklist(arguments)
    elif name == "list_categories":
        return _handle_list_categories()
    elif name == "list_languages":
        return _handle_list_languages()
    else:
        raise ValueError(f"Unknown tool: {name}")


def _handle_search(arguments: dict) -> list[types.TextContent]:
    max_results = arguments.get("maxResults")
    response = KnowledgeQueryService(_get_repository()).search(
        query=arguments.get("query"),
        category=arguments.get("category"),
        language=arguments.get("language"),
        severity=arguments.get("severity"),
        file_path=arguments.get("filePath"),
        max_results=int(max_results) if max_results is not None else None,
    )
    return [types.TextContent(type="text", text=response.to_json())]


def _handle_detail(record_id: str) -> list[types.TextContent]:
    detail = KnowledgeQueryService(_get_repository()).get_detail(record_id)
    if detail is None:
        return [types.TextContent(type="text", text=f"Knowledge not found: {record_id}")]
    return [types.TextContent(type="text", text=detail.to_json())]


def _handle_checklist(arguments: dict) -> list[types.TextContent]:
    file_paths = arguments.get("filePaths")
    if not isinstance(file_paths, list) or not file_paths:
        raise ValueError("filePaths must be a non-empty array of strings")
    if not all(isinstance(p, str) and p.strip() for p in file_paths):
        raise ValueError("All filePaths must be non-empty strings")

    result = ChecklistGenerator(_get_repository()).generate(
        file_paths,
        languages=arguments.get("languages"),
        severity_filter=arguments.get("severityFilter"),
    )
    return [types.TextContent(type="text", text=result.to_json())]


def _handle_list_categories() -> list[types.TextContent]:
    return _json_content({"categories": KnowledgeQueryService(_get_repository()).list_categories()})


def _handle_list_languages() -> list[types.TextContent]:
    return _json_content({"languages": KnowledgeQueryService(_get_repository()).list_languages()})


def _report_version() -> None:
    info = check_for_updates()
    if info is None:
        return
    logger.info(f"Starting MCP server v{info.current_version}")
    if info.update_available:
        logger.warning(
            f"New version available: v{info.latest_version} "
            f"(current: v{info.current_version}). Update: {info.update_command}"
        )


async def main() -> None:
    _report_version()
    _get_repository()
    async with mcp.server.stdio.stdio_server() as (read_stream, write_stream):
        await server.run(
            read_stream,
            write_stream,
            server.create_initialization_options(),
        )


if __name__ == "__main__":
    import asyncio

    logging.basicConfig(level=logging.INFO, format="[review-dojo] %(message)s")
    asyncio.run(main())
