"""Activity logging for MCP tool calls.

Every tool invocation is appended to a JSONL file so developers can see which
lessons their AI agent pulled from the knowledge base. Each line is a JSON
object with timestamp, tool name, arguments, result preview, and duration.

The log lives next to the knowledge directory unless REVIEW_DOJO_ACTIVITY_LOG
points elsewhere.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path

from reviewdojo.config import Config

logger = logging.getLogger(__name__)

RESULT_PREVIEW_LIMIT = 500


def log_tool_call(
    tool_name: str,
    arguments: dict,
    result_text: str,
    error: str | None,
    duration_ms: int,
    log_path: Path | None = None,
) -> None:
    """Append a tool call entry to the activity log. Never raises."""
    try:
        entry = {
            "timestamp": datetime.now().isoformat(),
            "tool_name": tool_name,
            "arguments": arguments,
            "result_preview": result_text[:RESULT_PREVIEW_LIMIT] if result_text else "",
            "error": error,
            "duration_ms": duration_ms,
        }
        path = log_path or Config.load().activity_log_path
        with open(path, "a", encoding="utf-8") as f:
            f.write(json.dumps(entry, default=str, ensure_ascii=False) + "\n")
    except (OSError, TypeError, ValueError) as e:
        logger.debug(f"Activity log write failed: {e}")


def read_activity_log(
    limit: int = 20,
    tool_name: str | None = None,
    log_path: Path | None = None,
) -> list[dict]:
    """Read recent activity log entries, most recent first."""
    path = log_path or Config.load().activity_log_path
    if not path.exists():
        return []

    entries: list[dict] = []
    for line in path.read_text(encoding="utf-8").splitlines():
        if not line.strip():
            continue
        try:
            entry = json.loads(line)
        except json.JSONDecodeError:
            continue

        if tool_name and entry.get("tool_name") != tool_name:
            continue

        entries.append(entry)

    entries.reverse()
    return entries[:limit]
