"""Configuration loading for review-dojo.

Config sources (in priority order):
1. Explicit arguments passed to functions / CLI options
2. Environment variables (REVIEW_DOJO_KNOWLEDGE_DIR, GITHUB_HOST, etc.)
3. .env file in current directory
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

DEFAULT_GITHUB_HOST = "github.com"
DEFAULT_GITHUB_API_URL = "https://api.github.com"
DEFAULT_ORG_NAME = "sk8metalme"
ACTIVITY_LOG_NAME = "review-dojo-activity.jsonl"

REPO_PATTERN = re.compile(r"[A-Za-z0-9_.-]+/[A-Za-z0-9_.-]+")


@dataclass(frozen=True)
class GitHubConfig:
    host: str = DEFAULT_GITHUB_HOST  # "github.com" or "github.example.com"
    api_url: str = DEFAULT_GITHUB_API_URL
    org_name: str = DEFAULT_ORG_NAME
    web_url: str = f"https://{DEFAULT_GITHUB_HOST}"

    @property
    def is_enterprise(self) -> bool:
        return self.host != DEFAULT_GITHUB_HOST


def get_github_config() -> GitHubConfig:
    """Resolve GitHub (or GitHub Enterprise) settings from the environment.

    Read on every call so that PR URL validation follows GITHUB_HOST changes.
    """
    host = os.getenv("GITHUB_HOST") or DEFAULT_GITHUB_HOST
    default_api = (
        DEFAULT_GITHUB_API_URL if host == DEFAULT_GITHUB_HOST else f"https://{host}/api/v3"
    )
    return GitHubConfig(
        host=host,
        api_url=os.getenv("GITHUB_API_URL") or default_api,
        org_name=os.getenv("GITHUB_ORG_NAME") or DEFAULT_ORG_NAME,
        web_url=f"https://{host}",
    )


@dataclass
class Config:
    knowledge_dir: Path = Path(".")
    github_repo: str = ""  # "owner/repo" of a remote, read-only knowledge base
    github_token: str = ""
    activity_log: Path | None = None

    @classmethod
    def load(cls) -> Config:
        activity = os.getenv("REVIEW_DOJO_ACTIVITY_LOG")
        return cls(
            knowledge_dir=Path(os.getenv("REVIEW_DOJO_KNOWLEDGE_DIR", ".")),
            github_repo=os.getenv("REVIEW_DOJO_GITHUB_REPO", ""),
            github_token=os.getenv("GITHUB_TOKEN", ""),
            activity_log=Path(activity) if activity else None,
        )

    @property
    def mode(self) -> str:
        """"github" when a remote repository is configured, otherwise "local"."""
        return "github" if self.github_repo else "local"

    @property
    def github(self) -> GitHubConfig:
        return get_github_config()

    @property
    def activity_log_path(self) -> Path:
        return self.activity_log or self.knowledge_dir / ACTIVITY_LOG_NAME

    def validate(self) -> list[str]:
        """Return a list of config issues."""
        issues = []
        if self.github_repo and not REPO_PATTERN.fullmatch(self.github_repo):
            issues.append(
                f"Invalid repository path: {self.github_repo} "
                "(REVIEW_DOJO_GITHUB_REPO must be owner/repo)"
            )
        if self.mode == "local" and not self.knowledge_dir.is_dir():
            issues.append(
                f"Knowledge directory not found: {self.knowledge_dir.resolve()} "
                "(check REVIEW_DOJO_KNOWLEDGE_DIR)"
            )
        return issues
