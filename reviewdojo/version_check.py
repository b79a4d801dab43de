"""Update check against the latest published release."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from github import GithubException

from reviewdojo import __version__
from reviewdojo.config import DEFAULT_GITHUB_API_URL
from reviewdojo.github.client import GitHubClient

logger = logging.getLogger(__name__)

RELEASE_REPO = "sk8metalme/review-dojo"
UPDATE_COMMAND = "pip install --upgrade reviewdojo"


@dataclass
class VersionCheckResult:
    current_version: str
    latest_version: str
    update_available: bool
    update_command: str = UPDATE_COMMAND


def parse_version(version: str) -> tuple[int, ...]:
    """``"v2.10.1"`` -> ``(2, 10, 1)``; non-numeric suffixes are ignored."""
    parts = []
    for piece in version.lstrip("v").split("."):
        match = re.match(r"\d+", piece)
        if not match:
            break
        parts.append(int(match.group()))
    return tuple(parts)


def check_for_updates(
    client: GitHubClient | None = None,
    current_version: str = __version__,
) -> VersionCheckResult | None:
    """Compare the installed version with the latest release.

    Always goes to github.com, whatever GITHUB_HOST says. Returns None when
    the release cannot be fetched so that offline use is never blocked.
    """
    client = client or GitHubClient(repo=RELEASE_REPO, api_url=DEFAULT_GITHUB_API_URL)
    try:
        tag = client.latest_release_tag()
    except (GithubException, OSError) as e:
        logger.warning(f"Version check failed: {e}")
        return None
    finally:
        client.close()

    latest = tag.lstrip("v")
    return VersionCheckResult(
        current_version=current_version,
        latest_version=latest,
        update_available=parse_version(latest) > parse_version(current_version),
    )
