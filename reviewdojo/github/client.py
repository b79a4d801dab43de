"""Thin wrapper around PyGithub for github.com and GitHub Enterprise."""

from __future__ import annotations

from github import Auth, Github
from github.Repository import Repository

from reviewdojo.config import get_github_config


class GitHubClient:
    """GitHub client scoped to a single repository.

    The token is optional: public repositories and release lookups work
    anonymously, within the unauthenticated rate limit.

    Usage:
        client = GitHubClient(repo="owner/knowledge", token="ghp_...")
        repo = client.repo  # PyGithub Repository object
    """

    def __init__(self, repo: str, token: str | None = None, api_url: str | None = None) -> None:
        base_url = api_url or get_github_config().api_url
        auth = Auth.Token(token) if token else None
        self._gh = Github(auth=auth, base_url=base_url)
        self._repo_name = repo
        self._repo: Repository | None = None

    @property
    def repo_name(self) -> str:
        return self._repo_name

    @property
    def repo(self) -> Repository:
        if self._repo is None:
            self._repo = self._gh.get_repo(self._repo_name)
        return self._repo

    def latest_release_tag(self) -> str:
        return self.repo.get_latest_release().tag_name

    def close(self) -> None:
        self._gh.close()
