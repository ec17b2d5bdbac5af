from __future__ import annotations

import datetime as dt
from typing import Any, Protocol

import requests
from github import Auth, Github, GithubException

from .errors import ConfigurationError, RemoteQueryError


class RemoteSource(Protocol):
    def user_email(self, login: str) -> str | None: ...

    def list_commits(
        self,
        organization: str,
        repository: str,
        *,
        branch: str,
        author: str,
        since: dt.datetime,
    ) -> list[dict[str, Any]]: ...

    def list_open_pulls(self, organization: str, repository: str) -> list[dict[str, Any]]: ...


def build_client(*, token: str = "", username: str = "", password: str = "") -> Github:
    if token:
        return Github(auth=Auth.Token(token))
    if username and password:
        return Github(auth=Auth.Login(username, password))
    raise ConfigurationError("GitHub authentication requires a token or a username and password.")


def _iso(value: dt.datetime | None) -> str:
    if value is None:
        return ""
    return value.isoformat()


def _commit_dict(c: Any) -> dict[str, Any]:
    # list payload as-is; raw_data would refetch every commit with its diff
    return dict(c._rawData or {})


def _pull_dict(p: Any) -> dict[str, Any]:
    return {
        "state": p.state,
        "body": p.body or "",
        "html_url": p.html_url,
        "title": p.title,
        "created_at": _iso(p.created_at),
        "user": {"login": p.user.login if p.user is not None else ""},
        "head": {"ref": p.head.ref},
        "base": {"ref": p.base.ref},
        "assignee": {"login": p.assignee.login} if p.assignee is not None else None,
    }


class GitHubSource:
    """
    Read-only view of the GitHub REST API.

    Pagination is drained inside each call so that every transport or API
    failure surfaces here as RemoteQueryError, and callers only ever see
    JSON-shaped dicts.
    """

    def __init__(self, client: Github) -> None:
        self._client = client

    def _repo(self, organization: str, repository: str) -> Any:
        return self._client.get_repo(f"{organization}/{repository}")

    def user_email(self, login: str) -> str | None:
        try:
            return self._client.get_user(login).email or None
        except (GithubException, requests.RequestException) as e:
            raise RemoteQueryError(f"Could not look up GitHub user {login!r}: {e}") from e

    def list_commits(
        self,
        organization: str,
        repository: str,
        *,
        branch: str,
        author: str,
        since: dt.datetime,
    ) -> list[dict[str, Any]]:
        try:
            repo = self._repo(organization, repository)
            commits = repo.get_commits(sha=branch, author=author, since=since.astimezone(dt.timezone.utc))
            return [_commit_dict(c) for c in commits]
        except (GithubException, requests.RequestException) as e:
            raise RemoteQueryError(f"Could not list commits on {organization}/{repository}@{branch}: {e}") from e

    def list_open_pulls(self, organization: str, repository: str) -> list[dict[str, Any]]:
        try:
            repo = self._repo(organization, repository)
            return [_pull_dict(p) for p in repo.get_pulls(state="open")]
        except (GithubException, requests.RequestException) as e:
            raise RemoteQueryError(f"Could not list pull requests on {organization}/{repository}: {e}") from e
