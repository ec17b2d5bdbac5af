from __future__ import annotations

import datetime as dt
from typing import Any

import pytest

from git_report.errors import RemoteQueryError

UTC = dt.timezone.utc


def raw_commit(sha: str, *, date: str, message: str = "Fix things", comments: int = 0) -> dict[str, Any]:
    return {
        "sha": sha,
        "html_url": f"https://github.com/ChessCom/chess/commit/{sha}",
        "commit": {
            "message": message,
            "comment_count": comments,
            "author": {"name": "Ada", "date": date},
            "committer": {"name": "Ada", "date": date},
        },
    }


def raw_pull(
    number: int,
    *,
    created_at: str,
    login: str = "ada",
    state: str = "open",
    assignee: str | None = None,
    body: str = "",
) -> dict[str, Any]:
    return {
        "state": state,
        "body": body,
        "html_url": f"https://github.com/ChessCom/chess/pull/{number}",
        "title": f"PR {number}",
        "created_at": created_at,
        "user": {"login": login},
        "head": {"ref": f"feature-{number}"},
        "base": {"ref": "master"},
        "assignee": {"login": assignee} if assignee else None,
    }


class FakeSource:
    """In-memory remote that ignores `since` and author, like a misbehaving API would."""

    def __init__(
        self,
        *,
        commits: dict[str, list[dict[str, Any]]] | None = None,
        pulls: list[dict[str, Any]] | None = None,
        emails: dict[str, str] | None = None,
        failing_branches: set[str] | None = None,
        pulls_error: bool = False,
    ) -> None:
        self.commits = commits or {}
        self.pulls = pulls or []
        self.emails = emails or {}
        self.failing_branches = failing_branches or set()
        self.pulls_error = pulls_error
        self.commit_calls: list[dict[str, Any]] = []

    def user_email(self, login: str) -> str | None:
        return self.emails.get(login)

    def list_commits(self, organization: str, repository: str, *, branch: str, author: str, since: dt.datetime) -> list[dict[str, Any]]:
        self.commit_calls.append({"org": organization, "repo": repository, "branch": branch, "author": author, "since": since})
        if branch in self.failing_branches:
            raise RemoteQueryError(f"boom on {branch}")
        return list(self.commits.get(branch, []))

    def list_open_pulls(self, organization: str, repository: str) -> list[dict[str, Any]]:
        if self.pulls_error:
            raise RemoteQueryError("pulls unavailable")
        return list(self.pulls)


@pytest.fixture
def now() -> dt.datetime:
    return dt.datetime(2024, 3, 6, 15, 30, tzinfo=UTC)
