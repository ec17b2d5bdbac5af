from __future__ import annotations

import datetime as dt
from types import SimpleNamespace

import pytest
import requests
from github import Github, GithubException
from github.Requester import Requester

from git_report.errors import ConfigurationError, RemoteQueryError
from git_report.remote import GitHubSource, build_client

SINCE = dt.datetime(2024, 3, 1, tzinfo=dt.timezone.utc)


class FakeRepo:
    def __init__(self, commits=(), pulls=(), error: Exception | None = None) -> None:
        self.commits = list(commits)
        self.pulls = list(pulls)
        self.error = error
        self.commit_kwargs: dict = {}
        self.pull_kwargs: dict = {}

    def get_commits(self, **kw):
        self.commit_kwargs = kw
        if self.error:
            raise self.error
        return iter(self.commits)

    def get_pulls(self, **kw):
        self.pull_kwargs = kw
        if self.error:
            raise self.error
        return iter(self.pulls)


class FakeClient:
    def __init__(self, repo: FakeRepo, users: dict | None = None) -> None:
        self.repo = repo
        self.users = users or {}
        self.repo_names: list[str] = []

    def get_repo(self, name: str) -> FakeRepo:
        self.repo_names.append(name)
        return self.repo

    def get_user(self, login: str):
        if login not in self.users:
            raise GithubException(404, {"message": "Not Found"}, None)
        return SimpleNamespace(email=self.users[login])


def _pull(**kw):
    values = dict(
        state="open",
        body=None,
        html_url="https://github.com/ChessCom/chess/pull/3",
        title="Title",
        created_at=dt.datetime(2024, 3, 2, tzinfo=dt.timezone.utc),
        user=SimpleNamespace(login="ada"),
        head=SimpleNamespace(ref="feature"),
        base=SimpleNamespace(ref="master"),
        assignee=None,
    )
    values.update(kw)
    return SimpleNamespace(**values)


def test_list_commits_passes_filters_and_returns_raw_payloads() -> None:
    payload = {"sha": "abc", "commit": {"comment_count": 1}}
    repo = FakeRepo(commits=[SimpleNamespace(_rawData=payload)])
    client = FakeClient(repo)
    out = GitHubSource(client).list_commits("ChessCom", "chess", branch="main", author="ada", since=SINCE)
    assert out == [payload]
    assert client.repo_names == ["ChessCom/chess"]
    assert repo.commit_kwargs == {"sha": "main", "author": "ada", "since": SINCE}


def test_list_open_pulls_shapes_payload() -> None:
    repo = FakeRepo(pulls=[_pull(), _pull(assignee=SimpleNamespace(login="carol"), body="b")])
    out = GitHubSource(FakeClient(repo)).list_open_pulls("ChessCom", "chess")
    assert repo.pull_kwargs == {"state": "open"}
    assert out[0]["created_at"] == "2024-03-02T00:00:00+00:00"
    assert out[0]["user"] == {"login": "ada"}
    assert out[0]["head"] == {"ref": "feature"}
    assert out[0]["assignee"] is None
    assert out[0]["body"] == ""
    assert out[1]["assignee"] == {"login": "carol"}


@pytest.mark.parametrize("error", [GithubException(500, {"message": "oops"}, None), requests.ConnectionError("down")])
def test_failures_become_remote_query_errors(error: Exception) -> None:
    source = GitHubSource(FakeClient(FakeRepo(error=error)))
    with pytest.raises(RemoteQueryError, match="main"):
        source.list_commits("ChessCom", "chess", branch="main", author="ada", since=SINCE)
    with pytest.raises(RemoteQueryError, match="pull requests"):
        source.list_open_pulls("ChessCom", "chess")


def test_user_email() -> None:
    source = GitHubSource(FakeClient(FakeRepo(), users={"ada": "ada@example.com", "bob": None}))
    assert source.user_email("ada") == "ada@example.com"
    assert source.user_email("bob") is None
    with pytest.raises(RemoteQueryError):
        source.user_email("nobody")


def test_build_client() -> None:
    assert isinstance(build_client(token="t"), Github)
    assert isinstance(build_client(username="u", password="p"), Github)
    with pytest.raises(ConfigurationError):
        build_client()


def test_list_commits_sends_utc_since_and_uses_list_payload(monkeypatch) -> None:
    calls: list[tuple[str, dict]] = []
    api = "https://api.github.com/repos/ChessCom/chess"
    listed = [
        {
            "sha": f"{i}" * 40,
            "url": f"{api}/commits/{i}",
            "html_url": f"https://github.com/ChessCom/chess/commit/{i}",
            "commit": {"message": f"change {i}", "comment_count": i, "author": {"name": "Ada", "date": "2024-03-06T08:00:00Z"}},
        }
        for i in range(3)
    ]

    def request(self, verb, url, parameters=None, headers=None, input=None, *args, **kwargs):
        calls.append((url, dict(parameters or {})))
        if url.endswith("/commits"):
            return {}, listed
        return {}, {"url": api, "full_name": "ChessCom/chess", "name": "chess"}

    monkeypatch.setattr(Requester, "requestJsonAndCheck", request)

    # midnight at UTC+2 is 22:00 the previous day in UTC
    since = dt.datetime(2024, 3, 6, tzinfo=dt.timezone(dt.timedelta(hours=2)))
    out = GitHubSource(build_client(token="t")).list_commits("ChessCom", "chess", branch="main", author="ada", since=since)

    assert [c["commit"]["comment_count"] for c in out] == [0, 1, 2]
    assert len(calls) == 2
    url, params = calls[1]
    assert url.endswith("/commits")
    assert params["since"] == "2024-03-05T22:00:00Z"
    assert params["sha"] == "main"
    assert params["author"] == "ada"
