from __future__ import annotations

from typing import Any, Iterable, Mapping

from .errors import RemoteQueryError
from .models import SHORT_SHA_LEN, BranchCommitMap, BranchFailure, CommitAggregation, CommitRecord, PullRequestRecord
from .periods import TimeWindow, parse_timestamp
from .remote import RemoteSource


def _get(obj: Mapping[str, Any] | None, *path: str) -> Any:
    cur: Any = obj
    for key in path:
        if not isinstance(cur, Mapping):
            return None
        cur = cur.get(key)
    return cur


def commit_record_from_raw(raw: Mapping[str, Any]) -> CommitRecord:
    return CommitRecord(
        short_sha=str(raw.get("sha") or "")[:SHORT_SHA_LEN],
        message=str(_get(raw, "commit", "message") or ""),
        comment_count=int(_get(raw, "commit", "comment_count") or 0),
        url=str(raw.get("html_url") or ""),
        author_date=str(_get(raw, "commit", "author", "date") or ""),
    )


def pull_request_record_from_raw(raw: Mapping[str, Any]) -> PullRequestRecord:
    assignee = _get(raw, "assignee", "login")
    return PullRequestRecord(
        body=str(raw.get("body") or ""),
        url=str(raw.get("html_url") or ""),
        title=str(raw.get("title") or ""),
        created_at=str(raw.get("created_at") or ""),
        from_branch=str(_get(raw, "head", "ref") or ""),
        to_branch=str(_get(raw, "base", "ref") or ""),
        assignee_login=str(assignee) if assignee else None,
    )


def _authored_in_window(raw: Mapping[str, Any], window: TimeWindow) -> bool:
    # author date decides; the API `since` hint also returns rebased commits
    stamp = _get(raw, "commit", "author", "date")
    if not stamp:
        return False
    try:
        return window.contains(parse_timestamp(str(stamp)))
    except ValueError:
        return False


def branch_commits(raw_commits: Iterable[Mapping[str, Any]], window: TimeWindow) -> tuple[CommitRecord, ...]:
    return tuple(commit_record_from_raw(c) for c in raw_commits if _authored_in_window(c, window))


def collect_commits(
    source: RemoteSource,
    *,
    organization: str,
    repository: str,
    branches: Iterable[str],
    author: str,
    window: TimeWindow,
) -> CommitAggregation:
    """
    Fetch the author's commits for every branch and keep those authored inside the window.

    A remote failure on one branch is recorded and the remaining branches are
    still processed.
    """
    commits: BranchCommitMap = {}
    failures: list[BranchFailure] = []
    seen: set[str] = set()
    for branch in branches:
        if branch in seen:
            continue
        seen.add(branch)
        try:
            raw = source.list_commits(organization, repository, branch=branch, author=author, since=window.since)
        except RemoteQueryError as e:
            failures.append(BranchFailure(branch=branch, reason=str(e)))
            continue
        kept = branch_commits(raw, window)
        if kept:
            commits[branch] = kept
    return CommitAggregation(commits=commits, failures=tuple(failures))


def _pull_in_window(raw: Mapping[str, Any], window: TimeWindow) -> bool:
    stamp = raw.get("created_at")
    if not stamp:
        return False
    try:
        return window.contains(parse_timestamp(str(stamp)))
    except ValueError:
        return False


def filter_pull_requests(
    raw_pulls: Iterable[Mapping[str, Any]],
    *,
    author: str,
    window: TimeWindow,
) -> list[PullRequestRecord]:
    out: list[PullRequestRecord] = []
    for raw in raw_pulls:
        if str(raw.get("state") or "open") != "open":
            continue
        if author and _get(raw, "user", "login") != author:
            continue
        if not _pull_in_window(raw, window):
            continue
        out.append(pull_request_record_from_raw(raw))
    return out


def select_pull_requests(
    source: RemoteSource,
    *,
    organization: str,
    repository: str,
    author: str,
    window: TimeWindow,
) -> list[PullRequestRecord]:
    # open pulls cannot be filtered by author or date server-side
    return filter_pull_requests(source.list_open_pulls(organization, repository), author=author, window=window)
