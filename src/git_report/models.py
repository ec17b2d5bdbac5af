from __future__ import annotations

import dataclasses
import datetime as dt

SHORT_SHA_LEN = 8


@dataclasses.dataclass(frozen=True)
class BranchRef:
    name: str
    committed_at: dt.datetime


@dataclasses.dataclass(frozen=True)
class CommitRecord:
    short_sha: str
    message: str
    comment_count: int
    url: str
    author_date: str  # as returned by the API


@dataclasses.dataclass(frozen=True)
class PullRequestRecord:
    body: str
    url: str
    title: str
    created_at: str  # as returned by the API
    from_branch: str
    to_branch: str
    assignee_login: str | None = None


@dataclasses.dataclass(frozen=True)
class BranchFailure:
    branch: str
    reason: str


# branch name -> commits in API order; only branches with at least one commit
BranchCommitMap = dict[str, tuple[CommitRecord, ...]]


@dataclasses.dataclass(frozen=True)
class CommitAggregation:
    commits: BranchCommitMap
    failures: tuple[BranchFailure, ...] = ()

    @property
    def commit_count(self) -> int:
        return sum(len(v) for v in self.commits.values())
