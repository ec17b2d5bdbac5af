from __future__ import annotations

import dataclasses
import datetime as dt
import sys

from .config import ReportConfig
from .delivery import InteractiveRunner, SMTPFactory, edit_document, open_smtp, run_interactive, send_report
from .errors import ConfigurationError
from .git import CommandRunner, active_branches
from .models import CommitAggregation, PullRequestRecord
from .periods import TimeWindow, resolve_since
from .remote import RemoteSource
from .render import render_report
from .selection import collect_commits, select_pull_requests


@dataclasses.dataclass(frozen=True)
class ReportContent:
    window: TimeWindow
    branches: tuple[str, ...]
    aggregation: CommitAggregation
    pulls: tuple[PullRequestRecord, ...]
    document: str


def format_startup_header(config: ReportConfig, window: TimeWindow) -> str:
    branch_source = ", ".join(config.branches) if config.branches else f"active branches in {config.repo_dir}"
    lines = [
        f"git-report: {config.organization}/{config.repository} by {config.author}",
        f"- Since: {window.since_iso} ({window.expression})",
        f"- Branches: {branch_source}",
        f"- Recipients: {', '.join(config.emails)}",
    ]
    return "\n".join(lines)


def build_report(
    config: ReportConfig,
    *,
    source: RemoteSource,
    runner: CommandRunner | None = None,
    now: dt.datetime | None = None,
) -> ReportContent:
    window = resolve_since(config.since, now=now)
    print(format_startup_header(config, window))

    if config.branches:
        branches = tuple(config.branches)
    else:
        branches = tuple(active_branches(config.repo_dir, window, runner=runner))
        print(f"Found {len(branches)} branch(es) committed to since {window.since_iso}.")

    aggregation = collect_commits(
        source,
        organization=config.organization,
        repository=config.repository,
        branches=branches,
        author=config.author,
        window=window,
    )
    for failure in aggregation.failures:
        print(f"Warning: skipped branch {failure.branch}: {failure.reason}", file=sys.stderr)

    pulls = tuple(
        select_pull_requests(
            source,
            organization=config.organization,
            repository=config.repository,
            author=config.author,
            window=window,
        )
    )
    print(f"Commits: {aggregation.commit_count} on {len(aggregation.commits)} branch(es); open pull requests: {len(pulls)}.")

    document = render_report(aggregation.commits, pulls)
    return ReportContent(window=window, branches=branches, aggregation=aggregation, pulls=pulls, document=document)


def resolve_sender(config: ReportConfig, source: RemoteSource) -> str:
    if config.sender:
        return config.sender
    email = source.user_email(config.author)
    if not email:
        raise ConfigurationError(f"GitHub user {config.author!r} has no public email; pass --from.")
    return email


def run_report(
    config: ReportConfig,
    *,
    source: RemoteSource,
    runner: CommandRunner | None = None,
    interactive: InteractiveRunner = run_interactive,
    smtp_factory: SMTPFactory = open_smtp,
    now: dt.datetime | None = None,
) -> int:
    content = build_report(config, source=source, runner=runner, now=now)
    sender = resolve_sender(config, source)

    document = content.document
    if config.edit:
        document = edit_document(
            document,
            scratch_path=config.scratch_path,
            editor=config.editor,
            cwd=config.repo_dir,
            runner=runner,
            interactive=interactive,
        )

    if config.dry_run:
        print(document)
        print(f"Dry run: not sending to {', '.join(config.emails)}.")
        return 0

    send_report(config, sender=sender, document=document, smtp_factory=smtp_factory)
    print(f"Sent report from {sender} to {', '.join(config.emails)}.")
    return 0
