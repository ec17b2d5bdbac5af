from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Callable, Optional

from .errors import RepositoryAccessError
from .models import BranchRef
from .periods import TimeWindow, parse_timestamp

# (args, cwd) -> (returncode, stdout, stderr)
CommandRunner = Callable[[list[str], Optional[Path]], tuple[int, str, str]]

BRANCH_LIST_ARGS = [
    "for-each-ref",
    "--sort=-committerdate",
    "refs/heads/",
    "--format=%(refname:short)%09%(committerdate:iso-strict)",
]


def run_command(args: list[str], cwd: Path | None = None) -> tuple[int, str, str]:
    proc = subprocess.run(
        args,
        cwd=str(cwd) if cwd is not None else None,
        capture_output=True,
        text=True,
    )
    return proc.returncode, proc.stdout, proc.stderr


def run_git(args: list[str], cwd: Path | None = None, *, runner: CommandRunner | None = None) -> tuple[int, str, str]:
    return (runner or run_command)(["git", *args], cwd)


def parse_branch_listing(out: str) -> list[BranchRef]:
    branches: list[BranchRef] = []
    for line in out.splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            name, stamp = line.rsplit("\t", 1)
            committed_at = parse_timestamp(stamp.strip())
        except ValueError:
            continue
        name = name.strip()
        if name:
            branches.append(BranchRef(name=name, committed_at=committed_at))
    return branches


def list_branches(repo: Path, *, runner: CommandRunner | None = None) -> list[BranchRef]:
    """Local branches with their last committer date, most recent first."""
    if not repo.is_dir():
        raise RepositoryAccessError(f"Not a directory: {repo}")
    try:
        code, out, err = run_git(BRANCH_LIST_ARGS, repo, runner=runner)
    except (OSError, subprocess.SubprocessError) as e:
        raise RepositoryAccessError(f"Could not list branches in {repo}: {e}") from e
    if code != 0:
        raise RepositoryAccessError(f"git for-each-ref exited {code} in {repo}: {err.strip()[:500]}")
    return parse_branch_listing(out)


def select_active_branches(branches: list[BranchRef], window: TimeWindow) -> list[str]:
    return [b.name for b in branches if window.contains(b.committed_at)]


def active_branches(repo: Path, window: TimeWindow, *, runner: CommandRunner | None = None) -> list[str]:
    return select_active_branches(list_branches(repo, runner=runner), window)


def resolve_editor(*, cwd: Path | None = None, runner: CommandRunner | None = None) -> str:
    # git var applies core.editor, $GIT_EDITOR, $VISUAL and $EDITOR in git's own order
    try:
        code, out, _ = run_git(["var", "GIT_EDITOR"], cwd, runner=runner)
    except (OSError, subprocess.SubprocessError):
        return ""
    if code != 0:
        return ""
    return out.strip()
