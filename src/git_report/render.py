from __future__ import annotations

import functools
from typing import Sequence

from jinja2 import Environment, PackageLoader
from markupsafe import Markup, escape

from .errors import EmptyReportError
from .models import BranchCommitMap, PullRequestRecord

SECTION_SEPARATOR = "\n"


def nl2br(value: str) -> Markup:
    return Markup("<br>\n").join(escape(line) for line in str(value or "").splitlines())


@functools.lru_cache(maxsize=1)
def template_env() -> Environment:
    env = Environment(
        loader=PackageLoader("git_report", "templates"),
        autoescape=True,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )
    env.filters["nl2br"] = nl2br
    return env


def render_branches(branches: BranchCommitMap) -> str:
    return template_env().get_template("branches.html.j2").render(branches=branches)


def render_pulls(pulls: Sequence[PullRequestRecord]) -> str:
    return template_env().get_template("pulls.html.j2").render(pulls=pulls)


def render_report(branches: BranchCommitMap, pulls: Sequence[PullRequestRecord]) -> str:
    """
    Assemble the report document.

    Each section is rendered only when it has content; with neither there is
    nothing to send and EmptyReportError is raised.
    """
    sections: list[str] = []
    if branches:
        sections.append(render_branches(branches))
    if pulls:
        sections.append(render_pulls(pulls))
    if not sections:
        raise EmptyReportError("Nothing to report: no matching commits or pull requests.")
    return SECTION_SEPARATOR.join(sections)
