from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any

from . import __version__
from .config import DEFAULT_CONFIG_PATH, build_config, load_config
from .errors import ReportError
from .remote import GitHubSource, build_client
from .run import run_report


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="git-report",
        description="Email a report of your recent commits and open pull requests.",
    )
    p.add_argument("emails", nargs="*", help="Destination email address(es).")
    p.add_argument("--config", type=Path, default=None, help=f"YAML file with option defaults (default: ./{DEFAULT_CONFIG_PATH} if present).")
    p.add_argument("--from", dest="sender", default=None, help="Sender email (default: the author's GitHub email).")
    p.add_argument("--token", default=None, help="GitHub API token.")
    p.add_argument("--username", default=None, help="GitHub username (with --password, instead of --token).")
    p.add_argument("--password", default=None, help="GitHub password.")
    p.add_argument("--author", default=None, help="GitHub login whose commits and pull requests are reported.")
    p.add_argument("--organization", default=None, help="Owning organization (default: ChessCom).")
    p.add_argument("--repository", default=None, help="Repository name (default: chess).")
    p.add_argument(
        "--branch",
        action="append",
        default=None,
        help="Branch to report on; repeat or comma-separate. Default: branches committed to since --since.",
    )
    p.add_argument("--dir", default=None, help="Local checkout used to find active branches (default: .).")
    p.add_argument("--since", default=None, help='Start of the report window, e.g. "today", "3 days ago", 2024-03-01 (default: today).')
    p.add_argument("--smtp-server", default=None, help="SMTP host (default: smtp.gmail.com).")
    p.add_argument("--smtp-port", default=None, help="SMTP port (default: 465).")
    p.add_argument("--smtp-username", default=None, help="SMTP login.")
    p.add_argument("--smtp-password", default=None, help="SMTP password.")
    p.add_argument("--smtp-encryption", choices=["ssl", "starttls"], default=None, help="SMTP encryption (default: ssl).")
    p.add_argument("--editor", default=None, help="Editor command (default: git's GIT_EDITOR).")
    p.add_argument("--scratch-path", default=None, help="File the report is edited in.")
    p.add_argument("--no-edit", dest="edit", action="store_const", const=False, default=None, help="Send without opening the editor.")
    p.add_argument("--dry-run", dest="dry_run", action="store_const", const=True, default=None, help="Print the report instead of sending it.")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p


def overrides_from_args(args: argparse.Namespace) -> dict[str, Any]:
    return {
        "emails": list(args.emails) or None,
        "from": args.sender,
        "token": args.token,
        "username": args.username,
        "password": args.password,
        "author": args.author,
        "organization": args.organization,
        "repository": args.repository,
        "branch": args.branch,
        "dir": args.dir,
        "since": args.since,
        "smtp_server": args.smtp_server,
        "smtp_port": args.smtp_port,
        "smtp_username": args.smtp_username,
        "smtp_password": args.smtp_password,
        "smtp_encryption": args.smtp_encryption,
        "editor": args.editor,
        "scratch_path": args.scratch_path,
        "edit": args.edit,
        "dry_run": args.dry_run,
    }


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    args = _build_parser().parse_args(argv)
    try:
        if args.config is not None:
            file_values = load_config(args.config, required=True)
        else:
            file_values = load_config(DEFAULT_CONFIG_PATH)
        config = build_config(file_values, overrides_from_args(args))
        source = GitHubSource(build_client(token=config.token, username=config.username, password=config.password))
        return run_report(config, source=source)
    except ReportError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
