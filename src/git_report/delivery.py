from __future__ import annotations

import html
import shlex
import smtplib
import ssl
import subprocess
from email.message import EmailMessage
from pathlib import Path
from typing import Callable, Sequence

from .config import ReportConfig
from .errors import DeliveryError, EmptyReportError
from .git import CommandRunner, resolve_editor

SUBJECT = "Report"

# argv -> exit status, attached to the terminal
InteractiveRunner = Callable[[list[str]], int]
SMTPFactory = Callable[[ReportConfig], smtplib.SMTP]


def run_interactive(args: list[str]) -> int:
    return subprocess.call(args)


def write_scratch(document: str, path: Path) -> Path:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(document, encoding="utf-8")
    except OSError as e:
        raise DeliveryError(f"Could not write {path}: {e}") from e
    return path


def edit_document(
    document: str,
    *,
    scratch_path: Path,
    editor: str = "",
    cwd: Path | None = None,
    runner: CommandRunner | None = None,
    interactive: InteractiveRunner = run_interactive,
) -> str:
    """
    Hand the document to the user's editor and return what they saved.

    The editor is `editor` when given, otherwise whatever git resolves for
    GIT_EDITOR. The call blocks until the editor exits.
    """
    write_scratch(document, scratch_path)
    command = editor or resolve_editor(cwd=cwd, runner=runner)
    if not command:
        raise DeliveryError("No editor configured (set --editor, core.editor, $VISUAL or $EDITOR).")
    args = [*shlex.split(command), str(scratch_path)]
    try:
        code = interactive(args)
    except OSError as e:
        raise DeliveryError(f"Could not start editor {command!r}: {e}") from e
    if code != 0:
        raise DeliveryError(f"Editor {command!r} exited {code}; not sending.")
    try:
        edited = scratch_path.read_text(encoding="utf-8")
    except OSError as e:
        raise DeliveryError(f"Could not read back {scratch_path}: {e}") from e
    if not edited.strip():
        raise EmptyReportError(f"{scratch_path} is empty after editing; not sending.")
    return edited


def build_message(*, sender: str, recipients: Sequence[str], document: str) -> EmailMessage:
    msg = EmailMessage()
    msg["Subject"] = SUBJECT
    msg["From"] = sender
    msg["To"] = ", ".join(recipients)
    msg.set_content(html.unescape(document), subtype="html", charset="utf-8")
    return msg


def open_smtp(config: ReportConfig) -> smtplib.SMTP:
    context = ssl.create_default_context()
    if config.smtp_encryption == "starttls":
        server = smtplib.SMTP(config.smtp_server, config.smtp_port)
        try:
            server.starttls(context=context)
        except BaseException:
            server.close()
            raise
        return server
    return smtplib.SMTP_SSL(config.smtp_server, config.smtp_port, context=context)


def send_report(
    config: ReportConfig,
    *,
    sender: str,
    document: str,
    smtp_factory: SMTPFactory = open_smtp,
) -> EmailMessage:
    msg = build_message(sender=sender, recipients=config.emails, document=document)
    try:
        with smtp_factory(config) as server:
            server.login(config.smtp_username, config.smtp_password)
            server.send_message(msg, from_addr=sender, to_addrs=list(config.emails))
    except (smtplib.SMTPException, OSError) as e:
        raise DeliveryError(f"Could not send mail via {config.smtp_server}:{config.smtp_port}: {e}") from e
    return msg
