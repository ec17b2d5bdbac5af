from __future__ import annotations

import dataclasses
import tempfile
from pathlib import Path
from typing import Any, Mapping

import yaml

from .errors import ConfigurationError

DEFAULT_CONFIG_PATH = Path("git-report.yaml")
SMTP_ENCRYPTIONS = ("ssl", "starttls")


def default_scratch_path() -> Path:
    return Path(tempfile.gettempdir()) / "git-report.html"


@dataclasses.dataclass(frozen=True)
class ReportConfig:
    emails: tuple[str, ...]
    author: str
    smtp_username: str
    smtp_password: str
    sender: str = ""
    token: str = ""
    username: str = ""
    password: str = ""
    organization: str = "ChessCom"
    repository: str = "chess"
    branches: tuple[str, ...] = ()
    repo_dir: Path = Path(".")
    since: str = "today"
    smtp_server: str = "smtp.gmail.com"
    smtp_port: int = 465
    smtp_encryption: str = "ssl"
    editor: str = ""
    scratch_path: Path = dataclasses.field(default_factory=default_scratch_path)
    edit: bool = True
    dry_run: bool = False


# config file key -> ReportConfig field
KEY_FIELDS: dict[str, str] = {
    "emails": "emails",
    "from": "sender",
    "token": "token",
    "username": "username",
    "password": "password",
    "author": "author",
    "organization": "organization",
    "repository": "repository",
    "branch": "branches",
    "dir": "repo_dir",
    "since": "since",
    "smtp_server": "smtp_server",
    "smtp_port": "smtp_port",
    "smtp_username": "smtp_username",
    "smtp_password": "smtp_password",
    "smtp_encryption": "smtp_encryption",
    "editor": "editor",
    "scratch_path": "scratch_path",
    "edit": "edit",
    "dry_run": "dry_run",
}


def load_config(config_path: Path, *, required: bool = False) -> dict[str, Any]:
    if not config_path.exists():
        if required:
            raise ConfigurationError(f"Config file not found: {config_path}")
        return {}
    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Could not read config file {config_path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {config_path} must contain a mapping of options.")
    return normalize_keys(data, source=str(config_path))


def normalize_keys(values: Mapping[Any, Any], *, source: str = "config") -> dict[str, Any]:
    out: dict[str, Any] = {}
    unknown: list[str] = []
    for key, value in values.items():
        k = str(key).strip().replace("-", "_")
        if k not in KEY_FIELDS:
            unknown.append(str(key))
            continue
        out[k] = value
    if unknown:
        raise ConfigurationError(f"Unrecognized key(s) in {source}: {', '.join(sorted(unknown))}")
    return out


def _as_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        raise ConfigurationError(f"Expected a list of strings, got {value!r}")
    out: list[str] = []
    for v in value:
        for part in str(v).split(","):
            part = part.strip()
            if part:
                out.append(part)
    return out


def _as_str(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _as_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    s = _as_str(value).lower()
    if s in ("1", "true", "yes", "on"):
        return True
    if s in ("0", "false", "no", "off"):
        return False
    raise ConfigurationError(f"{key} must be true or false, got {value!r}")


def _as_port(value: Any) -> int:
    try:
        port = int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"smtp_port must be an integer, got {value!r}") from None
    if not 0 < port < 65536:
        raise ConfigurationError(f"smtp_port out of range: {port}")
    return port


def build_config(file_values: Mapping[str, Any], overrides: Mapping[str, Any]) -> ReportConfig:
    """
    Merge file values with explicit overrides (overrides win) and validate the result.

    Keys whose override value is None count as not supplied.
    """
    merged: dict[str, Any] = dict(normalize_keys(file_values))
    explicit = {k: v for k, v in normalize_keys(overrides, source="arguments").items() if v is not None}
    # an explicit auth key drops the other scheme from the file
    if "token" in explicit:
        merged.pop("username", None)
        merged.pop("password", None)
    if "username" in explicit or "password" in explicit:
        merged.pop("token", None)
    for key, value in explicit.items():
        if isinstance(value, (list, tuple)) and not value:
            continue
        merged[key] = value

    emails = tuple(_as_list(merged.get("emails")))
    if not emails:
        raise ConfigurationError("At least one destination email is required.")

    author = _as_str(merged.get("author"))
    if not author:
        raise ConfigurationError("An author is required (--author).")

    token = _as_str(merged.get("token"))
    username = _as_str(merged.get("username"))
    password = _as_str(merged.get("password"))
    if token and (username or password):
        raise ConfigurationError("Use either --token or --username/--password, not both.")
    if not token:
        if not username and not password:
            raise ConfigurationError("GitHub authentication is required: --token or --username with --password.")
        if not username or not password:
            raise ConfigurationError("--username and --password must be given together.")

    smtp_username = _as_str(merged.get("smtp_username"))
    smtp_password = _as_str(merged.get("smtp_password"))
    if not smtp_username or not smtp_password:
        raise ConfigurationError("--smtp-username and --smtp-password are required.")

    kwargs: dict[str, Any] = {}
    for key in ("from", "organization", "repository", "since", "smtp_server", "editor"):
        if key in merged and _as_str(merged[key]):
            kwargs[KEY_FIELDS[key]] = _as_str(merged[key])
    if "branch" in merged:
        kwargs["branches"] = tuple(_as_list(merged["branch"]))
    if _as_str(merged.get("dir")):
        kwargs["repo_dir"] = Path(_as_str(merged["dir"])).expanduser()
    if _as_str(merged.get("scratch_path")):
        kwargs["scratch_path"] = Path(_as_str(merged["scratch_path"])).expanduser()
    if merged.get("smtp_port") is not None:
        kwargs["smtp_port"] = _as_port(merged["smtp_port"])
    if merged.get("smtp_encryption") is not None:
        encryption = _as_str(merged["smtp_encryption"]).lower()
        if encryption not in SMTP_ENCRYPTIONS:
            raise ConfigurationError(f"smtp_encryption must be one of {', '.join(SMTP_ENCRYPTIONS)}, got {encryption!r}")
        kwargs["smtp_encryption"] = encryption
    for key in ("edit", "dry_run"):
        if merged.get(key) is not None:
            kwargs[key] = _as_bool(key, merged[key])

    return ReportConfig(
        emails=emails,
        author=author,
        smtp_username=smtp_username,
        smtp_password=smtp_password,
        token=token,
        username=username,
        password=password,
        **kwargs,
    )
