from __future__ import annotations

import dataclasses
import datetime as dt
import re

from dateutil import parser as dt_parser
from dateutil.relativedelta import relativedelta

from .errors import InvalidTimeExpression

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

_UNITS = {
    "minute": lambda n: relativedelta(minutes=n),
    "hour": lambda n: relativedelta(hours=n),
    "day": lambda n: relativedelta(days=n),
    "week": lambda n: relativedelta(weeks=n),
    "month": lambda n: relativedelta(months=n),
    "year": lambda n: relativedelta(years=n),
}

_AGO_RE = re.compile(r"^(\d+)\s+(minute|hour|day|week|month|year)s?\s+ago$")
_LAST_RE = re.compile(r"^last\s+(\w+)$")


@dataclasses.dataclass(frozen=True)
class TimeWindow:
    since: dt.datetime  # always timezone-aware
    expression: str = ""

    @property
    def since_iso(self) -> str:
        return self.since.isoformat(timespec="seconds")

    def contains(self, instant: dt.datetime) -> bool:
        return as_local(instant) >= self.since


def as_local(value: dt.datetime) -> dt.datetime:
    if value.tzinfo is None:
        return value.astimezone()
    return value


def local_now() -> dt.datetime:
    return dt.datetime.now().astimezone()


def _midnight(value: dt.datetime) -> dt.datetime:
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


def _weekday_midnight(name: str, now: dt.datetime) -> dt.datetime:
    back = (now.weekday() - WEEKDAYS.index(name)) % 7
    return _midnight(now - dt.timedelta(days=back))


def _parse_relative(s: str, now: dt.datetime) -> dt.datetime | None:
    if s == "now":
        return now
    if s == "today":
        return _midnight(now)
    if s == "yesterday":
        return _midnight(now - dt.timedelta(days=1))
    if s in WEEKDAYS:
        return _weekday_midnight(s, now)

    m = _AGO_RE.match(s)
    if m:
        return now - _UNITS[m.group(2)](int(m.group(1)))

    m = _LAST_RE.match(s)
    if m:
        word = m.group(1)
        if word in WEEKDAYS:
            return _weekday_midnight(word, now)
        if word in ("day", "week", "month", "year"):
            return now - _UNITS[word](1)
    return None


def resolve_since(expression: str, *, now: dt.datetime | None = None) -> TimeWindow:
    """
    Turn a `since` expression into the absolute window boundary.

    Relative keywords are resolved against `now` (local time by default);
    anything else must be an absolute date/time. Naive absolute values are
    taken as local time.
    """
    if now is None:
        now = local_now()
    now = as_local(now)

    raw = expression if isinstance(expression, str) else ""
    s = " ".join(raw.strip().lower().split())
    if not s:
        raise InvalidTimeExpression(f"Invalid since expression: {expression!r}")

    since = _parse_relative(s, now)
    if since is None:
        try:
            since = dt_parser.parse(raw.strip(), default=_midnight(now).replace(tzinfo=None))
        except (ValueError, OverflowError) as e:
            raise InvalidTimeExpression(f"Invalid since expression: {expression!r} ({e})") from e
    return TimeWindow(since=as_local(since), expression=raw.strip())


def parse_timestamp(value: str) -> dt.datetime:
    """Parse an API/git timestamp (ISO 8601); naive values are local time."""
    return as_local(dt_parser.isoparse(value))
