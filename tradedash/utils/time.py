"""Time helper utilities."""
from __future__ import annotations

import math
from datetime import datetime, timezone

import pandas as pd

DISPLAY_FORMAT = "%Y-%m-%dT%H:%M"
TABLE_FORMAT = "%Y-%m-%d %H:%M"


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _from_epoch_ms(value: float) -> datetime | None:
    if not math.isfinite(value):
        return None
    try:
        stamp = pd.Timestamp(int(value), unit="ms", tz="UTC")
    except (OverflowError, ValueError):
        return None
    return stamp.to_pydatetime()


def parse_instant(value: object) -> datetime | None:
    """Parse ``value`` into a tz-aware UTC datetime.

    Integers, floats and purely numeric strings are read as epoch
    milliseconds; anything else goes through ``pandas.to_datetime``.
    Returns ``None`` instead of raising for values that cannot be parsed.
    """

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, (int, float)):
        return _from_epoch_ms(float(value))
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    if text.lstrip("-").isdigit():
        return _from_epoch_ms(float(text))
    # pandas resolves words such as "now" and "today" to the wall clock
    if not text[0].isdigit():
        return None
    parsed = pd.to_datetime(text, utc=True, errors="coerce")
    if parsed is None or pd.isna(parsed):
        return None
    return parsed.to_pydatetime()


def to_epoch_ms(value: object) -> int | None:
    parsed = parse_instant(value)
    if parsed is None:
        return None
    return int(parsed.timestamp() * 1000)


def format_iso(ts: datetime) -> str:
    """Render ``ts`` as ISO-8601 UTC with millisecond precision."""

    ts = ts.astimezone(timezone.utc)
    return ts.strftime("%Y-%m-%dT%H:%M:%S.") + f"{ts.microsecond // 1000:03d}Z"


def normalise_ts(value: object) -> str:
    """Return the canonical ISO form of ``value`` or the raw text when unparsable."""

    if value is None:
        return ""
    parsed = parse_instant(value)
    if parsed is None:
        return str(value)
    return format_iso(parsed)


def truncate_ms(ts: datetime) -> datetime:
    return ts.replace(microsecond=(ts.microsecond // 1000) * 1000)


def to_display(ts: datetime | None) -> str:
    if ts is None:
        return ""
    return ts.astimezone(timezone.utc).strftime(DISPLAY_FORMAT)


def from_display(text: str | None) -> datetime | None:
    if not text:
        return None
    try:
        parsed = datetime.strptime(text.strip(), DISPLAY_FORMAT)
    except ValueError:
        return None
    return parsed.replace(tzinfo=timezone.utc)
