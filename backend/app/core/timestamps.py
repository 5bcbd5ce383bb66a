"""
Timestamp coercion for stored documents.

Documents written by different versions of the app carry the same logical
timestamp in different shapes: a native datetime, a seconds/nanoseconds pair
(Firestore-style export, with or without leading underscores) or an ISO-8601
string. Every read goes through coerce_timestamp, which always returns a
timezone-aware UTC datetime.
"""

import logging
from collections.abc import Mapping
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class TimestampShape(str, Enum):
    NATIVE = "native"
    SECONDS_NANOS = "seconds_nanos"
    ISO_STRING = "iso_string"
    UNKNOWN = "unknown"


_SECONDS_KEYS = ("seconds", "_seconds")
_NANOS_KEYS = ("nanoseconds", "_nanoseconds")


def _seconds_nanos_pair(value: Any) -> tuple[Any, Any] | None:
    """Return (seconds, nanoseconds) if value is structurally timestamp-like, else None."""
    if isinstance(value, Mapping):
        for s_key, n_key in zip(_SECONDS_KEYS, _NANOS_KEYS):
            if s_key in value and n_key in value:
                return value[s_key], value[n_key]
        return None
    seconds = getattr(value, "seconds", None)
    nanos = getattr(value, "nanoseconds", None)
    if seconds is not None and nanos is not None:
        return seconds, nanos
    return None


def classify_timestamp(value: Any) -> TimestampShape:
    """Tag a stored value with its timestamp shape."""
    if isinstance(value, (datetime, date)):
        return TimestampShape.NATIVE
    if isinstance(value, str) and value.strip():
        return TimestampShape.ISO_STRING
    if _seconds_nanos_pair(value) is not None:
        return TimestampShape.SECONDS_NANOS
    return TimestampShape.UNKNOWN


def _to_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _from_native(value: datetime | date) -> datetime:
    if isinstance(value, datetime):
        return _to_utc(value)
    return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)


def _from_seconds_nanos(value: Any) -> datetime:
    seconds, nanos = _seconds_nanos_pair(value)  # type: ignore[misc]
    return datetime.fromtimestamp(int(seconds) + int(nanos) / 1_000_000_000, tz=timezone.utc)


def _from_iso_string(value: str) -> datetime:
    s = value.strip()
    if s.endswith("Z") or s.endswith("z"):
        s = s[:-1] + "+00:00"
    return _to_utc(datetime.fromisoformat(s))


def to_datetime(value: Any) -> datetime:
    """
    Convert a stored timestamp of any known shape to an aware UTC datetime.
    Raises ValueError for UNKNOWN values or values that fail to parse.
    """
    shape = classify_timestamp(value)
    try:
        if shape is TimestampShape.NATIVE:
            return _from_native(value)
        if shape is TimestampShape.SECONDS_NANOS:
            return _from_seconds_nanos(value)
        if shape is TimestampShape.ISO_STRING:
            return _from_iso_string(value)
    except (TypeError, ValueError, OverflowError, OSError) as e:
        raise ValueError(f"Unparseable {shape.value} timestamp: {value!r}") from e
    raise ValueError(f"Unrecognised timestamp value: {value!r}")


def coerce_timestamp(value: Any, field: str = "timestamp") -> datetime:
    """Like to_datetime, but degrades to now (with a warning) instead of failing the read."""
    try:
        return to_datetime(value)
    except ValueError as e:
        logger.warning("Timestamp coercion failed for %s, using now: %s", field, e)
        return datetime.now(timezone.utc)


def coerce_optional_date(value: Any, field: str = "date") -> date | None:
    """Day-precision coercion for optional date fields (e.g. birthday). None stays None."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return coerce_timestamp(value, field).date()


def to_iso(value: datetime | date) -> str:
    """Serialise for storage. Dates are written as YYYY-MM-DD, datetimes as UTC with Z."""
    if isinstance(value, datetime):
        return _to_utc(value).isoformat().replace("+00:00", "Z")
    return value.isoformat()


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
