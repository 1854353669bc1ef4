"""ISO-8601 parsing and rendering shared by the report codec and correlator."""

from datetime import datetime, timezone


def parse_instant(value: str) -> datetime:
    """Parse an ISO-8601 string into an aware UTC datetime.

    Accepts a trailing ``Z``. Strings without an offset are taken as UTC.
    Sub-millisecond digits are dropped. Raises ValueError for anything else.
    """
    if not isinstance(value, str):
        raise ValueError(f"expected an ISO-8601 string, got {value!r}")
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return truncate_ms(parsed.astimezone(timezone.utc))


def truncate_ms(moment: datetime) -> datetime:
    return moment.replace(microsecond=moment.microsecond // 1000 * 1000)


def format_instant(moment: datetime) -> str:
    """Render as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def format_suite_timestamp(moment: datetime) -> str:
    """Render as ``YYYY-MM-DDTHH:MM:SS`` in UTC, dropping fractional seconds."""
    return format_instant(moment).split(".")[0]


def utcnow() -> datetime:
    return truncate_ms(datetime.now(timezone.utc))
