"""Assigns structured log records to the test cases whose time window contains them.

Each log line is decoded, compared against every interval, and emitted once
per matching interval before the next line is read. Intervals may overlap;
a record inside three windows is emitted three times.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Iterator

from runtelemetry.errors import LogDecodeError
from runtelemetry.formatter import compact_json
from runtelemetry.model import Report
from runtelemetry.timestamps import format_instant, parse_instant

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Interval:
    """A test case's execution window, closed at both ends."""

    name: str
    start: datetime
    end: datetime

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant <= self.end


@dataclass(frozen=True)
class LogRecord:
    instant: datetime
    fields: dict[str, Any]

    @property
    def msg(self) -> Any:
        return self.fields.get("msg")

    @property
    def attr(self) -> Any:
        return self.fields.get("attr")


def collect_intervals(report: Report, test_filter: str) -> list[Interval]:
    """Build Intervals for test cases whose ``"<suite> <test>"`` contains *test_filter*.

    Matching is case-insensitive. Cases that never started, or never finished
    because the run was interrupted, are dropped with a warning.
    """
    needle = test_filter.lower()
    intervals = []
    for test in report.test_cases():
        if needle not in test.full_name.lower():
            continue
        if test.start is None:
            logger.warning("%s was skipped, there are no logs", test.full_name)
            continue
        if test.end is None:
            logger.warning("%s never finished, there are no logs", test.full_name)
            continue
        intervals.append(Interval(name=test.full_name, start=test.start, end=test.end))
    return intervals


def decode_line(line: str, line_number: int | None = None) -> LogRecord:
    """Decode one JSON log line. Raises LogDecodeError on anything malformed."""
    try:
        fields = json.loads(line)
    except json.JSONDecodeError as e:
        raise LogDecodeError(f"invalid JSON: {e}", line_number) from e
    if not isinstance(fields, dict):
        raise LogDecodeError("log line is not a JSON object", line_number)

    stamp = fields.get("t")
    raw_date = stamp.get("$date") if isinstance(stamp, dict) else None
    if raw_date is None:
        raise LogDecodeError("missing t.$date timestamp", line_number)
    try:
        instant = parse_instant(raw_date)
    except ValueError as e:
        raise LogDecodeError(f"unparsable timestamp {raw_date!r}", line_number) from e
    return LogRecord(instant=instant, fields=fields)


def matches(record: LogRecord, intervals: Iterable[Interval]) -> list[Interval]:
    return [interval for interval in intervals if interval.contains(record.instant)]


def interpolate_message(msg: str, attr: dict[str, Any]) -> tuple[str, dict[str, Any]]:
    """Substitute ``{key}`` placeholders in *msg* from *attr*.

    Returns the new message and a new mapping holding only the keys that had
    no placeholder. Double quotes left in the message become single quotes.
    """
    remaining = {}
    for key, value in attr.items():
        placeholder = "{" + key + "}"
        if placeholder in msg:
            msg = msg.replace(placeholder, compact_json(value))
        else:
            remaining[key] = value
    return msg.replace('"', "'"), remaining


def normalize_timestamp(record: LogRecord) -> str:
    return format_instant(record.instant)


def enrich(record: LogRecord, interval: Interval) -> dict[str, Any]:
    """Build the output object for one (record, interval) match."""
    out = dict(record.fields)
    msg, attr = record.msg, record.attr
    if isinstance(msg, str) and isinstance(attr, dict):
        out["msg"], remaining = interpolate_message(msg, attr)
        if remaining:
            out["attr"] = remaining
        else:
            del out["attr"]
    out["t"] = normalize_timestamp(record)
    out["testName"] = interval.name
    return out


def correlate(intervals: list[Interval], lines: Iterable[str]) -> Iterator[dict[str, Any]]:
    """Lazily yield an enriched record for every (line, matching interval) pair.

    Every line must decode, blank ones included. A line that fails raises
    LogDecodeError; everything yielded before it stands.
    """
    for line_number, line in enumerate(lines, start=1):
        record = decode_line(line, line_number)
        for interval in matches(record, intervals):
            yield enrich(record, interval)
