"""Shared pytest fixtures for the run-telemetry test suite."""

from __future__ import annotations

import io
import json
from datetime import datetime, timedelta, timezone

import pytest

from runtelemetry.events import Failure
from runtelemetry.model import Report, SuiteState, TestCase, TestState, TestSuite

BASE = datetime(2024, 1, 15, 10, 0, 0, tzinfo=timezone.utc)


def at(ms: int) -> datetime:
    """BASE plus *ms* milliseconds."""
    return BASE + timedelta(milliseconds=ms)


def log_line(ms: int, msg: str = "hello", **extra) -> str:
    """A MongoDB-style structured log line stamped at BASE + *ms*."""
    record = {"t": {"$date": at(ms).isoformat()}, "s": "I", "msg": msg}
    record.update(extra)
    return json.dumps(record)


class FakeStreams:
    """Stand-in for the ``sys`` module's stdout/stderr attributes."""

    def __init__(self):
        self.real_stdout = io.StringIO()
        self.real_stderr = io.StringIO()
        self.stdout = self.real_stdout
        self.stderr = self.real_stderr


class StepClock:
    """Returns queued instants in order; repeats the last one when exhausted."""

    def __init__(self, *instants: datetime):
        self._instants = list(instants) or [BASE]

    def __call__(self) -> datetime:
        if len(self._instants) > 1:
            return self._instants.pop(0)
        return self._instants[0]


@pytest.fixture()
def math_report() -> Report:
    """Suite "Math": "adds" passed 1000-1500ms, "subs" failed 1200-1800ms."""
    suite = TestSuite(name="Math", file="test/unit/math.test.js",
                      timestamp="2024-01-15T10:00:00", state=SuiteState.CLOSED)
    suite.tests = [
        TestCase(title="adds", suite_name="Math", start=at(1000), end=at(1500),
                 state=TestState.PASSED),
        TestCase(title="subs", suite_name="Math", start=at(1200), end=at(1800),
                 state=TestState.FAILED,
                 failure=Failure(type="AssertionError", message="expected 1 to equal 2",
                                 stack="AssertionError: expected 1 to equal 2\n    at subs")),
    ]
    return Report(suites=[suite])


@pytest.fixture()
def fake_streams() -> FakeStreams:
    return FakeStreams()
