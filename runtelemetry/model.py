"""Report model: suites and test cases accumulated during one run."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from runtelemetry.events import Failure


class TestState(Enum):
    __test__ = False

    RUNNING = "running"
    PASSED = "passed"
    FAILED = "failed"
    PENDING = "pending"


class SuiteState(Enum):
    OPEN = "open"
    CLOSED = "closed"


@dataclass
class TestCase:
    """One test inside a suite, identified by ``"<suite> <title>"``."""

    __test__ = False

    title: str
    suite_name: str
    start: datetime | None = None
    end: datetime | None = None
    state: TestState | None = None
    failure: Failure | None = None
    skipped: bool = False

    @property
    def full_name(self) -> str:
        return f"{self.suite_name} {self.title}"

    @property
    def elapsed(self) -> float | None:
        """Seconds between start and end, or None when either is missing."""
        if self.start is None or self.end is None:
            return None
        return (self.end - self.start).total_seconds()


@dataclass
class TestSuite:
    __test__ = False

    name: str
    file: str = ""
    timestamp: str = ""
    tests: list[TestCase] = field(default_factory=list)
    stdout: str = ""
    stderr: str = ""
    state: SuiteState = SuiteState.OPEN

    def package(self, functional_marker: str = "functional") -> str:
        return "Functional" if functional_marker in self.file else "Unit"

    @property
    def failures(self) -> int:
        return sum(1 for t in self.tests if t.state is TestState.FAILED)

    @property
    def time(self) -> float:
        return sum(t.elapsed or 0 for t in self.tests)


@dataclass
class Report:
    suites: list[TestSuite] = field(default_factory=list)

    def add(self, suite: TestSuite) -> None:
        self.suites.append(suite)

    def test_cases(self):
        for suite in self.suites:
            yield from suite.tests
