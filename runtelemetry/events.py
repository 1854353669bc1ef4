"""Lifecycle events fed to the recorder by a test-runner adapter."""

from dataclasses import dataclass
from enum import Enum


class EventKind(Enum):
    RUN_BEGIN = "run begin"
    RUN_END = "run end"
    SUITE_BEGIN = "suite begin"
    SUITE_END = "suite end"
    TEST_BEGIN = "test begin"
    TEST_END = "test end"
    TEST_PASS = "test pass"
    TEST_FAIL = "test fail"
    TEST_PENDING = "test pending"
    TEST_RETRY = "test retry"
    HOOK_BEGIN = "hook begin"
    HOOK_END = "hook end"
    DELAY_BEGIN = "delay begin"
    DELAY_END = "delay end"


@dataclass(frozen=True)
class SuiteRef:
    """Identifies a suite as the runner sees it.

    ``full_title`` is the space-joined chain of suite titles. The root
    suite has ``root=True`` and is never recorded.
    """

    full_title: str
    file: str = ""
    root: bool = False


@dataclass(frozen=True)
class TestRef:
    __test__ = False

    suite_title: str
    title: str

    @property
    def full_title(self) -> str:
        return f"{self.suite_title} {self.title}"


@dataclass(frozen=True)
class Failure:
    type: str
    message: str
    stack: str


@dataclass(frozen=True)
class Event:
    kind: EventKind
    suite: SuiteRef | None = None
    test: TestRef | None = None
    failure: Failure | None = None
