"""Recorder: a state machine that turns lifecycle events into a report.

Suites move unseen -> open -> closed; tests move unseen -> running ->
passed/failed/pending. While a suite is open its stdout/stderr are captured
and stored on the suite when it closes. ``finish`` writes the report and is
shared by normal run end and the interrupt handler.

The pytest plugin drives a Recorder from pytest's own hooks and handles
Ctrl-C through ``pytest_sessionfinish``. Other event sources feed events with
``replay`` or ``Recorder.handle`` and call ``install_interrupt_handler`` so an
interrupted run still leaves a report behind.
"""

import logging
import signal
import sys
from typing import Callable, Iterable

from runtelemetry.capture import CaptureSession, capture_stream
from runtelemetry.config import Config
from runtelemetry.errors import ProtocolError
from runtelemetry.events import Event, EventKind, Failure, SuiteRef, TestRef
from runtelemetry.model import Report, SuiteState, TestCase, TestState, TestSuite
from runtelemetry.timestamps import format_suite_timestamp, truncate_ms, utcnow
from runtelemetry.xunit import write_report

logger = logging.getLogger(__name__)

GREEN = "\033[32m"
RED = "\033[31m"
CYAN = "\033[36m"
BOLD = "\033[1m"
RESET = "\033[0m"


class Recorder:
    def __init__(self, config: Config | None = None, clock: Callable | None = None,
                 stream_owner=None):
        self.config = config or Config()
        self._clock = clock or utcnow
        self._streams = stream_owner if stream_owner is not None else sys
        self._suites: dict[str, TestSuite] = {}
        self._captures: dict[str, tuple[CaptureSession, CaptureSession]] = {}
        self._running: dict[str, TestCase] = {}
        self._latest: dict[str, TestCase] = {}
        self._handlers = {
            EventKind.RUN_BEGIN: self._ignore,
            EventKind.RUN_END: lambda event: self.finish(),
            EventKind.SUITE_BEGIN: lambda event: self.suite_begin(event.suite),
            EventKind.SUITE_END: lambda event: self.suite_end(event.suite),
            EventKind.TEST_BEGIN: lambda event: self.test_begin(event.test),
            EventKind.TEST_END: lambda event: self.test_end(event.test),
            EventKind.TEST_PASS: lambda event: self.test_pass(event.test),
            EventKind.TEST_FAIL: lambda event: self.test_fail(event.test, event.failure),
            EventKind.TEST_PENDING: lambda event: self.test_pending(event.test),
            EventKind.TEST_RETRY: self._ignore,
            EventKind.HOOK_BEGIN: self._ignore,
            EventKind.HOOK_END: self._ignore,
            EventKind.DELAY_BEGIN: self._ignore,
            EventKind.DELAY_END: self._ignore,
        }

    def handle(self, event: Event) -> None:
        """Apply one lifecycle event."""
        self._handlers[event.kind](event)

    def _ignore(self, event: Event) -> None:
        pass

    def _now(self):
        return truncate_ms(self._clock())

    def _echo(self, text: str) -> None:
        print(text, file=self._streams.stdout)

    @property
    def suites(self) -> list[TestSuite]:
        return list(self._suites.values())

    # -- suites ---------------------------------------------------------

    def suite_begin(self, ref: SuiteRef) -> None:
        if ref.root:
            return
        if ref.full_title in self._suites:
            logger.warning("%s started twice", ref.full_title)
            return
        self._suites[ref.full_title] = TestSuite(
            name=ref.full_title,
            file=ref.file,
            timestamp=format_suite_timestamp(self._now()),
        )
        self._captures[ref.full_title] = (
            capture_stream(self._streams, "stdout"),
            capture_stream(self._streams, "stderr"),
        )

    def suite_end(self, ref: SuiteRef) -> None:
        if ref.root:
            return
        suite = self._suites.get(ref.full_title)
        if suite is None or suite.state is not SuiteState.OPEN:
            raise ProtocolError(f"suite {ref.full_title!r} ended before it began")
        out, err = self._captures.pop(ref.full_title)
        suite.stdout = out.captured()
        suite.stderr = err.captured()
        # Inner captures wrap outer ones, so release in reverse order
        err.release()
        out.release()
        suite.state = SuiteState.CLOSED

    # -- tests ----------------------------------------------------------

    def _new_test(self, ref: TestRef) -> TestCase:
        test = TestCase(title=ref.title, suite_name=ref.suite_title)
        self._latest[ref.full_title] = test
        suite = self._suites.get(ref.suite_title)
        if suite is not None:
            suite.tests.append(test)
        else:
            logger.debug("%s has no recorded suite", ref.full_title)
        return test

    def _test(self, ref: TestRef) -> TestCase:
        # Outcomes belong to the running test, or the last one with this name
        test = self._running.get(ref.full_title) or self._latest.get(ref.full_title)
        return test if test is not None else self._new_test(ref)

    def test_begin(self, ref: TestRef) -> None:
        test = self._new_test(ref)
        self._running[ref.full_title] = test
        test.state = TestState.RUNNING
        test.start = self._now()

    def test_end(self, ref: TestRef) -> None:
        test = self._running.pop(ref.full_title, None) or self._test(ref)
        test.end = self._now()

    def test_pass(self, ref: TestRef) -> None:
        self._test(ref).state = TestState.PASSED
        self._echo(f"{GREEN}✔ {ref.full_title}{RESET}")

    def test_fail(self, ref: TestRef, failure: Failure | None) -> None:
        test = self._test(ref)
        test.state = TestState.FAILED
        test.failure = failure or Failure(type="Error", message="", stack="")
        self._echo(f"{RED}⨯ {ref.full_title} -- {test.failure.message}{RESET}")

    def test_pending(self, ref: TestRef) -> None:
        # Skipped tests usually never begin, so each one is a new case
        test = self._running.get(ref.full_title) or self._new_test(ref)
        test.state = TestState.PENDING
        test.skipped = True
        self._echo(f"{CYAN}↬ {ref.full_title}{RESET}")

    # -- run end --------------------------------------------------------

    def build_report(self) -> Report:
        # Suites still open (interrupted run) keep whatever was captured so far
        for name, (out, err) in self._captures.items():
            suite = self._suites[name]
            suite.stdout = out.captured()
            suite.stderr = err.captured()
        return Report(suites=self.suites)

    def finish(self, interrupted: bool = False) -> Report:
        """Serialize every recorded suite to the report artifact."""
        if interrupted:
            self._echo("emergency exit!")
        report = self.build_report()
        path = self.config.report_path
        write_report(report, path, **self.config.render_options())
        self._echo(f"{BOLD}wrote {path}{RESET}")
        return report

    def release_captures(self) -> None:
        """Restore the real streams for suites that never closed."""
        for out, err in reversed(list(self._captures.values())):
            err.release()
            out.release()


def replay(recorder: Recorder, events: Iterable[Event]) -> Recorder:
    """Drive *recorder* with an ordered feed of events."""
    for event in events:
        recorder.handle(event)
    return recorder


def install_interrupt_handler(recorder: Recorder):
    """Write the report on SIGINT before letting the interrupt propagate.

    Returns the previously installed handler.
    """

    def _on_interrupt(signum, frame):
        recorder.finish(interrupted=True)
        raise KeyboardInterrupt

    return signal.signal(signal.SIGINT, _on_interrupt)
