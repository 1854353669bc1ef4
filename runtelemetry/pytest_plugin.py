"""pytest adapter: feeds pytest's test lifecycle into a Recorder.

Enable with ``pytest -p runtelemetry.pytest_plugin --run-telemetry``.

Suites are the module and class collectors above each test item. pytest
replaces sys.stdout while a test phase runs, so suite-level capture only
sees test output when run with ``-s``.
"""

import pytest

from runtelemetry.config import load_config
from runtelemetry.events import Event, EventKind, Failure, SuiteRef, TestRef
from runtelemetry.recorder import Recorder

PLUGIN_NAME = "run-telemetry-recorder"


def pytest_addoption(parser):
    group = parser.getgroup("run-telemetry", "test log correlation report")
    group.addoption(
        "--run-telemetry",
        action="store_true",
        default=False,
        help="Record suite and test timing windows to an xunit report",
    )
    group.addoption(
        "--run-telemetry-report",
        default=None,
        metavar="PATH",
        help="Report path (default: xunit.xml or $RUN_TELEMETRY_REPORT)",
    )


def pytest_configure(config):
    if not config.getoption("run_telemetry"):
        return
    settings = load_config(report_path=config.getoption("run_telemetry_report"))
    config.pluginmanager.register(TelemetryPlugin(Recorder(settings)), PLUGIN_NAME)


def suite_chain(item) -> list[SuiteRef]:
    """Module and class collectors above *item*, outermost first."""
    chain = []
    title = ""
    for node in item.listchain():
        if isinstance(node, pytest.Module):
            title = node.nodeid
        elif isinstance(node, pytest.Class):
            title = f"{title} {node.name}" if title else node.name
        else:
            continue
        chain.append(SuiteRef(full_title=title, file=str(getattr(node, "path", ""))))
    return chain


class TelemetryPlugin:
    def __init__(self, recorder: Recorder):
        self.recorder = recorder
        self._open: list[SuiteRef] = []
        self._failed: set[str] = set()

    def _emit(self, kind: EventKind, **kwargs) -> None:
        self.recorder.handle(Event(kind, **kwargs))

    def _sync_suites(self, chain: list[SuiteRef]) -> None:
        common = 0
        for opened, wanted in zip(self._open, chain):
            if opened != wanted:
                break
            common += 1
        while len(self._open) > common:
            self._emit(EventKind.SUITE_END, suite=self._open.pop())
        for ref in chain[common:]:
            self._emit(EventKind.SUITE_BEGIN, suite=ref)
            self._open.append(ref)

    @staticmethod
    def _test_ref(item) -> TestRef:
        chain = suite_chain(item)
        suite_title = chain[-1].full_title if chain else ""
        return TestRef(suite_title=suite_title, title=item.name)

    def pytest_sessionstart(self, session):
        self._emit(EventKind.RUN_BEGIN)

    @pytest.hookimpl(wrapper=True)
    def pytest_runtest_protocol(self, item, nextitem):
        self._sync_suites(suite_chain(item))
        ref = self._test_ref(item)
        self._emit(EventKind.TEST_BEGIN, test=ref)
        try:
            return (yield)
        finally:
            self._emit(EventKind.TEST_END, test=ref)

    @pytest.hookimpl(wrapper=True)
    def pytest_runtest_makereport(self, item, call):
        report = yield
        ref = self._test_ref(item)
        if report.failed:
            if item.nodeid not in self._failed:
                self._failed.add(item.nodeid)
                excinfo = call.excinfo
                self._emit(EventKind.TEST_FAIL, test=ref, failure=Failure(
                    type=excinfo.typename if excinfo else "Error",
                    message=str(excinfo.value) if excinfo else "",
                    stack=report.longreprtext,
                ))
        elif report.skipped:
            self._emit(EventKind.TEST_PENDING, test=ref)
        elif report.when == "call" and item.nodeid not in self._failed:
            self._emit(EventKind.TEST_PASS, test=ref)
        return report

    def pytest_sessionfinish(self, session, exitstatus):
        interrupted = exitstatus == pytest.ExitCode.INTERRUPTED
        if not interrupted:
            self._sync_suites([])
        self.recorder.finish(interrupted=interrupted)
        self.recorder.release_captures()
