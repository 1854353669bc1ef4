"""xunit-style report codec.

Serialization is done by hand so the layout matches what downstream xunit
viewers expect (CDATA blocks, a schema processing instruction, ``start`` and
``end`` attributes on each test case). Parsing uses ElementTree.
"""

import logging
import os
import re
import tempfile
import xml.etree.ElementTree as ET
from xml.sax.saxutils import escape

from runtelemetry.correlator import collect_intervals
from runtelemetry.errors import ReportError
from runtelemetry.events import Failure
from runtelemetry.model import Report, SuiteState, TestCase, TestState, TestSuite
from runtelemetry.timestamps import format_instant, parse_instant

logger = logging.getLogger(__name__)

ANSI_ESCAPE = re.compile(
    r"[\u001b\u009b][\[()#;?]*(?:[0-9]{1,4}(?:;[0-9]{0,4})*)?[0-9A-ORZcf-nqry=><]"
)
# Characters XML 1.0 forbids even inside CDATA
ILLEGAL_XML_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")

CDATA_END = "]]>"
CDATA_END_ESCAPED = "\\]\\]\\>"
NEVER_RAN = "0"


def strip_control(text: str) -> str:
    """Remove ANSI color/control sequences and XML-illegal characters."""
    return ILLEGAL_XML_CHARS.sub("", ANSI_ESCAPE.sub("", text))


def cdata(text: str | None) -> str:
    cleaned = strip_control(text or "").replace(CDATA_END, CDATA_END_ESCAPED)
    return f"<![CDATA[{cleaned}]]>"


def unescape_cdata(text: str | None) -> str:
    return (text or "").replace(CDATA_END_ESCAPED, CDATA_END)


def _number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def _attr_value(value) -> str:
    # Quotes become apostrophes so the attribute stays well-formed
    return escape(strip_control(str(value))).replace('"', "'")


def _tag(name: str, attributes: dict | None = None, self_close: bool = False, content: str | None = None) -> str:
    attrs = " ".join(f'{k}="{_attr_value(v)}"' for k, v in (attributes or {}).items())
    tag = f"<{name}{' ' + attrs if attrs else ''}"
    if self_close:
        return tag + "/>\n"
    tag += ">"
    if content:
        return tag + content + f"</{name}>"
    return tag


def _render_test(test: TestCase) -> str:
    attributes = {
        "name": test.title,
        "classname": test.suite_name,
        "time": _number(test.elapsed or 0),
        "start": format_instant(test.start) if test.start else NEVER_RAN,
        "end": format_instant(test.end) if test.end else NEVER_RAN,
    }
    has_body = test.failure is not None or test.skipped
    out = "\t" + _tag("testcase", attributes, self_close=not has_body)
    if not has_body:
        return out
    if test.failure is not None:
        failure = test.failure
        out += "\n\t\t" + _tag(
            "failure",
            {"type": failure.type, "message": failure.message},
            content=cdata(failure.stack or failure.message),
        ) + "\n"
    if test.skipped:
        out += "\n\t\t" + _tag("skipped", self_close=True)
    return out + "\t</testcase>\n"


def render_report(report: Report, schema_href: str = "./xunit.xsd",
                  hostname: str = "localhost", functional_marker: str = "functional") -> str:
    """Serialize a report to xunit XML text."""
    parts = [
        '<?xml version="1.0" encoding="UTF-8"?>\n',
        f'<?xml-model href="{_attr_value(schema_href)}" ?>\n',
        "<testsuites>\n",
    ]
    for suite_id, suite in enumerate(report.suites):
        parts.append(_tag("testsuite", {
            "package": suite.package(functional_marker),
            "id": suite_id,
            "name": suite.name,
            "timestamp": suite.timestamp,
            "hostname": hostname,
            "tests": len(suite.tests),
            "failures": suite.failures,
            "errors": 0,
            "time": _number(suite.time),
        }))
        parts.append("\n\t" + _tag("properties") + "</properties>\n")
        for test in suite.tests:
            parts.append(_render_test(test))
        parts.append("\t" + _tag("system-out", content=cdata(suite.stdout)) + "\n")
        parts.append("\t" + _tag("system-err", content=cdata(suite.stderr)) + "\n")
        parts.append("</testsuite>\n")
    parts.append("</testsuites>\n")
    return "".join(parts)


def write_report(report: Report, path: str, **render_options) -> None:
    """Atomically overwrite *path* with the rendered report."""
    content = render_report(report, **render_options)
    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=directory, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp, path)
    except Exception:
        os.unlink(tmp)
        raise
    logger.debug("Wrote %d suites to %s", len(report.suites), path)


def _parse_time_attr(value: str | None, where: str):
    if value is None or value == NEVER_RAN:
        return None
    try:
        return parse_instant(value)
    except ValueError as e:
        raise ReportError(f"{where}: invalid timestamp {value!r}") from e


def _load_test(element: ET.Element, suite_name: str) -> TestCase:
    title = element.get("name", "")
    where = f"{suite_name} {title}"
    test = TestCase(
        title=title,
        suite_name=element.get("classname", suite_name),
        start=_parse_time_attr(element.get("start"), where),
        end=_parse_time_attr(element.get("end"), where),
    )
    failure = element.find("failure")
    if failure is not None:
        stack = unescape_cdata(failure.text)
        test.failure = Failure(
            type=failure.get("type", ""),
            message=failure.get("message", stack.split("\n", 1)[0]),
            stack=stack,
        )
        test.state = TestState.FAILED
    elif element.find("skipped") is not None:
        test.skipped = True
        test.state = TestState.PENDING
    elif test.start is not None:
        test.state = TestState.PASSED
    return test


def parse_report(text: str) -> Report:
    """Parse xunit XML text back into a Report."""
    try:
        root = ET.fromstring(text.encode("utf-8"))
    except ET.ParseError as e:
        raise ReportError(f"report is not well-formed XML: {e}") from e
    if root.tag != "testsuites":
        raise ReportError(f"unexpected root element <{root.tag}>, expected <testsuites>")

    report = Report()
    for element in root.iter("testsuite"):
        name = element.get("name", "")
        suite = TestSuite(
            name=name,
            timestamp=element.get("timestamp", ""),
            stdout=unescape_cdata(element.findtext("system-out")),
            stderr=unescape_cdata(element.findtext("system-err")),
            state=SuiteState.CLOSED,
        )
        suite.tests = [_load_test(t, name) for t in element.findall("testcase")]
        report.add(suite)
    return report


def load_report(path: str) -> Report:
    """Read and parse the report artifact at *path*."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            content = f.read()
    except FileNotFoundError as e:
        raise ReportError(f"report artifact not found: {path}") from e
    except OSError as e:
        raise ReportError(f"cannot read report artifact {path}: {e}") from e
    return parse_report(content)


def read_intervals(path: str, test_filter: str):
    """Load the report at *path* and return the Intervals matching *test_filter*."""
    return collect_intervals(load_report(path), test_filter)
