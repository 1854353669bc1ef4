"""run-telemetry: pair structured log lines with the tests that were running."""

import logging
import sys
from argparse import ArgumentParser, RawDescriptionHelpFormatter

import yaml

from runtelemetry.config import load_config, load_yaml_config
from runtelemetry.correlator import correlate
from runtelemetry.errors import TelemetryError
from runtelemetry.formatter import format_record
from runtelemetry.reader import STDIN_MARKER, read_lines, tail_file
from runtelemetry.xunit import read_intervals

logger = logging.getLogger("runtelemetry")

DESCRIPTION = """\
Pair structured (JSON) log lines with the tests whose run window contains them.

Some log processing is done: ISO-8601 dates, {placeholder} interpolation of
msg from attr, and a testName property added to every line. Reads the xunit
report left over from the last recorded test run.
"""

EPILOG = """\
recommended usage:
  run-telemetry X Y | jq -SC | less -R   sort keys, color, and page through
  run-telemetry X Y | jq -Sc | code -    one line per record, open in an editor
  cat a.log b.log | run-telemetry X -    correlate several log files at once
"""


def build_parser() -> ArgumentParser:
    """Build the CLI argument parser."""
    parser = ArgumentParser(
        prog="run-telemetry",
        description=DESCRIPTION,
        epilog=EPILOG,
        formatter_class=RawDescriptionHelpFormatter,
        add_help=False,
    )
    parser.add_argument(
        "test_filter",
        metavar="TEST_FILTER",
        help="Case-insensitive substring of '<suite> <test>' to select tests",
    )
    parser.add_argument(
        "log_file",
        metavar="LOG_FILE",
        help="Log file to read, or '-' for standard input",
    )
    parser.add_argument(
        "-h", "--help", "-?",
        action="help",
        help="Show this help message and exit",
    )
    parser.add_argument(
        "-w", "--warnings",
        action="store_true",
        default=None,
        help="Report skipped tests and other diagnostics on stderr",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Debug logging on stderr",
    )
    parser.add_argument(
        "--report",
        default=None,
        help="xunit report path (default: xunit.xml)",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to YAML config file",
    )
    parser.add_argument(
        "--follow",
        action="store_true",
        help="Keep reading LOG_FILE as it grows (like tail -f)",
    )
    return parser


def setup_logging(warnings: bool = False, verbose: bool = False) -> None:
    if verbose:
        level = logging.DEBUG
    elif warnings:
        level = logging.INFO
    else:
        level = logging.ERROR
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s", stream=sys.stderr)


def run(args) -> int:
    """Correlate the log source against the report's intervals and print matches."""
    config = load_config(
        load_yaml_config(args.config),
        report_path=args.report,
        warnings=args.warnings,
    )
    setup_logging(warnings=config.warnings, verbose=args.verbose)

    if args.follow and args.log_file == STDIN_MARKER:
        print("Error: --follow requires a named log file", file=sys.stderr)
        return 1

    intervals = read_intervals(config.report_path, args.test_filter)
    logger.info("filtering log file %s against %d test(s)", args.log_file, len(intervals))

    if args.follow:
        lines = tail_file(args.log_file, poll_interval=config.poll_interval)
    else:
        lines = read_lines(args.log_file)

    for record in correlate(intervals, lines):
        print(format_record(record), flush=args.follow)
    return 0


def main(argv=None) -> int:
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        # argparse exits 2 on usage errors; this tool only uses 0 and 1
        return 1 if e.code else 0
    try:
        return run(args)
    except BrokenPipeError:
        return 0
    except (TelemetryError, OSError, yaml.YAMLError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 0


if __name__ == "__main__":
    sys.exit(main())
