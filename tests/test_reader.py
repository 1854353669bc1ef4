"""Tests for runtelemetry/reader.py"""

import io
import os
import tempfile
import threading
import time
import unittest

from runtelemetry.reader import read_lines, tail_file


class TestReadLines(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()
        self.filepath = os.path.join(self.tmpdir, "mongod.log")

    def test_reads_all_lines(self):
        with open(self.filepath, "w") as f:
            f.write("line one\nline two\nline three\n")

        lines = list(read_lines(self.filepath))
        self.assertEqual(lines, ["line one\n", "line two\n", "line three\n"])

    def test_empty_file(self):
        with open(self.filepath, "w") as f:
            f.write("")

        self.assertEqual(list(read_lines(self.filepath)), [])

    def test_missing_file_raises(self):
        with self.assertRaises(FileNotFoundError):
            list(read_lines(os.path.join(self.tmpdir, "nope.log")))


def test_dash_reads_stdin(monkeypatch):
    monkeypatch.setattr("sys.stdin", io.StringIO("a\nb\n"))
    assert list(read_lines("-")) == ["a\n", "b\n"]


class TestTailFile(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()
        self.filepath = os.path.join(self.tmpdir, "live.log")

    def test_existing_then_appended_lines(self):
        with open(self.filepath, "w") as f:
            f.write("existing\n")

        collected = []
        gen = tail_file(self.filepath, poll_interval=0.01)

        def consume():
            for line in gen:
                collected.append(line)
                if len(collected) >= 3:
                    break

        t = threading.Thread(target=consume, daemon=True)
        t.start()

        time.sleep(0.05)
        with open(self.filepath, "a") as f:
            f.write("appended one\n")
            f.write("partial")
            f.flush()
            time.sleep(0.05)
            f.write(" line\n")

        t.join(timeout=2)
        self.assertEqual(collected, ["existing\n", "appended one\n", "partial line\n"])

    def test_from_end_skips_existing(self):
        with open(self.filepath, "w") as f:
            f.write("old\n")

        collected = []
        gen = tail_file(self.filepath, poll_interval=0.01, from_start=False)

        def consume():
            for line in gen:
                collected.append(line)
                break

        t = threading.Thread(target=consume, daemon=True)
        t.start()

        time.sleep(0.05)
        with open(self.filepath, "a") as f:
            f.write("new\n")

        t.join(timeout=2)
        self.assertEqual(collected, ["new\n"])


if __name__ == "__main__":
    unittest.main()
