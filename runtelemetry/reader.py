"""Generator-based log input: whole files, stdin, and tail."""

import os
import sys
import time
from typing import Generator

STDIN_MARKER = "-"


def read_lines(source: str) -> Generator[str, None, None]:
    """Yield each line of *source*; ``-`` reads standard input."""
    if source == STDIN_MARKER:
        yield from sys.stdin
        return
    with open(source, "r", encoding="utf-8") as f:
        yield from f


def tail_file(filepath: str, poll_interval: float = 0.1,
              from_start: bool = True) -> Generator[str, None, None]:
    """Yield complete lines as they are appended to *filepath*.

    Starts at the beginning of the file unless *from_start* is False.
    Polls with time.sleep(poll_interval). Runs until interrupted.
    """
    with open(filepath, "r", encoding="utf-8") as f:
        if not from_start:
            f.seek(0, os.SEEK_END)
        buffer = ""
        while True:
            chunk = f.read()
            if chunk:
                buffer += chunk
                while "\n" in buffer:
                    line, buffer = buffer.split("\n", 1)
                    yield line + "\n"
            else:
                time.sleep(poll_interval)
