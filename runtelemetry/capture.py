"""Scoped interception of a text stream: writes pass through and are buffered.

A capture session swaps ``owner.<name>`` (e.g. ``sys.stdout``) for a tee that
forwards every write to the stream it replaced and keeps a copy. Releasing
the session puts the original stream back.
"""

import io
import logging

logger = logging.getLogger(__name__)


class _TeeWriter:
    """File-like wrapper that forwards writes and records them."""

    def __init__(self, target, buffer: io.StringIO):
        self._target = target
        self._buffer = buffer

    def write(self, chunk) -> int:
        text = chunk.decode("utf-8", errors="replace") if isinstance(chunk, bytes) else str(chunk)
        self._buffer.write(text)
        return self._target.write(chunk)

    def writelines(self, lines) -> None:
        for line in lines:
            self.write(line)

    def __getattr__(self, attr):
        # flush, fileno, isatty, encoding, ... come from the real stream
        return getattr(self._target, attr)


class CaptureSession:
    def __init__(self, owner, name: str):
        self._owner = owner
        self._name = name
        self._original = getattr(owner, name)
        self._buffer = io.StringIO()
        self._active = True
        setattr(owner, name, _TeeWriter(self._original, self._buffer))
        logger.debug("Capturing %s", name)

    @property
    def active(self) -> bool:
        return self._active

    def captured(self) -> str:
        """Text written since the session began."""
        return self._buffer.getvalue()

    def release(self) -> None:
        """Restore the original stream. Safe to call more than once."""
        if not self._active:
            return
        setattr(self._owner, self._name, self._original)
        self._active = False
        logger.debug("Released %s", self._name)

    def __enter__(self) -> "CaptureSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()


def capture_stream(owner, name: str) -> CaptureSession:
    """Begin capturing ``owner.<name>``, e.g. ``capture_stream(sys, "stdout")``."""
    return CaptureSession(owner, name)
