"""Exception types raised by the recorder, report codec and log correlator."""


class TelemetryError(Exception):
    """Base class for fatal run-telemetry failures."""


class ProtocolError(TelemetryError):
    """Raised when the event source violates the suite lifecycle."""


class ReportError(TelemetryError):
    """Raised when the report artifact is missing or malformed."""


class LogDecodeError(TelemetryError):
    """Raised when a log line cannot be decoded as a structured record."""

    def __init__(self, message: str, line_number: int | None = None):
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)
        self.line_number = line_number
