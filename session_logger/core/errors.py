"""
Error types shared across Session Logger.

Filesystem failures are not wrapped: they propagate as the built-in
OSError raised by the store.
"""


class SessionLoggerError(Exception):
    """Base class for all Session Logger errors."""


class ValidationError(SessionLoggerError, ValueError):
    """Raised when caller input is missing or malformed.

    Caller errors are never retried.
    """


class ParseError(SessionLoggerError, ValueError):
    """Raised when a stored line cannot be read back as a log entry.

    Only used inside the read path, where it is caught and the line skipped.
    """

    def __init__(self, line_number: int, details: str):
        self.line_number = line_number
        self.details = details
        super().__init__(f"Malformed log line {line_number}: {details}")


class UnknownToolError(SessionLoggerError, LookupError):
    """Raised when a tool name is not one of the declared tools."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown tool: {name}")
