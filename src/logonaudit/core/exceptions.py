"""
logonaudit Exception Types

Custom exceptions for logon event queries.
"""

from typing import Optional


class LogonAuditError(Exception):
    """Base exception for all logonaudit errors."""

    def __init__(self, message: str, code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class EventSourceError(LogonAuditError):
    """
    The event log could not be queried.

    Raised when the host is unreachable, access to the Security log is
    denied, the log does not exist, or the Event Log API is not available
    on this platform. ``code`` carries the Win32 error number when known.
    """

    pass


class SchemaMismatchError(LogonAuditError, IndexError):
    """
    Event record does not follow the 4624 property layout.

    Raised when a raw event's property array is too short for the field
    being read. Subclasses IndexError so callers treating it as an
    out-of-range fault still catch it.
    """

    def __init__(self, required_index: int, available: int, field: str = "") -> None:
        message = (
            f"Event has {available} properties, "
            f"field {field or '?'} needs index {required_index}"
        )
        super().__init__(message)
        self.required_index = required_index
        self.available = available
        self.field = field


class ConfigurationError(LogonAuditError):
    """Invalid query configuration (e.g. an unparseable time)."""

    pass
