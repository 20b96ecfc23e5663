"""
logonaudit Windows Security Event Log Integration

Event source adapters that fetch successful logon events (4624) from the
Security log of a local or remote host.

Requirements (live queries):
- Windows operating system
- pywin32 package (pip install pywin32)
- Appropriate permissions to read Security Event Log
"""

from logonaudit.eventlog.types import (
    LogonEventFields,
    RawLogonEvent,
    eventlog_available,
    get_eventlog_error,
)
from logonaudit.eventlog.reader import (
    EventSource,
    SecurityEventLogReader,
    SimulatedEventSource,
    build_xpath_query,
    parse_event_xml,
)

__all__ = [
    # Types
    "RawLogonEvent",
    "LogonEventFields",
    "eventlog_available",
    "get_eventlog_error",
    # Sources
    "EventSource",
    "SecurityEventLogReader",
    "SimulatedEventSource",
    # Utilities
    "build_xpath_query",
    "parse_event_xml",
]
