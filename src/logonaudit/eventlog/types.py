"""
Windows Security Event Log Types

Raw event records as delivered by the event source, and the named-field
view of the 4624 property layout.

Requirements:
- Windows operating system
- pywin32 package (pip install pywin32)
"""

from __future__ import annotations

import sys
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

import attrs
import structlog

from logonaudit.core.exceptions import SchemaMismatchError
from logonaudit.core.types import as_utc

logger = structlog.get_logger()

# =============================================================================
# PLATFORM DETECTION
# =============================================================================

_eventlog_available = False
_eventlog_error: Optional[str] = None
win32evtlog = None

if sys.platform == "win32":
    try:
        import win32evtlog as win32evtlog_module

        win32evtlog = win32evtlog_module
        _eventlog_available = True
    except ImportError as e:
        _eventlog_error = str(e)
        logger.warning(
            "eventlog_not_available",
            message="Install pywin32 for Event Log access: pip install pywin32",
        )
else:
    _eventlog_error = "Windows Event Log is only available on Windows"


def eventlog_available() -> bool:
    """Check if Windows Event Log API is available."""
    return _eventlog_available


def get_eventlog_error() -> Optional[str]:
    """Get the error message if Event Log is not available."""
    return _eventlog_error


# =============================================================================
# 4624 PROPERTY LAYOUT
# =============================================================================

# Positions of the EventData values in a 4624 record
USERNAME_INDEX = 5  # TargetUserName
USER_DOMAIN_INDEX = 6  # TargetDomainName
LOGON_TYPE_INDEX = 8  # LogonType
COMPUTER_NAME_INDEX = 11  # WorkstationName
SOURCE_IP_INDEX = 18  # IpAddress


# =============================================================================
# RAW EVENT
# =============================================================================


@attrs.define(frozen=True, slots=True)
class RawLogonEvent:
    """
    Event record as returned by the event source.

    Attributes:
        time_created: When the event was written (UTC)
        properties: EventData values in schema order
        record_id: Record number in the event log
        computer: Computer that wrote the event
        event_id: Event ID of the record
    """

    time_created: datetime = attrs.field(converter=as_utc)
    properties: Tuple[str, ...] = attrs.field(converter=tuple)
    record_id: int = 0
    computer: str = ""
    event_id: int = 4624

    def property_at(self, index: int, field: str = "") -> str:
        """Read one positional property, raising SchemaMismatchError if absent."""
        try:
            return self.properties[index]
        except IndexError:
            raise SchemaMismatchError(index, len(self.properties), field) from None

    @property
    def username(self) -> str:
        """Target username (property 5)."""
        return self.property_at(USERNAME_INDEX, "TargetUserName")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "time_created": self.time_created.isoformat(),
            "properties": list(self.properties),
            "record_id": self.record_id,
            "computer": self.computer,
            "event_id": self.event_id,
        }


@attrs.define(frozen=True, slots=True)
class LogonEventFields:
    """
    Named view of the fields read from a 4624 record.

    Built once at the adapter boundary so that a differently-shaped
    record fails here with SchemaMismatchError.
    """

    username: str
    user_domain: str
    logon_type_code: int
    computer_name: str
    source_ip_address: str

    @classmethod
    def from_raw(cls, event: RawLogonEvent) -> "LogonEventFields":
        """Extract the named fields from a raw event."""
        logon_type = event.property_at(LOGON_TYPE_INDEX, "LogonType")
        try:
            logon_type_code = int(logon_type)
        except (TypeError, ValueError):
            logon_type_code = 0

        return cls(
            username=event.property_at(USERNAME_INDEX, "TargetUserName"),
            user_domain=event.property_at(USER_DOMAIN_INDEX, "TargetDomainName"),
            logon_type_code=logon_type_code,
            computer_name=event.property_at(COMPUTER_NAME_INDEX, "WorkstationName"),
            source_ip_address=event.property_at(SOURCE_IP_INDEX, "IpAddress"),
        )
