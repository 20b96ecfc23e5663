"""
logonaudit Core Types

Value types shared by the query pipeline: the query filter, the logon type
table and the normalized output record.

Design Principles:
- Immutable: All types use frozen attrs
- Lossless: Unmapped logon type codes are kept alongside the label
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import IntEnum
from typing import Any, Dict, FrozenSet, Optional

import attrs


# =============================================================================
# CONSTANTS
# =============================================================================

SECURITY_LOG = "Security"
LOGON_SUCCESS_EVENT_ID = 4624

# Built-in service and window-manager accounts dropped with computer accounts
EXCLUDED_ACCOUNTS: FrozenSet[str] = frozenset(
    {"DWM-1", "LOCAL SERVICE", "NETWORK SERVICE", "SYSTEM"}
)


def as_utc(when: datetime) -> datetime:
    """Convert to an aware UTC datetime; naive values are taken as local time."""
    return when.astimezone(timezone.utc)


# =============================================================================
# LOGON TYPE
# =============================================================================


class LogonType(IntEnum):
    """
    Windows logon types from event 4624.

    Indicates how the user logged on.
    """

    INTERACTIVE = 2  # Local keyboard/screen logon
    NETWORK = 3  # Network logon (e.g., accessing shares)
    BATCH = 4  # Batch/scheduled task
    SERVICE = 5  # Service started
    UNLOCK = 7  # Workstation unlock
    NETWORK_CLEARTEXT = 8  # Network logon with cleartext credentials
    NEW_CREDENTIALS = 9  # RunAs with /netonly
    REMOTE_INTERACTIVE = 10  # RDP/Terminal Services
    CACHED_INTERACTIVE = 11  # Cached credentials (offline logon)

    @property
    def label(self) -> str:
        """Label as written in the Windows documentation."""
        return _LOGON_TYPE_LABELS[self]

    @classmethod
    def from_value(cls, value: int) -> Optional["LogonType"]:
        """Convert integer value to LogonType, returns None if invalid."""
        try:
            return cls(value)
        except ValueError:
            return None

    @classmethod
    def label_for(cls, value: int) -> str:
        """Label for a raw code, or an empty string for unmapped codes."""
        logon_type = cls.from_value(value)
        return logon_type.label if logon_type is not None else ""


_LOGON_TYPE_LABELS = {
    LogonType.INTERACTIVE: "Interactive",
    LogonType.NETWORK: "Network",
    LogonType.BATCH: "Batch",
    LogonType.SERVICE: "Service",
    LogonType.UNLOCK: "Unlock",
    LogonType.NETWORK_CLEARTEXT: "NetworkClearText",
    LogonType.NEW_CREDENTIALS: "NewCredentials",
    LogonType.REMOTE_INTERACTIVE: "RemoteInteractive",
    LogonType.CACHED_INTERACTIVE: "CachedInteractive",
}


# =============================================================================
# QUERY FILTER
# =============================================================================


@attrs.define(frozen=True, slots=True)
class QueryFilter:
    """
    Event log query descriptor.

    Log name and event ID are fixed. ``start_time`` is optional; ``end_time``
    is always set. No ordering between the two is enforced here.
    """

    end_time: datetime
    start_time: Optional[datetime] = None
    log_name: str = SECURITY_LOG
    event_id: int = LOGON_SUCCESS_EVENT_ID

    @property
    def is_inverted(self) -> bool:
        """True when an explicit start time is later than the end time."""
        return self.start_time is not None and self.start_time > self.end_time

    def matches_time(self, when: datetime) -> bool:
        """Check whether a timestamp falls inside the window (inclusive)."""
        if self.start_time is not None and when < self.start_time:
            return False
        return when <= self.end_time


# =============================================================================
# LOGON RECORD
# =============================================================================


@attrs.define(frozen=True, slots=True)
class LogonRecord:
    """
    Normalized record of one successful logon.

    Attributes:
        data_source_host: Host the log was queried on (as supplied by caller)
        timestamp: Event creation time
        user_domain: Domain of the account that logged on
        username: Account that logged on
        logon_type: Mapped logon type, None for unmapped codes
        logon_type_code: Raw logon type code from the event
        source_ip_address: Client address recorded by the event
        computer_name: Workstation name recorded by the event
    """

    data_source_host: str
    timestamp: datetime
    user_domain: str
    username: str
    logon_type: Optional[LogonType]
    logon_type_code: int
    source_ip_address: str
    computer_name: str

    @property
    def logon_type_label(self) -> str:
        """Human-readable logon type, empty for unmapped codes."""
        return self.logon_type.label if self.logon_type is not None else ""

    @property
    def full_username(self) -> str:
        """Get the full username in DOMAIN\\username format."""
        if self.user_domain:
            return f"{self.user_domain}\\{self.username}"
        return self.username

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "DataSourceHost": self.data_source_host,
            "Timestamp": self.timestamp.isoformat(),
            "UserDomain": self.user_domain,
            "Username": self.username,
            "LogonType": self.logon_type_label,
            "LogonTypeCode": self.logon_type_code,
            "SourceIpAddress": self.source_ip_address,
            "ComputerName": self.computer_name,
        }

    def __str__(self) -> str:
        label = self.logon_type_label or f"Unknown({self.logon_type_code})"
        return (
            f"{self.timestamp.strftime('%Y-%m-%d %H:%M:%S')} - "
            f"{self.full_username} - {label} - "
            f"{self.source_ip_address or '-'} - {self.data_source_host}"
        )
