"""
logonaudit - Successful Logon Queries for the Windows Security Event Log

Query a host's Security log for logon events (4624), optionally restricted
to a time range, a single target user, or with machine and built-in service
accounts removed. Each event becomes one normalized LogonRecord.

Example Usage:
    from logonaudit import get_logon_events

    records = get_logon_events(
        data_source_host="FILESRV01",
        exclude_computer_accounts=True,
    )
    for record in records:
        print(f"{record.timestamp}: {record.full_username} ({record.logon_type_label})")
"""

from logonaudit.core.types import LogonRecord, LogonType, QueryFilter
from logonaudit.core.exceptions import (
    EventSourceError,
    LogonAuditError,
    SchemaMismatchError,
)
from logonaudit.query import (
    EventFilter,
    FilterMode,
    LogonEventQuery,
    build_query_filter,
    get_logon_events,
    project_record,
)

__version__ = "0.1.0"

__all__ = [
    # Main API
    "get_logon_events",
    "LogonEventQuery",
    "build_query_filter",
    "EventFilter",
    "FilterMode",
    "project_record",
    # Types
    "LogonRecord",
    "LogonType",
    "QueryFilter",
    # Exceptions
    "LogonAuditError",
    "EventSourceError",
    "SchemaMismatchError",
    # Metadata
    "__version__",
]
