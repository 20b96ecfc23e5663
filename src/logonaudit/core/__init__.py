"""
logonaudit Core Module

Core types and exceptions shared by the event log adapter and the query
pipeline.
"""

from logonaudit.core.types import (
    EXCLUDED_ACCOUNTS,
    LOGON_SUCCESS_EVENT_ID,
    SECURITY_LOG,
    LogonRecord,
    LogonType,
    QueryFilter,
    as_utc,
)
from logonaudit.core.exceptions import (
    ConfigurationError,
    EventSourceError,
    LogonAuditError,
    SchemaMismatchError,
)

__all__ = [
    # Types
    "LogonType",
    "LogonRecord",
    "QueryFilter",
    "EXCLUDED_ACCOUNTS",
    "SECURITY_LOG",
    "LOGON_SUCCESS_EVENT_ID",
    "as_utc",
    # Exceptions
    "LogonAuditError",
    "EventSourceError",
    "SchemaMismatchError",
    "ConfigurationError",
]
