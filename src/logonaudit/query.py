"""
logonaudit Logon Event Query

The query pipeline for one host:

1. Build a QueryFilter (Security log, event 4624, time window)
2. Fetch raw events from an EventSource
3. Apply the EventFilter (target user, or exclude computer accounts)
4. Project each event into a LogonRecord
5. Return the records in source order

Example Usage:
    from logonaudit import get_logon_events

    records = get_logon_events(
        data_source_host="FILESRV01",
        start_time=datetime.now(timezone.utc) - timedelta(days=1),
        exclude_computer_accounts=True,
    )
    for record in records:
        print(record)
"""

from __future__ import annotations

import socket
from datetime import datetime, timezone
from enum import Enum, auto
from typing import Any, Iterable, List, Optional

import attrs
import structlog
from returns.result import Failure, Result, Success

from logonaudit.core.exceptions import LogonAuditError
from logonaudit.core.types import (
    EXCLUDED_ACCOUNTS,
    LogonRecord,
    LogonType,
    QueryFilter,
    as_utc,
)
from logonaudit.eventlog.reader import EventSource, SecurityEventLogReader
from logonaudit.eventlog.types import LogonEventFields, RawLogonEvent

logger = structlog.get_logger()


# =============================================================================
# FILTER BUILDER
# =============================================================================


def build_query_filter(
    start_time: Optional[datetime] = None,
    end_time: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> QueryFilter:
    """
    Build the query descriptor for successful logons.

    Args:
        start_time: Only events at or after this time (None = no lower bound)
        end_time: Only events at or before this time (default: now)
        now: Reference time used for the default end time

    Returns:
        QueryFilter with UTC times. The range is not validated; an end time
        earlier than the start time is passed through to the event source.
    """
    if end_time is None:
        end_time = now if now is not None else datetime.now(timezone.utc)

    query_filter = QueryFilter(
        start_time=as_utc(start_time) if start_time is not None else None,
        end_time=as_utc(end_time),
    )

    if query_filter.is_inverted:
        logger.warning(
            "query_range_inverted",
            start_time=query_filter.start_time.isoformat(),
            end_time=query_filter.end_time.isoformat(),
        )

    logger.debug(
        "query_filter_built",
        log_name=query_filter.log_name,
        event_id=query_filter.event_id,
        start_time=query_filter.start_time.isoformat() if query_filter.start_time else None,
        end_time=query_filter.end_time.isoformat(),
    )
    return query_filter


# =============================================================================
# EVENT FILTER
# =============================================================================


class FilterMode(Enum):
    """Which single filtering rule applies."""

    TARGET_USER = auto()
    EXCLUDE_COMPUTER_ACCOUNTS = auto()
    NONE = auto()


def is_computer_account(username: str, case_sensitive: bool = False) -> bool:
    """
    Check whether a username is a machine or built-in service account.

    Machine accounts carry a "$"; built-in accounts are listed in
    EXCLUDED_ACCOUNTS.
    """
    if "$" in username:
        return True
    if case_sensitive:
        return username in EXCLUDED_ACCOUNTS
    folded = username.casefold()
    return any(folded == account.casefold() for account in EXCLUDED_ACCOUNTS)


@attrs.define(frozen=True)
class EventFilter:
    """
    Predicate applied to fetched events.

    Exactly one mode applies. A target username takes precedence over
    excluding computer accounts. Username comparison is case-insensitive
    unless ``case_sensitive`` is set, matching Windows account names.

    Example:
        event_filter = EventFilter(exclude_computer_accounts=True)
        kept = event_filter.apply(events)
    """

    target_username: Optional[str] = None
    exclude_computer_accounts: bool = False
    case_sensitive: bool = False

    @property
    def mode(self) -> FilterMode:
        if self.target_username:
            return FilterMode.TARGET_USER
        if self.exclude_computer_accounts:
            return FilterMode.EXCLUDE_COMPUTER_ACCOUNTS
        return FilterMode.NONE

    def matches(self, event: RawLogonEvent) -> bool:
        """Check whether a single event is kept."""
        mode = self.mode
        if mode is FilterMode.TARGET_USER:
            return self._same_user(event.username, self.target_username)
        if mode is FilterMode.EXCLUDE_COMPUTER_ACCOUNTS:
            return not is_computer_account(event.username, self.case_sensitive)
        return True

    def apply(self, events: Iterable[RawLogonEvent]) -> List[RawLogonEvent]:
        """Return the kept events, in input order."""
        if self.mode is FilterMode.NONE:
            return list(events)
        return [event for event in events if self.matches(event)]

    def _same_user(self, username: str, target: str) -> bool:
        if self.case_sensitive:
            return username == target
        return username.casefold() == target.casefold()


# =============================================================================
# RECORD PROJECTOR
# =============================================================================


def project_record(event: RawLogonEvent, host: str) -> LogonRecord:
    """
    Map a raw 4624 event to a LogonRecord.

    ``host`` is the host the query ran against, not the event's own
    computer field. Unknown logon type codes are kept on the record with
    no label.

    Raises:
        SchemaMismatchError: If the event lacks one of the 4624 fields
    """
    fields = LogonEventFields.from_raw(event)
    return LogonRecord(
        data_source_host=host,
        timestamp=event.time_created,
        user_domain=fields.user_domain,
        username=fields.username,
        logon_type=LogonType.from_value(fields.logon_type_code),
        logon_type_code=fields.logon_type_code,
        source_ip_address=fields.source_ip_address,
        computer_name=fields.computer_name,
    )


# =============================================================================
# LOGON EVENT QUERY
# =============================================================================


@attrs.define
class LogonEventQuery:
    """
    Query successful logons on one or more hosts.

    Each ``run`` is independent: it builds its own filter (so the default
    end time is "now" at that call), fetches, filters and projects.
    Event source failures and malformed events propagate to the caller;
    no partial results are returned.

    Example:
        query = LogonEventQuery(exclude_computer_accounts=True)
        for host in ("WS01", "WS02"):
            for record in query.run(host):
                print(record)
    """

    source: EventSource = attrs.Factory(SecurityEventLogReader)
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    target_username: Optional[str] = None
    exclude_computer_accounts: bool = False
    case_sensitive: bool = False

    _logger: Any = attrs.Factory(lambda: structlog.get_logger())

    @property
    def event_filter(self) -> EventFilter:
        return EventFilter(
            target_username=self.target_username,
            exclude_computer_accounts=self.exclude_computer_accounts,
            case_sensitive=self.case_sensitive,
        )

    def run(self, host: Optional[str] = None) -> List[LogonRecord]:
        """
        Run the query against one host.

        Args:
            host: Host to query (default: this machine)

        Returns:
            LogonRecords in source order; empty if nothing matched

        Raises:
            EventSourceError: If the log cannot be queried
            SchemaMismatchError: If an event does not have the 4624 layout
        """
        host = host or socket.gethostname()
        log = self._logger.bind(host=host)

        query_filter = build_query_filter(self.start_time, self.end_time)

        log.debug("event_query_started", log_name=query_filter.log_name)
        events = self.source.fetch(host, query_filter)
        log.debug("events_fetched", count=len(events))

        event_filter = self.event_filter
        log.debug("event_filter_started", mode=event_filter.mode.name)
        events = event_filter.apply(events)
        log.debug("events_filtered", count=len(events))

        log.debug("projection_started")
        records: List[LogonRecord] = []
        for event in events:
            records.append(project_record(event, host))

        log.info("logon_query_completed", count=len(records))
        return records

    def try_run(self, host: Optional[str] = None) -> Result[List[LogonRecord], LogonAuditError]:
        """
        Run the query, returning failures instead of raising them.

        Returns:
            Success(records) or Failure(error)
        """
        try:
            return Success(self.run(host))
        except LogonAuditError as e:
            self._logger.error("logon_query_failed", host=host, error=e.message)
            return Failure(e)

    def run_many(self, hosts: Iterable[str]) -> List[LogonRecord]:
        """Run against each host in turn and concatenate the results."""
        records: List[LogonRecord] = []
        for host in hosts:
            records.extend(self.run(host))
        return records


def get_logon_events(
    data_source_host: Optional[str] = None,
    start_time: Optional[datetime] = None,
    end_time: Optional[datetime] = None,
    exclude_computer_accounts: bool = False,
    target_username: Optional[str] = None,
    case_sensitive: bool = False,
    source: Optional[EventSource] = None,
) -> List[LogonRecord]:
    """
    Get successful logon records from a host's Security log.

    Args:
        data_source_host: Host to query (default: this machine)
        start_time: Only events at or after this time
        end_time: Only events at or before this time (default: now)
        exclude_computer_accounts: Drop machine ($) and built-in service accounts
        target_username: Keep only this user (takes precedence over exclusion)
        case_sensitive: Compare usernames case-sensitively
        source: Event source (default: Windows Event Log)

    Returns:
        List of LogonRecord, in the order the log returned them
    """
    query = LogonEventQuery(
        source=source if source is not None else SecurityEventLogReader(),
        start_time=start_time,
        end_time=end_time,
        target_username=target_username,
        exclude_computer_accounts=exclude_computer_accounts,
        case_sensitive=case_sensitive,
    )
    return query.run(data_source_host)
