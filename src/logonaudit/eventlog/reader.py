"""
Windows Security Event Log Reader

Fetch 4624 events from the Security log of a local or remote host.
Two sources share one interface:

- SecurityEventLogReader: Windows Event Log API via pywin32
- SimulatedEventSource: In-memory events (testing and offline replay)

Requirements (SecurityEventLogReader):
- Windows operating system
- pywin32 package (pip install pywin32)
- SeSecurityPrivilege or "Event Log Readers" group membership
"""

from __future__ import annotations

import json
import socket
import xml.etree.ElementTree as ET
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Set, Tuple

import attrs
import structlog

from logonaudit.core.exceptions import EventSourceError
from logonaudit.core.types import QueryFilter
from logonaudit.eventlog.types import (
    RawLogonEvent,
    eventlog_available,
    get_eventlog_error,
    win32evtlog,
)

logger = structlog.get_logger()

_EVENT_NS = {"e": "http://schemas.microsoft.com/win/2004/08/events/event"}

# EvtRpcLoginAuthDefault
_RPC_LOGIN_AUTH_DEFAULT = 0


# =============================================================================
# EVENT PARSING UTILITIES
# =============================================================================


def parse_timestamp(time_str: str) -> datetime:
    """
    Parse a Windows event timestamp to an aware UTC datetime.

    Windows writes up to 100ns precision (2024-01-15T10:30:45.1234567Z);
    the fraction is truncated to microseconds.

    Raises:
        ValueError: If the string is not an ISO 8601 timestamp
    """
    if time_str.endswith("Z"):
        time_str = time_str[:-1] + "+00:00"
    if "." in time_str:
        base, frac = time_str.split(".", 1)
        tz = ""
        for sign in ("+", "-"):
            if sign in frac:
                frac, tz = frac.split(sign, 1)
                tz = sign + tz
                break
        time_str = f"{base}.{frac[:6].ljust(6, '0')}{tz}"
    parsed = datetime.fromisoformat(time_str)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def parse_event_xml(xml_string: str) -> RawLogonEvent:
    """
    Parse rendered event XML into a RawLogonEvent.

    EventData values are kept positionally, in document order.

    Raises:
        EventSourceError: If the XML or its timestamp cannot be parsed
    """
    try:
        root = ET.fromstring(xml_string)
    except ET.ParseError as e:
        raise EventSourceError(f"Unparseable event XML: {e}") from e

    event_id = 0
    record_id = 0
    computer = ""
    time_created = ""

    system = root.find("e:System", _EVENT_NS)
    if system is not None:
        event_id_elem = system.find("e:EventID", _EVENT_NS)
        if event_id_elem is not None:
            event_id = int(event_id_elem.text or "0")

        time_elem = system.find("e:TimeCreated", _EVENT_NS)
        if time_elem is not None:
            time_created = time_elem.get("SystemTime", "")

        computer_elem = system.find("e:Computer", _EVENT_NS)
        if computer_elem is not None:
            computer = computer_elem.text or ""

        record_elem = system.find("e:EventRecordID", _EVENT_NS)
        if record_elem is not None:
            record_id = int(record_elem.text or "0")

    properties: List[str] = []
    event_data = root.find("e:EventData", _EVENT_NS)
    if event_data is not None:
        properties = [elem.text or "" for elem in event_data.findall("e:Data", _EVENT_NS)]

    try:
        timestamp = parse_timestamp(time_created)
    except ValueError as e:
        raise EventSourceError(
            f"Event {record_id} has unparseable TimeCreated {time_created!r}"
        ) from e

    return RawLogonEvent(
        time_created=timestamp,
        properties=properties,
        record_id=record_id,
        computer=computer,
        event_id=event_id,
    )


def _format_system_time(when: datetime) -> str:
    """Format a datetime as an XPath SystemTime literal (UTC, milliseconds)."""
    utc = when.astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


def build_xpath_query(query_filter: QueryFilter) -> str:
    """Build the XPath selector for a query filter."""
    query = f"*[System[(EventID={query_filter.event_id})"

    if query_filter.start_time is not None:
        since_str = _format_system_time(query_filter.start_time)
        query += f" and TimeCreated[@SystemTime>='{since_str}']"

    until_str = _format_system_time(query_filter.end_time)
    query += f" and TimeCreated[@SystemTime<='{until_str}']"

    query += "]]"
    return query


def is_local_host(host: str) -> bool:
    """Check whether a host name refers to this machine."""
    if host in ("", ".", "localhost", "127.0.0.1", "::1"):
        return True
    local = socket.gethostname().lower()
    name = host.lower()
    return name == local or name.split(".", 1)[0] == local.split(".", 1)[0]


# =============================================================================
# EVENT SOURCE INTERFACE
# =============================================================================


class EventSource(ABC):
    """
    Source of raw logon events for one host.

    ``fetch`` is a single synchronous call: no paging, no retry. Events are
    returned in the order the log provides them (newest first for the
    Windows log). Failures raise EventSourceError.
    """

    @abstractmethod
    def fetch(self, host: str, query_filter: QueryFilter) -> List[RawLogonEvent]:
        """Fetch all events on ``host`` that match ``query_filter``."""


# =============================================================================
# SECURITY EVENT LOG READER
# =============================================================================


@attrs.define
class SecurityEventLogReader(EventSource):
    """
    Read 4624 events from the Windows Security Event Log.

    Uses EvtQuery against the local log, or opens an RPC session for a
    remote host.

    Requires appropriate permissions:
    - Local: SeSecurityPrivilege or "Event Log Readers" group
    - Remote: Domain Admin or delegated permissions

    Example:
        reader = SecurityEventLogReader()
        query_filter = build_query_filter(start_time=yesterday)
        events = reader.fetch("FILESRV01", query_filter)
    """

    batch_size: int = 100

    _logger: Any = attrs.Factory(lambda: structlog.get_logger())

    @classmethod
    def is_available(cls) -> Tuple[bool, str]:
        """
        Check if Security Event Log reading is available.

        Returns:
            Tuple of (available, message)
        """
        if not eventlog_available():
            return False, get_eventlog_error() or "pywin32 not available"
        return True, "Security Event Log API available"

    def fetch(self, host: str, query_filter: QueryFilter) -> List[RawLogonEvent]:
        if not eventlog_available():
            raise EventSourceError(
                get_eventlog_error() or "Windows Event Log API is not available"
            )

        xpath_query = build_xpath_query(query_filter)
        self._logger.debug("xpath_query_built", host=host, query=xpath_query)

        try:
            return self._execute_query(host, query_filter.log_name, xpath_query)
        except EventSourceError:
            raise
        except Exception as e:
            self._logger.error("query_error", host=host, error=str(e))
            raise EventSourceError(
                f"Failed to query {query_filter.log_name} log on {host}: {e}",
                code=getattr(e, "winerror", None),
            ) from e

    def _open_session(self, host: str) -> Any:
        """Open an RPC session for a remote host, None for the local machine."""
        if is_local_host(host):
            return None
        return win32evtlog.EvtOpenSession(
            (host, None, None, None, _RPC_LOGIN_AUTH_DEFAULT),
            win32evtlog.EvtRpcLogin,
        )

    def _execute_query(
        self, host: str, log_name: str, xpath_query: str
    ) -> List[RawLogonEvent]:
        """Execute the event log query and read every result."""
        events: List[RawLogonEvent] = []

        session = self._open_session(host)
        query_handle = None
        try:
            query_handle = win32evtlog.EvtQuery(
                log_name,
                win32evtlog.EvtQueryChannelPath | win32evtlog.EvtQueryReverseDirection,
                xpath_query,
                session,
            )

            while True:
                event_handles = win32evtlog.EvtNext(query_handle, self.batch_size)
                if not event_handles:
                    break

                for handle in event_handles:
                    try:
                        xml = win32evtlog.EvtRender(handle, win32evtlog.EvtRenderEventXml)
                        events.append(parse_event_xml(xml))
                    finally:
                        handle.Close()
        finally:
            if query_handle is not None:
                query_handle.Close()
            if session is not None:
                session.Close()

        return events


# =============================================================================
# SIMULATED EVENT SOURCE
# =============================================================================


@attrs.define
class SimulatedEventSource(EventSource):
    """
    In-memory event source.

    Applies the same event ID and time window as the Windows query, keeps
    the stored order, and records every host it is asked about. Hosts in
    ``unreachable_hosts`` fail the way an unreachable server does.

    Example:
        source = SimulatedEventSource(events=[...])
        events = source.fetch("WS01", build_query_filter())
    """

    events: List[RawLogonEvent] = attrs.Factory(list)
    unreachable_hosts: Set[str] = attrs.Factory(set)
    queried_hosts: List[str] = attrs.Factory(list)

    def fetch(self, host: str, query_filter: QueryFilter) -> List[RawLogonEvent]:
        self.queried_hosts.append(host)
        if host in self.unreachable_hosts:
            raise EventSourceError(f"The RPC server is unavailable: {host}", code=1722)

        return [
            event
            for event in self.events
            if event.event_id == query_filter.event_id
            and query_filter.matches_time(event.time_created)
        ]

    @classmethod
    def from_records(cls, records: Iterable[Dict[str, Any]]) -> "SimulatedEventSource":
        """
        Build a source from dictionaries shaped like RawLogonEvent.to_dict().

        Raises:
            EventSourceError: If a record lacks time_created or properties
        """
        events = []
        for index, record in enumerate(records):
            try:
                events.append(
                    RawLogonEvent(
                        time_created=parse_timestamp(record["time_created"]),
                        properties=[str(p) for p in record["properties"]],
                        record_id=int(record.get("record_id", index)),
                        computer=record.get("computer", ""),
                        event_id=int(record.get("event_id", 4624)),
                    )
                )
            except (KeyError, TypeError, ValueError) as e:
                raise EventSourceError(f"Invalid simulated event #{index}: {e}") from e
        return cls(events=events)

    @classmethod
    def from_json(cls, filepath: str) -> "SimulatedEventSource":
        """
        Load events from a JSON file holding a list of event objects.

        Raises:
            EventSourceError: If the file cannot be read or parsed
        """
        try:
            with open(filepath) as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise EventSourceError(f"Cannot load simulated events from {filepath}: {e}") from e

        if isinstance(data, dict):
            data = data.get("events", [])
        if not isinstance(data, list):
            raise EventSourceError(
                f"Cannot load simulated events from {filepath}: expected a list of events"
            )
        source = cls.from_records(data)
        logger.debug("simulated_events_loaded", filepath=filepath, count=len(source.events))
        return source
