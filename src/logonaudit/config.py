"""
logonaudit Configuration

Query configuration for the command line and library callers.
"""

from __future__ import annotations

import socket
from datetime import datetime
from typing import Any, List, Optional

import attrs

from logonaudit.core.exceptions import ConfigurationError
from logonaudit.core.types import as_utc
from logonaudit.eventlog.reader import (
    EventSource,
    SecurityEventLogReader,
    SimulatedEventSource,
)
from logonaudit.query import LogonEventQuery


def parse_time(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO 8601 time given on the command line.

    A trailing "Z" means UTC. Times without an offset are local time.

    Raises:
        ConfigurationError: If the value is not a valid ISO 8601 time
    """
    if value is None or value == "":
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return as_utc(datetime.fromisoformat(text))
    except ValueError as e:
        raise ConfigurationError(f"Invalid time {value!r}: expected ISO 8601") from e


def _default_hosts() -> List[str]:
    return [socket.gethostname()]


@attrs.define
class LogonQueryConfig:
    """
    Logon query configuration.

    Attributes:
        hosts: Hosts to query, in order (default: this machine)
        start_time: Only events at or after this time
        end_time: Only events at or before this time (default: now per host)
        target_username: Keep only this user
        exclude_computer_accounts: Drop machine and built-in service accounts
        case_sensitive: Compare usernames case-sensitively
        simulated_events: JSON file to replay instead of the Windows log
    """

    hosts: List[str] = attrs.Factory(_default_hosts)
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    target_username: Optional[str] = None
    exclude_computer_accounts: bool = False
    case_sensitive: bool = False
    simulated_events: Optional[str] = None

    @property
    def use_simulated(self) -> bool:
        return self.simulated_events is not None

    @classmethod
    def local(cls) -> "LogonQueryConfig":
        """Configuration for an unfiltered query of this machine."""
        return cls()

    @classmethod
    def from_args(cls, args: Any) -> "LogonQueryConfig":
        """
        Create config from parsed command-line arguments.

        Raises:
            ConfigurationError: If a time cannot be parsed
        """
        return cls(
            hosts=list(args.hosts) if args.hosts else _default_hosts(),
            start_time=parse_time(args.start),
            end_time=parse_time(args.end),
            target_username=args.user,
            exclude_computer_accounts=args.exclude_computer_accounts,
            case_sensitive=args.case_sensitive,
            simulated_events=args.simulated,
        )

    def create_source(self) -> EventSource:
        """Create the event source this configuration selects."""
        if self.simulated_events is not None:
            return SimulatedEventSource.from_json(self.simulated_events)
        return SecurityEventLogReader()

    def create_query(self, source: Optional[EventSource] = None) -> LogonEventQuery:
        """Create a LogonEventQuery from this configuration."""
        return LogonEventQuery(
            source=source if source is not None else self.create_source(),
            start_time=self.start_time,
            end_time=self.end_time,
            target_username=self.target_username,
            exclude_computer_accounts=self.exclude_computer_accounts,
            case_sensitive=self.case_sensitive,
        )
