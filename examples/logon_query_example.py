#!/usr/bin/env python3
"""
Logon Query Example

Demonstrates querying successful logons (event 4624) with logonaudit.

Features:
1. Query this machine's Security log (Windows only)
2. Exclude computer and built-in service accounts
3. Follow one user across several hosts
4. Offline replay with a simulated event source

Requirements (examples 1-3):
- Windows operating system
- pywin32 package installed
- Permission to read the Security Event Log
"""

from datetime import datetime, timedelta, timezone

from logonaudit import LogonEventQuery, get_logon_events
from logonaudit.eventlog import (
    RawLogonEvent,
    SecurityEventLogReader,
    SimulatedEventSource,
)


def windows_examples() -> None:
    one_day_ago = datetime.now(timezone.utc) - timedelta(days=1)

    print("1. Logons on this machine in the last day")
    print("-" * 40)
    for record in get_logon_events(start_time=one_day_ago)[:10]:
        print(f"   {record}")
    print()

    print("2. Human logons only")
    print("-" * 40)
    records = get_logon_events(start_time=one_day_ago, exclude_computer_accounts=True)
    print(f"   {len(records)} logon(s) after excluding computer accounts")
    print()

    print("3. One user across hosts")
    print("-" * 40)
    query = LogonEventQuery(start_time=one_day_ago, target_username="administrator")
    for host in ("localhost",):  # Add your hosts here
        result = query.try_run(host)
        print(f"   {host}: {result}")
    print()


def simulated_example() -> None:
    print("4. Offline replay")
    print("-" * 40)

    now = datetime.now(timezone.utc)
    padding = ["-"] * 21

    def event(username: str, logon_type: str, minutes_ago: int) -> RawLogonEvent:
        properties = list(padding)
        properties[5] = username
        properties[6] = "CORP"
        properties[8] = logon_type
        properties[11] = "WS01"
        properties[18] = "10.0.0.5"
        return RawLogonEvent(time_created=now - timedelta(minutes=minutes_ago), properties=properties)

    source = SimulatedEventSource(
        events=[event("jdoe", "10", 5), event("WS01$", "3", 6), event("SYSTEM", "5", 7)]
    )
    for record in get_logon_events("WS01", exclude_computer_accounts=True, source=source):
        print(f"   {record}")


def main() -> None:
    print("=" * 70)
    print("logonaudit - Successful Logon Queries")
    print("=" * 70)
    print()

    available, message = SecurityEventLogReader.is_available()
    if available:
        windows_examples()
    else:
        print(f"Skipping live queries: {message}")
        print()

    simulated_example()


if __name__ == "__main__":
    main()
