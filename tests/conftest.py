"""
Pytest configuration and shared fixtures for logonaudit tests.
"""

import pytest
import structlog
from datetime import datetime, timedelta, timezone
from typing import Callable, List

from logonaudit.eventlog.reader import SimulatedEventSource
from logonaudit.eventlog.types import RawLogonEvent


# =============================================================================
# EVENT FACTORY
# =============================================================================


BASE_TIME = datetime(2024, 1, 15, 10, 30, 0, tzinfo=timezone.utc)


def make_properties(
    username: str = "jdoe",
    domain: str = "CORP",
    logon_type: str = "2",
    workstation: str = "WS01",
    ip_address: str = "10.0.0.5",
) -> List[str]:
    """Build a 21-value 4624 EventData array."""
    return [
        "S-1-5-18",  # 0 SubjectUserSid
        "WS01$",  # 1 SubjectUserName
        "CORP",  # 2 SubjectDomainName
        "0x3e7",  # 3 SubjectLogonId
        "S-1-5-21-1000",  # 4 TargetUserSid
        username,  # 5 TargetUserName
        domain,  # 6 TargetDomainName
        "0x1a2b3c",  # 7 TargetLogonId
        logon_type,  # 8 LogonType
        "User32",  # 9 LogonProcessName
        "Negotiate",  # 10 AuthenticationPackageName
        workstation,  # 11 WorkstationName
        "{00000000-0000-0000-0000-000000000000}",  # 12 LogonGuid
        "-",  # 13 TransmittedServices
        "-",  # 14 LmPackageName
        "0",  # 15 KeyLength
        "0x2d4",  # 16 ProcessId
        r"C:\Windows\System32\svchost.exe",  # 17 ProcessName
        ip_address,  # 18 IpAddress
        "0",  # 19 IpPort
        "%%1833",  # 20 ImpersonationLevel
    ]


@pytest.fixture(name="make_properties")
def make_properties_fixture() -> Callable[..., List[str]]:
    """The make_properties helper, for tests building their own arrays."""
    return make_properties


@pytest.fixture
def make_event() -> Callable[..., RawLogonEvent]:
    """Factory for raw 4624 events; ``minutes`` offsets from BASE_TIME."""

    def _make(
        username: str = "jdoe",
        logon_type: str = "2",
        minutes: int = 0,
        domain: str = "CORP",
        workstation: str = "WS01",
        ip_address: str = "10.0.0.5",
        record_id: int = 1,
        event_id: int = 4624,
    ) -> RawLogonEvent:
        return RawLogonEvent(
            time_created=BASE_TIME + timedelta(minutes=minutes),
            properties=make_properties(username, domain, logon_type, workstation, ip_address),
            record_id=record_id,
            computer="WS01.corp.example.com",
            event_id=event_id,
        )

    return _make


@pytest.fixture
def base_time() -> datetime:
    """Reference event time."""
    return BASE_TIME


@pytest.fixture
def mixed_events(make_event) -> List[RawLogonEvent]:
    """Events for a human user, a computer account and SYSTEM."""
    return [
        make_event("jdoe", "2", minutes=0, record_id=1),
        make_event("WIN-PC$", "3", minutes=1, record_id=2),
        make_event("SYSTEM", "5", minutes=2, record_id=3),
    ]


@pytest.fixture
def simulated_source(mixed_events) -> SimulatedEventSource:
    """Simulated source holding mixed_events."""
    return SimulatedEventSource(events=list(mixed_events))


# =============================================================================
# PYTEST MARKERS
# =============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "windows: marks tests requiring a real Windows Security log"
    )


@pytest.fixture(autouse=True)
def reset_structlog():
    """Undo logging configuration done by the command line."""
    yield
    structlog.reset_defaults()
