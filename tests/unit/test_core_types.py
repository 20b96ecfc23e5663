"""
Unit tests for logonaudit.core.types and logonaudit.core.exceptions.
"""

import pytest
from datetime import datetime, timedelta, timezone

from logonaudit.core.exceptions import (
    EventSourceError,
    LogonAuditError,
    SchemaMismatchError,
)
from logonaudit.core.types import (
    EXCLUDED_ACCOUNTS,
    LogonRecord,
    LogonType,
    QueryFilter,
    as_utc,
)


class TestLogonType:
    """Tests for the logon type table."""

    @pytest.mark.parametrize(
        "code,label",
        [
            (2, "Interactive"),
            (3, "Network"),
            (4, "Batch"),
            (5, "Service"),
            (7, "Unlock"),
            (8, "NetworkClearText"),
            (9, "NewCredentials"),
            (10, "RemoteInteractive"),
            (11, "CachedInteractive"),
        ],
    )
    def test_label_for_known_codes(self, code, label):
        assert LogonType.label_for(code) == label

    @pytest.mark.parametrize("code", [0, 1, 6, 12, 99, -1])
    def test_label_for_unknown_code_is_empty(self, code):
        """Unmapped codes yield an empty label rather than raising."""
        assert LogonType.label_for(code) == ""
        assert LogonType.from_value(code) is None

    def test_every_member_has_label(self):
        for logon_type in LogonType:
            assert logon_type.label


class TestQueryFilter:
    """Tests for QueryFilter."""

    def test_fixed_log_and_event_id(self):
        qf = QueryFilter(end_time=datetime.now(timezone.utc))
        assert qf.log_name == "Security"
        assert qf.event_id == 4624
        assert qf.start_time is None

    def test_inverted_range(self):
        now = datetime.now(timezone.utc)
        assert QueryFilter(end_time=now, start_time=now + timedelta(hours=1)).is_inverted
        assert not QueryFilter(end_time=now, start_time=now - timedelta(hours=1)).is_inverted
        assert not QueryFilter(end_time=now).is_inverted

    def test_matches_time_is_inclusive(self):
        start = datetime(2024, 1, 1, tzinfo=timezone.utc)
        end = datetime(2024, 1, 2, tzinfo=timezone.utc)
        qf = QueryFilter(end_time=end, start_time=start)

        assert qf.matches_time(start)
        assert qf.matches_time(end)
        assert not qf.matches_time(start - timedelta(seconds=1))
        assert not qf.matches_time(end + timedelta(seconds=1))

    def test_filter_is_frozen(self):
        qf = QueryFilter(end_time=datetime.now(timezone.utc))
        with pytest.raises(AttributeError):
            qf.event_id = 4625


class TestLogonRecord:
    """Tests for LogonRecord."""

    def _record(self, logon_type_code: int = 10) -> LogonRecord:
        return LogonRecord(
            data_source_host="FILESRV01",
            timestamp=datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc),
            user_domain="CORP",
            username="jdoe",
            logon_type=LogonType.from_value(logon_type_code),
            logon_type_code=logon_type_code,
            source_ip_address="10.0.0.5",
            computer_name="WS01",
        )

    def test_label(self):
        assert self._record(10).logon_type_label == "RemoteInteractive"

    def test_unknown_code_preserved(self):
        record = self._record(99)
        assert record.logon_type is None
        assert record.logon_type_code == 99
        assert record.logon_type_label == ""
        assert "Unknown(99)" in str(record)

    def test_full_username(self):
        assert self._record().full_username == "CORP\\jdoe"

    def test_to_dict(self):
        data = self._record(3).to_dict()
        assert data == {
            "DataSourceHost": "FILESRV01",
            "Timestamp": "2024-01-15T10:30:00+00:00",
            "UserDomain": "CORP",
            "Username": "jdoe",
            "LogonType": "Network",
            "LogonTypeCode": 3,
            "SourceIpAddress": "10.0.0.5",
            "ComputerName": "WS01",
        }

    def test_record_is_immutable(self):
        record = self._record()
        with pytest.raises(AttributeError):
            record.username = "other"


class TestExclusionList:
    def test_contents(self):
        assert EXCLUDED_ACCOUNTS == {"DWM-1", "LOCAL SERVICE", "NETWORK SERVICE", "SYSTEM"}


class TestAsUtc:
    def test_aware_value_converted(self):
        eastern = timezone(timedelta(hours=-5))
        value = datetime(2024, 1, 15, 5, 30, tzinfo=eastern)
        assert as_utc(value) == datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)
        assert as_utc(value).tzinfo == timezone.utc

    def test_naive_value_becomes_aware(self):
        assert as_utc(datetime(2024, 1, 15, 10, 30)).tzinfo == timezone.utc


class TestExceptions:
    def test_schema_mismatch_is_index_error(self):
        error = SchemaMismatchError(18, 10, "IpAddress")
        assert isinstance(error, IndexError)
        assert isinstance(error, LogonAuditError)
        assert error.required_index == 18
        assert error.available == 10
        assert "IpAddress" in error.message

    def test_event_source_error_code(self):
        error = EventSourceError("access denied", code=5)
        assert error.code == 5
        assert str(error) == "access denied"
