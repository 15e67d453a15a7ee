"""Tests for timestamps pinned to a UTC offset."""

from datetime import datetime, timedelta, timezone

from rrr.timestamp import UTC, Timestamp, UtcOffset, earliest


def _at(hour, offset=timedelta(0)):
    return Timestamp(datetime(2024, 1, 2, hour, 4, 5, tzinfo=timezone(offset)))


class TestDisplay:
    def test_utc_gets_explicit_suffix(self):
        assert str(_at(3)) == "2024-01-02T03:04:05Z UTC"

    def test_non_zero_offset_has_no_suffix(self):
        assert str(_at(3, timedelta(hours=2))) == "2024-01-02T03:04:05+02:00"

    def test_rfc3339_is_machine_readable(self):
        assert _at(3).rfc3339() == "2024-01-02T03:04:05Z"


class TestOrdering:
    def test_total_order_across_offsets(self):
        # 03:04 at +02:00 is 01:04 UTC
        assert _at(3, timedelta(hours=2)) < _at(2)
        assert _at(2) == _at(2)

    def test_default_is_epoch(self):
        assert Timestamp.DEFAULT.value == datetime(1970, 1, 1, tzinfo=timezone.utc)
        assert Timestamp.DEFAULT < _at(0)

    def test_max_is_later_than_everything(self):
        assert _at(23) < Timestamp.MAX

    def test_earliest_of_none_is_max(self):
        assert earliest([]) == Timestamp.MAX

    def test_earliest_picks_minimum(self):
        assert earliest([_at(5), _at(1), _at(3)]) == _at(1)


class TestNow:
    def test_now_uses_given_offset(self):
        offset = UtcOffset(timedelta(hours=-5))
        stamp = Timestamp.now_at_offset(offset)
        assert stamp.value.utcoffset() == timedelta(hours=-5)

    def test_now_is_after_default(self):
        assert Timestamp.now_at_offset(UTC) > Timestamp.DEFAULT

    def test_current_local_or_utc_returns_an_offset(self):
        offset = UtcOffset.current_local_or_utc()
        assert isinstance(offset.delta, timedelta)
