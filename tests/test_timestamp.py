"""
Tests for packed LIB timestamps.
"""

from datetime import datetime

import pytest

from psyq_sdk.lib import PackedTimestamp


class TestPackedTimestamp:
    """Tests for unpacking, packing and formatting."""

    def test_unpack(self):
        stamp = PackedTimestamp(0x813320AF)
        assert (stamp.year, stamp.month, stamp.day) == (1996, 5, 15)
        assert (stamp.hour, stamp.minute, stamp.second) == (16, 9, 38)
        assert str(stamp) == "15-05-96 16:09:38"

    def test_date_and_time_halves(self):
        """The date is the low 16 bits and the time the high 16 bits."""
        stamp = PackedTimestamp(0x8D061F4C)
        assert stamp.date == 0x1F4C
        assert stamp.time == 0x8D06
        assert stamp.format_date() == "12-10-95"
        assert stamp.format_time() == "17:40:12"

    def test_pack_fields(self):
        stamp = PackedTimestamp.from_fields(1996, 5, 15, 16, 9, 24)
        assert stamp.value == 0x812C20AF
        assert PackedTimestamp.from_parts(stamp.date, stamp.time) == stamp

    def test_odd_seconds_round_down(self):
        """Seconds are stored in 2-second units."""
        stamp = PackedTimestamp.from_fields(2000, 1, 1, 0, 0, 59)
        assert stamp.second == 58

    def test_datetime_round_trip(self):
        moment = datetime(2024, 2, 29, 23, 59, 58)
        stamp = PackedTimestamp.from_datetime(moment)
        assert stamp.to_datetime() == moment
        assert stamp.is_valid()

    @pytest.mark.parametrize("fields", [
        (1979, 1, 1),
        (2108, 1, 1),
        (2000, 13, 1),
        (2000, 1, 0),
        (2000, 1, 1, 24),
    ])
    def test_fields_out_of_range(self, fields):
        with pytest.raises(ValueError):
            PackedTimestamp.from_fields(*fields)

    def test_value_out_of_range(self):
        with pytest.raises(ValueError):
            PackedTimestamp(1 << 32)

    def test_invalid_date_still_formats(self):
        """A stamp that is not a real date formats its raw fields."""
        stamp = PackedTimestamp(0)
        assert not stamp.is_valid()
        assert stamp.to_datetime() is None
        assert stamp.format() == "00-00-80 00:00:00"

    def test_now_is_valid(self):
        assert PackedTimestamp.now().is_valid()
