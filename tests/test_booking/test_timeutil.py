"""Tests for HH:MM parsing and weekday helpers."""

from datetime import date, datetime

import pytest

from gymbook.booking.errors import ValidationError
from gymbook.booking.timeutil import (
    minutes_to_time_str,
    normalize_time_str,
    slot_start,
    time_str_to_minutes,
    weekday_sunday_first,
)


class TestTimeParsing:
    def test_parses_hh_mm(self) -> None:
        assert time_str_to_minutes("00:00") == 0
        assert time_str_to_minutes("09:30") == 570
        assert time_str_to_minutes("23:59") == 1439

    def test_accepts_single_digit_hour(self) -> None:
        assert time_str_to_minutes("8:00") == 480
        assert normalize_time_str("8:05") == "08:05"

    def test_midnight_end_of_day(self) -> None:
        assert time_str_to_minutes("24:00") == 1440

    @pytest.mark.parametrize("value", ["", "9", "09:60", "25:00", "24:01", "ab:cd", "09:5", "-1:00"])
    def test_rejects_malformed(self, value: str) -> None:
        with pytest.raises(ValidationError) as exc:
            time_str_to_minutes(value)
        assert exc.value.code == "invalid_time"

    def test_format(self) -> None:
        assert minutes_to_time_str(0) == "00:00"
        assert minutes_to_time_str(605) == "10:05"


class TestCalendarHelpers:
    def test_weekday_sunday_first(self) -> None:
        assert weekday_sunday_first(date(2030, 1, 6)) == 0  # Sunday
        assert weekday_sunday_first(date(2030, 1, 7)) == 1  # Monday
        assert weekday_sunday_first(date(2030, 1, 12)) == 6  # Saturday

    def test_slot_start(self) -> None:
        assert slot_start(date(2030, 1, 7), "08:30") == datetime(2030, 1, 7, 8, 30)
