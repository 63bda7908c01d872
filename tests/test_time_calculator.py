from datetime import datetime, time

import pytest

from agenda.domain.scheduling.errors import OutOfRangeError, ValidationError
from agenda.domain.scheduling.time_calculator import (
    TimeWindow,
    add_minutes,
    end_time_for,
    format_clock,
    minutes_of,
    overlaps,
    parse_clock,
    within,
)


def test_add_minutes_within_day():
    assert add_minutes(9 * 60, 30) == 9 * 60 + 30
    assert add_minutes(0, 0) == 0
    assert add_minutes(1438, 1) == 1439


def test_add_minutes_crossing_midnight_is_out_of_range():
    with pytest.raises(OutOfRangeError):
        add_minutes(23 * 60 + 45, 30)
    with pytest.raises(OutOfRangeError):
        add_minutes(1439, 1)


def test_add_minutes_rejects_bad_input():
    with pytest.raises(ValidationError):
        add_minutes(600, -5)
    with pytest.raises(OutOfRangeError):
        add_minutes(1440, 0)
    with pytest.raises(ValidationError):
        add_minutes("09:00", 10)


def test_end_time_for_requires_positive_duration():
    assert end_time_for(parse_clock("09:00"), 45) == parse_clock("09:45")
    with pytest.raises(ValidationError):
        end_time_for(540, 0)


def test_overlaps_is_half_open():
    nine_to_ten = TimeWindow.from_clock("09:00", "10:00")
    assert not overlaps(nine_to_ten, TimeWindow.from_clock("10:00", "10:30"))
    assert not overlaps(TimeWindow.from_clock("08:00", "09:00"), nine_to_ten)
    assert overlaps(nine_to_ten, TimeWindow.from_clock("09:59", "10:30"))
    assert overlaps(nine_to_ten, TimeWindow.from_clock("09:15", "09:30"))


def test_within():
    hours = TimeWindow.from_clock("09:00", "18:00")
    assert within(TimeWindow.from_clock("09:00", "18:00"), hours)
    assert within(TimeWindow.from_clock("12:00", "13:00"), hours)
    assert not within(TimeWindow.from_clock("17:45", "18:15"), hours)


def test_time_window_validation():
    with pytest.raises(ValidationError):
        TimeWindow(600, 600)
    with pytest.raises(ValidationError):
        TimeWindow(660, 600)
    with pytest.raises(OutOfRangeError):
        TimeWindow(600, 1440)
    assert TimeWindow(600, 630).duration == 30
    assert str(TimeWindow(540, 570)) == "09:00-09:30"


def test_parse_clock_formats():
    assert parse_clock("09:05") == 545
    assert parse_clock("9:05") == 545
    assert parse_clock("14:30:00") == 870
    assert parse_clock("2:30 PM") == 870
    assert parse_clock("12:15 AM") == 15
    assert parse_clock("12:00 pm") == 720
    assert parse_clock(time(7, 45)) == 465


def test_parse_clock_requires_whole_minutes():
    assert parse_clock("10:00:00") == 600
    for value in ("10:00:30", "23:59:59", time(10, 0, 30), time(10, 0, 0, 500)):
        with pytest.raises(ValidationError):
            parse_clock(value)


@pytest.mark.parametrize("value", ["24:00", "12:60", "noon", "", "13:00 PM", None, 930])
def test_parse_clock_rejects_malformed(value):
    with pytest.raises(ValidationError):
        parse_clock(value)


def test_format_clock():
    assert format_clock(0) == "00:00"
    assert format_clock(545) == "09:05"
    assert format_clock(1439) == "23:59"
    with pytest.raises(OutOfRangeError):
        format_clock(1440)


def test_minutes_of_truncates_seconds():
    assert minutes_of(datetime(2025, 6, 2, 13, 47, 59)) == 13 * 60 + 47
