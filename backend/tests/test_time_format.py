"""
Unit tests for utils/time_format.py – pure functions, no database required.
"""
from app.utils.time_format import format_clock, format_duration, format_hours_minutes


def test_hours_minutes_pads_minutes():
    assert format_hours_minutes(485) == "8:05"
    assert format_hours_minutes(60) == "1:00"
    assert format_hours_minutes(59) == "0:59"


def test_hours_minutes_zero_and_none():
    assert format_hours_minutes(0) == "0:00"
    assert format_hours_minutes(None) == "0:00"


def test_hours_minutes_negative():
    assert format_hours_minutes(-90) == "-1:30"


def test_duration_variants():
    assert format_duration(485) == "8h 5m"
    assert format_duration(45) == "45m"
    assert format_duration(120) == "2h"
    assert format_duration(0) == "0m"
    assert format_duration(None) == "0m"


def test_clock_display():
    assert format_clock(3725) == "01:02:05"
    assert format_clock(0) == "00:00:00"
    assert format_clock(None) == "00:00:00"
    # Mehr als 24h bleibt eine Stundenzahl
    assert format_clock(90000) == "25:00:00"


def test_clock_never_negative():
    assert format_clock(-5) == "00:00:00"
