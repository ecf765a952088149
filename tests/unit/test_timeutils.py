"""Tests for HH:MM parsing and formatting."""

import logging

import pytest

from itinerary_engine.app.utils.timeutils import format_clock, format_minutes, parse_time_to_minutes


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("09:30", 570),
        ("9:05", 545),
        ("00:00", 0),
        ("24:30", 1470),
    ],
)
def test_parse_time_to_minutes_valid(value: str, expected: int) -> None:
    """Test that valid HH:MM strings parse to minutes since day start."""
    assert parse_time_to_minutes(value) == expected


@pytest.mark.parametrize("value", [None, ""])
def test_parse_time_to_minutes_missing(value: str | None) -> None:
    """Test that missing values parse to None."""
    assert parse_time_to_minutes(value) is None


@pytest.mark.parametrize("value", ["7am", "12:75", "12-30", "123:00"])
def test_parse_time_to_minutes_malformed_logs_warning(
    value: str, caplog: pytest.LogCaptureFixture
) -> None:
    """Test that malformed strings return None and are logged, never raised."""
    with caplog.at_level(logging.WARNING, logger="itinerary_engine.app.utils.timeutils"):
        assert parse_time_to_minutes(value) is None

    assert "Unparsable time string" in caplog.text


def test_format_minutes_keeps_counting_past_midnight() -> None:
    """Test that cumulative minutes are not wrapped at 24:00."""
    assert format_minutes(545) == "09:05"
    assert format_minutes(1440) == "24:00"
    assert format_minutes(1470) == "24:30"


def test_format_clock_clamps_to_same_day() -> None:
    """Test that wall-clock formatting clamps to 00:00..23:59."""
    assert format_clock(-5) == "00:00"
    assert format_clock(600) == "10:00"
    assert format_clock(1500) == "23:59"
