"""Tests for duration parsing and formatting."""

from datetime import timedelta

import pytest

from canarykit.durations import DurationError, format_duration, parse_duration


class TestParseDuration:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("30s", timedelta(seconds=30)),
            ("1m", timedelta(minutes=1)),
            ("1h30m", timedelta(hours=1, minutes=30)),
            ("1.5h", timedelta(minutes=90)),
            ("500ms", timedelta(milliseconds=500)),
            ("250us", timedelta(microseconds=250)),
            (".5s", timedelta(milliseconds=500)),
            ("0", timedelta(0)),
            ("+2s", timedelta(seconds=2)),
            ("-5s", timedelta(seconds=-5)),
        ],
    )
    def test_valid(self, text, expected):
        assert parse_duration(text) == expected

    @pytest.mark.parametrize(
        "text",
        ["", "-", "10", "s", "1x", "1 m", "1m ", ".s", "one", "\u0663\u0660s", "3\uff10s"],
    )
    def test_invalid(self, text):
        with pytest.raises(DurationError):
            parse_duration(text)

    @pytest.mark.parametrize("text", ["99999999999h", "1" * 400 + "s", "3000000h", "-3000000h"])
    def test_out_of_range(self, text):
        with pytest.raises(DurationError, match="out of range"):
            parse_duration(text)

    def test_largest_duration(self):
        assert parse_duration("2562047h") == timedelta(hours=2562047)

    def test_non_string(self):
        with pytest.raises(DurationError, match="string"):
            parse_duration(30)


class TestFormatDuration:
    @pytest.mark.parametrize(
        "value,expected",
        [
            (timedelta(0), "0s"),
            (timedelta(seconds=10), "10s"),
            (timedelta(minutes=1), "1m"),
            (timedelta(minutes=1, seconds=30), "1m30s"),
            (timedelta(hours=2), "2h"),
            (timedelta(milliseconds=250), "250ms"),
            (timedelta(seconds=-5), "-5s"),
        ],
    )
    def test_format(self, value, expected):
        assert format_duration(value) == expected
