"""
Unit tests for timestamp parsing and duration bounds.
"""
from services.chat.timestamps import parse_timestamp, validate_timestamps


class TestParseTimestamp:
    """Test conversion of clock strings to seconds."""

    def test_minutes_seconds(self):
        assert parse_timestamp("05:30") == 330
        assert parse_timestamp("0:07") == 7

    def test_hours_minutes_seconds(self):
        assert parse_timestamp("1:02:03") == 3723

    def test_brackets_and_whitespace_ignored(self):
        assert parse_timestamp("[05:30]") == 330
        assert parse_timestamp("  5:30 ") == 330

    def test_invalid_values(self):
        """Anything but two or three integer fields is rejected."""
        for value in ["", None, "abc", "5", "1:2:3:4", "5:-3", "aa:bb", "5:30pm"]:
            assert parse_timestamp(value) is None


class TestValidateTimestamps:
    """Test filtering of timestamps against the video duration."""

    def test_drops_timestamps_beyond_duration(self):
        result = validate_timestamps(["05:30", "12:00", "15:01"], "15:00")
        assert result == ["05:30", "12:00"]

    def test_boundary_is_inclusive(self):
        assert validate_timestamps(["15:00"], "15:00") == ["15:00"]

    def test_hour_long_video(self):
        result = validate_timestamps(["59:59", "1:05:00", "1:30:01"], "1:30:00")
        assert result == ["59:59", "1:05:00"]

    def test_unparseable_timestamps_dropped(self):
        assert validate_timestamps(["soon", "02:00"], "10:00") == ["02:00"]

    def test_non_ascii_digits_dropped(self):
        """Superscript and other Unicode digits are not timestamp fields."""
        assert parse_timestamp("1:²3") is None
        assert parse_timestamp("٠٥:٣٠") is None
        assert validate_timestamps(["1:²3", "02:00"], "15:00") == ["02:00"]

    def test_unknown_duration_keeps_everything(self):
        """Nothing is filtered when the duration cannot be parsed."""
        assert validate_timestamps(["05:30", "99:00"], None) == ["05:30", "99:00"]
        assert validate_timestamps(["05:30"], "unknown") == ["05:30"]

    def test_empty_input(self):
        assert validate_timestamps([], "10:00") == []
        assert validate_timestamps(None, "10:00") == []
