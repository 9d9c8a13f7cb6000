"""
Timestamp parsing and bounds checking against a video's duration.
"""
import re
from typing import Iterable, List, Optional

TIMESTAMP_PATTERN = re.compile(r"^\d+(?::\d+){1,2}$", re.ASCII)


def parse_timestamp(value: Optional[str]) -> Optional[int]:
    """
    Convert ``MM:SS`` or ``H:MM:SS`` to total seconds.

    Surrounding whitespace and square brackets ("[05:30]") are ignored.
    Returns None for anything that is not two or three integer fields.
    """
    if not value or not isinstance(value, str):
        return None

    value = value.strip().strip("[]").strip()
    if not TIMESTAMP_PATTERN.match(value):
        return None

    seconds = 0
    for field in value.split(":"):
        seconds = seconds * 60 + int(field)
    return seconds


def validate_timestamps(timestamps: Iterable[str], video_duration: Optional[str]) -> List[str]:
    """
    Keep the timestamps that fall inside the video.

    A timestamp survives iff its seconds are <= the duration's seconds.
    Unparseable timestamps are dropped. When the duration itself is unknown
    or unparseable nothing is filtered.
    """
    timestamps = [t for t in timestamps or [] if isinstance(t, str)]
    max_seconds = parse_timestamp(video_duration)
    if max_seconds is None:
        return timestamps

    valid = []
    for timestamp in timestamps:
        seconds = parse_timestamp(timestamp)
        if seconds is not None and seconds <= max_seconds:
            valid.append(timestamp)
    return valid
