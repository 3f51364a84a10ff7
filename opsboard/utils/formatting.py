"""
Clock-style formatting for duration counters and the reload countdown.
"""

from __future__ import annotations

import math


def _pad(value: int) -> str:
    # Negative components keep their sign and are not padded further
    return str(value).rjust(2, "0")


def format_clock(seconds: int) -> str:
    """HH:MM:SS with an unbounded hour component.

    Remainders truncate toward zero, so a negative total renders with signed
    components rather than wrapping.
    """
    hours = math.floor(seconds / 3600)
    minutes = math.floor(math.fmod(seconds, 3600) / 60)
    secs = int(math.fmod(seconds, 60))
    return f"{_pad(hours)}:{_pad(minutes)}:{_pad(secs)}"


def format_elapsed_minutes(minutes: float) -> str:
    """Initial elapsed text from a fractional minute count.

    Each component is taken in absolute value, so a negative duration prints
    like a positive one.
    """
    hours = abs(math.floor(minutes / 60))
    mins = abs(math.floor(math.fmod(minutes, 60)))
    secs = abs(math.floor(math.fmod(math.fmod(minutes, 60), 1) * 60))
    return f"{_pad(hours)}:{_pad(mins)}:{_pad(secs)}"


def format_due(seconds: int) -> str:
    magnitude = abs(seconds)
    hours, rest = divmod(magnitude, 3600)
    mins, secs = divmod(rest, 60)
    text = f"{_pad(hours)}:{_pad(mins)}:{_pad(secs)}"
    return f"-{text}" if seconds < 0 else text


def format_countdown(seconds: int) -> str:
    mins = math.floor(seconds / 60)
    secs = int(math.fmod(seconds, 60))
    return f"{_pad(mins)}:{_pad(secs)}"
