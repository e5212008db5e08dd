"""
Utility functions for the chaos canary controller.

This module provides helpers for experiment name generation and
duration parsing.
"""

import re
import time
import uuid


_DURATION_UNITS = {
    'ns': 1e-9,
    'us': 1e-6,
    'µs': 1e-6,
    'μs': 1e-6,
    'ms': 1e-3,
    's': 1.0,
    'm': 60.0,
    'h': 3600.0,
}


_DURATION_PART = r'(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)'


def generate_unique_name(prefix: str = "chaos") -> str:
    """
    Generate a unique experiment name from a timestamp and a random suffix.

    Args:
        prefix: Name prefix (default: "chaos")

    Returns:
        Unique experiment name in format: {prefix}-{timestamp}-{suffix}

    Example:
        >>> generate_unique_name("podchaos")
        'podchaos-1700820345-3f9a2'
    """
    timestamp = int(time.time())
    return f"{prefix}-{timestamp}-{uuid.uuid4().hex[:5]}"


def parse_duration(duration: str) -> float:
    """
    Parse a duration string to seconds.

    Accepts a sequence of decimal numbers, each with a unit suffix, the same
    text rollout tooling uses for timeouts: "300ms", "90s", "5m", "1m30s",
    "1.5h". A bare "0" is zero.

    Args:
        duration: Duration string

    Returns:
        Duration in seconds

    Raises:
        ValueError: If duration format is invalid

    Examples:
        >>> parse_duration("30s")
        30.0
        >>> parse_duration("1m30s")
        90.0
        >>> parse_duration("2h")
        7200.0
    """
    text = duration.strip()
    if text == "0":
        return 0.0

    if not text or not re.fullmatch(f'(?:{_DURATION_PART})+', text):
        raise ValueError(
            f"Invalid duration format: {duration!r}. "
            "Expected a sequence of <number><unit> where unit is "
            "ns/us/ms/s/m/h, e.g. '90s', '5m', '1m30s'"
        )

    return sum(
        float(value) * _DURATION_UNITS[unit]
        for value, unit in re.findall(_DURATION_PART, text)
    )
