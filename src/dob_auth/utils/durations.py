# src/dob_auth/utils/durations.py
"""Parsing helpers for human-readable lifetimes such as ``7d`` or ``24h``."""

from __future__ import annotations

import re
from typing import Final

_UNIT_SECONDS: Final[dict[str, int]] = {
    "s": 1,
    "m": 60,
    "h": 3_600,
    "d": 86_400,
    "w": 604_800,
}
_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhdw]?)\s*$", re.IGNORECASE)


def parse_expires_in(value: str | int) -> int:
    """Convert a lifetime such as ``"7d"``, ``"24h"`` or ``"3600"`` into seconds.

    Args:
        value: Integer seconds, or a number followed by one of s, m, h, d, w.

    Returns:
        The lifetime in whole seconds.

    Raises:
        ValueError: If the value is malformed or not strictly positive.
    """
    if isinstance(value, bool):
        raise ValueError("Lifetime must be a duration, not a boolean")
    if isinstance(value, int):
        seconds = value
    else:
        match = _DURATION_RE.match(value or "")
        if match is None:
            raise ValueError(f"Invalid duration: {value!r}")
        amount, unit = match.groups()
        seconds = int(amount) * _UNIT_SECONDS[(unit or "s").lower()]
    if seconds <= 0:
        raise ValueError("Lifetime must be positive")
    return seconds
