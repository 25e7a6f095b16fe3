from __future__ import annotations

import re
from datetime import timedelta

# Go-style duration units, as accepted by `--since`
_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_COMPONENT = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")

# Largest duration git's own tooling accepts: int64 nanoseconds, about 2562047h
MAX_DURATION_SECONDS = (2**63 - 1) / 1e9


def parse_duration(text: str) -> timedelta:
    """Parse a duration such as ``12h``, ``90m``, ``1h30m`` or ``2.5h``."""
    s = (text or "").strip()
    if not s:
        raise ValueError("Invalid duration: empty string")

    sign = 1
    if s[0] in "+-":
        sign = -1 if s[0] == "-" else 1
        s = s[1:]

    if s == "0":
        return timedelta(0)
    if not s:
        raise ValueError(f"Invalid duration: {text!r}")

    seconds = 0.0
    pos = 0
    while pos < len(s):
        match = _COMPONENT.match(s, pos)
        if match is None:
            raise ValueError(f"Invalid duration: {text!r} (expected e.g. 12h, 90m, 1h30m)")
        seconds += float(match.group(1)) * _UNITS[match.group(2)]
        pos = match.end()

    if seconds > MAX_DURATION_SECONDS:
        raise ValueError(f"Invalid duration: {text!r} (out of range, at most 2562047h)")

    return timedelta(seconds=seconds * sign)


def format_duration(delta: timedelta) -> str:
    """Render a timedelta in the same compact form parse_duration accepts."""
    seconds = int(delta.total_seconds())
    if seconds == 0:
        return "0s"
    sign = "-" if seconds < 0 else ""
    seconds = abs(seconds)
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    parts = []
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    if secs:
        parts.append(f"{secs}s")
    return sign + "".join(parts)
