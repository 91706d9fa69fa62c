"""Parse and format Go-style duration strings such as "1m30s" or "500ms"."""

import math
import re
from datetime import timedelta

_UNIT_SECONDS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

# int64 nanoseconds, the largest duration the record format can express
MAX_SECONDS = 9223372036.854775807

_COMPONENT = re.compile(r"([0-9]+\.?[0-9]*|\.[0-9]+)(ns|us|µs|μs|ms|s|m|h)")


class DurationError(ValueError):
    """Raised when a duration string cannot be parsed."""


def parse_duration(text: str) -> timedelta:
    """Parse a duration string into a timedelta.

    Accepts a sequence of decimal numbers, each with a unit suffix
    (ns, us, ms, s, m, h), with an optional leading sign. The bare
    string "0" is also accepted.

    Raises:
        DurationError: If the string is empty, malformed, or out of range.
    """
    if not isinstance(text, str):
        raise DurationError(f"duration must be a string, got {type(text).__name__}")

    rest = text
    negative = False
    if rest[:1] in ("-", "+"):
        negative = rest[0] == "-"
        rest = rest[1:]

    if rest == "0":
        return timedelta(0)
    if not rest:
        raise DurationError(f"invalid duration: {text!r}")

    seconds = 0.0
    pos = 0
    while pos < len(rest):
        match = _COMPONENT.match(rest, pos)
        if match is None:
            raise DurationError(f"invalid duration: {text!r}")
        seconds += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        pos = match.end()

    if not math.isfinite(seconds) or seconds > MAX_SECONDS:
        raise DurationError(f"duration out of range: {text!r}")
    try:
        total = timedelta(seconds=seconds)
    except OverflowError as exc:
        raise DurationError(f"duration out of range: {text!r}") from exc
    return -total if negative else total


def format_duration(value: timedelta) -> str:
    """Render a timedelta in the notation parse_duration accepts."""
    micros = (value.days * 86400 + value.seconds) * 1_000_000 + value.microseconds
    if micros == 0:
        return "0s"

    sign = "-" if micros < 0 else ""
    micros = abs(micros)
    hours, micros = divmod(micros, 3_600_000_000)
    minutes, micros = divmod(micros, 60_000_000)

    parts = []
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    if micros:
        if micros % 1_000_000 == 0:
            parts.append(f"{micros // 1_000_000}s")
        elif micros < 1_000_000 and micros % 1000 == 0:
            parts.append(f"{micros // 1000}ms")
        else:
            parts.append(f"{micros / 1_000_000:g}s")
    return sign + "".join(parts)
