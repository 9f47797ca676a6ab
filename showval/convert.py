"""
Literal helpers referenced by showval output.

Rendered text calls these by name, e.g. `Time("2021-08-28T08:36:36.807908+08:00")`
or `Duration("1h30m0s")`. With the helpers in scope, such calls evaluate back to
equivalent values, which keeps the output readable as source code.
"""

# Standard library -----------------------------------------------------------------------------------------------------
import base64
import datetime as dt
import re
from decimal import Decimal, InvalidOperation
from typing import Any

# Local ----------------------------------------------------------------------------------------------------------------
from .utils import fmt_type, fmt_value

# @formatter:off

_MICROSECONDS = {
    "ns": Decimal("0.001"),
    "us": Decimal(1),
    "µs": Decimal(1),   # U+00B5 micro sign
    "μs": Decimal(1),   # U+03BC greek mu
    "ms": Decimal(1_000),
    "s":  Decimal(1_000_000),
    "m":  Decimal(60_000_000),
    "h":  Decimal(3_600_000_000),
}

# @formatter:on

_DURATION_PART_RE = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")
_DURATION_RE = re.compile(r"[-+]?(?:(?:\d+(?:\.\d*)?|\.\d+)(?:ns|us|µs|μs|ms|s|m|h))+")


# Methods --------------------------------------------------------------------------------------------------------------

def Circular(*path: Any) -> None:
    """
    Placeholder for a reference back to an enclosing value.

    The arguments spell the path from the printed root to the first visit of
    the value: list positions, mapping keys and field names. An empty path
    points at the root itself.
    """
    return None


def Base64(s: str) -> bytes:
    """Decode a standard base64 string, as rendered for non-text bytes."""
    if not isinstance(s, str):
        raise TypeError(f"base64 text must be a str, but got {fmt_type(s)}")
    return base64.b64decode(s, validate=True)


def Time(s: str) -> dt.datetime:
    """Parse an ISO 8601 timestamp, as rendered for datetime values."""
    return dt.datetime.fromisoformat(s)


def Date(s: str) -> dt.date:
    """Parse an ISO 8601 calendar date."""
    return dt.date.fromisoformat(s)


def TimeOfDay(s: str) -> dt.time:
    """Parse an ISO 8601 time of day."""
    return dt.time.fromisoformat(s)


def Duration(s: str) -> dt.timedelta:
    """
    Parse a duration string such as "1h30m0s", "1.5s", "-10ms" or "250µs".

    Units: h, m, s, ms, us (µs), ns. Precision is limited to microseconds.

    Raises:
        TypeError: If s is not a str.
        ValueError: If s is not a valid duration string.
    """
    if not isinstance(s, str):
        raise TypeError(f"duration must be a str, but got {fmt_type(s)}")
    if s in ("0", "+0", "-0"):
        return dt.timedelta(0)
    if not _DURATION_RE.fullmatch(s):
        raise ValueError(f"invalid duration: {fmt_value(s)}")

    total = Decimal(0)
    for number, unit in _DURATION_PART_RE.findall(s):
        try:
            total += Decimal(number) * _MICROSECONDS[unit]
        except InvalidOperation as e:
            raise ValueError(f"invalid duration: {fmt_value(s)}") from e

    if s.startswith("-"):
        total = -total
    return dt.timedelta(microseconds=int(total.to_integral_value()))


def JSONStr(value: Any, raw: str) -> str:
    """Embedded JSON text; `value` is the decoded form shown for readability."""
    return raw


def JSONBytes(value: Any, raw: str) -> bytes:
    """Embedded JSON bytes; `value` is the decoded form shown for readability."""
    return raw.encode()


def format_duration(td: dt.timedelta) -> str:
    """
    Format a timedelta as a compact duration string accepted by Duration().

    Hours are not folded into days, and units below one second switch to
    ms or µs.

    Examples:
        >>> format_duration(dt.timedelta(hours=1))
        '1h0m0s'
        >>> format_duration(dt.timedelta(milliseconds=1500))
        '1.5s'
        >>> format_duration(dt.timedelta(microseconds=-250))
        '-250µs'
    """
    us = (td.days * 86_400 + td.seconds) * 1_000_000 + td.microseconds
    if us == 0:
        return "0s"

    sign = "-" if us < 0 else ""
    us = abs(us)

    if us < 1_000:
        return f"{sign}{us}µs"
    if us < 1_000_000:
        return f"{sign}{_fraction(us, 1_000)}ms"

    hours, rest = divmod(us, 3_600_000_000)
    minutes, rest = divmod(rest, 60_000_000)
    seconds = _fraction(rest, 1_000_000)
    if hours:
        return f"{sign}{hours}h{minutes}m{seconds}s"
    if minutes:
        return f"{sign}{minutes}m{seconds}s"
    return f"{sign}{seconds}s"


def _fraction(value: int, unit: int) -> str:
    whole, part = divmod(value, unit)
    if not part:
        return str(whole)
    width = len(str(unit)) - 1
    return f"{whole}.{part:0{width}d}".rstrip("0")
