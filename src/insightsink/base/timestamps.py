"""Timestamp rendering with .NET-style custom date and time patterns.

Event sinks are configured with patterns such as
``yyyy-MM-ddTHH:mm:ss.fffffffZ``. This module renders a ``datetime`` with
such a pattern using invariant (English) month and day names. Characters that
are not format specifiers are copied as-is, so ``T`` and ``Z`` above are
literals.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List

DEFAULT_TIME_FORMAT = "yyyy-MM-ddTHH:mm:ss.fffffffZ"

_MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)
_DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

# Sub-microsecond ticks are not available on datetime.
_MAX_FRACTION_DIGITS = 7


def format_timestamp(value: datetime, pattern: str) -> str:
    """Render ``value`` using a custom date/time pattern.

    Args:
        value: Timestamp to render. Naive values are treated as UTC.
        pattern: Custom pattern, e.g. ``"yyyy-MM-dd HH:mm:ss"``.

    Returns:
        The rendered timestamp.

    Example:
        >>> format_timestamp(datetime(2024, 3, 5, 7, 8, 9, 120000), "dd/MM/yy HH:mm:ss.fff")
        '05/03/24 07:08:09.120'
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    out: List[str] = []
    i = 0
    length = len(pattern)
    while i < length:
        ch = pattern[i]
        if ch in ("'", '"'):
            end = pattern.find(ch, i + 1)
            if end == -1:
                end = length
            out.append(pattern[i + 1:end])
            i = end + 1
            continue
        if ch == "\\":
            if i + 1 < length:
                out.append(pattern[i + 1])
                i += 2
            else:
                out.append(ch)
                i += 1
            continue
        if ch == "%" and i + 1 < length:
            # "%d" forces a single-character pattern to be read as a specifier.
            i += 1
            continue
        run = _run_length(pattern, i)
        renderer = _RENDERERS.get(ch)
        if renderer is None:
            out.append(pattern[i:i + run])
        else:
            rendered = renderer(value, run)
            if ch == "F" and not rendered and out and out[-1].endswith("."):
                out[-1] = out[-1][:-1]
            out.append(rendered)
        i += run
    return "".join(out)


def _run_length(pattern: str, start: int) -> int:
    ch = pattern[start]
    end = start
    while end < len(pattern) and pattern[end] == ch:
        end += 1
    return end - start


def _year(value: datetime, run: int) -> str:
    if run == 1:
        return str(value.year % 100)
    if run == 2:
        return f"{value.year % 100:02d}"
    return str(value.year).zfill(run)


def _month(value: datetime, run: int) -> str:
    if run == 1:
        return str(value.month)
    if run == 2:
        return f"{value.month:02d}"
    name = _MONTH_NAMES[value.month - 1]
    return name[:3] if run == 3 else name


def _day(value: datetime, run: int) -> str:
    if run == 1:
        return str(value.day)
    if run == 2:
        return f"{value.day:02d}"
    name = _DAY_NAMES[value.weekday()]
    return name[:3] if run == 3 else name


def _padded(number: int, run: int) -> str:
    return f"{number:02d}" if run >= 2 else str(number)


def _fraction(value: datetime) -> str:
    return f"{value.microsecond:06d}0"


def _fraction_fixed(value: datetime, run: int) -> str:
    return _fraction(value)[:min(run, _MAX_FRACTION_DIGITS)]


def _fraction_trimmed(value: datetime, run: int) -> str:
    return _fraction_fixed(value, run).rstrip("0")


def _designator(value: datetime, run: int) -> str:
    text = "AM" if value.hour < 12 else "PM"
    return text[:1] if run == 1 else text


def _offset(value: datetime) -> timedelta:
    return value.utcoffset() or timedelta(0)


def _zone(value: datetime, run: int) -> str:
    offset = _offset(value)
    sign = "-" if offset < timedelta(0) else "+"
    minutes = abs(int(offset.total_seconds())) // 60
    hours, minutes = divmod(minutes, 60)
    if run == 1:
        return f"{sign}{hours}"
    if run == 2:
        return f"{sign}{hours:02d}"
    return f"{sign}{hours:02d}:{minutes:02d}"


def _kind(value: datetime, run: int) -> str:
    if _offset(value) == timedelta(0) and value.tzinfo is timezone.utc:
        return "Z" * run
    return _zone(value, 3) * run


_RENDERERS: Dict[str, Callable[[datetime, int], str]] = {
    "y": _year,
    "M": _month,
    "d": _day,
    "H": lambda value, run: _padded(value.hour, run),
    "h": lambda value, run: _padded(value.hour % 12 or 12, run),
    "m": lambda value, run: _padded(value.minute, run),
    "s": lambda value, run: _padded(value.second, run),
    "f": _fraction_fixed,
    "F": _fraction_trimmed,
    "t": _designator,
    "z": _zone,
    "K": _kind,
    "g": lambda value, run: "A.D.",
}
