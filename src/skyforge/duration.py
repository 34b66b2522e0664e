"""
Conversion between wire durations ("500s", "5m", "1h30m") and whole seconds.

The provider always emits seconds, but older state and hand-written specs use
any of the usual duration units, so decoding accepts the general form.
"""

import re
from fractions import Fraction

from .errors import FormatError, ParseError

# Seconds per unit. Longer spellings first so "ms" is never read as "m" + "s".
_UNITS = {
    "ns": Fraction(1, 1_000_000_000),
    "us": Fraction(1, 1_000_000),
    "µs": Fraction(1, 1_000_000),
    "μs": Fraction(1, 1_000_000),
    "ms": Fraction(1, 1_000),
    "s": Fraction(1),
    "m": Fraction(60),
    "h": Fraction(3600),
}

# One "<number><unit>" component; the number is validated separately so a
# bad number raises ParseError rather than FormatError.
_COMPONENT = re.compile(r"(?P<number>[^a-zµμ]*)(?P<unit>[a-zµμ]+)")
_INTEGER = re.compile(r"[+-]?\d+")


def encode_duration(seconds: int) -> str:
    """Renders a whole number of seconds in wire form, e.g. 500 -> "500s"."""
    return f"{int(seconds)}s"


def decode_duration(value: str) -> int:
    """
    Parses a duration string into whole seconds, truncating sub-second parts.

    Raises FormatError when the string is empty or a unit is missing or
    unknown, and ParseError when a numeric portion is not an integer.
    """
    if not value:
        raise FormatError("invalid duration: empty string")

    total = Fraction(0)
    pos = 0
    for match in _COMPONENT.finditer(value):
        if match.start() != pos:
            break
        pos = match.end()

        unit = match.group("unit")
        if unit not in _UNITS:
            raise FormatError(f"invalid duration {value!r}: unknown unit {unit!r}")

        number = match.group("number")
        if not _INTEGER.fullmatch(number):
            raise ParseError(
                f"invalid duration {value!r}: {number!r} is not an integer"
            )
        total += int(number) * _UNITS[unit]

    if pos != len(value):
        raise FormatError(f"invalid duration {value!r}: missing unit")

    return int(total)
