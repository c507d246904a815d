"""Text to scalar conversions.

Each converter parses the raw textual value of a key and checks that
the result is representable in the concrete width of its destination.
Converters never see empty values: the assignment engine leaves the
destination untouched instead.
"""

from math import isinf
from re import ASCII, IGNORECASE
from re import compile as regexp
from struct import pack, unpack

from consul_parser.errors import FormatError, OverflowSetError

#: Base-10 signed integer with an optional sign.
_SIGNED_PATTERN = regexp(r'^[+-]?[0-9]+$', flags=ASCII)

#: Base-10 unsigned integer without a sign.
_UNSIGNED_PATTERN = regexp(r'^[0-9]+$', flags=ASCII)

#: Decimal float with an optional exponent, or an infinity or NaN literal.
_FLOAT_PATTERN = regexp(
    r'^[+-]?((([0-9]+\.?[0-9]*)|(\.[0-9]+))(e[+-]?[0-9]+)?|inf|infinity|nan)$',
    flags=ASCII | IGNORECASE,
)

#: Hexadecimal float with a mandatory binary exponent, e.g. `0x1.8p3`.
_HEX_FLOAT_PATTERN = regexp(
    r'^[+-]?0x(([0-9a-f]+\.?[0-9a-f]*)|(\.[0-9a-f]+))p[+-]?[0-9]+$',
    flags=ASCII | IGNORECASE,
)

_TRUE_VALUES = frozenset(('1', 't', 'T', 'TRUE', 'true', 'True'))
_FALSE_VALUES = frozenset(('0', 'f', 'F', 'FALSE', 'false', 'False'))

MAX_FLOAT32 = 3.4028234663852886e+38


def parse_signed(text: str, bits: int = 64) -> int:
    """Parse a base-10 signed integer of a concrete width.

    Args:
        text: Raw textual value.
        bits: Width of the destination in bits.

    Returns:
        The parsed integer.

    Raises:
        FormatError: If the text is not a base-10 integer.
        OverflowSetError: If the integer does not fit the width, including
            integers beyond the 64-bit range.
    """
    if not _SIGNED_PATTERN.fullmatch(text):
        raise FormatError(f'invalid syntax for integer: {text!r}')

    value = int(text)
    limit = 1 << (bits - 1)
    if not -limit <= value < limit:
        raise OverflowSetError

    return value


def parse_unsigned(text: str, bits: int = 64) -> int:
    """Parse a base-10 unsigned integer of a concrete width.

    Args:
        text: Raw textual value.
        bits: Width of the destination in bits.

    Returns:
        The parsed integer.

    Raises:
        FormatError: If the text is not a base-10 unsigned integer.
        OverflowSetError: If the integer does not fit the width, including
            integers beyond the 64-bit range.
    """
    if not _UNSIGNED_PATTERN.fullmatch(text):
        raise FormatError(f'invalid syntax for unsigned integer: {text!r}')

    value = int(text)
    if value >= 1 << bits:
        raise OverflowSetError

    return value


def parse_float(text: str, bits: int = 64) -> float:
    """Parse a floating point number of a concrete precision.

    Decimal and hexadecimal (`0x1p-2`) notations are accepted. Single
    precision destinations are rounded to the nearest
    representable value.

    Args:
        text: Raw textual value.
        bits: Precision of the destination in bits (32 or 64).

    Returns:
        The parsed number.

    Raises:
        FormatError: If the text is not a floating point number.
        OverflowSetError: If a finite number does not fit the precision.
    """
    if _HEX_FLOAT_PATTERN.fullmatch(text):
        try:
            value = float.fromhex(text)
        except OverflowError as error:
            raise OverflowSetError from error
        except ValueError as error:
            raise FormatError(f'invalid syntax for float: {text!r}') from error

    elif _FLOAT_PATTERN.fullmatch(text):
        try:
            value = float(text)
        except ValueError as error:
            raise FormatError(f'invalid syntax for float: {text!r}') from error

    else:
        raise FormatError(f'invalid syntax for float: {text!r}')

    if isinf(value):
        if 'inf' not in text.lower():
            raise OverflowSetError
        return value

    if bits == 32:  # noqa: PLR2004
        if abs(value) > MAX_FLOAT32:
            raise OverflowSetError
        value, = unpack('f', pack('f', value))

    return value


def parse_bool(text: str) -> bool:
    """Parse a canonical boolean literal.

    Args:
        text: Raw textual value.

    Returns:
        The parsed boolean.

    Raises:
        FormatError: If the text is not a boolean literal.
    """
    if text in _TRUE_VALUES:
        return True

    if text in _FALSE_VALUES:
        return False

    raise FormatError(f'invalid syntax for bool: {text!r}')
