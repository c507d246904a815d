"""Time layouts for timestamp destinations.

Layouts are `strftime`-style format strings. The process-wide default
layout is used by every parser that does not carry its own layout;
changing it affects all subsequent binds of such parsers.

Calls to `set_time_layout` are not synchronized with concurrent binds.
"""

from datetime import UTC, datetime
from re import ASCII
from re import compile as regexp

from consul_parser.errors import EmptyLayoutError, FormatError

#: Date and time with a UTC offset, e.g. `2019-02-01T00:00:00Z`.
RFC3339 = '%Y-%m-%dT%H:%M:%S%z'
#: `RFC3339` with fractional seconds.
RFC3339_NANO = '%Y-%m-%dT%H:%M:%S.%f%z'
#: Email-style timestamp with a numeric offset.
RFC1123Z = '%a, %d %b %Y %H:%M:%S %z'
#: Date and time without an offset.
DATETIME = '%Y-%m-%d %H:%M:%S'
#: Date without time.
DATE_ONLY = '%Y-%m-%d'

#: Fractional seconds beyond microsecond precision.
_FRACTION_PATTERN = regexp(r'(\.[0-9]{6})[0-9]+', flags=ASCII)

_layout = RFC3339


def check_layout(layout: str) -> str:
    """Validate a time layout.

    Raises:
        EmptyLayoutError: If the layout is empty.
    """
    if not layout:
        raise EmptyLayoutError

    return layout


def get_time_layout() -> str:
    """Return the process-wide time layout."""
    return _layout


def set_time_layout(layout: str) -> None:
    """Replace the process-wide time layout.

    Args:
        layout: New `strftime`-style layout.

    Raises:
        EmptyLayoutError: If the layout is empty. The current layout
            is kept in that case.
    """
    global _layout  # noqa: PLW0603
    _layout = check_layout(layout)


def parse_time(text: str, layout: str) -> datetime:
    """Parse a timestamp against a layout.

    Timestamps without an offset are taken as UTC. The `RFC3339` layout
    also accepts fractional seconds of any length; digits beyond
    microseconds are truncated.

    Args:
        text: Raw textual value.
        layout: `strftime`-style layout.

    Returns:
        A timezone-aware timestamp.

    Raises:
        FormatError: If the text does not match the layout.
    """
    source = text
    if layout == RFC3339 and '.' in text:
        layout = RFC3339_NANO
        source = _FRACTION_PATTERN.sub(r'\1', text, count=1)

    try:
        value = datetime.strptime(source, layout)  # noqa: DTZ007
    except ValueError as error:
        raise FormatError(f'can not parse {text!r} as {layout!r}') from error

    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)

    return value
