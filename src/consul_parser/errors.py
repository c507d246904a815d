"""Core exception hierarchy.

This module defines the error types raised while binding key-value store
entries into structures: invalid targets, failed lookups, values that do
not parse or do not fit their destination, unsupported destination types
and invalid configuration.

Every error kind derives from `ConsulParserError`. Errors raised while a
field is being bound carry the location of that field, so the formatted
message points at the failing field, its key and the offending value.
"""

from os import linesep
from typing import TYPE_CHECKING, Any, TypedDict

from yaml import dump

if TYPE_CHECKING:
    from typing import Self

SNIPPET_ELLIPSIS = f' ...{linesep}'
SNIPPET_INDENT = 2

FORMAT_REPLACER = '<runtime object>'
FORMAT_INDENT = 4


class ErrorContext(TypedDict, total=False):
    """Container describing where a bind failed.

    All fields are optional; the formatter adapts output based on
    provided values.
    """

    #: Dotted path of the failing field, starting at the target class name.
    field: str | None
    #: Display name of the field destination type.
    kind: str | None

    #: Key looked up for the failing field.
    key: str | None
    #: Raw textual value resolved for the key.
    value: str | None

    #: Underlying exception that triggered the error.
    error: Exception | None


class ErrorFormatter:
    """Utility class for formatting bind errors.

    Produces human-readable messages with the failing field location
    and a YAML snippet of the key and value involved.
    """

    @classmethod
    def format(cls, message: str, context: ErrorContext | None = None) -> str:
        """Format an error message using contextual information.

        Args:
            message: Base human-readable error message.
            context: Optional error context with location and data.

        Returns:
            A fully formatted error message suitable for display.
        """
        if not context:
            return message

        message += linesep
        message += cls.get_location_string(context, indent=FORMAT_INDENT)
        message += cls.get_snippet_string(context, indent=FORMAT_INDENT * 2)

        return message.rstrip()

    @classmethod
    def get_location_string(cls, context: ErrorContext, *,
                            indent: str | int | None = None) -> str:
        """Format field location information.

        Args:
            context: Error context containing location metadata.
            indent: Optional indentation (string or number of spaces).

        Returns:
            A formatted location string, or an empty string when the
            field is unknown.
        """
        indent = cls._ensure_indent(indent)

        field = context.get('field')
        if not field:
            return ''

        message = f'{indent}on field "{field}"'
        if kind := context.get('kind'):
            message += f' ({kind})'

        return message + linesep

    @classmethod
    def get_snippet_string(cls, context: ErrorContext, *,
                           indent: str | int | None = None) -> str:
        """Generate a YAML snippet with the key and the value.

        Args:
            context: Error context containing key and value.
            indent: Optional indentation (string or number of spaces).

        Returns:
            A formatted multi-line snippet string, or an empty string
            if neither key nor value is known.
        """
        indent = cls._ensure_indent(indent)

        element = {
            name: context[name]
            for name in ('key', 'value')
            if context.get(name) is not None
        }
        if not element:
            return ''

        snippet = f'{indent}{SNIPPET_ELLIPSIS}'
        snippet += cls._make_yaml(element, indent)
        snippet += linesep

        return snippet

    @classmethod
    def _filter_unsafe(cls, value: Any) -> Any:  # noqa: ANN401
        """Replace non-scalar values with a placeholder.

        Args:
            value: Arbitrary value to sanitize.

        Returns:
            A YAML-safe representation of the value.
        """
        if value is None or isinstance(value, (str, int, float, bool)):
            return value

        if isinstance(value, dict):
            return {
                key: cls._filter_unsafe(item)
                for key, item in value.items()
            }

        return FORMAT_REPLACER

    @classmethod
    def _make_yaml(cls, value: Any, indent: str = '') -> str:  # noqa: ANN401
        """Serialize a value to a YAML-formatted string.

        Args:
            value: Arbitrary value to serialize.
            indent: Optional indentation prefix.

        Returns:
            A YAML-formatted string representation of the value.
        """
        data = dump(
            cls._filter_unsafe(value),
            indent=SNIPPET_INDENT,
            sort_keys=False,
            allow_unicode=True,
        )

        return cls._make_indent(data, indent)

    @staticmethod
    def _make_indent(value: str, indent: str) -> str:
        """Apply indentation to a multi-line string.

        Empty or whitespace-only lines are omitted.
        """
        if not indent:
            return value

        return linesep.join(
            f'{indent}{line}'
            for line in value.splitlines()
            if line.strip()
        )

    @staticmethod
    def _ensure_indent(indent: str | int | None = None) -> str:
        """Normalize indentation input."""
        if isinstance(indent, int) and indent > 0:
            return ' ' * indent

        if isinstance(indent, str):
            return indent

        return ''


class ConsulParserError(Exception, ErrorFormatter):
    """Base exception for all consul-parser errors.

    All custom exceptions raised by the library inherit from this class
    to allow unified error handling by callers.
    """

    def __init__(self, message: str, *,
                 context: ErrorContext | None = None) -> None:
        """Initialize an error.

        Args:
            message: Human-readable error description.
            context: Optional location of the failure.
        """
        self.message = message
        self.context = context

        super().__init__(message)

    def __str__(self) -> str:
        """String represenatation."""
        return self.format(self.message, self.context)

    def locate(self, *, field: str, kind: str | None = None,
               key: str | None = None, value: str | None = None) -> 'Self':
        """Attach the failing field location unless already known.

        Nested structures are bound depth first, so the innermost field
        locates the error and enclosing fields leave it untouched.

        Args:
            field: Dotted path of the failing field.
            kind: Display name of the destination type.
            key: Key looked up for the field.
            value: Raw value resolved for the key.

        Returns:
            The same error instance.
        """
        if self.context and self.context.get('field'):
            return self

        self.context = ErrorContext(
            field=field,
            kind=kind,
            key=key or None,
            value=value or None,
            error=self.__cause__ if isinstance(self.__cause__, Exception) else None,
        )

        return self


class NilClientError(ConsulParserError):
    """Error raised when a parser is created without a key-value client."""

    def __init__(self, message: str = 'client must not be nil') -> None:
        """Initialize the error with the default message."""
        super().__init__(message)


class InvalidTargetError(ConsulParserError):
    """Error raised when the bind target is not a mutable structure.

    The target must be a structure instance, optionally wrapped in
    `Ref` boxes. Classes, `None`, empty boxes, scalar values and frozen
    structures are rejected before any lookup happens.
    """


class NestingDepthError(InvalidTargetError):
    """Error raised when structures or references nest deeper than allowed."""


class LookupFailedError(ConsulParserError):
    """Error raised when the key-value store lookup fails."""


class KeyNotFoundError(LookupFailedError):
    """Error raised when the key is absent from the key-value store."""


class FormatError(ConsulParserError):
    """Error raised when a value can not be parsed as the field type."""


class OverflowSetError(ConsulParserError):
    """Error raised when a parsed value does not fit the field width."""

    def __init__(self, message: str = 'error in set the overflowing value to the field', *,
                 context: ErrorContext | None = None) -> None:
        """Initialize the error with the default message."""
        super().__init__(message, context=context)


class UnhandledKindError(ConsulParserError):
    """Error raised for destination types without a supported conversion."""

    def __init__(self, message: str = 'unhandled kind for assigning value to the field', *,
                 context: ErrorContext | None = None) -> None:
        """Initialize the error with the default message."""
        super().__init__(message, context=context)


class EmptyLayoutError(ConsulParserError):
    """Error raised when an empty time layout is configured."""

    def __init__(self, message: str = 'time layout must not be empty') -> None:
        """Initialize the error with the default message."""
        super().__init__(message)
