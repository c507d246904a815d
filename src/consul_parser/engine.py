"""Recursive type-directed assignment engine.

The engine binds raw textual values into structure fields. For every
field it resolves the declared key and dispatches on the destination
shape:

- pointers are built bottom-up, one fresh level of indirection per
  declared level, and stored into the field with a single assignment;
- nested structures are bound field by field, each with its own keys;
- scalars are parsed and checked against their concrete width.

An empty value leaves a scalar or pointer destination untouched.
The first failing field aborts the whole bind; fields bound before it
keep their new values.
"""

from collections.abc import Callable
from logging import getLogger
from typing import Any

from consul_parser.converters import parse_bool, parse_float, parse_signed, parse_unsigned
from consul_parser.errors import ConsulParserError, NestingDepthError, UnhandledKindError
from consul_parser.layouts import parse_time
from consul_parser.shapes import (
    BaseShape,
    BoolShape,
    DynamicShape,
    FloatShape,
    PointerShape,
    SignedShape,
    StructShape,
    TextShape,
    TimeShape,
    UnsignedShape,
    UnsupportedShape,
)

logger = getLogger(__name__)

#: Default limit of nested structures and indirection levels.
DEFAULT_MAX_DEPTH = 64


class Unset:
    """Marker of a destination left untouched."""

    def __repr__(self) -> str:
        """String represenatation."""
        return 'UNSET'


UNSET = Unset()


class AssignmentEngine:
    """Engine assigning raw values into structure fields.

    The engine is stateless between binds. The time layout is read
    through a callable on every timestamp parse, so a parser can follow
    the process-wide layout or carry its own.
    """

    def __init__(self, resolve: Callable[[str], str],
                 time_layout: Callable[[], str], *,
                 max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        """Initialize the engine.

        Args:
            resolve: Callable resolving a key into its raw value.
            time_layout: Callable returning the current time layout.
            max_depth: Limit of nested structures and indirection levels.
        """
        self.resolve = resolve
        self.time_layout = time_layout
        self.max_depth = max_depth

    def parse(self, instance: Any, shape: StructShape,  # noqa: ANN401
              path: str | None = None, depth: int = 0) -> None:
        """Bind every writable field of a structure instance.

        Fields are bound in declaration order. Fields that are not
        writable are skipped without a lookup.

        Args:
            instance: Structure instance to bind in place.
            shape: Shape of the structure.
            path: Dotted path of the instance used in error messages.
            depth: Current nesting depth.

        Raises:
            ConsulParserError: On the first field that fails to bind.
        """
        self._check_depth(depth)

        if path is None:
            path = shape.name

        for spec in shape.fields:
            if not spec.writable:
                continue

            field_path = f'{path}.{spec.name}'
            value = ''
            try:
                value = self.resolve(spec.key)
                logger.debug('Binding %s (%s)', field_path, spec.shape.name)
                self.assign(instance, spec.name, spec.shape, value,
                            path=field_path, depth=depth)
            except ConsulParserError as error:
                error.locate(
                    field=field_path,
                    kind=spec.shape.name,
                    key=spec.key,
                    value=value,
                )
                raise

    def assign(self, owner: Any, name: str, shape: BaseShape, value: str, *,  # noqa: ANN401
               path: str = '', depth: int = 0) -> None:
        """Assign a raw value into an attribute of an owner.

        Args:
            owner: Object holding the destination attribute.
            name: Name of the destination attribute.
            shape: Shape of the destination.
            value: Raw textual value.
            path: Dotted path of the destination used in error messages.
            depth: Current nesting depth.
        """
        if isinstance(shape, PointerShape):
            built = self.build_pointer(shape, value, path=path, depth=depth)
            if built is not UNSET:
                setattr(owner, name, built)
            return

        self.assign_value(owner, name, shape, value, path=path, depth=depth)

    def build_pointer(self, shape: PointerShape, value: str, *,
                      path: str = '', depth: int = 0) -> Any:  # noqa: ANN401
        """Build the value stored into a pointer destination.

        Nested pointers are unwound recursively down to the first
        non-pointer pointee, then wrapped level by level on the way back.
        Nothing is allocated for an empty scalar value.

        Args:
            shape: Pointer shape of the destination.
            value: Raw textual value.
            path: Dotted path of the destination used in error messages.
            depth: Current nesting depth.

        Returns:
            The value to store into the destination, or `UNSET` to
            leave it untouched.

        Raises:
            UnhandledKindError: If the pointee shape is not supported.
        """
        self._check_depth(depth)

        match shape.pointee:
            case PointerShape() as pointee:
                built = self.build_pointer(pointee, value, path=path, depth=depth + 1)
                if built is UNSET:
                    return UNSET

            case StructShape() as pointee:
                built = pointee.zero()
                self.parse(built, pointee, path=path, depth=depth + 1)

            case UnsupportedShape():
                raise UnhandledKindError

            case pointee:
                if not value:
                    return UNSET
                built = self.convert(pointee, value)

        return shape.wrap(built)

    def assign_value(self, owner: Any, name: str, shape: BaseShape, value: str, *,  # noqa: ANN401
                     path: str = '', depth: int = 0) -> None:
        """Assign a raw value into a non-pointer destination.

        Nested structures are bound in place; a structure attribute that
        does not hold an instance yet receives a zero-valued one first.

        Args:
            owner: Object holding the destination attribute.
            name: Name of the destination attribute.
            shape: Non-pointer shape of the destination.
            value: Raw textual value.
            path: Dotted path of the destination used in error messages.
            depth: Current nesting depth.

        Raises:
            UnhandledKindError: If the destination shape is not supported.
        """
        match shape:
            case StructShape():
                instance = getattr(owner, name, None)
                if not isinstance(instance, shape.model):
                    instance = shape.zero()
                    setattr(owner, name, instance)
                self.parse(instance, shape, path=path, depth=depth + 1)

            case UnsupportedShape():
                raise UnhandledKindError

            case _:
                if not value:
                    return
                setattr(owner, name, self.convert(shape, value))

    def convert(self, shape: BaseShape, value: str) -> Any:  # noqa: ANN401
        """Convert a non-empty raw value into a scalar of a shape.

        Args:
            shape: Scalar shape of the destination.
            value: Raw textual value.

        Returns:
            The converted value.

        Raises:
            FormatError: If the value can not be parsed.
            OverflowSetError: If the value does not fit the destination.
            UnhandledKindError: If the shape is not a scalar.
        """
        match shape:
            case TextShape() | DynamicShape():
                return value
            case SignedShape(bits=bits):
                return parse_signed(value, bits)
            case UnsignedShape(bits=bits):
                return parse_unsigned(value, bits)
            case FloatShape(bits=bits):
                return parse_float(value, bits)
            case BoolShape():
                return parse_bool(value)
            case TimeShape():
                return parse_time(value, self.time_layout())

        raise UnhandledKindError

    def _check_depth(self, depth: int) -> None:
        """Reject nesting deeper than the configured limit."""
        if depth > self.max_depth:
            raise NestingDepthError(f'more than {self.max_depth} nested levels')
