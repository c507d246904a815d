"""Core type definitions for bind destinations.

This module defines the vocabulary used to annotate structure fields:
explicit references for indirection and width markers for numbers.

Python integers and floats are unbounded, so the concrete width of a
numeric destination is declared with `typing.Annotated` markers. Bare
`int` is a signed 64-bit destination and bare `float` a 64-bit one.

Indirection is expressed either with `Ref[T]` (a mutable box) or with
`T | None` (an unboxed nullable slot). Both can be nested to any depth,
for example `Ref[Ref[int]]` or `Ref[str] | None`.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Annotated, Any, Literal

from pydantic_core import core_schema

from consul_parser.errors import NestingDepthError

if TYPE_CHECKING:
    from pydantic import GetCoreSchemaHandler


class Ref[T]:
    """Mutable single-level reference to a value.

    A `Ref` is the explicit counterpart of a pointer: binding allocates
    a fresh reference for each level of indirection declared by the
    field type. Bind targets may also be passed wrapped in references.
    """

    __slots__ = ('value',)

    def __init__(self, value: T) -> None:
        """Initialize the reference.

        Args:
            value: Referenced value.
        """
        self.value = value

    def __eq__(self, other: object) -> bool:
        """Compare references by their referenced values."""
        if not isinstance(other, Ref):
            return NotImplemented

        return self.value == other.value

    def __repr__(self) -> str:
        """String represenatation."""
        return f'Ref({self.value!r})'

    @classmethod
    def __get_pydantic_core_schema__(cls, source: Any,  # noqa: ANN401
                                     handler: 'GetCoreSchemaHandler') -> core_schema.CoreSchema:
        """Accept references as Pydantic model fields without validation."""
        return core_schema.is_instance_schema(cls)


def deref(value: Any, limit: int | None = None) -> Any:  # noqa: ANN401
    """Unwind nested references down to the first non-reference value.

    Args:
        value: A value, optionally wrapped in references.
        limit: Maximum number of references to unwind.

    Returns:
        The innermost referenced value.

    Raises:
        NestingDepthError: If more than `limit` references are nested.
    """
    depth = 0
    while isinstance(value, Ref):
        depth += 1
        if limit is not None and depth > limit:
            raise NestingDepthError(f'more than {limit} nested references')
        value = value.value

    return value


@dataclass(frozen=True, slots=True)
class IntegerWidth:
    """Marker declaring the concrete width of an integer destination.

    Markers appear in `Annotated` metadata of Pydantic model fields and
    must not define Pydantic schema hooks.
    """

    bits: Literal[8, 16, 32, 64] = 64
    signed: bool = True


@dataclass(frozen=True, slots=True)
class FloatPrecision:
    """Marker declaring the concrete precision of a float destination."""

    bits: Literal[32, 64] = 64


Int8 = Annotated[int, IntegerWidth(bits=8)]
Int16 = Annotated[int, IntegerWidth(bits=16)]
Int32 = Annotated[int, IntegerWidth(bits=32)]
Int64 = Annotated[int, IntegerWidth(bits=64)]
Int = Int64

UInt8 = Annotated[int, IntegerWidth(bits=8, signed=False)]
UInt16 = Annotated[int, IntegerWidth(bits=16, signed=False)]
UInt32 = Annotated[int, IntegerWidth(bits=32, signed=False)]
UInt64 = Annotated[int, IntegerWidth(bits=64, signed=False)]
UInt = UInt64
UIntPtr = UInt64

Float32 = Annotated[float, FloatPrecision(bits=32)]
Float64 = Annotated[float, FloatPrecision(bits=64)]
