"""Destination shapes.

This module describes bind destinations as a closed set of shape
variants. A shape is computed from a field annotation once and tells
the assignment engine how a raw textual value is interpreted:

- `TextShape` and `DynamicShape` receive the raw text;
- `SignedShape`, `UnsignedShape` and `FloatShape` are numbers of
  a concrete width;
- `BoolShape` and `TimeShape` are parsed scalars;
- `StructShape` is a nested structure bound field by field;
- `PointerShape` is one level of indirection over another shape;
- `UnsupportedShape` is anything else (mappings, sequences, unions).

Structure fields are described once per structure class and cached.
"""

from dataclasses import MISSING, fields, is_dataclass
from datetime import UTC, datetime
from functools import cache
from types import NoneType, UnionType
from typing import Annotated, Any, Literal, Union, get_args, get_origin, get_type_hints

from pydantic import BaseModel, Field

from consul_parser.models import SchemaModel
from consul_parser.names import find_key
from consul_parser.values import FloatPrecision, IntegerWidth, Ref

#: Zero value of a time destination.
ZERO_TIME = datetime(1, 1, 1, tzinfo=UTC)


class BaseShape(SchemaModel):
    """Base class for all destination shapes."""

    kind: str

    @property
    def name(self) -> str:
        """Display name of the destination type."""
        return self.kind

    def zero(self) -> Any:  # noqa: ANN401
        """Return the zero value of the destination."""
        return None


class TextShape(BaseShape):
    """Text destination receiving the raw value."""

    kind: Literal['text'] = 'text'

    @property
    def name(self) -> str:
        """Display name of the destination type."""
        return 'str'

    def zero(self) -> str:
        """Return an empty string."""
        return ''


class DynamicShape(BaseShape):
    """Dynamically typed destination receiving the raw value as text."""

    kind: Literal['dynamic'] = 'dynamic'

    @property
    def name(self) -> str:
        """Display name of the destination type."""
        return 'any'


class SignedShape(BaseShape):
    """Signed integer destination of a concrete width."""

    kind: Literal['signed'] = 'signed'
    bits: Literal[8, 16, 32, 64] = 64

    @property
    def name(self) -> str:
        """Display name of the destination type."""
        return f'int{self.bits}'

    def zero(self) -> int:
        """Return zero."""
        return 0


class UnsignedShape(BaseShape):
    """Unsigned integer destination of a concrete width."""

    kind: Literal['unsigned'] = 'unsigned'
    bits: Literal[8, 16, 32, 64] = 64

    @property
    def name(self) -> str:
        """Display name of the destination type."""
        return f'uint{self.bits}'

    def zero(self) -> int:
        """Return zero."""
        return 0


class FloatShape(BaseShape):
    """Floating point destination of a concrete precision."""

    kind: Literal['float'] = 'float'
    bits: Literal[32, 64] = 64

    @property
    def name(self) -> str:
        """Display name of the destination type."""
        return f'float{self.bits}'

    def zero(self) -> float:
        """Return zero."""
        return 0.0


class BoolShape(BaseShape):
    """Boolean destination."""

    kind: Literal['bool'] = 'bool'

    def zero(self) -> bool:
        """Return false."""
        return False


class TimeShape(BaseShape):
    """Timestamp destination parsed with the configured time layout."""

    kind: Literal['time'] = 'time'

    @property
    def name(self) -> str:
        """Display name of the destination type."""
        return 'datetime'

    def zero(self) -> datetime:
        """Return the zero timestamp."""
        return ZERO_TIME


class StructShape(BaseShape):
    """Nested structure destination bound field by field.

    Structures are dataclasses or Pydantic models. Fields are described
    lazily on first access, so a structure may reference itself through
    an indirection.
    """

    kind: Literal['struct'] = 'struct'
    model: type

    @property
    def name(self) -> str:
        """Display name of the destination type."""
        return self.model.__qualname__

    @property
    def fields(self) -> tuple['FieldSpec', ...]:
        """Descriptors of the structure fields in declaration order."""
        return struct_fields(self.model)

    @property
    def frozen(self) -> bool:
        """Whether instances of the structure are immutable."""
        if issubclass(self.model, BaseModel):
            return bool(self.model.model_config.get('frozen'))

        return self.model.__dataclass_params__.frozen  # type: ignore[attr-defined]

    def zero(self) -> Any:  # noqa: ANN401
        """Build a structure instance with every required field at zero.

        Pydantic models are built without validation, as zero values
        of narrowed types may not satisfy field constraints.
        """
        values = {
            spec.name: spec.shape.zero()
            for spec in self.fields
            if spec.required
        }

        if issubclass(self.model, BaseModel):
            return self.model.model_construct(**values)

        return self.model(**values)


class PointerShape(BaseShape):
    """One level of indirection over another shape.

    Boxed pointers are `Ref[T]` references; unboxed pointers are
    nullable `T | None` slots holding the bare value.
    """

    kind: Literal['pointer'] = 'pointer'
    pointee: BaseShape
    boxed: bool = True

    @property
    def name(self) -> str:
        """Display name of the destination type."""
        if self.boxed:
            return f'Ref[{self.pointee.name}]'

        return f'{self.pointee.name} | None'

    @property
    def depth(self) -> int:
        """Number of indirection levels down to the first non-pointer."""
        if isinstance(self.pointee, PointerShape):
            return self.pointee.depth + 1

        return 1

    def wrap(self, value: Any) -> Any:  # noqa: ANN401
        """Wrap a referent into this level of indirection."""
        if self.boxed:
            return Ref(value)

        return value


class UnsupportedShape(BaseShape):
    """Destination without a supported conversion."""

    kind: Literal['unsupported'] = 'unsupported'
    annotation: Any = None

    @property
    def name(self) -> str:
        """Display name of the destination type."""
        return getattr(self.annotation, '__qualname__', None) or repr(self.annotation)


class FieldSpec(SchemaModel):
    """Descriptor of a single structure field."""

    name: str = Field(
        title='Attribute name',
    )

    key: str = Field(
        default='',
        title='Source key',
        description='Key looked up for the field; empty means no lookup.',
    )

    shape: BaseShape = Field(
        title='Destination shape',
    )

    writable: bool = Field(
        default=True,
        title='Writable flag',
        description=(
            'Only public fields of mutable structures are bound. '
            'Other fields are skipped silently.'
        ),
    )

    required: bool = Field(
        default=False,
        title='Required flag',
        description='Whether the field must be passed to build an instance.',
    )


def is_structure(annotation: Any) -> bool:  # noqa: ANN401
    """Check whether an annotation is a bindable structure class."""
    if not isinstance(annotation, type):
        return False

    return is_dataclass(annotation) or issubclass(annotation, BaseModel)


def describe(annotation: Any, metadata: tuple[Any, ...] = ()) -> BaseShape:  # noqa: ANN401, C901, PLR0911
    """Describe the destination shape of an annotation.

    `Annotated` metadata is carried through indirection levels, so
    `Annotated[int | None, IntegerWidth(bits=8)]` is a nullable int8.

    Args:
        annotation: Type annotation of the destination.
        metadata: `Annotated` metadata collected so far.

    Returns:
        The destination shape.
    """
    if get_origin(annotation) is Annotated:
        annotation, *extra = get_args(annotation)
        return describe(annotation, (*metadata, *extra))

    origin = get_origin(annotation)

    if annotation is Ref or origin is Ref:
        args = get_args(annotation)
        return PointerShape(
            pointee=describe(args[0] if args else Any, metadata),
            boxed=True,
        )

    if origin is Union or origin is UnionType:
        args = get_args(annotation)
        members = [arg for arg in args if arg is not NoneType]
        if len(members) == 1 and len(args) == 2:  # noqa: PLR2004
            return PointerShape(pointee=describe(members[0], metadata), boxed=False)
        return UnsupportedShape(annotation=annotation)

    if annotation is Any or annotation is object:
        return DynamicShape()

    if annotation is str:
        return TextShape()

    if annotation is bool:
        return BoolShape()

    if annotation is int:
        width = _find_marker(metadata, IntegerWidth) or IntegerWidth()
        if width.signed:
            return SignedShape(bits=width.bits)
        return UnsignedShape(bits=width.bits)

    if annotation is float:
        precision = _find_marker(metadata, FloatPrecision) or FloatPrecision()
        return FloatShape(bits=precision.bits)

    if annotation is datetime:
        return TimeShape()

    if is_structure(annotation):
        return StructShape(model=annotation)

    return UnsupportedShape(annotation=annotation)


@cache
def struct_fields(model: type) -> tuple[FieldSpec, ...]:
    """Describe the fields of a structure class.

    The result is computed once per class.

    Args:
        model: A dataclass or a Pydantic model class.

    Returns:
        Field descriptors in declaration order.
    """
    if issubclass(model, BaseModel):
        return tuple(_model_fields(model))

    return tuple(_dataclass_fields(model))


def _model_fields(model: type[BaseModel]) -> list[FieldSpec]:
    """Describe the fields of a Pydantic model."""
    frozen = bool(model.model_config.get('frozen'))

    specs = []
    for name, info in model.model_fields.items():
        annotation = info.annotation
        if info.metadata:
            annotation = Annotated[annotation, *info.metadata]

        specs.append(FieldSpec(
            name=name,
            key=find_key(info.metadata),
            shape=describe(annotation),
            writable=not (frozen or info.frozen or name.startswith('_')),
            required=info.is_required(),
        ))

    return specs


def _dataclass_fields(model: type) -> list[FieldSpec]:
    """Describe the fields of a dataclass."""
    frozen = model.__dataclass_params__.frozen  # type: ignore[attr-defined]
    hints = get_type_hints(model, include_extras=True)

    specs = []
    for item in fields(model):
        annotation = hints.get(item.name, Any)
        metadata = ()
        if get_origin(annotation) is Annotated:
            metadata = annotation.__metadata__

        specs.append(FieldSpec(
            name=item.name,
            key=find_key(metadata, item.metadata),
            shape=describe(annotation),
            writable=not (frozen or item.name.startswith('_')),
            required=(
                item.init
                and item.default is MISSING
                and item.default_factory is MISSING
            ),
        ))

    return specs


def _find_marker[T](metadata: tuple[Any, ...], marker: type[T]) -> T | None:
    """Find the last marker of the given type in `Annotated` metadata."""
    found = None
    for item in metadata:
        if isinstance(item, marker):
            found = item

    return found
