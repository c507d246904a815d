"""Bind entry point.

`Parser` binds values stored in a key-value store into the fields of a
structure instance. Fields declare their source key with a `Key` marker
(or the `consulkv` dataclass metadata tag) and are converted according
to their annotated type::

    @dataclass
    class Service:
        name: Annotated[str, Key('service/name')] = ''
        port: Annotated[UInt16, Key('service/port')] = 0
        started: Annotated[datetime | None, Key('service/started')] = None

    service = Service()
    Parser(ConsulKV()).parse(service)
"""

from logging import getLogger
from typing import TYPE_CHECKING, Any

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from consul_parser.client import ClientSettings, ConsulKV
from consul_parser.engine import DEFAULT_MAX_DEPTH, AssignmentEngine
from consul_parser.errors import InvalidTargetError, NilClientError
from consul_parser.layouts import check_layout, get_time_layout
from consul_parser.models import SettingsModel
from consul_parser.resolver import KVClient, ValueResolver
from consul_parser.shapes import StructShape, describe, is_structure
from consul_parser.values import deref

if TYPE_CHECKING:
    from typing import Self

logger = getLogger(__name__)


class ParserSettings(SettingsModel):
    """Parser settings resolved from the environment."""

    model_config = SettingsConfigDict(
        frozen=True,
        extra='ignore',
        env_prefix='CONSUL_PARSER_',
    )

    time_layout: str | None = Field(
        default=None,
        min_length=1,
        title='Time layout',
        description=(
            'Layout used to parse timestamps. '
            'The process-wide layout is used when not set.'
        ),
    )

    max_depth: int = Field(
        default=DEFAULT_MAX_DEPTH,
        gt=0,
        title='Nesting limit',
        description='Limit of nested structures and indirection levels.',
    )


class Parser:
    """Binder of key-value store entries into structures.

    A parser without its own time layout follows the process-wide
    layout set with `consul_parser.set_time_layout`.
    """

    def __init__(self, client: KVClient | None, *,
                 time_layout: str | None = None,
                 max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        """Initialize the parser.

        Args:
            client: Key-value store client.
            time_layout: Optional time layout of this parser.
            max_depth: Limit of nested structures and indirection levels.

        Raises:
            NilClientError: If the client is `None`.
            EmptyLayoutError: If the time layout is empty.
        """
        if client is None:
            raise NilClientError

        self.client = client
        self.resolver = ValueResolver(client)

        self._time_layout = None
        if time_layout is not None:
            self.set_time_layout(time_layout)

        self.engine = AssignmentEngine(
            self.resolver.resolve,
            lambda: self.time_layout,
            max_depth=max_depth,
        )

    @classmethod
    def from_settings(cls, client_settings: ClientSettings | None = None,
                      parser_settings: ParserSettings | None = None) -> 'Self':
        """Create a parser with a Consul client configured from settings.

        Args:
            client_settings: Consul client settings; resolved from the
                environment when omitted.
            parser_settings: Parser settings; resolved from the
                environment when omitted.

        Returns:
            A parser bound to a `ConsulKV` client.
        """
        parser_settings = parser_settings or ParserSettings()

        return cls(
            ConsulKV(client_settings),
            time_layout=parser_settings.time_layout,
            max_depth=parser_settings.max_depth,
        )

    @property
    def time_layout(self) -> str:
        """Time layout used by this parser."""
        return self._time_layout or get_time_layout()

    def set_time_layout(self, layout: str) -> None:
        """Set the time layout of this parser only.

        Args:
            layout: New `strftime`-style layout.

        Raises:
            EmptyLayoutError: If the layout is empty. The current layout
                is kept in that case.
        """
        self._time_layout = check_layout(layout)

    def parse(self, target: Any) -> None:  # noqa: ANN401
        """Bind store values into a structure instance.

        The target is bound in place. It may be wrapped in any number
        of `Ref` references, which are unwound first.

        Args:
            target: Mutable structure instance (dataclass or Pydantic
                model), optionally wrapped in references.

        Raises:
            InvalidTargetError: If the target is not a mutable structure
                instance. No lookup is performed in that case.
            ConsulParserError: If any field fails to bind. Fields bound
                before the failing one keep their new values.
        """
        instance = deref(target, self.engine.max_depth)

        if instance is None or isinstance(instance, type):
            raise InvalidTargetError('value must be pointer type')

        if not is_structure(type(instance)):
            raise InvalidTargetError(
                f'value must be a structure instance, got {type(instance).__name__}',
            )

        shape = describe(type(instance))
        if not isinstance(shape, StructShape) or shape.frozen:
            raise InvalidTargetError(f'{shape.name} instances are immutable')

        logger.debug('Binding %s', shape.name)
        self.engine.parse(instance, shape)
