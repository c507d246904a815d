"""Command-line utilities for consul-parser.

Values are read from Consul (configured with the `CONSUL_*` environment
variables) or, with `--store`, from a local YAML document.
"""

from dataclasses import fields, is_dataclass
from datetime import datetime
from importlib import import_module
from logging import DEBUG, WARNING, basicConfig
from pathlib import Path
from typing import Any

from click import ClickException, argument, echo, group, option, pass_context
from click import Path as PathParam
from pydantic import BaseModel
from yaml import safe_dump

from consul_parser.client import ConsulKV
from consul_parser.errors import ConsulParserError
from consul_parser.parser import Parser
from consul_parser.resolver import KVClient, ValueResolver
from consul_parser.shapes import StructShape, describe
from consul_parser.stores import MappingKV
from consul_parser.values import Ref

StoreFilepath = PathParam(
    exists=True,
    dir_okay=False,
    readable=True,
    path_type=Path,
)


def _make_client(store: Path | None) -> KVClient:
    """Create a YAML-backed store or a Consul client."""
    if store is None:
        return ConsulKV()

    with store.open('rt') as stream:
        return MappingKV.from_yaml(stream)


def _import_target(target: str) -> type:
    """Import a structure class from a `module:Class` reference.

    Raises:
        ClickException: If the reference can not be imported.
    """
    module_name, _, attr_path = target.partition(':')
    if not module_name or not attr_path:
        raise ClickException(f'Invalid target {target!r}, expected "module:Class"')

    try:
        value: Any = import_module(module_name)
        for attr in attr_path.split('.'):
            value = getattr(value, attr)
    except (ImportError, AttributeError) as error:
        raise ClickException(f'Can not import {target!r}: {error}') from error

    return value


def _plain(value: Any) -> Any:  # noqa: ANN401
    """Convert a bound structure into YAML-serializable data."""
    if isinstance(value, Ref):
        return _plain(value.value)

    if isinstance(value, BaseModel):
        return {
            name: _plain(getattr(value, name))
            for name in type(value).model_fields
        }

    if is_dataclass(value) and not isinstance(value, type):
        return {
            item.name: _plain(getattr(value, item.name, None))
            for item in fields(value)
        }

    if isinstance(value, datetime):
        return value.isoformat()

    if value is None or isinstance(value, (str, int, float, bool)):
        return value

    return repr(value)


@group(help='Command-line utilities for binding Consul KV entries.')
@option('-v', '--verbose', is_flag=True, help='Enable debug logging.')
@option(
    '-s', '--store',
    type=StoreFilepath,
    help='Read values from a YAML document instead of Consul.',
)
@pass_context
def cli(ctx: Any, verbose: bool, store: Path | None) -> None:  # noqa: ANN401, FBT001
    """Root CLI group for consul-parser tools."""
    basicConfig(level=DEBUG if verbose else WARNING)
    ctx.obj = store


@cli.command(
    name='get',
    help='Print the raw value of a key.',
)
@argument('key')
@pass_context
def get_value(ctx: Any, key: str) -> None:  # noqa: ANN401
    """Resolve a single key and print its value."""
    try:
        resolver = ValueResolver(_make_client(ctx.obj))
        echo(resolver.resolve(key))
    except ConsulParserError as error:
        raise ClickException(str(error)) from error


@cli.command(
    name='bind',
    help='Bind a structure class (module:Class) and print it as YAML.',
)
@option('-l', '--layout', help='Time layout used to parse timestamps.')
@argument('target')
@pass_context
def bind(ctx: Any, target: str, layout: str | None) -> None:  # noqa: ANN401
    """Bind a zero-valued instance of a structure class."""
    model = _import_target(target)

    shape = describe(model)
    if not isinstance(shape, StructShape):
        raise ClickException(f'{target!r} is not a dataclass or a Pydantic model')

    try:
        parser = Parser(_make_client(ctx.obj), time_layout=layout)
        instance = shape.zero()
        parser.parse(instance)
    except ConsulParserError as error:
        raise ClickException(str(error)) from error

    echo(safe_dump(_plain(instance), sort_keys=False, allow_unicode=True), nl=False)


if __name__ == '__main__':
    cli()
