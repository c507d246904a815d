"""Tests for key to raw value resolution."""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Annotated, Any

import pytest

from consul_parser import Key, KeyNotFoundError, LookupFailedError, MappingKV, Parser
from consul_parser.resolver import ValueResolver

if TYPE_CHECKING:
    from pytest_mock import MockerFixture, MockType


def test_resolve(store: MappingKV, spy_store: 'MockType') -> None:
    """Resolve a key into its stored text."""
    resolver = ValueResolver(store)

    assert resolver.resolve('string') == 'hello'
    spy_store.assert_called_once_with('string')


def test_resolve_empty_key(store: MappingKV, spy_store: 'MockType') -> None:
    """Resolve an empty key without a lookup."""
    resolver = ValueResolver(store)

    assert resolver.resolve('') == ''
    spy_store.assert_not_called()


def test_resolve_empty_value(store: MappingKV) -> None:
    """Resolve a key stored without a value into an empty string."""
    resolver = ValueResolver(store)

    assert resolver.resolve('empty') == ''


def test_resolve_missing_key(store: MappingKV) -> None:
    """Fail to resolve a key absent from the store."""
    resolver = ValueResolver(store)

    with pytest.raises(KeyNotFoundError, match=r"^key 'missing' not found$"):
        resolver.resolve('missing')


@pytest.mark.parametrize('payload, expected', (
    pytest.param('привет'.encode(), 'привет', id='utf-8'),
    pytest.param(b'caf\xe9', 'caf\udce9', id='latin-1'),
    pytest.param(b'\xff\xfeabc', '\udcff\udcfeabc', id='byte order mark'),
))
def test_resolve_decode(mocker: 'MockerFixture', payload: bytes, expected: str) -> None:
    """Decode stored payloads as UTF-8 keeping undecodable bytes."""
    client = mocker.Mock()
    client.get.return_value = payload

    value = ValueResolver(client).resolve('key')

    assert value == expected
    assert value.encode('utf-8', errors='surrogateescape') == payload


def test_bind_undecodable_payload(mocker: 'MockerFixture') -> None:
    """Bind undecodable bytes into text and dynamic fields without loss."""
    @dataclass
    class Target:
        text: Annotated[str, Key('raw')] = ''
        dynamic: Annotated[Any, Key('raw')] = None

    client = mocker.Mock()
    client.get.return_value = b'\xff\xfeabc'
    target = Target()

    Parser(client).parse(target)

    assert target.text.encode('utf-8', errors='surrogateescape') == b'\xff\xfeabc'
    assert target.dynamic == target.text


def test_resolve_lookup_failure(mocker: 'MockerFixture') -> None:
    """Propagate store lookup failures."""
    client = mocker.Mock()
    client.get.side_effect = LookupFailedError('agent is down')

    with pytest.raises(LookupFailedError, match=r'^agent is down$'):
        ValueResolver(client).resolve('key')
