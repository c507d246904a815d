"""Tests configurations and fixtures."""

from base64 import b64encode
from json import dumps
from typing import TYPE_CHECKING

import pytest
from requests import Response, Session

from consul_parser import MappingKV, Parser, get_time_layout, set_time_layout

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

if TYPE_CHECKING:
    from pytest_mock import MockerFixture, MockType

#: Values served by the `store` fixture.
STORE_VALUES = {
    'string': 'hello',
    'integer': '-10',
    'float': '10.0',
    'unsignedinteger': '1000',
    'boolean': 'true',
    'time': '2019-02-01T00:00:00Z',
    'overflowint': '128',
    'overflowuint': '256',
    'overflowfloat': '2E+308',
    'empty': '',
}


@pytest.fixture(autouse=True)
def restore_time_layout() -> 'Iterator[None]':
    """Restore the process-wide time layout after each test."""
    layout = get_time_layout()
    yield
    set_time_layout(layout)


@pytest.fixture
def store() -> MappingKV:
    """Provide an in-memory store with one value of each kind."""
    return MappingKV(STORE_VALUES)


@pytest.fixture
def parser(store: MappingKV) -> Parser:
    """Provide a parser reading from the in-memory store."""
    return Parser(store)


@pytest.fixture
def spy_store(store: MappingKV, mocker: 'MockerFixture') -> 'MockType':
    """Provide a spy recording every lookup made on the store."""
    return mocker.spy(store, 'get')


@pytest.fixture
def patch_session(mocker: 'MockerFixture') -> 'Callable[..., tuple[Session, MockType]]':
    """Provide a factory for HTTP sessions answering KV requests.

    The returned factory builds a real `requests.Session` whose `get`
    method is replaced by a mock returning a prepared response.
    """
    def patch(value: str | None = None, *, status: int = 200,
              body: object = ..., raises: Exception | None = None) -> 'tuple[Session, MockType]':
        """Patch `Session.get` with a controlled KV response.

        Args:
            value: Stored value, encoded as the KV API does.
            status: HTTP status code of the response.
            body: Raw JSON body overriding the generated one.
            raises: Exception raised by `get` instead of responding.

        Returns:
            The session and the mock of its `get` method.
        """
        if body is ...:
            encoded = None
            if value is not None:
                encoded = b64encode(value.encode()).decode()
            body = [{
                'LockIndex': 0,
                'Key': 'key',
                'Flags': 0,
                'Value': encoded,
                'CreateIndex': 0,
                'ModifyIndex': 0,
            }]

        response = Response()
        response.status_code = status
        response._content = dumps(body).encode()  # noqa: SLF001
        response.headers['Content-Type'] = 'application/json'

        session = Session()
        get = mocker.patch.object(session, 'get', return_value=response)
        if raises is not None:
            get.side_effect = raises

        return session, get

    return patch
