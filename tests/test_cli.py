"""Tests for command-line utilities."""

from typing import TYPE_CHECKING

import pytest
from click.testing import CliRunner
from yaml import safe_load

from consul_parser.__main__ import cli

if TYPE_CHECKING:
    from pathlib import Path

STORE_DOCUMENT = """\
string: hello
integer: '-10'
float: '10.0'
unsignedinteger: '1000'
boolean: 'true'
time: 2019-02-01T00:00:00Z
overflowint: '128'
service:
  name: billing
"""


@pytest.fixture
def store_file(tmp_path: 'Path') -> 'Path':
    """Provide a YAML store document on disk."""
    path = tmp_path / 'store.yaml'
    path.write_text(STORE_DOCUMENT)

    return path


def test_get(store_file: 'Path') -> None:
    """Print the raw value of a nested key."""
    result = CliRunner().invoke(cli, ['--store', str(store_file), 'get', 'service/name'])

    assert result.exit_code == 0, result.output
    assert result.output == 'billing\n'


def test_get_missing_key(store_file: 'Path') -> None:
    """Fail on a key absent from the store."""
    result = CliRunner().invoke(cli, ['--store', str(store_file), 'get', 'missing'])

    assert result.exit_code == 1
    assert "key 'missing' not found" in result.output


def test_bind(store_file: 'Path') -> None:
    """Bind a dataclass and print it as YAML."""
    result = CliRunner().invoke(cli, [
        '--store', str(store_file),
        'bind', 'tests.examples.targets:Scalars',
    ])

    assert result.exit_code == 0, result.output
    assert safe_load(result.output) == {
        'string': 'hello',
        'integer': -10,
        'float_': 10.0,
        'unsigned_integer': 1000,
        'boolean': True,
        'interface': 'hello',
    }


def test_bind_model(store_file: 'Path') -> None:
    """Bind a Pydantic model with required fields and timestamps."""
    result = CliRunner().invoke(cli, [
        '--store', str(store_file),
        'bind', 'tests.examples.targets:Settings',
    ])

    assert result.exit_code == 0, result.output

    data = safe_load(result.output)

    assert data['integer'] == -10  # noqa: PLR2004
    assert data['started'] == '2019-02-01T00:00:00+00:00'
    assert data['ratio'] == 10.0  # noqa: PLR2004
    assert data['locked'] == 'locked'


def test_bind_layout(tmp_path: 'Path') -> None:
    """Bind timestamps with a custom layout."""
    path = tmp_path / 'store.yaml'
    path.write_text(STORE_DOCUMENT.replace('2019-02-01T00:00:00Z', "'2019-02-01'"))

    result = CliRunner().invoke(cli, [
        '--store', str(path),
        'bind', '--layout', '%Y-%m-%d', 'tests.examples.targets:Pointers',
    ])

    assert result.exit_code == 0, result.output
    assert safe_load(result.output)['time'] == '2019-02-01T00:00:00+00:00'


def test_bind_error(store_file: 'Path') -> None:
    """Report the failing field of a bind."""
    result = CliRunner().invoke(cli, [
        '--store', str(store_file),
        'bind', 'tests.examples.targets:Overflows',
    ])

    assert result.exit_code == 1
    assert 'error in set the overflowing value to the field' in result.output
    assert 'on field "Overflows.small" (int8)' in result.output


@pytest.mark.parametrize('target, message', (
    pytest.param('tests.examples.targets', 'expected "module:Class"', id='no class'),
    pytest.param('tests.examples.missing:Scalars', 'Can not import', id='missing module'),
    pytest.param('tests.examples.targets:Missing', 'Can not import', id='missing class'),
    pytest.param('tests.conftest:STORE_VALUES', 'is not a dataclass', id='not a structure'),
))
def test_bind_invalid_target(store_file: 'Path', target: str, message: str) -> None:
    """Reject references which are not structure classes."""
    result = CliRunner().invoke(cli, ['--store', str(store_file), 'bind', target])

    assert result.exit_code == 1
    assert message in result.output


def test_missing_store(tmp_path: 'Path') -> None:
    """Reject a store document which does not exist."""
    result = CliRunner().invoke(cli, ['--store', str(tmp_path / 'missing.yaml'), 'get', 'key'])

    assert result.exit_code == 2  # noqa: PLR2004
