"""In-memory key-value store.

`MappingKV` serves values from a plain mapping. It is useful for local
development and tests, and can be loaded from a YAML document whose
nested mappings become slash-separated keys::

    service:
      name: billing
      port: 8080

is served as `service/name` and `service/port`.
"""

from collections.abc import Iterator, Mapping
from typing import IO, TYPE_CHECKING, Any

from yaml import BaseLoader, load
from yaml.error import YAMLError

from consul_parser.errors import LookupFailedError

if TYPE_CHECKING:
    from typing import Self

KEY_SEPARATOR = '/'


class MappingKV:
    """Key-value store backed by a mapping of keys to text."""

    def __init__(self, values: Mapping[str, str] | None = None) -> None:
        """Initialize the store.

        Args:
            values: Mapping of keys to raw textual values.
        """
        self.values = dict(values or {})

    def __contains__(self, key: object) -> bool:
        return key in self.values

    def __len__(self) -> int:
        return len(self.values)

    def get(self, key: str) -> bytes | None:
        """Fetch the payload of a key, or `None` if it is absent."""
        if (value := self.values.get(key)) is None:
            return None

        return value.encode('utf-8', errors='surrogateescape')

    @classmethod
    def from_yaml(cls, stream: str | IO[str]) -> 'Self':
        """Load a store from a YAML document.

        All scalars are kept as their source text. Nested mappings are
        flattened into slash-separated keys.

        Args:
            stream: YAML document or a text stream.

        Returns:
            The loaded store.

        Raises:
            LookupFailedError: If the document is not valid YAML or
                is not a mapping.
        """
        try:
            data = load(stream, Loader=BaseLoader)  # noqa: S506
        except YAMLError as error:
            raise LookupFailedError('Invalid YAML store') from error

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise LookupFailedError('YAML store must be a mapping')

        return cls(dict(flatten(data)))


def flatten(data: Mapping[str, Any], prefix: str = '') -> Iterator[tuple[str, str]]:
    """Flatten nested mappings into slash-separated keys.

    Sequences are not addressable by key and are skipped.

    Args:
        data: Nested mapping of scalars.
        prefix: Key prefix of the mapping.

    Yields:
        Pairs of keys and textual values.
    """
    for name, item in data.items():
        key = f'{prefix}{name}'
        if isinstance(item, Mapping):
            yield from flatten(item, f'{key}{KEY_SEPARATOR}')
        elif isinstance(item, str):
            yield key, item
