"""Key to raw value resolution.

The resolver turns the key declared by a field into the raw textual
value bound into that field, delegating the lookup to a key-value
store client.
"""

from logging import getLogger
from typing import Protocol

from consul_parser.errors import KeyNotFoundError

logger = getLogger(__name__)


class KVClient(Protocol):
    """Key-value store client used to fetch raw values.

    Implementations return the stored payload of a key, `None` for an
    absent key, and raise `LookupFailedError` on any other failure.
    """

    def get(self, key: str) -> bytes | None:
        """Fetch the current payload of a key."""
        ...  # pragma: no cover


class ValueResolver:
    """Resolver of field keys into raw textual values.

    Lookups are synchronous and never cached or retried: every
    non-empty key is fetched from the store once per bind.
    """

    def __init__(self, client: KVClient) -> None:
        """Initialize the resolver.

        Args:
            client: Key-value store client.
        """
        self.client = client

    def resolve(self, key: str) -> str:
        """Resolve a key into its raw textual value.

        Args:
            key: Source key of a field.

        Returns:
            The stored value decoded as UTF-8 (undecodable bytes are kept
            as surrogate escapes), or an empty string for an
            empty key (no lookup is performed in that case).

        Raises:
            KeyNotFoundError: If the key is absent from the store.
            LookupFailedError: If the store lookup fails.
        """
        if not key:
            return ''

        logger.debug('Looking up key %r', key)

        payload = self.client.get(key)
        if payload is None:
            raise KeyNotFoundError(f'key {key!r} not found')

        return payload.decode('utf-8', errors='surrogateescape')
