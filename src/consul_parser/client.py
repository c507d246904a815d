"""Consul key-value store client.

A small HTTP client for the Consul KV API, configured from the standard
`CONSUL_*` environment variables. Only single key reads are supported.
"""

from base64 import b64decode
from binascii import Error as BinasciiError
from http import HTTPStatus
from logging import getLogger
from urllib.parse import quote

from pydantic import Field
from pydantic_settings import SettingsConfigDict
from requests import RequestException, Session

from consul_parser.errors import LookupFailedError
from consul_parser.models import SettingsModel

logger = getLogger(__name__)

TOKEN_HEADER = 'X-Consul-Token'


class ClientSettings(SettingsModel):
    """Consul client settings resolved from the environment."""

    model_config = SettingsConfigDict(
        frozen=True,
        extra='ignore',
        env_prefix='CONSUL_',
    )

    http_addr: str = Field(
        default='127.0.0.1:8500',
        title='Agent address',
        description=(
            'Address of the Consul agent, with or without a scheme. '
            'Read from `CONSUL_HTTP_ADDR`.'
        ),
    )

    http_token: str | None = Field(
        default=None,
        title='ACL token',
        description='Token sent with every request. Read from `CONSUL_HTTP_TOKEN`.',
    )

    http_ssl: bool = Field(
        default=False,
        title='Use HTTPS',
        description='Whether to use HTTPS when the address has no scheme.',
    )

    datacenter: str | None = Field(
        default=None,
        title='Datacenter',
        description='Datacenter to query instead of the agent one.',
    )

    namespace: str | None = Field(
        default=None,
        title='Namespace',
        description='Namespace to query (Consul Enterprise).',
    )

    timeout: float = Field(
        default=10.0,
        gt=0,
        title='Request timeout',
        description='Timeout in seconds of a single lookup.',
    )

    @property
    def base_url(self) -> str:
        """Agent URL including the scheme."""
        address = self.http_addr.rstrip('/')
        if '://' in address:
            return address

        scheme = 'https' if self.http_ssl else 'http'
        return f'{scheme}://{address}'


class ConsulKV:
    """Consul KV API client.

    Values are read with `GET /v1/kv/<key>`. An absent key yields `None`,
    a key stored without a value yields an empty payload.
    """

    def __init__(self, settings: ClientSettings | None = None,
                 session: Session | None = None) -> None:
        """Initialize the client.

        Args:
            settings: Client settings; resolved from the environment
                when omitted.
            session: HTTP session to reuse; a new one is created when
                omitted.
        """
        self.settings = settings or ClientSettings()
        self.session = session or Session()

        if self.settings.http_token:
            self.session.headers[TOKEN_HEADER] = self.settings.http_token

    def url(self, key: str) -> str:
        """Build the KV endpoint URL of a key."""
        return f'{self.settings.base_url}/v1/kv/{quote(key)}'

    def get(self, key: str) -> bytes | None:
        """Fetch the current payload of a key.

        Args:
            key: Key to read.

        Returns:
            The decoded payload, or `None` if the key does not exist.

        Raises:
            LookupFailedError: If the key is invalid, the agent is
                unreachable or the response is malformed.
        """
        if key.startswith('/'):
            raise LookupFailedError("Invalid key. Key must not begin with a '/'")

        params = {}
        if self.settings.datacenter:
            params['dc'] = self.settings.datacenter
        if self.settings.namespace:
            params['ns'] = self.settings.namespace

        url = self.url(key)
        logger.debug('GET %s', url)

        try:
            response = self.session.get(url, params=params, timeout=self.settings.timeout)
        except RequestException as error:
            raise LookupFailedError(f'lookup of key {key!r} failed') from error

        if response.status_code == HTTPStatus.NOT_FOUND:
            return None

        try:
            response.raise_for_status()
            entries = response.json()
        except (RequestException, ValueError) as error:
            raise LookupFailedError(f'lookup of key {key!r} failed') from error

        if not entries:
            return None

        value = entries[0].get('Value')
        if value is None:
            return b''

        try:
            return b64decode(value, validate=True)
        except (BinasciiError, ValueError) as error:
            raise LookupFailedError(f'malformed value of key {key!r}') from error
