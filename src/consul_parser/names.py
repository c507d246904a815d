"""Field tags naming the source keys.

A structure field opts into binding by declaring the key it is read
from. The key is an opaque string; hierarchical naming such as
slash-separated paths is a concern of the key-value store only.

Keys are declared with an `Annotated` marker, which works for both
dataclasses and Pydantic models::

    port: Annotated[UInt16, Key('service/port')]

or, for dataclasses, with field metadata under the `consulkv` tag::

    port: UInt16 = field(default=0, metadata={'consulkv': 'service/port'})

A field without a key (or with an empty one) is never looked up.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

#: Tag name used in dataclass field metadata.
KEY_TAG = 'consulkv'


@dataclass(frozen=True, slots=True)
class Key:
    """Marker naming the source key of a structure field.

    An empty key leaves the field at its zero state.
    """

    name: str


def find_key(metadata: Iterable[Any], tags: Mapping[str, Any] | None = None) -> str:
    """Find the source key declared for a field.

    `Key` markers take precedence over the `consulkv` metadata tag.

    Args:
        metadata: `Annotated` metadata attached to the field type.
        tags: Optional field metadata mapping (dataclass field metadata).

    Returns:
        The declared key, or an empty string if none is declared.
    """
    for item in metadata:
        if isinstance(item, Key):
            return item.name

    if tags and isinstance(key := tags.get(KEY_TAG), str):
        return key

    return ''
