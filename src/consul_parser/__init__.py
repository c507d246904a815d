"""Bind Consul key-value entries into typed structures.

The `consul_parser` package fills the fields of dataclasses and Pydantic
models with values read from a key-value store, using per-field keys.

Key features:
- type-directed conversion with width-checked integers and floats;
- nested structures and references of any depth;
- configurable timestamp layout;
- a Consul KV client and an in-memory YAML-backed store.
"""

from consul_parser.client import ClientSettings, ConsulKV
from consul_parser.errors import (
    ConsulParserError,
    EmptyLayoutError,
    FormatError,
    InvalidTargetError,
    KeyNotFoundError,
    LookupFailedError,
    NestingDepthError,
    NilClientError,
    OverflowSetError,
    UnhandledKindError,
)
from consul_parser.layouts import get_time_layout, set_time_layout
from consul_parser.names import KEY_TAG, Key
from consul_parser.parser import Parser, ParserSettings
from consul_parser.stores import MappingKV
from consul_parser.values import (
    Float32,
    Float64,
    Int,
    Int8,
    Int16,
    Int32,
    Int64,
    Ref,
    UInt,
    UInt8,
    UInt16,
    UInt32,
    UInt64,
    UIntPtr,
)

__all__ = (
    'KEY_TAG',
    'ClientSettings',
    'ConsulKV',
    'ConsulParserError',
    'EmptyLayoutError',
    'Float32',
    'Float64',
    'FormatError',
    'Int',
    'Int8',
    'Int16',
    'Int32',
    'Int64',
    'InvalidTargetError',
    'Key',
    'KeyNotFoundError',
    'LookupFailedError',
    'MappingKV',
    'NestingDepthError',
    'NilClientError',
    'OverflowSetError',
    'Parser',
    'ParserSettings',
    'Ref',
    'UInt',
    'UInt8',
    'UInt16',
    'UInt32',
    'UInt64',
    'UIntPtr',
    'UnhandledKindError',
    'get_time_layout',
    'set_time_layout',
)
