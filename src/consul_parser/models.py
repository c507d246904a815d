"""Base Pydantic models for descriptors and settings.

This module defines the foundational model classes used by the library.
Descriptors (shapes and field specifications) are immutable so
they can be cached per structure class and shared between binds. Settings
are resolved from the environment and frozen once created.
"""

from pydantic import BaseModel, ConfigDict
from pydantic_settings import BaseSettings, SettingsConfigDict


class SchemaModel(BaseModel):
    """Base immutable model for all descriptors.

    Design principles enforced by this model:
        - Immutability: a descriptor cannot be modified after creation,
          which makes it safe to cache and to use as a dictionary key.
        - Strict schema validation: unknown or extra fields are rejected.

    Arbitrary types are allowed since descriptors reference user
    structure classes and raw annotations.
    """

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        frozen=True,
        extra='forbid',
    )


class SettingsModel(BaseSettings):
    """Base immutable model for runtime settings.

    Design principles enforced by this model:
        - Immutability: resolved settings cannot be modified after creation.
        - Tolerant schema handling: unknown or extra variables are ignored,
          so the surrounding environment may contain unrelated values.
    """

    model_config = SettingsConfigDict(
        frozen=True,
        extra='ignore',
    )
