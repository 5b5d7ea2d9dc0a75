"""Base Pydantic models for declarative elements.

This module defines the foundational model classes used by all
declarative structures: message builders, data dictionaries, actions,
libraries and plugins. It enforces immutability and strict schema
validation so that test cases are deterministic and explicit.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SchemaModel(BaseModel):
    """Base immutable model for all declarative elements.

    Design principles enforced by this model:
        - Immutability: elements cannot be modified after creation.
          Runtime state lives in the test context, never in the model.
        - Strict schema validation: unknown or extra fields are rejected
          to avoid silent errors caused by typos in test definitions.

    All declarative models must inherit from this class.
    """

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        frozen=True,
        extra='forbid',
        populate_by_name=True,
    )


class DescribedMixin(SchemaModel):
    """Mixin providing element self-documentation.

    The fields defined in this model do not affect execution semantics
    and are used purely for logging and error reporting.
    """

    description: str | None = Field(
        default=None,
        title='Description',
        description='Detailed human-readable description of the element.',
    )


class SettingsModel(BaseSettings):
    """Base immutable model for runtime settings.

    Design principles enforced by this model:
        - Immutability: resolved settings cannot be modified after creation.
        - Tolerant schema handling: unknown or extra fields are ignored so
          the surrounding environment may contain unrelated variables.

    All runtime settings models must inherit from this class.
    """

    model_config = SettingsConfigDict(
        frozen=True,
        extra='ignore',
    )
