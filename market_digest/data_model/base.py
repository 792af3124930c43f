"""Shared Pydantic base models."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class StrictBaseModel(BaseModel):
    """Base model with strict, immutable defaults."""

    model_config = ConfigDict(frozen=True, extra="forbid")


class CamelFileModel(BaseModel):
    """Base model for persisted JSON files with camelCase keys.

    Fields are declared in snake_case and accepted under either name.
    Dump with ``by_alias=True`` to produce the on-disk format.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )
