"""Shared pydantic configuration for project catalog API payloads."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class BaseSchemaModel(BaseModel):
    """Base for every schema parsed from the project catalog API.

    Fields are declared in snake_case and read from or dumped to camelCase.
    Unknown keys are dropped, so new server-side attributes never break
    parsing of snapshots or live pushes.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        str_strip_whitespace=True,
        frozen=True,
    )
