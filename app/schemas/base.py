"""Shared schema configuration."""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, StringConstraints
from pydantic.alias_generators import to_camel

# Identifiers and labels are trimmed; free text and payloads are stored as sent
StrippedStr = Annotated[str, StringConstraints(strip_whitespace=True)]


class CamelModel(BaseModel):
    """Base model exchanged as camelCase JSON and populated by field name in code."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )
