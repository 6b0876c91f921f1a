"""Shared pydantic base: camelCase on the wire, snake_case in Python."""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, BeforeValidator, ConfigDict
from pydantic.alias_generators import to_camel

from app.models.enums import FormStatus, Role


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def _upper_enum_text(v: object) -> object:
    """Accept enum values in any letter case."""
    if isinstance(v, str):
        return v.strip().upper()
    return v


RoleField = Annotated[Role, BeforeValidator(_upper_enum_text)]
StatusField = Annotated[FormStatus, BeforeValidator(_upper_enum_text)]
