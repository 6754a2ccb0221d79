"""
Shared schema base classes.
"""
from decimal import Decimal
from typing import Annotated
from pydantic import BaseModel, PlainSerializer
from pydantic.alias_generators import to_camel

# CGPA values stay Decimal internally but are plain numbers in JSON
CgpaValue = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class CamelModel(BaseModel):
    """Base schema: camelCase on the wire, snake_case in Python."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True
