"""
Shared schema helpers: camelCase API models, decimal strings, record ids.
"""

from decimal import Decimal
from typing import Annotated
from uuid import uuid4

from pydantic import ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel
from sqlmodel import SQLModel


def new_id() -> str:
    """Generate a record identifier."""
    return str(uuid4())


def format_decimal(value: Decimal) -> str:
    """Render a decimal without exponent or trailing zeros ("10.00" -> "10")."""
    text = format(Decimal(value).normalize(), "f")
    return "0" if text in ("-0", "") else text


DecimalString = Annotated[Decimal, PlainSerializer(format_decimal, return_type=str)]


class ApiModel(SQLModel):
    """Base for request/response schemas exchanged as camelCase JSON."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
