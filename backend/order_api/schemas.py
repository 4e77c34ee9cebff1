from datetime import datetime, timezone
from decimal import Decimal
from typing import Annotated

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PlainSerializer,
    field_validator,
)
from pydantic.alias_generators import to_camel


def _number_only(value):
    # JSON strings and booleans are not amounts
    if isinstance(value, (str, bool)):
        raise ValueError("totalAmount must be a number")
    if isinstance(value, float):
        return Decimal(repr(value))
    return value


# Stored as a decimal, rendered as a JSON number
Amount = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]

# Fits the Numeric(18, 2) column
AmountInput = Annotated[
    Decimal,
    Field(max_digits=18, decimal_places=2),
    BeforeValidator(_number_only),
    PlainSerializer(float, return_type=float, when_used="json"),
]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class OrderWrite(CamelModel):
    """Body of create and update requests."""

    customer_name: str = Field(min_length=1)
    total_amount: AmountInput

    @field_validator("customer_name")
    @classmethod
    def customer_name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("customerName must not be blank")
        return value


class CreateOrderRequest(OrderWrite):
    pass


class UpdateOrderRequest(OrderWrite):
    pass


class OrderResponse(CamelModel):
    id: int
    customer_name: str
    total_amount: Amount
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def created_at_in_utc(cls, value: datetime) -> datetime:
        # Stores without timezone support hand back naive UTC values
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
