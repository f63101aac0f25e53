from __future__ import annotations
from decimal import Decimal
from typing import Optional

from pydantic import Field, field_validator

from .common import ApiModel, OptionalMoney, TimeStamped


class Product(TimeStamped):
    id: str
    name: str
    description: Optional[str] = None
    unit: Optional[str] = None
    # strings (decimal columns) in responses, numbers in requests
    cost_reference: OptionalMoney = None
    price_reference: OptionalMoney = None
    active: bool = True


class ProductIn(ApiModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    unit: Optional[str] = None
    cost_reference: OptionalMoney = None
    price_reference: OptionalMoney = None
    active: bool = True

    @field_validator("cost_reference", "price_reference")
    @classmethod
    def _non_negative(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        if v is not None and v < 0:
            raise ValueError("must be >= 0")
        return v
