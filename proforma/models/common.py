from __future__ import annotations
from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel


# ---------- Decimal fields ---------- #

def _to_decimal(v: Any) -> Any:
    # the API sends decimals as strings ("120.00"), forms send numbers
    if v is None or v == "":
        return Decimal(0)
    if isinstance(v, float):
        return Decimal(str(v))
    return v


def _to_decimal_or_none(v: Any) -> Any:
    if v is None or v == "":
        return None
    return _to_decimal(v)


def _decimal_to_json(v: Optional[Decimal]) -> Optional[float]:
    return None if v is None else float(v)


Money = Annotated[
    Decimal,
    BeforeValidator(_to_decimal),
    PlainSerializer(_decimal_to_json, when_used="json"),
]

OptionalMoney = Annotated[
    Optional[Decimal],
    BeforeValidator(_to_decimal_or_none),
    PlainSerializer(_decimal_to_json, when_used="json"),
]


# ---------- Base models ---------- #

class ApiModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",  # tolerate newer server keys
    )

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class TimeStamped(ApiModel):
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
