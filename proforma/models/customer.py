from __future__ import annotations
from typing import Optional

from pydantic import EmailStr, Field

from .common import ApiModel, TimeStamped


class Customer(TimeStamped):
    id: str
    name: str
    nit_ci: Optional[str] = None
    # not EmailStr: legacy records may hold anything, they must still load
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None


class CustomerIn(ApiModel):
    name: str = Field(min_length=1)
    nit_ci: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None
