from __future__ import annotations
from typing import Optional

from pydantic import EmailStr, Field

from .common import ApiModel, TimeStamped


class Company(TimeStamped):
    """Issuer of a quotation."""
    id: str
    name: str
    nit: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    logo_url: Optional[str] = None


class CompanyIn(ApiModel):
    name: str = Field(min_length=1)
    nit: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    city: Optional[str] = None
    country: Optional[str] = None
    logo_url: Optional[str] = None
