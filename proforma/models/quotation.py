from __future__ import annotations
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, List, Optional

from pydantic import BeforeValidator, EmailStr, Field, field_validator, model_validator

from .common import ApiModel, Money, OptionalMoney, TimeStamped
from .company import Company
from .customer import Customer
from .user import User


class QuotationStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


KNOWN_STATUSES = frozenset(s.value for s in QuotationStatus)
# end of the active lifecycle for business purposes, transitions out stay allowed
CLOSED_STATUSES = frozenset({"accepted", "rejected", "cancelled"})


def normalize_status(value: Any) -> str:
    if isinstance(value, QuotationStatus):
        return value.value
    s = str(value or "").strip().lower()
    return s or QuotationStatus.DRAFT.value


def _status_or_none(v: Any) -> Any:
    if v is None or (isinstance(v, str) and not v.strip()):
        return None
    return normalize_status(v)


def _blank_to_none(v: Any) -> Any:
    if isinstance(v, str) and not v.strip():
        return None
    return v


def _strip(v: Any) -> Any:
    return v.strip() if isinstance(v, str) else v


def _parse_date(v: Any) -> Any:
    v = _blank_to_none(v)
    if isinstance(v, datetime):
        return v.date()
    if isinstance(v, str) and len(v) > 10:
        # "2025-03-01T00:00:00.000Z" from the API
        return v[:10]
    return v


# Statuses are open: unknown server values are kept as plain strings.
StatusValue = Annotated[str, BeforeValidator(normalize_status)]
OptionalStatus = Annotated[Optional[str], BeforeValidator(_status_or_none)]
OptionalText = Annotated[Optional[str], BeforeValidator(_blank_to_none)]
IsoDate = Annotated[date, BeforeValidator(_parse_date)]
OptionalIsoDate = Annotated[Optional[date], BeforeValidator(_parse_date)]


# ---------- Line items ---------- #

class LineItemInput(ApiModel):
    """One row as typed by the seller, before pricing."""
    product_id: OptionalText = None
    description: Annotated[str, BeforeValidator(_strip)] = Field(min_length=1, alias="itemDescription")
    quantity: Decimal = Field(gt=0)
    unit_cost: Decimal = Field(ge=0, alias="costUnit")
    margin_percent: Decimal = Field(default=Decimal(0), ge=0)


class LineItem(ApiModel):
    """
    A priced row. The four derived amounts are always produced by
    services.pricing from quantity / unit_cost / margin_percent.
    """
    id: Optional[str] = None
    product_id: Optional[str] = None
    description: str = Field(default="", alias="itemDescription")
    quantity: Money = Decimal(0)
    unit_cost: Money = Field(default=Decimal(0), alias="costUnit")
    margin_percent: Money = Decimal(0)
    margin_amount: Money = Decimal(0)
    unit_sale: Money = Field(default=Decimal(0), alias="saleUnit")
    line_total_cost: Money = Field(default=Decimal(0), alias="totalCost")
    line_total_sale: Money = Field(default=Decimal(0), alias="totalSale")
    order: int = 0


# ---------- Attachments ---------- #

class QuotationPdf(TimeStamped):
    id: str
    quotation_id: Optional[str] = None
    file_path: str = ""


class QuotationEmail(TimeStamped):
    id: str
    quotation_id: Optional[str] = None
    to_email: str
    subject: str = ""
    body_preview: Optional[str] = None
    sent_by_user_id: Optional[str] = None
    sent_at: Optional[datetime] = None
    status: str = ""
    error_detail: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status.strip().lower() == "success"


class SendEmailRequest(ApiModel):
    to_email: EmailStr
    subject: Annotated[str, BeforeValidator(_strip)] = Field(min_length=1)
    body: OptionalText = None


# ---------- Document ---------- #

class Quotation(TimeStamped):
    id: str
    number: Optional[str] = None

    company_id: Optional[str] = None
    company: Optional[Company] = None
    customer_id: Optional[str] = None
    customer: Optional[Customer] = None
    user_id: Optional[str] = None
    user: Optional[User] = None

    issue_date: OptionalIsoDate = None
    due_date: OptionalIsoDate = None
    currency: str = ""

    subtotal_amount: Money = Decimal(0)
    total_amount: Money = Decimal(0)
    total_cost: Money = Decimal(0)
    # round-tripped as-is, never computed here
    discount_amount: OptionalMoney = None
    tax_iva_amount: OptionalMoney = None
    tax_it_amount: OptionalMoney = None
    gross_profit: OptionalMoney = None
    net_profit: OptionalMoney = None
    global_margin_percent: OptionalMoney = None

    status: StatusValue = QuotationStatus.DRAFT.value

    notes: Optional[str] = None
    warranty: Optional[str] = None
    payment_terms: Optional[str] = None
    delivery_place: Optional[str] = None

    items: List[LineItem] = Field(default_factory=list)
    pdf_files: List[QuotationPdf] = Field(default_factory=list)
    emails: List[QuotationEmail] = Field(default_factory=list)

    @field_validator("items")
    @classmethod
    def _sort_items(cls, items: List[LineItem]) -> List[LineItem]:
        return sorted(items, key=lambda it: it.order)

    @model_validator(mode="after")
    def _fill_refs(self) -> "Quotation":
        if not self.company_id and self.company:
            self.company_id = self.company.id
        if not self.customer_id and self.customer:
            self.customer_id = self.customer.id
        if not self.user_id and self.user:
            self.user_id = self.user.id
        return self

    # helpers
    @property
    def is_known_status(self) -> bool:
        return self.status in KNOWN_STATUSES

    @property
    def is_closed(self) -> bool:
        return self.status in CLOSED_STATUSES

    def last_pdf(self) -> Optional[QuotationPdf]:
        return self.pdf_files[-1] if self.pdf_files else None

    def last_email(self) -> Optional[QuotationEmail]:
        return self.emails[-1] if self.emails else None


class QuotationDraft(ApiModel):
    """Create/edit form values. Validation here is caller-level, not the pricing engine's."""
    company_id: Annotated[str, BeforeValidator(_strip)] = Field(min_length=1)
    customer_id: Annotated[str, BeforeValidator(_strip)] = Field(min_length=1)
    user_id: OptionalText = None
    number: OptionalText = None
    issue_date: IsoDate = Field(default_factory=date.today)
    due_date: OptionalIsoDate = None
    currency: Annotated[str, BeforeValidator(_strip)] = Field(default="BOB", min_length=1)
    notes: OptionalText = None
    warranty: OptionalText = None
    payment_terms: OptionalText = None
    delivery_place: OptionalText = None
    status: OptionalStatus = None
    items: List[LineItemInput] = Field(min_length=1)


class QuotationPayload(ApiModel):
    """Body of create/update quotation; totals come from the pricing engine only."""
    company_id: str
    customer_id: str
    user_id: Optional[str] = None
    number: Optional[str] = None
    issue_date: date
    due_date: Optional[date] = None
    currency: str
    notes: Optional[str] = None
    warranty: Optional[str] = None
    payment_terms: Optional[str] = None
    delivery_place: Optional[str] = None
    status: Optional[str] = None
    subtotal_amount: Money
    total_amount: Money
    total_cost: Money
    items: List[LineItem]
