from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from pydantic import ValidationError
from pydantic.alias_generators import to_camel

from proforma.models.product import Product
from proforma.models.quotation import (
    LineItem,
    LineItemInput,
    Quotation,
    QuotationDraft,
    QuotationEmail,
    QuotationPayload,
    QuotationPdf,
    SendEmailRequest,
)
from proforma.services.pricing import (
    DocumentTotals,
    compute_document_totals,
    margin_percent_for,
    price_items,
)
from proforma.settings import get_settings
from proforma.storage.api_client import ApiClient

log = logging.getLogger(__name__)

# only the pricing engine may produce these, through build_payload()
_DERIVED_KEYS = frozenset({"items", "subtotalAmount", "totalAmount", "totalCost"})


# ---------- Helpers ---------- #

def _as_list(data: Any) -> List[Dict[str, Any]]:
    """List endpoints answer either a bare list or an envelope {"data": [...]}."""
    if isinstance(data, dict):
        data = data.get("data") or data.get("items") or []
    return [d for d in (data or []) if isinstance(d, dict)]


def _wire_key(key: str) -> str:
    return to_camel(key) if "_" in key else key


def _label(q: Quotation) -> str:
    return q.number or q.id


# ---------- Service ---------- #

class QuotationService:
    def __init__(self, api: Optional[ApiClient] = None) -> None:
        self.api = api or ApiClient()

    # ----- Pricing / payload ----- #

    def preview(self, rows: Iterable[Any]) -> Tuple[List[LineItem], DocumentTotals]:
        """Live figures while a form is being edited: no validation, never raises."""
        items = price_items(rows)
        return items, compute_document_totals(items)

    def build_payload(self, draft: Union[QuotationDraft, Mapping[str, Any]]) -> QuotationPayload:
        """
        Validate the form and derive every amount from the current rows.

        Totals are recomputed from the complete item list on each call;
        nothing cached on a previous Quotation is reused.
        """
        if not isinstance(draft, QuotationDraft):
            draft = QuotationDraft.model_validate(draft)
        items = price_items(draft.items)
        totals = compute_document_totals(items)
        return QuotationPayload(
            company_id=draft.company_id,
            customer_id=draft.customer_id,
            user_id=draft.user_id,
            number=draft.number,
            issue_date=draft.issue_date,
            due_date=draft.due_date,
            currency=draft.currency,
            notes=draft.notes,
            warranty=draft.warranty,
            payment_terms=draft.payment_terms,
            delivery_place=draft.delivery_place,
            status=draft.status,
            subtotal_amount=totals.subtotal_amount,
            total_amount=totals.total_amount,
            total_cost=totals.total_cost,
            items=items,
        )

    def draft_from_quotation(self, q: Quotation) -> QuotationDraft:
        """Editable form values for an existing quotation (derived amounts are dropped)."""
        extra: Dict[str, Any] = {"issue_date": q.issue_date} if q.issue_date else {}
        return QuotationDraft(
            company_id=q.company_id or "",
            customer_id=q.customer_id or "",
            user_id=q.user_id,
            number=q.number,
            due_date=q.due_date,
            currency=q.currency or get_settings().default_currency,
            notes=q.notes,
            warranty=q.warranty,
            payment_terms=q.payment_terms,
            delivery_place=q.delivery_place,
            items=[
                LineItemInput(
                    product_id=it.product_id,
                    description=it.description,
                    quantity=it.quantity,
                    unit_cost=it.unit_cost,
                    margin_percent=it.margin_percent,
                )
                for it in q.items
            ],
            **extra,
        )

    @staticmethod
    def line_from_product(product: Product, quantity: Any = 1) -> LineItemInput:
        """Seed a row from the catalog: cost from cost_reference, margin implied by price_reference."""
        return LineItemInput(
            product_id=product.id,
            description=product.description or product.name,
            quantity=quantity,
            unit_cost=product.cost_reference or 0,
            margin_percent=margin_percent_for(product.cost_reference, product.price_reference),
        )

    # ----- CRUD ----- #

    def list_quotations(self) -> List[Quotation]:
        out: List[Quotation] = []
        for d in _as_list(self.api.get("quotations")):
            try:
                out.append(Quotation.model_validate(d))
            except ValidationError as e:
                # one broken record must not hide the others
                log.warning("Skipping invalid quotation %s: %s", d.get("id"), e)
        return out

    def get_quotation(self, quotation_id: str) -> Quotation:
        return Quotation.model_validate(self.api.get(f"quotations/{quotation_id}"))

    def create_quotation(self, draft: Union[QuotationDraft, Mapping[str, Any]]) -> Quotation:
        payload = self.build_payload(draft)
        data = self.api.post("quotations", payload.to_wire())
        q = Quotation.model_validate(data)
        log.info("Quotation %s created (%d items, total %s %s)",
                 _label(q), len(payload.items), payload.total_amount, payload.currency)
        return q

    def update_quotation(self, quotation_id: str, draft: Union[QuotationDraft, Mapping[str, Any]]) -> Quotation:
        payload = self.build_payload(draft)
        data = self.api.patch(f"quotations/{quotation_id}", payload.to_wire())
        log.info("Quotation %s updated (%d items)", quotation_id, len(payload.items))
        return Quotation.model_validate(data)

    def update_quotation_fields(self, quotation_id: str, fields: Mapping[str, Any]) -> Any:
        """Partial update (e.g. {"status": "sent"}). Items and totals go through update_quotation()."""
        body = {_wire_key(k): v for k, v in fields.items()}
        forbidden = _DERIVED_KEYS.intersection(body)
        if forbidden:
            raise ValueError(f"Derived fields cannot be patched directly: {', '.join(sorted(forbidden))}")
        return self.api.patch(f"quotations/{quotation_id}", body)

    def delete_quotation(self, quotation_id: str) -> None:
        self.api.delete(f"quotations/{quotation_id}")
        log.info("Quotation %s deleted", quotation_id)

    # ----- PDF / email ----- #

    def generate_pdf(self, quotation_id: str) -> QuotationPdf:
        return QuotationPdf.model_validate(self.api.post(f"quotations/{quotation_id}/pdf"))

    def download_pdf(self, quotation_id: str) -> bytes:
        return self.api.get_bytes(f"quotations/{quotation_id}/pdf")

    @staticmethod
    def default_email_request(
        q: Quotation,
        to_email: Optional[str] = None,
        subject: Optional[str] = None,
        body: Optional[str] = None,
    ) -> SendEmailRequest:
        return SendEmailRequest(
            to_email=to_email or (q.customer.email if q.customer else None) or "",
            subject=subject or f"Proforma N° {_label(q)}",
            body=body,
        )

    def send_email(self, quotation_id: str, request: Union[SendEmailRequest, Mapping[str, Any]]) -> QuotationEmail:
        if not isinstance(request, SendEmailRequest):
            request = SendEmailRequest.model_validate(request)
        data = self.api.post(f"quotations/{quotation_id}/send-email", request.to_wire())
        return QuotationEmail.model_validate(data)
