"""Tests for QuotationService: payload building, CRUD and attachments."""
from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError

from proforma.models.product import Product
from proforma.models.quotation import Quotation, SendEmailRequest
from proforma.services.quotation_service import QuotationService


def _draft(**over):
    data = {
        "companyId": "c-1",
        "customerId": "cu-1",
        "issueDate": "2025-03-01",
        "items": [
            {"itemDescription": "Parlante", "quantity": 2, "costUnit": 100, "marginPercent": 20},
            {"itemDescription": "Cable", "quantity": 1, "costUnit": 50, "marginPercent": 20},
        ],
    }
    data.update(over)
    return data


class TestQuotationModel:
    def test_parses_api_shape(self, quotation_json):
        q = Quotation.model_validate(quotation_json)
        assert q.customer_id == "cu-1"
        assert q.issue_date == date(2025, 3, 1)
        assert q.total_cost == Decimal("250.00")
        assert q.tax_iva_amount == Decimal("39.00")
        assert q.discount_amount is None
        assert [it.description for it in q.items] == ["Parlante", "Cable"]

    def test_unknown_status_is_kept(self, quotation_json):
        quotation_json["status"] = "Expired"
        q = Quotation.model_validate(quotation_json)
        assert q.status == "expired"
        assert not q.is_known_status
        assert not q.is_closed

    def test_missing_status_is_draft(self, quotation_json):
        quotation_json["status"] = None
        assert Quotation.model_validate(quotation_json).status == "draft"


class TestBuildPayload:
    def test_totals_come_from_items(self, api):
        payload = QuotationService(api).build_payload(_draft())
        assert payload.subtotal_amount == Decimal("300")
        assert payload.total_cost == Decimal("250")
        assert payload.total_amount == Decimal("300")
        assert [it.order for it in payload.items] == [0, 1]

    def test_recomputed_after_item_change(self, api):
        svc = QuotationService(api)
        data = _draft()
        first = svc.build_payload(data)
        data["items"][1]["quantity"] = 3
        second = svc.build_payload(data)
        assert first.subtotal_amount == Decimal("300")
        assert second.subtotal_amount == Decimal("420")
        assert second.total_cost == Decimal("350")

    def test_wire_payload(self, api):
        wire = QuotationService(api).build_payload(_draft(notes="  ")).to_wire()
        assert wire["companyId"] == "c-1"
        assert wire["issueDate"] == "2025-03-01"
        assert wire["currency"] == "BOB"
        assert wire["subtotalAmount"] == 300.0
        assert "notes" not in wire
        assert "status" not in wire
        assert wire["items"][0]["saleUnit"] == 120.0

    @pytest.mark.parametrize("bad", [
        {"items": []},
        {"customerId": ""},
        {"items": [{"itemDescription": "x", "quantity": 0, "costUnit": 1}]},
        {"items": [{"itemDescription": "x", "quantity": 1, "costUnit": -1}]},
        {"items": [{"itemDescription": " ", "quantity": 1, "costUnit": 1}]},
    ])
    def test_invalid_forms_rejected_before_pricing(self, api, bad):
        with pytest.raises(ValidationError):
            QuotationService(api).build_payload(_draft(**bad))

    def test_draft_from_quotation_round_trip(self, api, quotation_json):
        svc = QuotationService(api)
        q = Quotation.model_validate(quotation_json)
        payload = svc.build_payload(svc.draft_from_quotation(q))
        assert payload.subtotal_amount == q.subtotal_amount
        assert payload.total_cost == q.total_cost
        assert payload.issue_date == date(2025, 3, 1)

    def test_preview_never_raises(self, api):
        items, totals = QuotationService(api).preview([{"quantity": "x"}, {"quantity": 2, "unit_cost": 5}])
        assert len(items) == 2
        assert totals.subtotal_amount == Decimal(10)


class TestLineFromProduct:
    def test_margin_from_reference_prices(self):
        p = Product(id="p-1", name="Parlante", costReference="100.00", priceReference="125.00")
        row = QuotationService.line_from_product(p, quantity=2)
        assert row.product_id == "p-1"
        assert row.description == "Parlante"
        assert row.unit_cost == Decimal("100.00")
        assert row.margin_percent == Decimal("25")

    def test_without_references(self):
        row = QuotationService.line_from_product(Product(id="p-2", name="Servicio", description="Instalación"))
        assert row.description == "Instalación"
        assert row.unit_cost == 0
        assert row.margin_percent == 0


class TestCrud:
    def test_list_skips_invalid_records(self, api, quotation_json):
        api.get.return_value = {"data": [quotation_json, {"number": "no id"}]}
        result = QuotationService(api).list_quotations()
        assert [q.id for q in result] == ["q-1"]
        api.get.assert_called_once_with("quotations")

    def test_create_posts_computed_payload(self, api, quotation_json):
        api.post.return_value = quotation_json
        q = QuotationService(api).create_quotation(_draft())
        path, body = api.post.call_args[0]
        assert path == "quotations"
        assert body["totalCost"] == 250.0
        assert len(body["items"]) == 2
        assert q.id == "q-1"

    def test_update_patches(self, api, quotation_json):
        api.patch.return_value = quotation_json
        QuotationService(api).update_quotation("q-1", _draft())
        assert api.patch.call_args[0][0] == "quotations/q-1"

    def test_partial_update_rejects_derived_fields(self, api):
        with pytest.raises(ValueError, match="totalCost"):
            QuotationService(api).update_quotation_fields("q-1", {"status": "sent", "totalCost": 1})
        api.patch.assert_not_called()

    @pytest.mark.parametrize("fields", [
        {"total_cost": 5, "subtotal_amount": 1},
        {"total_amount": 1},
        {"status": "sent", "items": []},
    ])
    def test_partial_update_rejects_snake_case_derived_fields(self, api, fields):
        with pytest.raises(ValueError, match="Derived fields"):
            QuotationService(api).update_quotation_fields("q-1", fields)
        api.patch.assert_not_called()

    def test_partial_update_sends_camel_case(self, api):
        QuotationService(api).update_quotation_fields("q-1", {"payment_terms": "30 días", "notes": "x"})
        api.patch.assert_called_once_with("quotations/q-1", {"paymentTerms": "30 días", "notes": "x"})

    def test_partial_update(self, api):
        QuotationService(api).update_quotation_fields("q-1", {"status": "sent"})
        api.patch.assert_called_once_with("quotations/q-1", {"status": "sent"})

    def test_delete(self, api):
        QuotationService(api).delete_quotation("q-1")
        api.delete.assert_called_once_with("quotations/q-1")


class TestAttachments:
    def test_default_email_uses_customer(self, quotation_json):
        q = Quotation.model_validate(quotation_json)
        req = QuotationService.default_email_request(q)
        assert req.to_email == "compras@acme.bo"
        assert req.subject == "Proforma N° PRO-0001"

    def test_send_email(self, api):
        api.post.return_value = {"id": "e-1", "quotationId": "q-1", "toEmail": "a@acme.bo",
                                 "subject": "Hola", "status": "success"}
        email = QuotationService(api).send_email("q-1", SendEmailRequest(to_email="a@acme.bo", subject="Hola"))
        assert email.succeeded
        api.post.assert_called_once_with("quotations/q-1/send-email", {"toEmail": "a@acme.bo", "subject": "Hola"})

    def test_generate_and_download_pdf(self, api):
        api.post.return_value = {"id": "f-1", "quotationId": "q-1", "filePath": "/pdfs/q-1.pdf"}
        api.get_bytes.return_value = b"%PDF-1.4"
        svc = QuotationService(api)
        assert svc.generate_pdf("q-1").file_path == "/pdfs/q-1.pdf"
        assert svc.download_pdf("q-1") == b"%PDF-1.4"
        api.get_bytes.assert_called_once_with("quotations/q-1/pdf")
