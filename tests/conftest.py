"""
Shared fixtures: isolated data/export dirs and a mocked API client.
"""
from unittest.mock import MagicMock

import pytest

from proforma.settings import get_settings


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Point data and exports at tmp_path; settings are re-read for each test."""
    monkeypatch.setenv("PROFORMA_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("PROFORMA_EXPORTS_DIR", str(tmp_path / "exports"))
    monkeypatch.setenv("PROFORMA_API_URL", "http://api.test/api")
    monkeypatch.setenv("PROFORMA_DEFAULT_CURRENCY", "BOB")
    get_settings.cache_clear()
    yield tmp_path
    get_settings.cache_clear()


@pytest.fixture
def api():
    return MagicMock()


@pytest.fixture
def quotation_json():
    """A quotation as the API returns it (decimals as strings, camelCase)."""
    return {
        "id": "q-1",
        "number": "PRO-0001",
        "companyId": "c-1",
        "customer": {"id": "cu-1", "name": "ACME SRL", "email": "compras@acme.bo"},
        "issueDate": "2025-03-01T00:00:00.000Z",
        "currency": "BOB",
        "subtotalAmount": "300.00",
        "totalAmount": "300.00",
        "totalCost": "250.00",
        "taxIvaAmount": "39.00",
        "status": "draft",
        "items": [
            {"id": "i-2", "itemDescription": "Cable", "quantity": "1", "costUnit": "50.00",
             "marginPercent": "20", "marginAmount": "10.00", "saleUnit": "60.00",
             "totalCost": "50.00", "totalSale": "60.00", "order": 1},
            {"id": "i-1", "itemDescription": "Parlante", "quantity": "2", "costUnit": "100.00",
             "marginPercent": "20", "marginAmount": "20.00", "saleUnit": "120.00",
             "totalCost": "200.00", "totalSale": "240.00", "order": 0},
        ],
    }
