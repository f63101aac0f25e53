"""Tests for the command line entry point (API mocked at the requests layer)."""
import json
from unittest.mock import MagicMock, patch

import pytest

from proforma import cli


def _response(status=200, data=None):
    resp = MagicMock()
    resp.status_code = status
    resp.text = ""
    resp.content = json.dumps(data).encode() if data is not None else b""
    resp.json.return_value = data
    return resp


@pytest.fixture(autouse=True)
def no_logging_setup():
    with patch("proforma.cli.setup_logging"):
        yield


@pytest.fixture
def http():
    session = MagicMock()
    with patch("proforma.storage.api_client.requests.Session", return_value=session):
        yield session


class TestPrice:
    def test_offline_preview(self, tmp_path, capsys, http):
        f = tmp_path / "items.json"
        f.write_text(json.dumps({"currency": "USD", "items": [
            {"description": "Parlante", "quantity": 2, "unit_cost": 100, "margin_percent": 20},
            {"description": "Cable", "quantity": 1, "unit_cost": 50, "margin_percent": 20},
        ]}), encoding="utf-8")
        assert cli.main(["price", str(f)]) == 0
        out = capsys.readouterr().out
        assert "Subtotal:   300.00 USD" in out
        assert "Total cost: 250.00 USD" in out
        http.request.assert_not_called()

    def test_missing_file(self, tmp_path, capsys, http):
        assert cli.main(["price", str(tmp_path / "nope.json")]) == 1
        assert "Error" in capsys.readouterr().err


class TestQuotationCommands:
    def test_accept(self, capsys, http):
        http.request.side_effect = [
            _response(200, {"id": "q-1", "number": "PRO-7", "status": "sent"}),
            _response(200, {"id": "q-1", "status": "accepted"}),
        ]
        assert cli.main(["quotations", "accept", "q-1"]) == 0
        assert "PRO-7 is accepted" in capsys.readouterr().out
        method, url = http.request.call_args[0]
        assert method == "PATCH"
        assert url.endswith("/quotations/q-1")
        assert http.request.call_args[1]["json"] == {"status": "accepted"}

    def test_transition_failure_exits_1(self, capsys, http):
        http.request.side_effect = [
            _response(200, {"id": "q-1", "status": "draft"}),
            _response(409, {"message": "Quotation was modified"}),
        ]
        assert cli.main(["quotations", "status", "q-1", "sent"]) == 1
        assert "Quotation was modified" in capsys.readouterr().err

    def test_unknown_status(self, capsys, http):
        http.request.return_value = _response(200, {"id": "q-1", "status": "draft"})
        assert cli.main(["quotations", "status", "q-1", "archived"]) == 1
        assert "Unknown quotation status" in capsys.readouterr().err

    def test_whoami_logged_out(self, capsys, http):
        assert cli.main(["whoami"]) == 1
        assert "Not logged in" in capsys.readouterr().out


class TestListAndShow:
    QUOTATIONS = [
        {"id": "q-1", "number": "PRO-1", "status": "draft", "totalAmount": "10.00", "currency": "BOB"},
        {"id": "q-2", "number": "PRO-2", "status": "accepted", "totalAmount": "20.00", "currency": "BOB"},
        {"id": "q-3", "number": "PRO-3", "status": "expired", "totalAmount": "30.00", "currency": "BOB"},
    ]

    def test_list_open_hides_closed(self, capsys, http):
        http.request.return_value = _response(200, self.QUOTATIONS)
        assert cli.main(["quotations", "list", "--open"]) == 0
        out = capsys.readouterr().out
        assert "PRO-1" in out
        assert "PRO-3" in out
        assert "PRO-2" not in out

    def test_list_all(self, capsys, http):
        http.request.return_value = _response(200, self.QUOTATIONS)
        assert cli.main(["quotations", "list"]) == 0
        assert "PRO-2" in capsys.readouterr().out

    @pytest.mark.parametrize("status,label", [
        ("draft", "[draft]"),
        ("rejected", "[rejected, closed]"),
        ("Expired", "[expired (unrecognised)]"),
    ])
    def test_show_status_label(self, capsys, http, status, label):
        http.request.return_value = _response(200, {"id": "q-1", "number": "PRO-1", "status": status})
        assert cli.main(["quotations", "show", "q-1"]) == 0
        assert label in capsys.readouterr().out
