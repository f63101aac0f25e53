"""Tests for the HTTP client: credential header, error mapping, body handling."""
from unittest.mock import MagicMock

import pytest
import requests

from proforma.models.user import AuthSession
from proforma.storage.api_client import ApiClient, ApiError, AuthError


def _response(status=200, json_data=None, text="", content=None):
    resp = MagicMock()
    resp.status_code = status
    resp.text = text
    if json_data is not None:
        resp.json.return_value = json_data
        resp.content = content if content is not None else b"{...}"
    else:
        resp.json.side_effect = ValueError("no json")
        resp.content = content if content is not None else text.encode()
    return resp


@pytest.fixture
def http():
    return MagicMock(spec=requests.Session)


def _client(http, token=None):
    return ApiClient("http://api.example.com/api/", AuthSession(token=token), timeout=5, http=http)


class TestRequests:
    def test_bearer_header_and_url(self, http):
        http.request.return_value = _response(json_data=[{"id": "q-1"}])
        assert _client(http, token="tok").get("/quotations") == [{"id": "q-1"}]
        method, url = http.request.call_args[0]
        kwargs = http.request.call_args[1]
        assert method == "GET"
        assert url == "http://api.example.com/api/quotations"
        assert kwargs["headers"]["Authorization"] == "Bearer tok"
        assert kwargs["timeout"] == 5

    def test_no_header_without_token(self, http):
        http.request.return_value = _response(json_data={})
        _client(http).post("auth/login", {"email": "a@b.bo"})
        kwargs = http.request.call_args[1]
        assert "Authorization" not in kwargs["headers"]
        assert kwargs["json"] == {"email": "a@b.bo"}

    def test_token_read_per_call(self, http):
        http.request.return_value = _response(json_data={})
        session = AuthSession()
        client = ApiClient("http://api.example.com", session, http=http)
        session.token = "later"
        client.get("x")
        assert http.request.call_args[1]["headers"]["Authorization"] == "Bearer later"

    def test_no_content(self, http):
        http.request.return_value = _response(204, content=b"")
        assert _client(http, "t").delete("quotations/q-1") is None

    def test_invalid_json_body(self, http):
        http.request.return_value = _response(200, text="<html>")
        with pytest.raises(ApiError, match="Invalid JSON"):
            _client(http, "t").get("quotations")

    def test_get_bytes(self, http):
        http.request.return_value = _response(200, content=b"%PDF")
        assert _client(http, "t").get_bytes("quotations/q-1/pdf") == b"%PDF"


class TestErrors:
    @pytest.mark.parametrize("status", [401, 403])
    def test_auth_errors(self, http, status):
        http.request.return_value = _response(status, json_data={"message": "Unauthorized"})
        with pytest.raises(AuthError) as exc:
            _client(http, "t").get("quotations")
        assert exc.value.status_code == status
        assert exc.value.message == "Unauthorized"

    def test_validation_messages_joined(self, http):
        http.request.return_value = _response(400, json_data={"message": ["quantity must be positive",
                                                                         "customerId is required"]})
        with pytest.raises(ApiError) as exc:
            _client(http, "t").post("quotations", {})
        assert not isinstance(exc.value, AuthError)
        assert exc.value.message == "quantity must be positive; customerId is required"
        assert exc.value.method == "POST"
        assert exc.value.path == "quotations"

    def test_plain_text_error(self, http):
        http.request.return_value = _response(502, text="Bad Gateway")
        with pytest.raises(ApiError, match="Bad Gateway"):
            _client(http, "t").get("quotations")

    def test_empty_error_body(self, http):
        http.request.return_value = _response(500)
        with pytest.raises(ApiError, match="HTTP 500"):
            _client(http, "t").get("quotations")

    def test_network_error(self, http):
        http.request.side_effect = requests.ConnectionError("refused")
        with pytest.raises(ApiError, match="Network error") as exc:
            _client(http, "t").patch("quotations/q-1", {"status": "sent"})
        assert exc.value.status_code is None
