from __future__ import annotations
import logging
from typing import Any, Dict, Optional

import requests

from proforma.models.user import AuthSession
from proforma.settings import get_settings

log = logging.getLogger(__name__)


class ApiError(RuntimeError):
    """Transport failure or non-2xx answer from the quotation API."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        method: Optional[str] = None,
        path: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.method = method
        self.path = path


class AuthError(ApiError):
    """401/403: missing, expired or insufficient credential."""


def _error_message(resp: requests.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        data = None
    if isinstance(data, dict):
        msg = data.get("message") or data.get("error")
        if isinstance(msg, list):
            # validation errors come back as a list of strings
            return "; ".join(str(m) for m in msg)
        if msg:
            return str(msg)
    text = (getattr(resp, "text", "") or "").strip()
    return text or f"HTTP {resp.status_code}"


class ApiClient:
    """
    Thin JSON-over-HTTP client for the backend that owns persistence,
    PDF rendering and email delivery.

    The credential is read from the AuthSession on every call, so logging
    in or out on the same session object is picked up immediately.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        session: Optional[AuthSession] = None,
        *,
        timeout: Optional[float] = None,
        http: Optional[requests.Session] = None,
    ) -> None:
        settings = get_settings()
        self.base_url = (base_url or settings.api_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.api_timeout
        self.session = session if session is not None else AuthSession()
        self.http = http or requests.Session()

    # ---------------- Low-level I/O ---------------- #

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.session.token:
            headers["Authorization"] = f"Bearer {self.session.token}"
        return headers

    def _send(self, method: str, path: str, json: Any = None) -> requests.Response:
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            resp = self.http.request(method, url, headers=self._headers(), json=json, timeout=self.timeout)
        except requests.RequestException as e:
            log.warning("%s %s failed: %s", method, path, e)
            raise ApiError(f"Network error: {e}", method=method, path=path) from e

        if resp.status_code >= 400:
            msg = _error_message(resp)
            log.warning("%s %s -> %s: %s", method, path, resp.status_code, msg)
            cls = AuthError if resp.status_code in (401, 403) else ApiError
            raise cls(msg, status_code=resp.status_code, method=method, path=path)
        log.debug("%s %s -> %s", method, path, resp.status_code)
        return resp

    def request(self, method: str, path: str, json: Any = None) -> Any:
        resp = self._send(method, path, json=json)
        if resp.status_code == 204 or not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise ApiError("Invalid JSON in API response", status_code=resp.status_code,
                           method=method, path=path) from e

    # ---------------- Helpers ---------------- #

    def get(self, path: str) -> Any:
        return self.request("GET", path)

    def post(self, path: str, json: Any = None) -> Any:
        return self.request("POST", path, json=json)

    def patch(self, path: str, json: Any = None) -> Any:
        return self.request("PATCH", path, json=json)

    def delete(self, path: str) -> Any:
        return self.request("DELETE", path)

    def get_bytes(self, path: str) -> bytes:
        return self._send("GET", path).content
