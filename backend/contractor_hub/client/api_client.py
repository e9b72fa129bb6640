# backend/contractor_hub/client/api_client.py
"""
Thin HTTP client for the contractor API.

Every response body is the JSON envelope {success, data?, message?}. A
non-2xx status or success=false raises ApiError carrying the server message,
or a generic fallback when the body has none.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx
from pydantic_settings import BaseSettings, SettingsConfigDict

log = logging.getLogger(__name__)

GENERIC_ERROR = "Something went wrong. Please try again."


class ClientConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="CH_", env_file=".env", extra="ignore")

    base_url: str = "http://localhost:8000/api"
    token: Optional[str] = None
    # Dev auth headers; ignored by a jwt-mode server when a token is set.
    tenant_slug: Optional[str] = None
    user_email: Optional[str] = None
    api_timeout: float = 20.0


class ApiError(Exception):
    def __init__(self, status_code: Optional[int], message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


@dataclass(frozen=True)
class Envelope:
    data: Any
    message: Optional[str]


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return GENERIC_ERROR
    if isinstance(body, dict):
        msg = body.get("message") or body.get("detail")
        if isinstance(msg, str) and msg:
            return msg
    return GENERIC_ERROR


class ApiClient:
    def __init__(self, config: Optional[ClientConfig] = None, *, transport: Optional[httpx.BaseTransport] = None):
        self.config = config or ClientConfig()
        self._http = httpx.Client(
            base_url=self.config.base_url.rstrip("/"),
            timeout=self.config.api_timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "ApiClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _headers(self) -> dict[str, str]:
        h = {"Accept": "application/json"}
        if self.config.token:
            h["Authorization"] = f"Bearer {self.config.token}"
        if self.config.tenant_slug:
            h["X-Tenant-Slug"] = self.config.tenant_slug
        if self.config.user_email:
            h["X-User-Email"] = self.config.user_email
        return h

    def _send(self, method: str, path: str, *, params: Optional[dict] = None, json: Any = None) -> httpx.Response:
        try:
            resp = self._http.request(method, path, params=params, json=json, headers=self._headers())
        except httpx.HTTPError as e:
            log.warning("api request failed: %s %s", method, path, extra={"method": method, "path": path})
            raise ApiError(None, GENERIC_ERROR) from e

        if resp.status_code >= 400:
            raise ApiError(resp.status_code, _error_message(resp))
        return resp

    def request(self, method: str, path: str, *, params: Optional[dict] = None, json: Any = None) -> Envelope:
        resp = self._send(method, path, params=_clean(params), json=json)
        try:
            body = resp.json()
        except ValueError as e:
            raise ApiError(resp.status_code, GENERIC_ERROR) from e

        if not isinstance(body, dict) or body.get("success") is False:
            msg = body.get("message") if isinstance(body, dict) else None
            raise ApiError(resp.status_code, msg or GENERIC_ERROR)
        return Envelope(data=body.get("data"), message=body.get("message"))

    def get(self, path: str, params: Optional[dict] = None) -> Envelope:
        return self.request("GET", path, params=params)

    def post(self, path: str, json: Any = None) -> Envelope:
        return self.request("POST", path, json=json if json is not None else {})

    def put(self, path: str, json: Any = None) -> Envelope:
        return self.request("PUT", path, json=json if json is not None else {})

    def patch(self, path: str, json: Any = None) -> Envelope:
        return self.request("PATCH", path, json=json if json is not None else {})

    def delete(self, path: str) -> Envelope:
        return self.request("DELETE", path)

    def download(self, path: str) -> bytes:
        """Raw response bytes, buffered fully in memory."""
        return self._send("GET", path).content


def _clean(params: Optional[dict]) -> Optional[dict]:
    if not params:
        return None
    return {k: v for k, v in params.items() if v is not None}
