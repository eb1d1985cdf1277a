"""Low-level HTTP client for the hosted Supabase project.

Handles API key headers, bearer tokens and error extraction for both the
auth (GoTrue) and REST (PostgREST) endpoints.
"""
from __future__ import annotations
import os
from typing import Optional, Dict, Any

import requests

from .exceptions import SupabaseAPIError

REQUEST_TIMEOUT = 10


class SupabaseClient:
    """HTTP client for Supabase auth and REST endpoints.

    Every request carries the ``apikey`` header. The bearer token defaults to
    the same key (service role for admin work, anon for session checks) and
    can be overridden per call, e.g. with a caller's access token.

    Usage:
        client = SupabaseClient("https://xyz.supabase.co", service_role_key)
        response = client.get("/rest/v1/profiles", params={"select": "*"})
    """

    def __init__(self, base_url: Optional[str] = None, api_key: str = "", timeout: Optional[float] = None):
        """Initialize Supabase client.

        Args:
            base_url: Project URL (defaults to SUPABASE_URL env var)
            api_key: Key sent as ``apikey`` and default bearer token
            timeout: Per-request timeout in seconds
        """
        self.base_url = (base_url or os.environ.get("SUPABASE_URL", "http://localhost:54321")).rstrip("/")
        self.api_key = api_key
        self.timeout = timeout if timeout is not None else REQUEST_TIMEOUT

    def _headers(self, token: Optional[str] = None, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {token or self.api_key}",
        }
        if extra:
            headers.update(extra)
        return headers

    def get(self, path: str, params: Optional[Dict] = None, token: Optional[str] = None, **kwargs) -> requests.Response:
        """Execute GET request.

        Args:
            path: API endpoint path (e.g., "/rest/v1/profiles")
            params: Query parameters
            token: Bearer token overriding the client key
            **kwargs: Additional arguments for requests.get

        Returns:
            Response object

        Raises:
            SupabaseAPIError: On HTTP error
        """
        url = f"{self.base_url}{path}"
        headers = self._headers(token, kwargs.pop("headers", None))
        resp = requests.get(url, params=params, headers=headers, timeout=self.timeout, **kwargs)
        self._handle_error(resp)
        return resp

    def post(self, path: str, json: Any = None, params: Optional[Dict] = None, **kwargs) -> requests.Response:
        """Execute POST request.

        Raises:
            SupabaseAPIError: On HTTP error
        """
        url = f"{self.base_url}{path}"
        headers = self._headers(kwargs.pop("token", None), kwargs.pop("headers", None))
        resp = requests.post(url, json=json, params=params, headers=headers, timeout=self.timeout, **kwargs)
        self._handle_error(resp)
        return resp

    def patch(self, path: str, json: Any = None, params: Optional[Dict] = None, **kwargs) -> requests.Response:
        """Execute PATCH request.

        Raises:
            SupabaseAPIError: On HTTP error
        """
        url = f"{self.base_url}{path}"
        headers = self._headers(kwargs.pop("token", None), kwargs.pop("headers", None))
        resp = requests.patch(url, json=json, params=params, headers=headers, timeout=self.timeout, **kwargs)
        self._handle_error(resp)
        return resp

    def delete(self, path: str, params: Optional[Dict] = None, **kwargs) -> requests.Response:
        """Execute DELETE request.

        Raises:
            SupabaseAPIError: On HTTP error
        """
        url = f"{self.base_url}{path}"
        headers = self._headers(kwargs.pop("token", None), kwargs.pop("headers", None))
        resp = requests.delete(url, params=params, headers=headers, timeout=self.timeout, **kwargs)
        self._handle_error(resp)
        return resp

    def _handle_error(self, resp: requests.Response) -> None:
        """Centralized error handling for HTTP responses.

        Raises:
            SupabaseAPIError: If response status indicates error
        """
        if resp.status_code >= 400:
            raise SupabaseAPIError(resp.status_code, extract_error_message(resp), resp.url)


def extract_error_message(resp: requests.Response) -> str:
    """Pull the human-readable message out of a GoTrue or PostgREST error body."""
    try:
        body = resp.json()
    except ValueError:
        return resp.text or f"HTTP {resp.status_code}"

    if isinstance(body, dict):
        for key in ("msg", "message", "error_description", "error"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return resp.text or f"HTTP {resp.status_code}"


def parse_content_range_total(header: Optional[str]) -> int:
    """Return the total from a PostgREST ``Content-Range`` header (``0-9/42``)."""
    if not header or "/" not in header:
        return 0
    total = header.rsplit("/", 1)[1]
    if total == "*":
        return 0
    try:
        return int(total)
    except ValueError:
        return 0
