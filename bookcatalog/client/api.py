"""
HTTP client for the catalog API.

Requests carry ``Authorization: Bearer <token>`` whenever a token has
been stored. Successful responses are unwrapped to their decoded JSON
body. Failures are logged (with the server's error ``code`` when there
is one) and re-raised unchanged for the caller to handle.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import requests

from ..config import ClientSettings

logger = logging.getLogger(__name__)


class TokenStorage:
    """Holds the auth token, optionally persisted to a file."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path is not None else None
        self._token: Optional[str] = None
        if self.path is not None and self.path.exists():
            self._token = self.path.read_text(encoding="utf-8").strip() or None

    def get(self) -> Optional[str]:
        return self._token

    def set(self, token: str) -> None:
        self._token = token
        if self.path is not None:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(token, encoding="utf-8")

    def clear(self) -> None:
        self._token = None
        if self.path is not None and self.path.exists():
            self.path.unlink()


def _error_payload(response: Optional[requests.Response]) -> Dict[str, Any]:
    if response is None:
        return {}
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


class ApiClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        tokens: Optional[TokenStorage] = None,
        session: Optional[requests.Session] = None,
    ):
        settings = ClientSettings()
        self.base_url = (base_url or settings.api_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.api_timeout
        self.tokens = tokens or TokenStorage()
        self.session = session or requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})

    def request(self, method: str, path: str, **kwargs: Any) -> Any:
        headers = dict(kwargs.pop("headers", None) or {})
        token = self.tokens.get()
        if token:
            headers["Authorization"] = f"Bearer {token}"

        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            response = self.session.request(
                method, url, headers=headers, timeout=self.timeout, **kwargs
            )
            response.raise_for_status()
        except requests.HTTPError as exc:
            payload = _error_payload(exc.response)
            logger.error(
                "API Error: %s %s",
                payload.get("code"),
                payload.get("message") or payload.get("error"),
            )
            raise
        except requests.RequestException as exc:
            logger.error("Network Error: %s", exc)
            raise

        try:
            return response.json()
        except json.JSONDecodeError:
            logger.error("API Error: response from %s is not JSON", url)
            raise

    def get(self, path: str, **kwargs: Any) -> Any:
        return self.request("GET", path, **kwargs)

    def post(self, path: str, **kwargs: Any) -> Any:
        return self.request("POST", path, **kwargs)
