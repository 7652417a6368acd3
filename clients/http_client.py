"""Shared JSON-over-HTTP client for the external inventory and dispatch services."""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Optional, Type

import requests

from domain.errors import DependencyError

logger = logging.getLogger(__name__)


class HttpClient:
    """
    Thin wrapper over a requests.Session.

    Every call is made exactly once with a bounded timeout. Transport errors,
    timeouts and non-2xx responses are raised as `error_cls` so callers only
    ever see the domain's dependency errors.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 5.0,
        error_cls: Type[DependencyError] = DependencyError,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.error_cls = error_cls
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json"})

    def get(self, path: str, params: Mapping[str, Any] | None = None, *, operation: str) -> Any:
        return self._request(self.session.get, path, operation=operation, params=params)

    def post(self, path: str, payload: Mapping[str, Any], *, operation: str) -> Any:
        return self._request(self.session.post, path, operation=operation, json=payload)

    def _request(self, send: Callable[..., requests.Response], path: str, *, operation: str, **kwargs: Any) -> Any:
        url = f"{self.base_url}{path}"
        try:
            resp = send(url, timeout=self.timeout, **kwargs)
        except requests.exceptions.Timeout as exc:
            raise self.error_cls(
                f"{operation}: timed out after {self.timeout}s ({url})",
                operation=operation,
            ) from exc
        except requests.exceptions.RequestException as exc:
            raise self.error_cls(f"{operation}: request failed: {exc}", operation=operation) from exc

        if not 200 <= resp.status_code < 300:
            raise self.error_cls(
                f"{operation}: HTTP {resp.status_code}: {resp.text[:200]}",
                operation=operation,
                status_code=resp.status_code,
            )

        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as exc:
            raise self.error_cls(f"{operation}: invalid JSON response", operation=operation) from exc

    def close(self) -> None:
        """Close the HTTP session."""
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()
