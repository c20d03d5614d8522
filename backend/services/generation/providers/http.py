"""Shared HTTP plumbing for providers backed by a remote API."""
from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

import httpx

from backend.services.generation.providers.base import (
    ProviderError,
    QuotaExceededError,
    VideoProvider,
)

logger = logging.getLogger("clip_studio.generation.providers.http")

_DEFAULT_TIMEOUT_SEC = 60.0


def _parse_retry_after(value: Optional[str]) -> Optional[float]:
    if not value:
        return None
    try:
        return max(0.0, float(value))
    except ValueError:
        # HTTP-date form is rare for these APIs; let the router use its back-off
        return None


class HttpVideoProvider(VideoProvider):
    """Base for providers that submit a JSON POST to a remote API.

    Subclasses set ``_ENV_KEY`` and implement the request/response mapping.
    Pass an ``httpx.Client`` to share connections or to inject a
    ``httpx.MockTransport`` in tests.
    """

    _ENV_KEY = ""

    def __init__(
        self,
        api_key: Optional[str] = None,
        client: Optional[httpx.Client] = None,
        timeout_sec: float = _DEFAULT_TIMEOUT_SEC,
    ):
        self._api_key = api_key
        self._client = client
        self._timeout_sec = timeout_sec

    @property
    def api_key(self) -> str:
        return self._api_key or os.getenv(self._ENV_KEY, "")

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _post_json(
        self,
        url: str,
        payload: Dict[str, Any],
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        """POST ``payload`` and return the decoded JSON body.

        Raises:
            QuotaExceededError: On HTTP 429.
            ProviderError: On transport errors, other non-2xx statuses or a
                non-JSON body.
        """
        client = self._client or httpx.Client(timeout=self._timeout_sec)
        try:
            response = client.post(url, json=payload, headers=headers, params=params)
        except httpx.HTTPError as exc:
            raise ProviderError(f"{self.name()} request failed: {exc}") from exc
        finally:
            if self._client is None:
                client.close()

        if response.status_code == 429:
            retry_after = _parse_retry_after(response.headers.get("retry-after"))
            logger.warning("%s rate limited (retry_after=%s)", self.name(), retry_after)
            raise QuotaExceededError(
                f"{self.name()} quota exceeded", retry_after=retry_after,
            )
        if response.status_code >= 400:
            raise ProviderError(
                f"{self.name()} API error: {response.status_code} {response.reason_phrase}"
            )
        try:
            return response.json()
        except ValueError as exc:
            raise ProviderError(f"{self.name()} returned a non-JSON body") from exc
