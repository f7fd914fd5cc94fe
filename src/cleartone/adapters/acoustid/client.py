"""AcoustID web-service client."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError as PydanticValidationError

from cleartone.adapters.http_resilience import ResilientClient

from .schema import AcoustIdLookupResponse

if TYPE_CHECKING:
    from collections.abc import Callable

    from cleartone.config.acoustid import AcoustIdConfig
    from cleartone.config.http_resilience import ResilienceConfig

log = getLogger(__name__)

LOOKUP_PATH = "lookup"
DEFAULT_META = ("recordingids",)


class AcoustIdAPIError(RuntimeError):
    """Raised when the AcoustID API returns an unexpected or error response."""


class AcoustIdClient:
    """Resolve compressed Chromaprint fingerprints to recording identifiers."""

    def __init__(
        self,
        *,
        config: AcoustIdConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
        min_score: float = 0.5,
    ) -> None:
        self._config = config
        self._resilience = config.resilience
        self._client_factory = client_factory or ResilientClient
        self._min_score = min_score

    def lookup(self, compressed_fingerprint: str, duration_seconds: float) -> frozenset[str]:
        response = asyncio.run(
            self._lookup_async(
                compressed_fingerprint=compressed_fingerprint,
                duration_seconds=duration_seconds,
            )
        )
        return response.identifiers(min_score=self._min_score)

    async def _lookup_async(
        self,
        *,
        compressed_fingerprint: str,
        duration_seconds: float,
    ) -> AcoustIdLookupResponse:
        if self._resilience.base_url is None:
            raise AcoustIdAPIError("Missing AcoustID base_url in resilience configuration")
        params = {
            "client": self._config.api_key,
            "format": "json",
            "meta": " ".join(DEFAULT_META),
            "duration": str(round(duration_seconds)),
            "fingerprint": compressed_fingerprint,
        }
        async with self._client_factory(self._resilience) as client:
            try:
                payload = await client.get_json(LOOKUP_PATH, params=params)
            except httpx.HTTPStatusError as exc:
                # invalid keys and fingerprints come back as 400 with an error body
                payload = _error_payload(exc.response)
                if payload is None:
                    raise

        if not isinstance(payload, dict):
            raise AcoustIdAPIError("Unexpected AcoustID response payload")
        try:
            parsed = AcoustIdLookupResponse.model_validate(payload)
        except PydanticValidationError as exc:
            raise AcoustIdAPIError(f"Malformed AcoustID response: {exc}") from exc
        if parsed.status != "ok":
            detail = parsed.error.message if parsed.error else "unknown error"
            log.warning("AcoustID lookup failed: %s", detail)
            raise AcoustIdAPIError(f"AcoustID lookup failed: {detail}")
        return parsed


def _error_payload(response: httpx.Response) -> dict[str, object] | None:
    try:
        payload = response.json()
    except ValueError:
        return None
    if isinstance(payload, dict) and payload.get("status") == "error":
        return payload
    return None
