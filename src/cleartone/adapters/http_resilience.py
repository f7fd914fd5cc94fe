"""Async HTTP client for web-service adapters.

Requests pass three layers, outermost first: a token-bucket rate limiter, an
optional hishel response cache, and an httpx-retries transport that retries
transient failures of idempotent methods.
"""

from __future__ import annotations

import json
from logging import getLogger
from typing import TYPE_CHECKING, Any

import httpx
from aiolimiter import AsyncLimiter
from hishel import AsyncSqliteStorage, FilterPolicy
from hishel import Response as CachedResponse
from hishel._policies import BaseFilter
from hishel.httpx import AsyncCacheClient
from httpx_retries import Retry, RetryTransport

from cleartone.config.storage import get_http_cache_path

if TYPE_CHECKING:
    from collections.abc import Mapping
    from types import TracebackType

    from cleartone.config.http_resilience import (
        CacheConfig,
        CachePredicate,
        ResilienceConfig,
        RetryPolicy,
    )

    type QueryParams = Mapping[str, str | int | float]

log = getLogger(__name__)


def build_retry(policy: RetryPolicy) -> Retry:
    return Retry(
        total=policy.total,
        backoff_factor=policy.backoff_factor,
        max_backoff_wait=policy.max_backoff_wait,
        backoff_jitter=policy.backoff_jitter,
        respect_retry_after_header=policy.respect_retry_after_header,
        allowed_methods=sorted(policy.methods),
        status_forcelist=sorted(policy.statuses),
        retry_on_exceptions=list(policy.exceptions),
    )


class ResilientClient:
    """Rate-limited, retrying and optionally caching ``httpx.AsyncClient``.

    ``transport`` replaces the network layer underneath the retry transport;
    tests pass an ``httpx.MockTransport`` there.
    """

    def __init__(
        self,
        config: ResilienceConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._limiter = (
            AsyncLimiter(config.ratelimit.max_calls, config.ratelimit.per_seconds)
            if config.ratelimit is not None
            else None
        )
        retrying = RetryTransport(transport=transport, retry=build_retry(config.retry))
        self._client = _build_client(config, retrying)

    async def __aenter__(self) -> ResilientClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get(self, url: str, *, params: QueryParams | None = None) -> httpx.Response:
        if self._limiter is None:
            return await self._client.get(url, params=params)
        async with self._limiter:
            return await self._client.get(url, params=params)

    async def get_json(self, url: str, *, params: QueryParams | None = None) -> Any:
        """GET ``url`` and decode its JSON body; error statuses raise ``HTTPStatusError``."""

        response = await self.get(url, params=params)
        response.raise_for_status()
        return response.json()


def _build_client(config: ResilienceConfig, transport: RetryTransport) -> httpx.AsyncClient:
    options: dict[str, Any] = {
        "timeout": config.timeout_seconds,
        "transport": transport,
        "headers": {"User-Agent": config.user_agent},
    }
    if config.base_url is not None:
        options["base_url"] = config.base_url

    storage, policy = _build_cache_components(config.cache)
    if storage is None:
        return httpx.AsyncClient(**options)
    log.debug("Response cache enabled for %s client", config.name)
    return AsyncCacheClient(**options, storage=storage, policy=policy)


class _JsonPredicateFilter(BaseFilter[CachedResponse]):
    """Lets ``predicate`` veto caching based on the decoded response body."""

    def __init__(self, predicate: CachePredicate) -> None:
        self._predicate = predicate

    def needs_body(self) -> bool:
        return True

    def apply(self, item: CachedResponse, body: bytes | None) -> bool:  # noqa: ARG002
        if body is None:
            return True
        try:
            payload = json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            # not JSON; nothing for the predicate to judge
            return True
        return bool(self._predicate(payload))


def _build_cache_components(
    config: CacheConfig | None,
) -> tuple[AsyncSqliteStorage | None, FilterPolicy | None]:
    if config is None or not config.enabled:
        return None, None
    if config.backend == "sqlite":
        database_path = config.sqlite_path or str(get_http_cache_path())
    elif config.backend == "memory":
        database_path = ":memory:"
    else:
        raise ValueError(f"Unsupported cache backend: {config.backend}")

    storage = AsyncSqliteStorage(
        database_path=database_path,
        default_ttl=config.ttl_seconds,
        refresh_ttl_on_access=config.refresh_ttl_on_access,
    )
    if config.should_cache is None:
        return storage, None
    return storage, FilterPolicy(response_filters=[_JsonPredicateFilter(config.should_cache)])
