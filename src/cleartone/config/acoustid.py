"""AcoustID configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import require_env_vars
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy

ACOUSTID_BASE_URL = "https://api.acoustid.org/v2/"
ACOUSTID_TIMEOUT_SECONDS = 10.0


@dataclass(frozen=True, slots=True)
class AcoustIdConfig:
    """Holds AcoustID web service configuration values."""

    api_key: str
    resilience: ResilienceConfig


def _only_successful_lookups(payload: object) -> bool:
    return isinstance(payload, dict) and payload.get("status") == "ok"


def get_acoustid_config(*, resilience: ResilienceConfig | None = None) -> AcoustIdConfig:
    values = require_env_vars(("ACOUSTID_API_KEY",))
    return AcoustIdConfig(
        api_key=values["ACOUSTID_API_KEY"],
        resilience=resilience
        or ResilienceConfig(
            name="acoustid",
            base_url=ACOUSTID_BASE_URL,
            timeout_seconds=ACOUSTID_TIMEOUT_SECONDS,
            # AcoustID allows three requests per second per client key
            ratelimit=RateLimit(max_calls=3, per_seconds=1.0),
            retry=RetryPolicy(total=3),
            cache=CacheConfig(backend="memory", should_cache=_only_successful_lookups),
        ),
    )
