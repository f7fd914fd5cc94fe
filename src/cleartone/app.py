"""Application wiring: services bound to the configured adapters."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from cleartone.adapters.acoustid import AcoustIdClient, ChromaprintExtractor
from cleartone.adapters.identity import PartyDirectory
from cleartone.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyClearanceUnitOfWork,
    is_started,
    startup,
)
from cleartone.config import (
    MissingConfigurationError,
    get_acoustid_config,
    get_matching_config,
)
from cleartone.domain.catalog import CatalogService
from cleartone.domain.clearance import ClearanceService
from cleartone.domain.matching import CandidateMatcher

if TYPE_CHECKING:
    from cleartone.config import MatchingConfig
    from cleartone.domain.ports import (
        ClearanceUnitOfWorkFactory,
        FingerprintExtractor,
        IdentifierLookup,
        IdentityProvider,
    )

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Application:
    clearance: ClearanceService
    catalog: CatalogService
    identity: IdentityProvider


def build_application(
    *,
    unit_of_work_factory: ClearanceUnitOfWorkFactory | None = None,
    extractor: FingerprintExtractor | None = None,
    lookup: IdentifierLookup | None = None,
    matching: MatchingConfig | None = None,
) -> Application:
    """Assemble services; missing collaborators fall back to the configured adapters."""

    if unit_of_work_factory is None:
        if not is_started():
            startup()
        unit_of_work_factory = SqlAlchemyClearanceUnitOfWork
    matching = matching or get_matching_config()
    matcher = CandidateMatcher.from_config(matching)
    log.debug(
        "Matching with min_confidence=%s, max_results=%s",
        matching.min_confidence,
        matching.max_results,
    )

    return Application(
        clearance=ClearanceService(unit_of_work_factory=unit_of_work_factory, matcher=matcher),
        catalog=CatalogService(
            unit_of_work_factory=unit_of_work_factory,
            extractor=extractor or ChromaprintExtractor(),
            lookup=lookup if lookup is not None else _configured_lookup(),
            matcher=matcher,
            match_threshold=matching.min_confidence,
        ),
        identity=PartyDirectory(unit_of_work_factory=unit_of_work_factory),
    )


def _configured_lookup() -> IdentifierLookup | None:
    try:
        config = get_acoustid_config()
    except MissingConfigurationError:
        log.info("ACOUSTID_API_KEY not set; identifier lookups disabled")
        return None
    return AcoustIdClient(config=config)
