"""Application service driving clearance requests through their lifecycle."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from cleartone.domain.catalog import candidate_pool
from cleartone.domain.errors import (
    ClearanceError,
    ConcurrentModification,
    NotFound,
    Unauthorized,
    ValidationError,
)
from cleartone.domain.matching import CandidateMatcher
from cleartone.domain.model import (
    ClearanceRequest,
    ClearanceStatus,
    Decision,
    NegotiationAction,
    PartyRole,
    utcnow,
)

from . import state_machine
from .state_machine import Terms

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime
    from uuid import UUID

    from cleartone.domain.matching import CandidateMatch
    from cleartone.domain.model import NegotiationEvent
    from cleartone.domain.ports import ClearanceRepositories, ClearanceUnitOfWorkFactory

    type Transition = Callable[[ClearanceRequest, datetime], NegotiationEvent]

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StatisticsScope:
    """Requests counted for one party, optionally only where it plays ``role``."""

    party_id: UUID
    role: PartyRole | None = None


@dataclass(frozen=True, slots=True)
class ClearanceStatistics:
    scope: StatisticsScope
    counts: dict[ClearanceStatus, int] = field(default_factory=dict[ClearanceStatus, int])

    @property
    def total(self) -> int:
        return sum(self.counts.values())

    def count(self, status: ClearanceStatus) -> int:
        return self.counts.get(status, 0)


class ClearanceService:
    """Role-gated, version-checked operations on clearance requests.

    Every mutating call runs in its own unit of work: read the request, check
    (in this order) the caller's role, ``expected_version``, the status guard
    and the supplied fields, then issue a write conditioned on the version
    read and append the negotiation event before committing.
    """

    def __init__(
        self,
        *,
        unit_of_work_factory: ClearanceUnitOfWorkFactory,
        matcher: CandidateMatcher | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._uow = unit_of_work_factory
        self._matcher = matcher or CandidateMatcher()
        self._clock = clock

    # ------------------------------------------------------------------
    # creation and matching

    def create_request(
        self,
        requester_id: UUID,
        original_work_id: UUID,
        usage_description: str,
        match_confidence: float | None = None,
        *,
        derivative_work_id: UUID,
    ) -> ClearanceRequest:
        with self._uow() as uow:
            repositories = uow.repositories
            request = self._new_request(
                repositories,
                requester_id=requester_id,
                original_work_id=original_work_id,
                derivative_work_id=derivative_work_id,
                usage_description=usage_description,
                match_confidence=match_confidence,
            )
            repositories.requests.create(request)
            repositories.events.add(state_machine.creation_event(request))
            uow.commit()
        log.info(
            "Created clearance request %s for original %s (requester %s)",
            request.id,
            original_work_id,
            requester_id,
        )
        return request

    def list_candidates(self, caller_id: UUID, derivative_work_id: UUID) -> list[CandidateMatch]:
        """Rank the originals the caller's derivative most likely derives from."""

        with self._uow() as uow:
            repositories = uow.repositories
            derivative = repositories.derivative_works.get(derivative_work_id)
            if derivative is None:
                raise NotFound("derivative_work", derivative_work_id)
            if derivative.owner_id != caller_id:
                raise Unauthorized(
                    "only the owner of a derivative work may list its candidates",
                    field="derivative_work_id",
                )
            pool = candidate_pool(repositories.original_works.list_all(), exclude_owner=caller_id)
        return self._matcher.match(derivative.fingerprint, pool)

    def create_with_matching(
        self, requester_id: UUID, derivative_work_id: UUID, usage_description: str
    ) -> ClearanceRequest | None:
        """Open a request against the best-ranked candidate, if any clears the threshold."""

        _require_text(usage_description, "usage_description")
        matches = self.list_candidates(requester_id, derivative_work_id)
        if not matches:
            log.info("No candidate above threshold for derivative %s", derivative_work_id)
            return None
        best = matches[0]
        return self.create_request(
            requester_id,
            best.work_id,
            usage_description,
            best.confidence,
            derivative_work_id=derivative_work_id,
        )

    # ------------------------------------------------------------------
    # transitions

    def respond(
        self,
        request_id: UUID,
        caller_id: UUID,
        decision: Decision | str,
        terms: Terms | None = None,
        *,
        expected_version: int | None = None,
    ) -> ClearanceRequest:
        decision = _coerce_decision(decision)
        return self._transition(
            request_id,
            caller_id,
            NegotiationAction(decision.value),
            expected_version,
            lambda request, now: state_machine.respond(
                request, caller_id, decision, terms or Terms(), now=now
            ),
        )

    def counter(
        self,
        request_id: UUID,
        caller_id: UUID,
        counter_proposal: str,
        *,
        notes: str | None = None,
        expected_version: int | None = None,
    ) -> ClearanceRequest:
        return self._transition(
            request_id,
            caller_id,
            NegotiationAction.COUNTER,
            expected_version,
            lambda request, now: state_machine.counter(
                request, caller_id, counter_proposal, notes=notes, now=now
            ),
        )

    def accept(
        self,
        request_id: UUID,
        caller_id: UUID,
        *,
        expected_version: int | None = None,
    ) -> ClearanceRequest:
        return self._transition(
            request_id,
            caller_id,
            NegotiationAction.ACCEPT,
            expected_version,
            lambda request, now: state_machine.accept(request, caller_id, now=now),
        )

    # ------------------------------------------------------------------
    # reads

    def get_request(self, request_id: UUID, caller_id: UUID) -> ClearanceRequest:
        with self._uow() as uow:
            return _load_for_party(uow.repositories, request_id, caller_id)

    def list_requests(
        self, caller_id: UUID, role: PartyRole | None = None
    ) -> list[ClearanceRequest]:
        """Requests the caller takes part in, newest first."""

        with self._uow() as uow:
            requests = uow.repositories.requests.list_for_party(caller_id, role=role)
        return sorted(requests, key=lambda request: request.request_date, reverse=True)

    def history(self, request_id: UUID, caller_id: UUID) -> list[NegotiationEvent]:
        """Negotiation events of one request, oldest first."""

        with self._uow() as uow:
            repositories = uow.repositories
            _load_for_party(repositories, request_id, caller_id)
            events = repositories.events.list_for_request(request_id)
        return sorted(events, key=lambda event: event.version)

    def get_statistics(
        self, caller_id: UUID, role: PartyRole | None = None
    ) -> ClearanceStatistics:
        """Counts per status over the requests the caller takes part in."""

        scope = StatisticsScope(party_id=caller_id, role=role)
        with self._uow() as uow:
            counts = uow.repositories.requests.count_by_status(caller_id, role=role)
        return ClearanceStatistics(
            scope=scope,
            counts={status: counts.get(status, 0) for status in ClearanceStatus},
        )

    # ------------------------------------------------------------------

    def _transition(
        self,
        request_id: UUID,
        caller_id: UUID,
        action: NegotiationAction,
        expected_version: int | None,
        apply: Transition,
    ) -> ClearanceRequest:
        with self._uow() as uow:
            repositories = uow.repositories
            request = repositories.requests.get(request_id)
            if request is None:
                raise NotFound("clearance_request", request_id)
            read_version = request.version
            try:
                state_machine.authorize(request, caller_id, action)
                if expected_version is not None and expected_version != read_version:
                    raise ConcurrentModification(
                        f"clearance request {request_id} is at version {read_version}, "
                        f"not {expected_version}",
                        expected_version=expected_version,
                        actual_version=read_version,
                    )
                event = apply(request, self._clock())
                repositories.requests.put(request, expected_version=read_version)
            except ClearanceError as exc:
                log.warning(
                    "Rejected %s on clearance request %s by %s: %s (%s)",
                    action.value,
                    request_id,
                    caller_id,
                    exc.message,
                    exc.kind,
                )
                raise
            repositories.events.add(event)
            uow.commit()
        log.info(
            "Clearance request %s: %s by %s -> %s (version %s)",
            request_id,
            action.value,
            caller_id,
            request.status.value,
            request.version,
        )
        return request

    def _new_request(
        self,
        repositories: ClearanceRepositories,
        *,
        requester_id: UUID,
        original_work_id: UUID,
        derivative_work_id: UUID,
        usage_description: str,
        match_confidence: float | None,
    ) -> ClearanceRequest:
        _require_text(usage_description, "usage_description")
        original = repositories.original_works.get(original_work_id)
        if original is None:
            raise ValidationError(
                f"original work {original_work_id} does not exist", field="original_work_id"
            )
        if repositories.parties.get(original.owner_id) is None:
            raise ValidationError(
                f"rights holder of original work {original_work_id} cannot be resolved",
                field="rights_holder_id",
            )
        derivative = repositories.derivative_works.get(derivative_work_id)
        if derivative is None:
            raise ValidationError(
                f"derivative work {derivative_work_id} does not exist",
                field="derivative_work_id",
            )
        if derivative.owner_id != requester_id:
            raise Unauthorized(
                "only the owner of a derivative work may request clearance for it",
                field="derivative_work_id",
            )
        return ClearanceRequest(
            derivative_work_id=derivative_work_id,
            original_work_id=original_work_id,
            requester_id=requester_id,
            rights_holder_id=original.owner_id,
            usage_description=usage_description.strip(),
            match_confidence=match_confidence,
            request_date=self._clock(),
        )


def _load_for_party(
    repositories: ClearanceRepositories, request_id: UUID, caller_id: UUID
) -> ClearanceRequest:
    request = repositories.requests.get(request_id)
    if request is None:
        raise NotFound("clearance_request", request_id)
    if not request.involves(caller_id):
        raise Unauthorized("only the parties of a request may read it")
    return request


def _coerce_decision(value: Decision | str) -> Decision:
    try:
        return Decision(value)
    except ValueError as exc:
        raise ValidationError(f"unknown decision {value!r}", field="decision") from exc


def _require_text(value: str | None, field_name: str) -> None:
    if value is None or not value.strip():
        raise ValidationError(f"{field_name.replace('_', ' ')} is required", field=field_name)
