"""Identity provider backed by the party directory."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING
from uuid import UUID

from cleartone.domain.errors import Unauthorized
from cleartone.domain.ports import Caller

if TYPE_CHECKING:
    from cleartone.domain.ports import ClearanceUnitOfWorkFactory

log = getLogger(__name__)


class PartyDirectory:
    """Treats the credential as a party id and resolves it against stored parties.

    Credential issuance and verification happen upstream; by the time a
    credential reaches this adapter it only needs to name a known party.
    """

    def __init__(self, *, unit_of_work_factory: ClearanceUnitOfWorkFactory) -> None:
        self._uow = unit_of_work_factory

    def resolve_caller(self, credential: str) -> Caller:
        try:
            party_id = UUID(credential.strip())
        except (AttributeError, ValueError) as exc:
            raise Unauthorized("credential is not a valid party id") from exc
        with self._uow() as uow:
            party = uow.repositories.parties.get(party_id)
        if party is None:
            log.warning("Unknown party credential %s", party_id)
            raise Unauthorized(f"unknown party {party_id}")
        return Caller(id=party.id, display_name=party.display_name)
