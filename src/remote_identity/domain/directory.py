"""Facade over the local identity store."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from logging import getLogger

from remote_identity.domain.canonicalization import NamePolicy
from remote_identity.domain.model import Identity
from remote_identity.domain.ports.unit_of_work import IdentityUnitOfWork

log = getLogger(__name__)

type UnitOfWorkFactory = Callable[[], IdentityUnitOfWork]


@dataclass(slots=True)
class IdentityDirectory:
    """Look up, create and save identities, one unit of work per operation."""

    unit_of_work_factory: UnitOfWorkFactory
    name_policy: NamePolicy = field(default_factory=NamePolicy)

    def canonical_name(self, name: str) -> str:
        return self.name_policy.canonical_name(name)

    def find(self, canonical_name: str) -> Identity | None:
        with self.unit_of_work_factory() as uow:
            return uow.repositories.identities.get_by_name(canonical_name)

    def create(self, canonical_name: str) -> Identity:
        identity = Identity(name=canonical_name, created_at=datetime.now(UTC))
        self.save(identity)
        log.info("Created local identity %r (%s)", identity.name, identity.id)
        return identity

    def save(self, identity: Identity) -> None:
        with self.unit_of_work_factory() as uow:
            uow.repositories.identities.add(identity)
            uow.commit()
