"""Ports for persisting local identities."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from remote_identity.domain.model import Identity


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent aggregate store."""

    def add(self, entity: TEntity) -> None: ...


@runtime_checkable
class IdentityRepository(Repository[Identity], Protocol):
    """Persistence contract for local identities."""

    def get_by_name(self, name: str) -> Identity | None: ...
