"""Domain port definitions for adapters."""

from __future__ import annotations

from .persistence import IdentityRepository, Repository
from .sessions import CapabilitySource, CreationRefusals, FallbackSessionProvider
from .unit_of_work import (
    IdentityRepositories,
    IdentityUnitOfWork,
    RepositoryCollection,
    UnitOfWork,
)

__all__ = [
    "CapabilitySource",
    "CreationRefusals",
    "FallbackSessionProvider",
    "IdentityRepositories",
    "IdentityRepository",
    "IdentityUnitOfWork",
    "Repository",
    "RepositoryCollection",
    "UnitOfWork",
]
