"""SQLAlchemy adapter package for the local identity store."""

from __future__ import annotations

from .mappings import create_all_tables, identity_table, mapper_registry, start_mappers
from .repositories import SqlAlchemyIdentityRepository
from .unit_of_work import (
    SqlAlchemyIdentityUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyIdentityRepository",
    "SqlAlchemyIdentityUnitOfWork",
    "StartupError",
    "configured_engine",
    "create_all_tables",
    "identity_table",
    "is_started",
    "mapper_registry",
    "shutdown",
    "start_mappers",
    "startup",
]
