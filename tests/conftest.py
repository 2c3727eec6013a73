from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.orm import Session, sessionmaker

from remote_identity.adapters.memory import InMemorySessionStore, StaticCapabilities
from remote_identity.adapters.sqlalchemy import create_all_tables, start_mappers
from remote_identity.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyIdentityUnitOfWork,
    shutdown,
    startup,
)
from remote_identity.config import load_provider_config
from remote_identity.domain.directory import IdentityDirectory
from remote_identity.domain.model import Capabilities
from remote_identity.provider import RemoteIdentitySessionProvider
from tests.support.identities import FakeIdentityStore

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    start_mappers()
    create_all_tables(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_session(sqlite_engine: Engine) -> Iterator[Session]:
    session_factory = sessionmaker(bind=sqlite_engine, future=True)
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def sqlite_unit_of_work(
    sqlite_engine: Engine,
) -> Iterator[Callable[[], SqlAlchemyIdentityUnitOfWork]]:
    startup(engine=sqlite_engine, force=True)

    def factory() -> SqlAlchemyIdentityUnitOfWork:
        return SqlAlchemyIdentityUnitOfWork()

    try:
        yield factory
    finally:
        shutdown()


@pytest.fixture
def identity_store() -> FakeIdentityStore:
    return FakeIdentityStore()


@pytest.fixture
def directory(identity_store: FakeIdentityStore) -> IdentityDirectory:
    return IdentityDirectory(identity_store.unit_of_work)


@pytest.fixture
def sessions() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def capabilities() -> StaticCapabilities:
    return StaticCapabilities(Capabilities(can_auto_create_account=True))


@pytest.fixture
def make_provider(
    directory: IdentityDirectory,
    sessions: InMemorySessionStore,
    capabilities: StaticCapabilities,
) -> Callable[..., RemoteIdentitySessionProvider]:
    def factory(**settings: object) -> RemoteIdentitySessionProvider:
        return RemoteIdentitySessionProvider(
            load_provider_config(settings),
            directory=directory,
            fallback=sessions,
            capabilities=capabilities,
        )

    return factory
