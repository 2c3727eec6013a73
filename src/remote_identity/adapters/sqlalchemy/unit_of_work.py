"""SQLAlchemy-backed unit of work for the identity store."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from remote_identity.adapters.sqlalchemy.mappings import create_all_tables, start_mappers
from remote_identity.adapters.sqlalchemy.repositories import SqlAlchemyIdentityRepository
from remote_identity.config.storage import DatabaseConfig, get_database_config
from remote_identity.domain.errors import IdentityStoreFailure
from remote_identity.domain.ports.unit_of_work import IdentityRepositories

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine


class StartupError(RuntimeError):
    """Raised when a SQLAlchemy unit of work is used before initialisation."""


@dataclass(slots=True)
class _AdapterState:
    _engine: Engine | None = None
    _session_factory: sessionmaker[Session] | None = None

    @property
    def engine(self) -> Engine | None:
        return self._engine

    @engine.setter
    def engine(self, value: Engine | None) -> None:
        self._session_factory = None
        self._engine = value

    @property
    def session_factory(self) -> sessionmaker[Session]:
        if self._engine is None:
            raise StartupError(
                "SQLAlchemy adapter not initialised. Call remote_identity.adapters."
                "sqlalchemy.unit_of_work.startup() before requesting a unit of work."
            )
        if self._session_factory is None:
            self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)
        return self._session_factory


_STATE = _AdapterState()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Initialise the SQLAlchemy engine, schema, and session factory."""

    if _STATE.engine is not None and not force:
        raise StartupError(
            "SQLAlchemy adapter already initialised. Pass force=True to reconfigure."
        )

    if engine is None:
        database = get_database_config() if database_uri is None else DatabaseConfig(database_uri)
        engine = create_engine(database.uri, echo=database.echo, future=True)
    start_mappers()
    try:
        create_all_tables(engine)
    except SQLAlchemyError as exc:
        raise IdentityStoreFailure(f"Could not prepare identity store at {engine.url}") from exc
    _STATE.engine = engine


def configured_engine() -> Engine | None:
    """Return the engine currently managed by the adapter (if any)."""

    return _STATE.engine


def is_started() -> bool:
    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the managed engine and reset state (primarily for tests)."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None


class SqlAlchemyIdentityUnitOfWork:
    """Unit of work managing one SQLAlchemy session for identity operations."""

    def __init__(self) -> None:
        self.session_factory: sessionmaker[Session] = _STATE.session_factory
        self._session: Session | None = None
        self._repositories: IdentityRepositories | None = None

    def __enter__(self) -> SqlAlchemyIdentityUnitOfWork:
        self.session = self.session_factory()
        self._repositories = IdentityRepositories(
            identities=SqlAlchemyIdentityRepository(self.session)
        )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        if exc_type is not None:
            self.rollback()
        self.session.close()
        self.session = None
        self._repositories = None
        return False

    def commit(self) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise IdentityStoreFailure("Could not commit identity changes") from exc

    def rollback(self) -> None:
        self.session.rollback()

    @property
    def repositories(self) -> IdentityRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work session not initialised")
        return self._repositories

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._session

    @session.setter
    def session(self, session: Session | None) -> None:
        if self._session is not None and session is not None:
            raise StartupError("Unit of work session already initialised")
        self._session = session


if TYPE_CHECKING:
    from remote_identity.domain.ports.unit_of_work import IdentityUnitOfWork

    _uow_check: IdentityUnitOfWork = SqlAlchemyIdentityUnitOfWork()
