"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING, cast

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from remote_identity.adapters.sqlalchemy.mappings import identity_table
from remote_identity.domain.errors import IdentityStoreFailure
from remote_identity.domain.model import Identity

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


class SqlAlchemyIdentityRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: Identity) -> None:
        try:
            self.session.merge(entity)
            self.session.flush()
        except SQLAlchemyError as exc:
            raise IdentityStoreFailure(f"Could not store identity {entity.name!r}") from exc

    def get_by_name(self, name: str) -> Identity | None:
        stmt = select(Identity).where(identity_table.c.name == name).limit(1)
        try:
            return self.session.execute(stmt).scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise IdentityStoreFailure(f"Could not look up identity {name!r}") from exc


if TYPE_CHECKING:
    from remote_identity.domain.ports.persistence import IdentityRepository

    _session_stub = cast("Session", object())
    _repo_check: IdentityRepository = SqlAlchemyIdentityRepository(_session_stub)
