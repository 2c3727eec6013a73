"""Local identities and their canonical references."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

if TYPE_CHECKING:
    from collections.abc import Callable


def new_id() -> UUID:
    return uuid4()


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(eq=False, kw_only=True)
class Identity:
    """An account in the local identity store."""

    id: UUID = field(default_factory=new_id)
    name: str
    real_name: str = ""
    email: str | None = None
    email_confirmed_at: datetime | None = None
    preferences: dict[str, object] = field(default_factory=dict[str, object])
    created_at: datetime | None = None

    @property
    def email_confirmed(self) -> bool:
        return self.email is not None and self.email_confirmed_at is not None

    def set_real_name(self, value: str) -> None:
        self.real_name = value

    def set_email(self, value: str, *, clock: Callable[[], datetime] = _utcnow) -> None:
        """Set the address and mark it confirmed; the asserting layer vouched for it."""

        self.email = value
        self.email_confirmed_at = clock()

    def preference(self, key: str) -> object | None:
        return self.preferences.get(key)

    def set_preference(self, key: str, value: object) -> None:
        # reassign so ORM change tracking sees a new value
        self.preferences = {**self.preferences, key: value}


@dataclass(frozen=True, slots=True, kw_only=True)
class CanonicalIdentity:
    """A candidate name after filtering and canonicalization.

    ``local_id`` is ``None`` when the identity is absent from the local store and
    would have to be created before the session can use it.
    """

    raw_name: str
    filtered_name: str
    canonical_name: str
    local_id: UUID | None = None

    @property
    def exists(self) -> bool:
        return self.local_id is not None

    @classmethod
    def of(cls, identity: Identity) -> CanonicalIdentity:
        """Reference an already stored identity, e.g. from a fallback session."""

        return cls(
            raw_name=identity.name,
            filtered_name=identity.name,
            canonical_name=identity.name,
            local_id=identity.id,
        )

    def same_identity(self, other: CanonicalIdentity | None) -> bool:
        if other is None:
            return False
        if self.exists or other.exists:
            return self.local_id == other.local_id
        return self.canonical_name == other.canonical_name
