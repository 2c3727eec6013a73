"""Apply configured profile attributes to local identities.

``realname`` and ``email`` have dedicated semantics; any other key is stored as
an opaque preference. Values may be deferred: such callables receive a
read-only copy of the provider metadata and are evaluated once per application.
Writes are dirty-checked and the identity is saved at most once per call.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Final

from pydantic import EmailStr, TypeAdapter, ValidationError

from remote_identity.domain.metadata import snapshot

if TYPE_CHECKING:
    from remote_identity.domain.directory import IdentityDirectory
    from remote_identity.domain.model import Identity, Metadata

log = getLogger(__name__)

REAL_NAME: Final[str] = "realname"
EMAIL: Final[str] = "email"

_EMAIL_ADAPTER: Final[TypeAdapter[str]] = TypeAdapter(EmailStr)


@dataclass(frozen=True, slots=True)
class StaticValue:
    value: object

    def evaluate(self, context: Metadata) -> object:
        _ = context
        return self.value


@dataclass(frozen=True, slots=True)
class DeferredValue:
    func: Callable[[Metadata], object]

    def evaluate(self, context: Metadata) -> object:
        return self.func(context)


type ProfileValue = StaticValue | DeferredValue


def as_profile_value(value: object) -> ProfileValue:
    if isinstance(value, StaticValue | DeferredValue):
        return value
    if callable(value):
        return DeferredValue(value)
    return StaticValue(value)


def as_profile_values(values: Mapping[str, object]) -> dict[str, ProfileValue]:
    return {key: as_profile_value(value) for key, value in values.items()}


def normalized_email(value: object) -> str | None:
    """Return the validated address, or ``None`` when ``value`` is not a bare address.

    The validator also accepts ``"Name <addr>"`` and padded input and hands back
    only the address; anything beyond a change of case in the domain is rejected.
    """

    if not isinstance(value, str):
        return None
    try:
        address = _EMAIL_ADAPTER.validate_python(value)
    except ValidationError:
        return None
    if address.casefold() != value.casefold():
        return None
    return address


@dataclass(slots=True)
class ProfileSynchronizer:
    """Idempotently push profile attributes into the identity store."""

    directory: IdentityDirectory
    attributes: Mapping[str, ProfileValue] = field(default_factory=dict[str, "ProfileValue"])
    force: bool = True

    @property
    def forced_fields(self) -> frozenset[str]:
        return frozenset(self.attributes) if self.force else frozenset()

    def apply(self, identity: Identity, *, is_new_identity: bool, context: Metadata) -> bool:
        """Apply attributes and save when something changed; return whether it did.

        Existing identities are only touched when ``force`` is set.
        """

        if not self.attributes or not (is_new_identity or self.force):
            return False

        frozen_context = snapshot(context)
        dirty = False
        for key, attribute in self.attributes.items():
            value = attribute.evaluate(frozen_context)
            dirty = self._apply_one(identity, key, value) or dirty

        if dirty:
            log.debug("Saving profile attributes for %r", identity.name)
            self.directory.save(identity)
        return dirty

    @staticmethod
    def _apply_one(identity: Identity, key: str, value: object) -> bool:
        if key == REAL_NAME:
            if isinstance(value, str) and value != identity.real_name:
                identity.set_real_name(value)
                return True
            return False
        if key == EMAIL:
            address = normalized_email(value)
            if address is None:
                log.warning("Ignoring unusable email address %r for %r", value, identity.name)
                return False
            if address != identity.email:
                identity.set_email(address)
                return True
            return False
        if value != identity.preference(key):
            identity.set_preference(key, value)
            return True
        return False
