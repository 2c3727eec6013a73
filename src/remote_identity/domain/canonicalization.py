"""Map filtered remote user names onto canonical local identities."""

from __future__ import annotations

import ipaddress
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

from remote_identity.domain.errors import InvalidIdentityName
from remote_identity.domain.model import CanonicalIdentity

if TYPE_CHECKING:
    from remote_identity.domain.directory import IdentityDirectory

MAX_NAME_LENGTH: Final[int] = 255
FORBIDDEN_CHARACTERS: Final[frozenset[str]] = frozenset("#<>[]|{}/@:=")

_WHITESPACE = re.compile(r"[\s_]+")


def _looks_like_address(name: str) -> bool:
    try:
        ipaddress.ip_address(name)
    except ValueError:
        return False
    return True


@dataclass(frozen=True, slots=True)
class NamePolicy:
    """Rules deciding whether a string is usable as a local identity name.

    Canonical form: underscores and runs of whitespace become one space, outer
    whitespace is stripped, and the first letter is upper-cased.
    """

    reserved: frozenset[str] = field(default_factory=frozenset[str])
    max_length: int = MAX_NAME_LENGTH
    capitalize: bool = True

    def canonical_name(self, name: str) -> str:
        canonical = _WHITESPACE.sub(" ", name).strip()
        if not canonical:
            raise InvalidIdentityName(f"{name!r} is empty after normalisation")
        if self.capitalize:
            canonical = canonical[0].upper() + canonical[1:]
        if len(canonical) > self.max_length:
            raise InvalidIdentityName(f"{canonical!r} exceeds {self.max_length} characters")
        invalid = sorted(FORBIDDEN_CHARACTERS.intersection(canonical))
        if invalid:
            raise InvalidIdentityName(f"{canonical!r} contains invalid characters {invalid}")
        if any(not character.isprintable() for character in canonical):
            raise InvalidIdentityName(f"{canonical!r} contains control characters")
        if _looks_like_address(canonical):
            raise InvalidIdentityName(f"{canonical!r} looks like a network address")
        if canonical.casefold() in {reserved.casefold() for reserved in self.reserved}:
            raise InvalidIdentityName(f"{canonical!r} is reserved")
        return canonical


@dataclass(frozen=True, slots=True)
class Canonicalizer:
    """Build a ``CanonicalIdentity`` for one filtered name."""

    directory: IdentityDirectory

    def canonicalize(self, raw_name: str, filtered_name: str) -> CanonicalIdentity:
        canonical_name = self.directory.canonical_name(filtered_name)
        existing = self.directory.find(canonical_name)
        return CanonicalIdentity(
            raw_name=raw_name,
            filtered_name=filtered_name,
            canonical_name=canonical_name,
            local_id=existing.id if existing is not None else None,
        )
