"""In-process fallback session store and capability sources.

Stands in for a host's cookie session mechanism where none is available, e.g.
in the diagnostic CLI or a single-process deployment.
"""

from __future__ import annotations

import os
import secrets
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Final

from remote_identity.domain.model import Capabilities, SessionState

if TYPE_CHECKING:
    from collections.abc import Mapping

    from remote_identity.domain.model import CanonicalIdentity, Metadata, RequestContext

DEFAULT_COOKIE_NAME: Final[str] = "remote_identity_session"
DEFAULT_FALLBACK_PRIORITY: Final[int] = 40

_TRUE_VALUES: Final[frozenset[str]] = frozenset({"1", "true", "yes", "on"})


@dataclass(slots=True)
class StoredSession:
    session_id: str
    identity: CanonicalIdentity | None = None
    metadata: dict[str, object] = field(default_factory=dict[str, object])
    # opaque to the provider; read back by the host before creating identities
    creation_forbidden: bool = False


class InMemorySessionStore:
    """Cookie-keyed sessions held in a dictionary.

    Also remembers sessions in which identity creation was refused, so a later
    request on the same session is not offered creation again.
    """

    def __init__(
        self,
        *,
        cookie_name: str = DEFAULT_COOKIE_NAME,
        priority: int = DEFAULT_FALLBACK_PRIORITY,
        allow_switch: bool = True,
    ) -> None:
        self.cookie_name = cookie_name
        self.priority = priority
        self.allow_switch = allow_switch
        self._sessions: dict[str, StoredSession] = {}

    def provide(self, request: RequestContext) -> SessionState | None:
        session_id = request.cookies.get(self.cookie_name)
        if not session_id:
            return None
        stored = self._sessions.get(session_id)
        if stored is None:
            return None
        return SessionState(
            priority=self.priority,
            session_id=stored.session_id,
            identity=stored.identity,
            metadata=MappingProxyType(dict(stored.metadata)),
        )

    def generate_session_id(self) -> str:
        return secrets.token_hex(16)

    def merge_metadata(self, saved: Metadata, provided: Metadata) -> dict[str, object]:
        return {**saved, **provided}

    def can_switch_identity(self) -> bool:
        return self.allow_switch

    def save(self, state: SessionState, *, creation_forbidden: bool = False) -> StoredSession:
        """Persist the selected session, merging with what was stored before."""

        previous = self._sessions.get(state.session_id)
        metadata = self.merge_metadata(previous.metadata if previous else {}, state.metadata)
        stored = StoredSession(
            session_id=state.session_id,
            identity=state.identity,
            metadata=metadata,
            creation_forbidden=creation_forbidden or (previous is not None and previous.creation_forbidden),
        )
        self._sessions[state.session_id] = stored
        return stored

    def is_creation_forbidden(self, session_id: str) -> bool:
        stored = self._sessions.get(session_id)
        return stored is not None and stored.creation_forbidden

    def forbid_creation(self, session_id: str) -> None:
        stored = self._sessions.setdefault(session_id, StoredSession(session_id))
        stored.creation_forbidden = True


@dataclass(slots=True)
class StaticCapabilities:
    """Capabilities held in memory; reassign ``capabilities`` to change policy."""

    capabilities: Capabilities = field(default_factory=Capabilities)

    def current(self) -> Capabilities:
        return self.capabilities


@dataclass(frozen=True, slots=True)
class EnvironmentCapabilities:
    """Read ``REMOTE_IDENTITY_CAN_CREATE_ACCOUNT`` and ``..._CAN_AUTO_CREATE_ACCOUNT`` per call."""

    environ: Mapping[str, str] = field(default_factory=lambda: os.environ)

    def current(self) -> Capabilities:
        return Capabilities(
            can_create_account=self._flag("REMOTE_IDENTITY_CAN_CREATE_ACCOUNT"),
            can_auto_create_account=self._flag("REMOTE_IDENTITY_CAN_AUTO_CREATE_ACCOUNT"),
        )

    def _flag(self, name: str) -> bool:
        return self.environ.get(name, "").strip().lower() in _TRUE_VALUES
