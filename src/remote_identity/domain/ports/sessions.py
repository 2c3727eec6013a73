"""Ports towards the host session framework."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from remote_identity.domain.model import Capabilities, Metadata, RequestContext, SessionState


@runtime_checkable
class FallbackSessionProvider(Protocol):
    """The host's own cookie-style session mechanism."""

    def provide(self, request: RequestContext) -> SessionState | None: ...

    def generate_session_id(self) -> str: ...

    def merge_metadata(self, saved: Metadata, provided: Metadata) -> dict[str, object]: ...

    def can_switch_identity(self) -> bool: ...


@runtime_checkable
class CapabilitySource(Protocol):
    """Live account-creation permissions; queried on every request."""

    def current(self) -> Capabilities: ...


@runtime_checkable
class CreationRefusals(Protocol):
    """Per-session record of identity creation the host already refused."""

    def is_creation_forbidden(self, session_id: str) -> bool: ...

    def forbid_creation(self, session_id: str) -> None: ...
