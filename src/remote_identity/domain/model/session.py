"""Request-scoped session state handed between providers."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

    from remote_identity.domain.model.identity import CanonicalIdentity, Identity

type Metadata = Mapping[str, object]

EMPTY_METADATA: Metadata = MappingProxyType({})


@dataclass(frozen=True, slots=True, kw_only=True)
class SessionState:
    """A session decision for one request.

    ``identity`` is ``None`` for anonymous sessions. ``force_use`` tells the host
    to use ``identity`` regardless of what the fallback mechanism picked.
    """

    priority: int
    session_id: str
    identity: CanonicalIdentity | None = None
    force_use: bool = False
    metadata: Metadata = EMPTY_METADATA

    @property
    def is_resolved(self) -> bool:
        return self.identity is not None and self.identity.exists


@dataclass(frozen=True, slots=True)
class Capabilities:
    """Live account-creation permissions of the host."""

    can_create_account: bool = False
    can_auto_create_account: bool = False

    @property
    def permits_creation(self) -> bool:
        return self.can_create_account or self.can_auto_create_account


type IdentityCreatedCallback = Callable[[Identity], None]


@dataclass(slots=True)
class RequestContext:
    """What the provider sees of one inbound request.

    Creation callbacks are one-shot: they run at most once, when the host reports
    that it created the local identity for this request.
    """

    environ: Mapping[str, str] = field(default_factory=lambda: os.environ)
    cookies: Mapping[str, str] = field(default_factory=dict[str, str])
    _creation_callbacks: list[IdentityCreatedCallback] = field(
        default_factory=list["IdentityCreatedCallback"], repr=False
    )

    def on_identity_created(self, callback: IdentityCreatedCallback) -> None:
        self._creation_callbacks.append(callback)

    def identity_created(self, identity: Identity) -> None:
        """Run and drop every registered creation callback."""

        callbacks, self._creation_callbacks = self._creation_callbacks, []
        for callback in callbacks:
            callback(identity)
