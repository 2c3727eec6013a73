"""Session provider binding remote user names to local identities."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from remote_identity.domain.canonicalization import Canonicalizer
from remote_identity.domain.filters import FilterChain
from remote_identity.domain.metadata import (
    CANONICAL_USER_NAME,
    CANONICAL_USER_NAME_USED,
    REMOTE_USER_NAME,
    USER_ID,
    merge_metadata,
    snapshot,
)
from remote_identity.domain.names import NameResolver
from remote_identity.domain.profile import ProfileSynchronizer
from remote_identity.domain.reconciliation import ReconciliationEngine, ReconciliationPolicy
from remote_identity.domain.ui_policy import UiSuppression, suppressed_surfaces

if TYPE_CHECKING:
    from collections.abc import Callable

    from remote_identity.config import ProviderConfig
    from remote_identity.domain.directory import IdentityDirectory
    from remote_identity.domain.model import Identity, Metadata, RequestContext, SessionState
    from remote_identity.domain.ports import CapabilitySource, FallbackSessionProvider

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SelectionResult:
    """What ``on_selected`` did for the chosen session."""

    suppression: UiSuppression
    profile_synced: bool = False
    profile_sync_deferred: bool = False


class RemoteIdentitySessionProvider:
    """Runtime surface exposed to the embedding session framework.

    Give this provider a higher priority than the host's cookie provider: it
    logs in the remote user automatically and leaves the request to the cookie
    provider when no remote user name is usable.
    """

    def __init__(
        self,
        config: ProviderConfig,
        *,
        directory: IdentityDirectory,
        fallback: FallbackSessionProvider,
        capabilities: CapabilitySource,
    ) -> None:
        self.config = config
        self.directory = directory
        self.fallback = fallback
        self.capabilities = capabilities
        self.profile = ProfileSynchronizer(
            directory,
            config.profile_attributes,
            force=config.force_profile_sync,
        )
        self.engine = ReconciliationEngine(
            names=NameResolver(config.name_sources),
            filters=FilterChain(config.filter_rules),
            canonicalizer=Canonicalizer(directory),
            fallback=fallback,
            capabilities=capabilities,
            policy=ReconciliationPolicy(
                priority=config.priority,
                auto_create_user=config.auto_create_user,
                allow_user_switch=config.allow_user_switch,
            ),
        )

    @property
    def priority(self) -> int:
        return self.config.priority

    def resolve(self, request: RequestContext) -> SessionState | None:
        return self.engine.reconcile(request)

    def merge_metadata(self, stored: Metadata, provided: Metadata) -> dict[str, object]:
        return self.fallback.merge_metadata(merge_metadata(stored, provided), provided)

    def can_switch_identity(self) -> bool:
        return self.config.allow_user_switch and self.fallback.can_switch_identity()

    def on_selected(
        self,
        state: SessionState,
        request: RequestContext,
        metadata: Metadata,
    ) -> SelectionResult:
        """Apply profile attributes and compute the UI surfaces to suppress.

        Called once the host picked ``state`` for this request. Profile attributes
        are written now when forced, otherwise only when the host creates the
        local identity during this request.
        """

        log.info(
            "Setting up auto login session for remote user name %r "
            "(mapped to %r, currently active as %r)",
            metadata.get(REMOTE_USER_NAME),
            metadata.get(CANONICAL_USER_NAME),
            metadata.get(CANONICAL_USER_NAME_USED),
        )

        switched = self._switched_identity(state, metadata)
        synced = deferred = False
        if not switched and state.identity is not None and self.profile.attributes:
            local = self.directory.find(state.identity.canonical_name) if self.profile.force else None
            if local is not None:
                synced = self.profile.apply(local, is_new_identity=False, context=metadata)
            elif not state.identity.exists:
                request.on_identity_created(self._profile_callback(metadata))
                deferred = True

        suppression = suppressed_surfaces(
            switch_user_allowed=self.config.allow_user_switch,
            remove_auth_pages_and_links=self.config.remove_auth_pages_and_links,
            forced_profile_fields=self.profile.forced_fields,
            switched_identity=switched,
        )
        return SelectionResult(
            suppression=suppression,
            profile_synced=synced,
            profile_sync_deferred=deferred,
        )

    def _profile_callback(self, metadata: Metadata) -> Callable[[Identity], None]:
        context = snapshot(metadata)

        def apply_profile(identity: Identity) -> None:
            self.profile.apply(identity, is_new_identity=True, context=context)

        return apply_profile

    @staticmethod
    def _switched_identity(state: SessionState, metadata: Metadata) -> bool:
        """Whether the session uses another identity than the remote one resolved to."""

        if state.identity is None:
            return True
        local_id = str(state.identity.local_id) if state.identity.local_id is not None else None
        return local_id != metadata.get(USER_ID)
