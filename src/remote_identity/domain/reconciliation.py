"""Reconcile remote user names with the host's own session state.

For each candidate name, in configured order:

1) filter the raw name and canonicalize it against the local identity store
2) skip unknown identities unless auto-creation is enabled
3) ask the fallback session mechanism for its session, dropping it when it may
   carry a stale "creation forbidden" decision
4) create a fresh session when none is left
5) force our identity onto anonymous or unresolved sessions, and onto sessions
   of another identity when user switching is disabled
6) attach freshly computed metadata

The first candidate to get through wins. Invalid, vetoed and creation-forbidden
candidates are logged and skipped; identity store failures propagate.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from logging import getLogger
from typing import TYPE_CHECKING

from remote_identity.domain.errors import CandidateRejected, CreationForbidden, InvalidCandidate
from remote_identity.domain.metadata import build_metadata, merge_metadata
from remote_identity.domain.model import SessionState

if TYPE_CHECKING:
    from remote_identity.domain.canonicalization import Canonicalizer
    from remote_identity.domain.filters import FilterChain
    from remote_identity.domain.model import CanonicalIdentity, RequestContext
    from remote_identity.domain.names import NameResolver
    from remote_identity.domain.ports import CapabilitySource, FallbackSessionProvider

log = getLogger(__name__)


@dataclass(frozen=True, slots=True, kw_only=True)
class ReconciliationPolicy:
    priority: int
    auto_create_user: bool = True
    allow_user_switch: bool = False


@dataclass(slots=True)
class ReconciliationEngine:
    """Decide the session state for one request."""

    names: NameResolver
    filters: FilterChain
    canonicalizer: Canonicalizer
    fallback: FallbackSessionProvider
    capabilities: CapabilitySource
    policy: ReconciliationPolicy

    def reconcile(self, request: RequestContext) -> SessionState | None:
        """Return the session for the first usable candidate, or ``None``."""

        for raw_name in self.names.candidates(request):
            try:
                identity = self._identify(raw_name)
            except CandidateRejected as exc:
                log.warning(
                    "Can't log in remote user %r automatically: %s%s",
                    raw_name,
                    exc,
                    f" (rule: {exc.rule})" if isinstance(exc, InvalidCandidate) and exc.rule else "",
                )
                continue
            return self._decide(identity, request)

        log.debug("No remote user name could be reconciled; deferring to other providers")
        return None

    def _identify(self, raw_name: str) -> CanonicalIdentity:
        filtered_name = self.filters.apply(raw_name)
        identity = self.canonicalizer.canonicalize(raw_name, filtered_name)
        if not identity.exists and not self.policy.auto_create_user:
            raise CreationForbidden(
                f"{identity.canonical_name!r} (filtered from {filtered_name!r}) is unknown "
                "and creating new identities is disabled"
            )
        return identity

    def _decide(self, identity: CanonicalIdentity, request: RequestContext) -> SessionState:
        state = self.fallback.provide(request)

        if state is not None and not identity.exists and self._creation_permitted():
            log.warning(
                "Discarding session %s for unknown identity %r: account creation is "
                "permitted now, the session may still record an older refusal",
                state.session_id,
                identity.canonical_name,
            )
            state = None

        if state is None:
            state = SessionState(
                priority=self.policy.priority,
                session_id=self.fallback.generate_session_id(),
                identity=identity,
            )

        if self._must_force(state, identity):
            state = replace(state, identity=identity, force_use=True)

        provided = build_metadata(identity, state.identity)
        return replace(state, metadata=merge_metadata(state.metadata, provided))

    def _creation_permitted(self) -> bool:
        # never cached: permissions may change between requests of one session
        return self.capabilities.current().permits_creation

    def _must_force(self, state: SessionState, identity: CanonicalIdentity) -> bool:
        if not state.is_resolved:
            return True
        return not self.policy.allow_user_switch and not identity.same_identity(state.identity)
