"""Application orchestration entry points."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from remote_identity.adapters.sqlalchemy.unit_of_work import SqlAlchemyIdentityUnitOfWork
from remote_identity.config import get_provider_config
from remote_identity.domain.canonicalization import NamePolicy
from remote_identity.domain.directory import IdentityDirectory, UnitOfWorkFactory
from remote_identity.domain.errors import CreationForbidden
from remote_identity.provider import RemoteIdentitySessionProvider, SelectionResult

if TYPE_CHECKING:
    from remote_identity.config import ProviderConfig
    from remote_identity.domain.model import Identity, Metadata, RequestContext, SessionState
    from remote_identity.domain.ports import (
        CapabilitySource,
        CreationRefusals,
        FallbackSessionProvider,
    )


log = getLogger(__name__)


def build_provider(
    *,
    fallback: FallbackSessionProvider,
    capabilities: CapabilitySource,
    config: ProviderConfig | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    name_policy: NamePolicy | None = None,
) -> RemoteIdentitySessionProvider:
    """Wire a provider from configuration and the configured adapters."""

    effective_config = config or get_provider_config()
    directory = IdentityDirectory(
        unit_of_work_factory or SqlAlchemyIdentityUnitOfWork,
        name_policy or NamePolicy(),
    )
    log.info(
        "Remote identity provider: %d name source(s), %d filter rule(s), priority=%s, "
        "auto_create_user=%s, allow_user_switch=%s",
        len(effective_config.name_sources),
        len(effective_config.filter_rules),
        effective_config.priority,
        effective_config.auto_create_user,
        effective_config.allow_user_switch,
    )
    return RemoteIdentitySessionProvider(
        effective_config,
        directory=directory,
        fallback=fallback,
        capabilities=capabilities,
    )


def provision_identity(
    provider: RemoteIdentitySessionProvider,
    state: SessionState,
    request: RequestContext,
    *,
    refusals: CreationRefusals | None = None,
) -> Identity | None:
    """Create the selected identity locally when it does not exist yet.

    This is the host's automatic account creation step. Creation callbacks
    registered on ``request`` run once the identity is stored. Returns ``None``
    when the session's identity already existed.

    With ``refusals``, a refusal is remembered for the session and later
    attempts on it are refused without consulting the capabilities again.
    """

    selected = state.identity
    if selected is None or selected.exists:
        return None
    existing = provider.directory.find(selected.canonical_name)
    if existing is not None:
        # created concurrently; the store's uniqueness decides
        return existing
    if refusals is not None and refusals.is_creation_forbidden(state.session_id):
        raise CreationForbidden(
            f"Creating identity {selected.canonical_name!r} was already refused for this session"
        )
    if not provider.capabilities.current().permits_creation:
        if refusals is not None:
            refusals.forbid_creation(state.session_id)
        raise CreationForbidden(f"Creating identity {selected.canonical_name!r} is not permitted")
    created = provider.directory.create(selected.canonical_name)
    request.identity_created(created)
    return created


@dataclass(frozen=True, slots=True)
class RequestOutcome:
    state: SessionState
    metadata: Metadata
    selection: SelectionResult
    created: Identity | None = None


def handle_request(
    provider: RemoteIdentitySessionProvider,
    request: RequestContext,
    *,
    stored_metadata: Metadata | None = None,
    provision: bool = True,
    refusals: CreationRefusals | None = None,
) -> RequestOutcome | None:
    """Run one request through resolve, metadata merge, selection and provisioning."""

    state = provider.resolve(request)
    if state is None:
        return None
    metadata = provider.merge_metadata(stored_metadata or {}, state.metadata)
    selection = provider.on_selected(state, request, metadata)
    created = provision_identity(provider, state, request, refusals=refusals) if provision else None
    return RequestOutcome(state=state, metadata=metadata, selection=selection, created=created)
