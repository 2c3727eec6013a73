from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import pytest

from remote_identity.adapters.memory import InMemorySessionStore, StaticCapabilities
from remote_identity.config import ProviderConfig
from remote_identity.domain.directory import IdentityDirectory
from remote_identity.domain.errors import IdentityStoreFailure
from remote_identity.domain.filters import ReplaceRule
from remote_identity.domain.metadata import (
    CANONICAL_USER_NAME,
    CANONICAL_USER_NAME_USED,
    FILTERED_USER_NAME,
    REMOTE_USER_NAME,
    USER_ID,
)
from remote_identity.domain.model import CanonicalIdentity, Capabilities, SessionState
from remote_identity.domain.names import EnvironmentName, LiteralName
from remote_identity.provider import RemoteIdentitySessionProvider
from tests.support.identities import (
    BrokenIdentityRepository,
    FakeIdentityStore,
    make_request,
)

if TYPE_CHECKING:
    from collections.abc import Callable

COOKIE = "remote_identity_session"

type ProviderFactory = Callable[..., RemoteIdentitySessionProvider]


def _existing_session(
    sessions: InMemorySessionStore,
    identity: CanonicalIdentity | None,
    *,
    session_id: str = "stored-session",
) -> dict[str, str]:
    sessions.save(
        SessionState(priority=sessions.priority, session_id=session_id, identity=identity)
    )
    return {COOKIE: session_id}


def test_scenario_domain_prefix_creates_forced_session(make_provider: ProviderFactory) -> None:
    provider = make_provider(user_name_filters=[ReplaceRule.literal("DOMAIN\\", anchor="^")])

    state = provider.resolve(make_request(REMOTE_USER="DOMAIN\\jdoe"))

    assert state is not None
    assert state.identity is not None
    assert state.identity.filtered_name == "jdoe"
    assert state.identity.canonical_name == "Jdoe"
    assert not state.identity.exists
    assert state.force_use
    assert state.priority == provider.priority
    assert state.session_id
    assert state.metadata[REMOTE_USER_NAME] == "DOMAIN\\jdoe"
    assert state.metadata[FILTERED_USER_NAME] == "jdoe"
    assert state.metadata[USER_ID] is None


def test_scenario_empty_candidate_skipped_and_fallback_upgraded(
    make_provider: ProviderFactory,
    identity_store: FakeIdentityStore,
    sessions: InMemorySessionStore,
    caplog: pytest.LogCaptureFixture,
) -> None:
    asmith = identity_store.seed("Asmith")
    cookies = _existing_session(sessions, None)
    provider = make_provider(user_names=[LiteralName(""), EnvironmentName("REMOTE_USER")])

    with caplog.at_level(logging.WARNING):
        state = provider.resolve(make_request(REMOTE_USER="asmith", cookies=cookies))

    assert state is not None
    assert state.session_id == "stored-session"
    assert state.priority == sessions.priority
    assert state.identity is not None
    assert state.identity.local_id == asmith.id
    assert state.force_use
    assert "literal ''" in caplog.text


def test_scenario_unknown_identity_without_auto_create_yields_none(
    make_provider: ProviderFactory,
    caplog: pytest.LogCaptureFixture,
) -> None:
    provider = make_provider(auto_create_user=False)

    with caplog.at_level(logging.WARNING):
        state = provider.resolve(make_request(REMOTE_USER="newcomer"))

    assert state is None
    assert "Newcomer" in caplog.text


def test_no_candidates_yields_none(make_provider: ProviderFactory) -> None:
    assert make_provider().resolve(make_request()) is None


def test_first_surviving_candidate_wins(
    make_provider: ProviderFactory,
    identity_store: FakeIdentityStore,
) -> None:
    identity_store.seed("Second")
    identity_store.seed("Third")
    provider = make_provider(
        user_names=["[invalid]", "second", "third"],
        auto_create_user=False,
    )

    state = provider.resolve(make_request())

    assert state is not None
    assert state.identity is not None
    assert state.identity.canonical_name == "Second"


def test_later_candidates_are_not_evaluated_after_a_match(
    make_provider: ProviderFactory,
) -> None:
    calls: list[str] = []

    def late() -> str:
        calls.append("late")
        return "late"

    provider = make_provider(user_names=["early", late])

    state = provider.resolve(make_request())

    assert state is not None
    assert state.identity is not None
    assert state.identity.canonical_name == "Early"
    assert calls == []


def test_auto_create_disabled_never_selects_unknown_identity(
    make_provider: ProviderFactory,
    identity_store: FakeIdentityStore,
) -> None:
    identity_store.seed("Known")
    provider = make_provider(user_names=["unknown", "known"], auto_create_user=False)

    state = provider.resolve(make_request())

    assert state is not None
    assert state.identity is not None
    assert state.identity.exists
    assert state.identity.canonical_name == "Known"


def test_switching_disallowed_forces_resolved_identity(
    make_provider: ProviderFactory,
    identity_store: FakeIdentityStore,
    sessions: InMemorySessionStore,
) -> None:
    remote = identity_store.seed("Remote")
    other = identity_store.seed("Other")
    cookies = _existing_session(sessions, CanonicalIdentity.of(other))
    provider = make_provider()

    state = provider.resolve(make_request(REMOTE_USER="remote", cookies=cookies))

    assert state is not None
    assert state.identity is not None
    assert state.identity.local_id == remote.id
    assert state.force_use
    assert state.metadata[CANONICAL_USER_NAME_USED] == "Remote"


def test_switching_allowed_keeps_fallback_identity(
    make_provider: ProviderFactory,
    identity_store: FakeIdentityStore,
    sessions: InMemorySessionStore,
) -> None:
    identity_store.seed("Remote")
    other = identity_store.seed("Other")
    cookies = _existing_session(sessions, CanonicalIdentity.of(other))
    provider = make_provider(allow_user_switch=True)

    state = provider.resolve(make_request(REMOTE_USER="remote", cookies=cookies))

    assert state is not None
    assert state.identity is not None
    assert state.identity.local_id == other.id
    assert not state.force_use
    assert state.metadata[CANONICAL_USER_NAME] == "Remote"
    assert state.metadata[CANONICAL_USER_NAME_USED] == "Other"


def test_matching_fallback_session_is_reused_without_force(
    make_provider: ProviderFactory,
    identity_store: FakeIdentityStore,
    sessions: InMemorySessionStore,
) -> None:
    remote = identity_store.seed("Remote")
    cookies = _existing_session(sessions, CanonicalIdentity.of(remote))

    state = make_provider().resolve(make_request(REMOTE_USER="remote", cookies=cookies))

    assert state is not None
    assert state.session_id == "stored-session"
    assert not state.force_use
    assert state.metadata[USER_ID] == str(remote.id)


def test_stale_session_discarded_when_creation_is_permitted(
    make_provider: ProviderFactory,
    sessions: InMemorySessionStore,
    caplog: pytest.LogCaptureFixture,
) -> None:
    cookies = _existing_session(sessions, None)

    with caplog.at_level(logging.WARNING):
        state = make_provider().resolve(make_request(REMOTE_USER="newcomer", cookies=cookies))

    assert state is not None
    assert state.session_id != "stored-session"
    assert state.priority == make_provider().priority
    assert state.force_use
    assert "stored-session" in caplog.text


def test_session_kept_when_creation_is_not_permitted(
    make_provider: ProviderFactory,
    sessions: InMemorySessionStore,
    capabilities: StaticCapabilities,
) -> None:
    cookies = _existing_session(sessions, None)
    capabilities.capabilities = Capabilities()

    state = make_provider().resolve(make_request(REMOTE_USER="newcomer", cookies=cookies))

    assert state is not None
    assert state.session_id == "stored-session"
    assert state.force_use


def test_capabilities_are_read_on_every_request(
    make_provider: ProviderFactory,
    sessions: InMemorySessionStore,
    capabilities: StaticCapabilities,
) -> None:
    cookies = _existing_session(sessions, None)
    provider = make_provider()
    capabilities.capabilities = Capabilities()

    first = provider.resolve(make_request(REMOTE_USER="newcomer", cookies=cookies))
    capabilities.capabilities = Capabilities(can_create_account=True)
    second = provider.resolve(make_request(REMOTE_USER="newcomer", cookies=cookies))

    assert first is not None
    assert second is not None
    assert first.session_id == "stored-session"
    assert second.session_id != "stored-session"


def test_identity_store_failure_propagates(
    sessions: InMemorySessionStore,
    capabilities: StaticCapabilities,
) -> None:
    store = FakeIdentityStore(BrokenIdentityRepository())
    provider = RemoteIdentitySessionProvider(
        ProviderConfig(),
        directory=IdentityDirectory(store.unit_of_work),
        fallback=sessions,
        capabilities=capabilities,
    )

    with pytest.raises(IdentityStoreFailure):
        provider.resolve(make_request(REMOTE_USER="jdoe"))


def test_instances_do_not_share_filters(make_provider: ProviderFactory) -> None:
    stripping = make_provider(user_name_filters={"^corp_": ""})
    plain = make_provider()

    stripped = stripping.resolve(make_request(REMOTE_USER="corp_jdoe"))
    unchanged = plain.resolve(make_request(REMOTE_USER="corp_jdoe"))

    assert stripped is not None
    assert stripped.identity is not None
    assert unchanged is not None
    assert unchanged.identity is not None
    assert stripped.identity.canonical_name == "Jdoe"
    assert unchanged.identity.canonical_name == "Corp jdoe"
