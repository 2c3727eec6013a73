from __future__ import annotations

import pytest

from remote_identity.domain.canonicalization import Canonicalizer, NamePolicy
from remote_identity.domain.directory import IdentityDirectory
from remote_identity.domain.errors import InvalidCandidate, InvalidIdentityName
from tests.support.identities import FakeIdentityStore


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("jdoe", "Jdoe"),
        ("john_doe", "John doe"),
        ("  john   doe ", "John doe"),
        ("Ärger", "Ärger"),
    ],
)
def test_canonical_name_normalises(name: str, expected: str) -> None:
    assert NamePolicy().canonical_name(name) == expected


@pytest.mark.parametrize(
    "name",
    ["", "   ", "___", "a#b", "a/b", "user@example.org", "a\tb\x00", "127.0.0.1", "x" * 256],
)
def test_unusable_names_are_rejected(name: str) -> None:
    with pytest.raises(InvalidIdentityName):
        NamePolicy().canonical_name(name)


def test_invalid_identity_name_is_a_candidate_rejection() -> None:
    with pytest.raises(InvalidCandidate):
        NamePolicy().canonical_name("[bad]")


def test_reserved_names_are_rejected_case_insensitively() -> None:
    policy = NamePolicy(reserved=frozenset({"Maintenance script"}))

    with pytest.raises(InvalidIdentityName):
        policy.canonical_name("maintenance_script")


def test_capitalisation_can_be_disabled() -> None:
    assert NamePolicy(capitalize=False).canonical_name("jdoe") == "jdoe"


def test_canonicalize_marks_unknown_identity() -> None:
    canonicalizer = Canonicalizer(IdentityDirectory(FakeIdentityStore().unit_of_work))

    identity = canonicalizer.canonicalize("jdoe@EXAMPLE", "jdoe")

    assert identity.raw_name == "jdoe@EXAMPLE"
    assert identity.filtered_name == "jdoe"
    assert identity.canonical_name == "Jdoe"
    assert identity.local_id is None
    assert not identity.exists


def test_canonicalize_links_existing_identity() -> None:
    store = FakeIdentityStore()
    stored = store.seed("John doe")
    canonicalizer = Canonicalizer(IdentityDirectory(store.unit_of_work))

    identity = canonicalizer.canonicalize("john_doe", "john_doe")

    assert identity.canonical_name == "John doe"
    assert identity.local_id == stored.id
    assert identity.exists
