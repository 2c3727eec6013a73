"""Provider metadata stored alongside a session.

The diagnostic keys describe how this request's remote user name was turned into
a local identity. They are recomputed on every request and always replace the
stored values: filter rules, policy, or the upstream user may have changed since
the session was written.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from remote_identity.domain.model import CanonicalIdentity, Metadata

METADATA_VERSION: Final[int] = 1

VERSION_KEY: Final[str] = "metadata_version"
REMOTE_USER_NAME: Final[str] = "remote_user_name"
FILTERED_USER_NAME: Final[str] = "filtered_user_name"
CANONICAL_USER_NAME: Final[str] = "canonical_user_name"
USER_ID: Final[str] = "user_id"
CANONICAL_USER_NAME_USED: Final[str] = "canonical_user_name_used"

DIAGNOSTIC_KEYS: Final[tuple[str, ...]] = (
    VERSION_KEY,
    USER_ID,
    REMOTE_USER_NAME,
    FILTERED_USER_NAME,
    CANONICAL_USER_NAME,
    CANONICAL_USER_NAME_USED,
)


def build_metadata(resolved: CanonicalIdentity, in_effect: CanonicalIdentity | None) -> dict[str, object]:
    """Describe the decision for ``resolved``; ``in_effect`` is what the session uses."""

    return {
        VERSION_KEY: METADATA_VERSION,
        USER_ID: str(resolved.local_id) if resolved.local_id is not None else None,
        REMOTE_USER_NAME: resolved.raw_name,
        FILTERED_USER_NAME: resolved.filtered_name,
        CANONICAL_USER_NAME: resolved.canonical_name,
        CANONICAL_USER_NAME_USED: in_effect.canonical_name if in_effect is not None else None,
    }


def merge_metadata(stored: Metadata, provided: Metadata) -> dict[str, object]:
    """Overwrite every diagnostic key of ``stored`` with ``provided``'s value.

    Keys outside ``DIAGNOSTIC_KEYS`` are passed through untouched; merging them is
    the fallback session mechanism's business.
    """

    merged = dict(stored)
    for key in DIAGNOSTIC_KEYS:
        merged[key] = provided.get(key)
    return merged


def snapshot(metadata: Metadata) -> Metadata:
    """Read-only copy handed to deferred profile values."""

    return MappingProxyType(dict(metadata))
