"""Domain model for remote identity sessions."""

from __future__ import annotations

from .identity import CanonicalIdentity, Identity, new_id
from .session import (
    EMPTY_METADATA,
    Capabilities,
    IdentityCreatedCallback,
    Metadata,
    RequestContext,
    SessionState,
)

__all__ = [
    "EMPTY_METADATA",
    "CanonicalIdentity",
    "Capabilities",
    "Identity",
    "IdentityCreatedCallback",
    "Metadata",
    "RequestContext",
    "SessionState",
    "new_id",
]
