"""Error taxonomy for remote identity reconciliation.

Soft errors (``InvalidCandidate``, ``CreationForbidden``) only disqualify one
candidate name; the engine logs them and moves on. ``IdentityStoreFailure`` is
fatal for the request and propagates to the embedding framework.
"""

from __future__ import annotations


class RemoteIdentityError(Exception):
    """Base class for reconciliation errors."""


class CandidateRejected(RemoteIdentityError):  # noqa: N818
    """A candidate name cannot be used for this request."""


class InvalidCandidate(CandidateRejected):
    """Candidate was empty, vetoed by a filter rule, or is not a usable identity name."""

    def __init__(self, message: str, *, rule: str | None = None) -> None:
        super().__init__(message)
        self.rule = rule


class InvalidIdentityName(InvalidCandidate):
    """The local identity store refuses the name (syntax, reserved, address-like)."""


class CreationForbidden(CandidateRejected):
    """Candidate names an unknown identity and provisioning is disabled."""


class IdentityStoreFailure(RemoteIdentityError):
    """The local identity store itself is unusable."""
