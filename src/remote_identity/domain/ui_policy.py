"""Which authentication UI surfaces to hide once a remote identity is active."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum


class Page(StrEnum):
    LOGIN = "login"
    LOGOUT = "logout"
    CREATE_ACCOUNT = "create_account"
    LINK_ACCOUNTS = "link_accounts"
    UNLINK_ACCOUNTS = "unlink_accounts"
    CHANGE_CREDENTIALS = "change_credentials"
    REMOVE_CREDENTIALS = "remove_credentials"
    CHANGE_PASSWORD = "change_password"
    PASSWORD_RESET = "password_reset"
    CHANGE_EMAIL = "change_email"
    CONFIRM_EMAIL = "confirm_email"
    INVALIDATE_EMAIL = "invalidate_email"


class Link(StrEnum):
    LOGOUT = "logout"


AUTH_PAGES: frozenset[Page] = frozenset(
    {
        Page.LOGIN,
        Page.LOGOUT,
        Page.CREATE_ACCOUNT,
        Page.LINK_ACCOUNTS,
        Page.UNLINK_ACCOUNTS,
        Page.CHANGE_CREDENTIALS,
        Page.REMOVE_CREDENTIALS,
    }
)
PASSWORD_PAGES: frozenset[Page] = frozenset({Page.CHANGE_PASSWORD, Page.PASSWORD_RESET})
EMAIL_PAGES: frozenset[Page] = frozenset(
    {Page.CHANGE_EMAIL, Page.CONFIRM_EMAIL, Page.INVALIDATE_EMAIL}
)


@dataclass(frozen=True, slots=True)
class UiSuppression:
    pages: frozenset[Page] = field(default_factory=frozenset[Page])
    links: frozenset[Link] = field(default_factory=frozenset[Link])
    hidden_preferences: frozenset[str] = field(default_factory=frozenset[str])
    locked_preferences: frozenset[str] = field(default_factory=frozenset[str])


def suppressed_surfaces(
    *,
    switch_user_allowed: bool,
    remove_auth_pages_and_links: bool,
    forced_profile_fields: frozenset[str] = frozenset(),
    switched_identity: bool = False,
) -> UiSuppression:
    """Compute the surfaces to hide for the selected session.

    The logout link is always hidden: logging out would leave an anonymous
    session behind, which this provider exists to prevent.
    """

    pages: set[Page] = set()
    hidden: set[str] = set()
    locked: frozenset[str] = frozenset()

    if not switched_identity:
        # credentials are managed by the asserting layer
        pages |= PASSWORD_PAGES
        hidden.add("password")
        locked = forced_profile_fields
        if "email" in forced_profile_fields:
            pages |= EMAIL_PAGES

    if not switch_user_allowed:
        pages |= AUTH_PAGES

    if not remove_auth_pages_and_links:
        pages.clear()

    return UiSuppression(
        pages=frozenset(pages),
        links=frozenset({Link.LOGOUT}),
        hidden_preferences=frozenset(hidden),
        locked_preferences=locked,
    )
