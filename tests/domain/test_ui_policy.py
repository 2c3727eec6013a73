from __future__ import annotations

from remote_identity.domain.ui_policy import (
    AUTH_PAGES,
    EMAIL_PAGES,
    PASSWORD_PAGES,
    Link,
    Page,
    suppressed_surfaces,
)


def test_logout_link_is_always_suppressed() -> None:
    for switch_user_allowed in (True, False):
        for remove in (True, False):
            suppression = suppressed_surfaces(
                switch_user_allowed=switch_user_allowed,
                remove_auth_pages_and_links=remove,
                switched_identity=True,
            )
            assert suppression.links == frozenset({Link.LOGOUT})


def test_auth_and_password_pages_hidden_when_switching_disallowed() -> None:
    suppression = suppressed_surfaces(
        switch_user_allowed=False,
        remove_auth_pages_and_links=True,
    )

    assert suppression.pages == AUTH_PAGES | PASSWORD_PAGES
    assert suppression.hidden_preferences == frozenset({"password"})


def test_auth_pages_stay_when_switching_allowed() -> None:
    suppression = suppressed_surfaces(
        switch_user_allowed=True,
        remove_auth_pages_and_links=True,
    )

    assert Page.LOGIN not in suppression.pages
    assert suppression.pages == PASSWORD_PAGES


def test_pages_kept_when_removal_disabled() -> None:
    suppression = suppressed_surfaces(
        switch_user_allowed=False,
        remove_auth_pages_and_links=False,
        forced_profile_fields=frozenset({"email"}),
    )

    assert suppression.pages == frozenset()
    assert suppression.locked_preferences == frozenset({"email"})


def test_forced_email_hides_email_pages() -> None:
    suppression = suppressed_surfaces(
        switch_user_allowed=True,
        remove_auth_pages_and_links=True,
        forced_profile_fields=frozenset({"email", "realname"}),
    )

    assert EMAIL_PAGES <= suppression.pages
    assert suppression.locked_preferences == frozenset({"email", "realname"})


def test_switched_identity_keeps_own_credentials() -> None:
    suppression = suppressed_surfaces(
        switch_user_allowed=True,
        remove_auth_pages_and_links=True,
        forced_profile_fields=frozenset({"email"}),
        switched_identity=True,
    )

    assert suppression.pages == frozenset()
    assert suppression.hidden_preferences == frozenset()
    assert suppression.locked_preferences == frozenset()
