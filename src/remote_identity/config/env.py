"""Environment variable loaders for provider configuration."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Final

from remote_identity.domain.names import EnvironmentName

if TYPE_CHECKING:
    from collections.abc import Mapping

ENV_PREFIX: Final[str] = "REMOTE_IDENTITY_"

# environment suffix -> settings key; values are left for pydantic to coerce
_SCALAR_SETTINGS: Final[dict[str, str]] = {
    "AUTO_CREATE_USER": "auto_create_user",
    "ALLOW_USER_SWITCH": "allow_user_switch",
    "REMOVE_AUTH_PAGES_AND_LINKS": "remove_auth_pages_and_links",
    "FORCE_USER_PROPS": "force_user_props",
    "PRIORITY": "priority",
    "DOMAIN": "domain",
    "MAIL_DOMAIN": "mail_domain",
}


def settings_from_environment(environ: Mapping[str, str] | None = None) -> dict[str, object]:
    """Collect raw provider settings from ``REMOTE_IDENTITY_*`` variables.

    ``REMOTE_IDENTITY_NAME_VARIABLES`` is a comma separated list of request
    variables to read remote user names from, in priority order. Blank values
    count as unset.
    """

    source = os.environ if environ is None else environ
    settings: dict[str, object] = {}

    variables = source.get(f"{ENV_PREFIX}NAME_VARIABLES", "")
    names = [name.strip() for name in variables.split(",") if name.strip()]
    if names:
        settings["user_names"] = [EnvironmentName(name) for name in names]

    for suffix, key in _SCALAR_SETTINGS.items():
        value = source.get(f"{ENV_PREFIX}{suffix}")
        if value is not None and value.strip():
            settings[key] = value.strip()
    return settings
