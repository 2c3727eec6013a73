"""Provider configuration: raw settings schema and the validated config."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Final

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    InstanceOf,
    ValidationError,
    field_validator,
)

from remote_identity.domain.filters import as_filter_rules, domain_rules, replace_rules
from remote_identity.domain.metadata import REMOTE_USER_NAME
from remote_identity.domain.names import (
    DeferredName,
    EnvironmentName,
    LiteralName,
    as_name_sources,
    default_name_sources,
)
from remote_identity.domain.profile import EMAIL, REAL_NAME, DeferredValue, as_profile_values

from .errors import ConfigurationError

if TYPE_CHECKING:
    from remote_identity.domain.filters import FilterRule
    from remote_identity.domain.model import Metadata
    from remote_identity.domain.names import NameSource
    from remote_identity.domain.profile import ProfileValue

MIN_PRIORITY: Final[int] = 1
MAX_PRIORITY: Final[int] = 100
DEFAULT_PRIORITY: Final[int] = 50

NOTIFY_PREFERENCES: Final[tuple[str, ...]] = (
    "enotifminoredits",
    "enotifrevealaddr",
    "enotifusertalkpages",
    "enotifwatchlistpages",
)

type RawNameSource = (
    str
    | Callable[[], object]
    | InstanceOf[LiteralName]
    | InstanceOf[DeferredName]
    | InstanceOf[EnvironmentName]
)
type RawFilterRule = tuple[str, str] | Callable[..., object]


class RawProviderSettings(BaseModel):
    """Settings as handed over by the embedding application.

    Legacy keys (``authz``, ``name``, ``mail``, ``notify``, ``domain``,
    ``mail_domain``) are accepted and translated; new keys take precedence.
    The fields of ``ProviderConfig`` (``name_sources``, ``filter_rules``,
    ``profile_attributes``, ``force_profile_sync``) are accepted as aliases.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    user_names: list[RawNameSource] | None = Field(
        default=None, validation_alias=AliasChoices("user_names", "name_sources")
    )
    user_name_filters: list[RawFilterRule] | dict[str, str] | None = Field(
        default=None, validation_alias=AliasChoices("user_name_filters", "filter_rules")
    )
    user_props: dict[str, Any] | None = Field(
        default=None, validation_alias=AliasChoices("user_props", "profile_attributes")
    )
    force_user_props: bool | None = Field(
        default=None, validation_alias=AliasChoices("force_user_props", "force_profile_sync")
    )
    auto_create_user: bool | None = None
    allow_user_switch: bool | None = None
    remove_auth_pages_and_links: bool | None = None
    priority: int | None = Field(default=None, ge=MIN_PRIORITY, le=MAX_PRIORITY)

    authz: bool | None = None
    name: str | None = None
    mail: str | None = None
    notify: bool | None = None
    domain: str | None = None
    mail_domain: str | None = None

    @field_validator("user_names", mode="before")
    @classmethod
    def _wrap_single_name(cls, value: object) -> object:
        if isinstance(value, str | LiteralName | DeferredName | EnvironmentName) or (
            callable(value) and not isinstance(value, type)
        ):
            return [value]
        return value


@dataclass(frozen=True, slots=True)
class ProviderConfig:
    name_sources: tuple[NameSource, ...] = field(default_factory=default_name_sources)
    filter_rules: tuple[FilterRule, ...] = ()
    priority: int = DEFAULT_PRIORITY
    auto_create_user: bool = True
    allow_user_switch: bool = False
    remove_auth_pages_and_links: bool = True
    profile_attributes: Mapping[str, ProfileValue] = field(default_factory=dict[str, "ProfileValue"])
    force_profile_sync: bool = True


def _mail_from_remote_name(domain: str) -> Callable[[Metadata], object]:
    def mail_address(metadata: Metadata) -> object:
        return f"{metadata[REMOTE_USER_NAME]}@{domain}"

    return mail_address


def _filter_rules(settings: RawProviderSettings) -> tuple[FilterRule, ...]:
    filters = settings.user_name_filters
    if isinstance(filters, dict):
        return replace_rules(filters)
    if filters is not None:
        return as_filter_rules(filters)
    if settings.domain:
        return domain_rules(settings.domain)
    return ()


def _profile_attributes(settings: RawProviderSettings) -> dict[str, ProfileValue]:
    props: dict[str, object] = dict(settings.user_props or {})
    if settings.name:
        props.setdefault(REAL_NAME, settings.name)
    if settings.mail:
        props.setdefault(EMAIL, settings.mail)
    if settings.notify is not None:
        for key in NOTIFY_PREFERENCES:
            props.setdefault(key, int(settings.notify))
    if settings.mail_domain:
        props.setdefault(EMAIL, DeferredValue(_mail_from_remote_name(settings.mail_domain)))
    return as_profile_values(props)


def provider_config_from_settings(settings: RawProviderSettings) -> ProviderConfig:
    """Translate validated settings, legacy keys included, into a ``ProviderConfig``."""

    if settings.authz is False:
        name_sources: tuple[NameSource, ...] = ()
    elif settings.user_names is None:
        name_sources = default_name_sources()
    else:
        name_sources = as_name_sources(settings.user_names)

    defaults = ProviderConfig()
    return ProviderConfig(
        name_sources=name_sources,
        filter_rules=_filter_rules(settings),
        priority=settings.priority if settings.priority is not None else defaults.priority,
        auto_create_user=_flag(settings.auto_create_user, defaults.auto_create_user),
        allow_user_switch=_flag(settings.allow_user_switch, defaults.allow_user_switch),
        remove_auth_pages_and_links=_flag(
            settings.remove_auth_pages_and_links, defaults.remove_auth_pages_and_links
        ),
        profile_attributes=_profile_attributes(settings),
        force_profile_sync=_flag(settings.force_user_props, defaults.force_profile_sync),
    )


def _flag(value: bool | None, default: bool) -> bool:
    return default if value is None else value


def load_provider_config(raw: Mapping[str, object] | None = None) -> ProviderConfig:
    """Validate raw settings and build the provider configuration.

    Raises ``ConfigurationError`` when a value has the wrong type or an unknown
    key is present.
    """

    if raw is None:
        return ProviderConfig()
    if not isinstance(raw, Mapping):
        raise ConfigurationError(f"Provider settings must be a mapping, got {type(raw).__name__}")
    try:
        settings = RawProviderSettings.model_validate(dict(raw))
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid remote identity settings: {exc}") from exc
    return provider_config_from_settings(settings)
