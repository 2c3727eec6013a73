"""Filter chain applied to each raw remote user name.

Rules run in registration order, each receiving the output of the previous one.
A rule may veto the candidate by returning ``False`` or ``None``; the engine then
moves on to the next candidate name. Some typical rules::

    ReplaceRule(r"_", " ")                     # underscore to space
    ReplaceRule(r"@domain\\.example\\.com$", "")  # strip Kerberos realm
    ReplaceRule(r"^DOMAIN\\\\", "")             # strip NTLM-style domain prefix
    ReplaceRule(r"^johndoe$", "Admin")         # rewrite a name
"""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from functools import cache
from logging import getLogger
from typing import TYPE_CHECKING, Protocol

from remote_identity.domain.errors import InvalidCandidate

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

log = getLogger(__name__)

type FilterResult = str | bool | None


class FilterRule(Protocol):
    """Transform a name; ``False``/``None`` vetoes, ``True`` keeps it unchanged."""

    def __call__(self, name: str) -> FilterResult: ...


@cache
def _compile(pattern: str) -> re.Pattern[str]:
    return re.compile(pattern)


@dataclass(frozen=True, slots=True)
class ReplaceRule:
    """Regular-expression substitution over the whole name."""

    pattern: str
    replacement: str

    def __call__(self, name: str) -> FilterResult:
        try:
            return _compile(self.pattern).sub(self.replacement, name)
        except re.error as exc:
            log.error("Filter pattern %r is not usable: %s", self.pattern, exc)
            return None

    @classmethod
    def literal(cls, text: str, replacement: str = "", *, anchor: str = "") -> ReplaceRule:
        """Build a rule matching ``text`` verbatim.

        ``anchor`` is ``"^"`` or ``"$"`` to pin the literal to the start or end.
        """

        escaped = re.escape(text)
        if anchor == "^":
            escaped = f"^{escaped}"
        elif anchor == "$":
            escaped = f"{escaped}$"
        elif anchor:
            raise ValueError(f"Unsupported anchor: {anchor!r}")
        return cls(escaped, replacement.replace("\\", "\\\\"))

    def __str__(self) -> str:
        return f"replace {self.pattern!r} -> {self.replacement!r}"


@dataclass(frozen=True, slots=True)
class CallbackRule:
    """Adapt an arbitrary callable registered by the embedding application."""

    func: Callable[[str], FilterResult]
    name: str | None = None

    def __call__(self, name: str) -> FilterResult:
        return self.func(name)

    def __str__(self) -> str:
        return self.name or getattr(self.func, "__qualname__", repr(self.func))


@dataclass(frozen=True, slots=True)
class DenyRule:
    """Veto names found in a denylist (case-insensitive)."""

    names: frozenset[str]

    def __post_init__(self) -> None:
        object.__setattr__(self, "names", frozenset(name.casefold() for name in self.names))

    def __call__(self, name: str) -> FilterResult:
        return name.casefold() not in self.names

    def __str__(self) -> str:
        return f"deny {sorted(self.names)!r}"


def domain_rules(domain: str) -> tuple[ReplaceRule, ReplaceRule]:
    """Strip ``@domain`` realm suffixes and ``domain\\`` prefixes."""

    return (
        ReplaceRule.literal(f"@{domain}", anchor="$"),
        ReplaceRule.literal(f"{domain}\\", anchor="^"),
    )


def replace_rules(patterns: Mapping[str, str] | Sequence[tuple[str, str]]) -> tuple[ReplaceRule, ...]:
    pairs = patterns.items() if not isinstance(patterns, Sequence) else patterns
    return tuple(ReplaceRule(pattern, replacement) for pattern, replacement in pairs)


def _describe(rule: FilterRule) -> str:
    return str(rule) if isinstance(rule, ReplaceRule | CallbackRule | DenyRule) else repr(rule)


@dataclass(frozen=True, slots=True)
class FilterChain:
    """Ordered rules owned by one provider instance."""

    rules: tuple[FilterRule, ...] = field(default_factory=tuple)

    def apply(self, raw_name: str) -> str:
        """Return the filtered name or raise ``InvalidCandidate`` on a veto."""

        name = raw_name
        for rule in self.rules:
            result = rule(name)
            if result is True:
                continue
            if result is None or result is False:
                raise InvalidCandidate(
                    f"Blocked {raw_name!r} while filtering {name!r}",
                    rule=_describe(rule),
                )
            if not isinstance(result, str):
                raise InvalidCandidate(
                    f"Filter returned {type(result).__name__} for {name!r}",
                    rule=_describe(rule),
                )
            name = result
        return name


def as_filter_rules(
    values: Iterable[FilterRule | Callable[[str], FilterResult] | tuple[str, str]],
) -> tuple[FilterRule, ...]:
    rules: list[FilterRule] = []
    for value in values:
        if isinstance(value, ReplaceRule | CallbackRule | DenyRule):
            rules.append(value)
        elif isinstance(value, tuple):
            pattern, replacement = value
            rules.append(ReplaceRule(pattern, replacement))
        elif callable(value):
            rules.append(CallbackRule(value))
        else:
            raise TypeError(f"Unsupported filter rule: {value!r}")
    return tuple(rules)


__all__ = [
    "CallbackRule",
    "DenyRule",
    "FilterChain",
    "FilterResult",
    "FilterRule",
    "ReplaceRule",
    "as_filter_rules",
    "domain_rules",
    "replace_rules",
]
