"""Sources of remote user names.

A provider is configured with an ordered tuple of sources. Sources are only
evaluated while a request is being reconciled, one at a time, so a deferred
producer further down the list never runs once an earlier name has won.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Sequence

    from remote_identity.domain.model import RequestContext

log = getLogger(__name__)

DEFAULT_NAME_VARIABLES: Final[tuple[str, ...]] = ("REMOTE_USER", "REDIRECT_REMOTE_USER")


@dataclass(frozen=True, slots=True)
class LiteralName:
    value: str

    def produce(self, request: RequestContext) -> object:
        _ = request
        return self.value

    def describe(self) -> str:
        return f"literal {self.value!r}"


@dataclass(frozen=True, slots=True)
class DeferredName:
    """Zero-argument producer called when its turn comes up."""

    producer: Callable[[], object]

    def produce(self, request: RequestContext) -> object:
        _ = request
        return self.producer()

    def describe(self) -> str:
        return f"producer {getattr(self.producer, '__qualname__', repr(self.producer))}"


@dataclass(frozen=True, slots=True)
class EnvironmentName:
    """Environment-style lookup against the request's environ."""

    variable: str

    def produce(self, request: RequestContext) -> object:
        return request.environ.get(self.variable)

    def describe(self) -> str:
        return f"environment variable {self.variable}"


type NameSource = LiteralName | DeferredName | EnvironmentName


def default_name_sources() -> tuple[NameSource, ...]:
    return tuple(EnvironmentName(variable) for variable in DEFAULT_NAME_VARIABLES)


def as_name_source(value: str | Callable[[], object] | NameSource) -> NameSource:
    """Wrap a configured string or callable into its tagged source."""

    if isinstance(value, LiteralName | DeferredName | EnvironmentName):
        return value
    if isinstance(value, str):
        return LiteralName(value)
    if callable(value):
        return DeferredName(value)
    raise TypeError(f"Unsupported remote user name source: {value!r}")


def as_name_sources(
    values: Iterable[str | Callable[[], object] | NameSource],
) -> tuple[NameSource, ...]:
    return tuple(as_name_source(value) for value in values)


@dataclass(frozen=True, slots=True)
class NameResolver:
    """Produce raw candidate names lazily, in configured order."""

    sources: Sequence[NameSource]

    def candidates(self, request: RequestContext) -> Iterator[str]:
        for position, source in enumerate(self.sources):
            value = source.produce(request)
            if not isinstance(value, str) or not value:
                log.warning(
                    "Skipping remote user name source #%d (%s): got %r, "
                    "expected a non-empty string",
                    position,
                    source.describe(),
                    value,
                )
                continue
            yield value
