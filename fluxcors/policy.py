"""
CORS policy compilation.

Turns user-facing ``Options`` into an immutable ``Policy`` that the
negotiation engine queries on every request. Compilation happens once,
at construction time, and never fails: empty or contradictory options
still produce a usable (possibly maximally restrictive) policy.

Thread-safe: a compiled Policy is never mutated.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Optional

from fluxcors.headers import canonical_header_key, convert
from fluxcors.wildcard import Wildcard

DEFAULT_ALLOWED_HEADERS = ("Origin", "Accept", "Content-Type", "X-Requested-With")
DEFAULT_ALLOWED_METHODS = ("GET", "POST", "HEAD")


@dataclass(frozen=True)
class Options:
    """CORS configuration as supplied by the user.

    Attributes:
        allowed_origins: Origins allowed to make cross-origin requests.
            "*" allows every origin, one "*" inside an entry makes it a
            wildcard pattern. Empty allows every origin.
        allow_origin_func: Predicate deciding origin admissibility. When
            set, ``allowed_origins`` is ignored.
        allowed_methods: Methods the client may use. Empty means
            GET, POST, HEAD.
        allowed_headers: Non-simple request headers the client may send.
            "*" allows any header.
        exposed_headers: Response headers exposed to the client.
        max_age: Preflight cache lifetime in seconds; <= 0 omits it.
        allow_credentials: Whether cookies/HTTP auth may be sent.
        options_passthrough: Hand preflight requests to the downstream
            handler instead of answering them directly.
        debug: Trace every decision through the diagnostic logger.
    """
    allowed_origins: list[str] = field(default_factory=list)
    allow_origin_func: Optional[Callable[[str], bool]] = None
    allowed_methods: list[str] = field(default_factory=list)
    allowed_headers: list[str] = field(default_factory=list)
    exposed_headers: list[str] = field(default_factory=list)
    max_age: int = 0
    allow_credentials: bool = False
    options_passthrough: bool = False
    debug: bool = False


# ---------------------------------------------------------------------------
# Origin strategies
# ---------------------------------------------------------------------------

class OriginMatcher(ABC):
    """Decides whether an origin may make cross-origin requests."""

    allows_all = False

    @abstractmethod
    def admits(self, origin: str) -> bool:
        """True when ``origin`` may make cross-origin requests."""


@dataclass(frozen=True)
class AllowAllOrigins(OriginMatcher):
    allows_all = True

    def admits(self, origin: str) -> bool:
        return True


@dataclass(frozen=True)
class PredicateOrigins(OriginMatcher):
    """Delegates to a user predicate; the origin is passed as received."""

    predicate: Callable[[str], bool]

    def admits(self, origin: str) -> bool:
        return bool(self.predicate(origin))


@dataclass(frozen=True)
class OriginSet(OriginMatcher):
    """Exact (lower-cased) origins plus single-asterisk patterns."""

    exact: frozenset[str] = frozenset()
    wildcards: tuple[Wildcard, ...] = ()

    def admits(self, origin: str) -> bool:
        origin = origin.lower()
        if origin in self.exact:
            return True
        return any(w.match(origin) for w in self.wildcards)


# ---------------------------------------------------------------------------
# Policy
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Policy:
    """Compiled, read-only CORS policy."""

    origins: OriginMatcher = field(default_factory=AllowAllOrigins)
    allowed_methods: tuple[str, ...] = DEFAULT_ALLOWED_METHODS
    allow_all_headers: bool = False
    allowed_headers: tuple[str, ...] = DEFAULT_ALLOWED_HEADERS
    exposed_headers: tuple[str, ...] = ()
    allow_credentials: bool = False
    max_age: int = 0
    options_passthrough: bool = False

    @property
    def allow_all_origins(self) -> bool:
        return self.origins.allows_all


def _compile_origins(options: Options) -> OriginMatcher:
    if options.allow_origin_func is not None:
        return PredicateOrigins(options.allow_origin_func)
    if not options.allowed_origins:
        return AllowAllOrigins()

    exact: list[str] = []
    wildcards: list[Wildcard] = []
    for origin in options.allowed_origins:
        origin = origin.lower()
        if origin == "*":
            # "*" anywhere overrides every other entry
            return AllowAllOrigins()
        if "*" in origin:
            wildcards.append(Wildcard.from_origin(origin))
        else:
            exact.append(origin)
    return OriginSet(frozenset(exact), tuple(wildcards))


def compile_policy(options: Optional[Options] = None) -> Policy:
    """Compile ``options`` into a Policy.

    Args:
        options: User configuration. ``None`` means all defaults.

    Returns:
        Policy instance. Never raises for any combination of options.
    """
    if options is None:
        options = Options()

    allow_all_headers = False
    if not options.allowed_headers:
        allowed_headers = DEFAULT_ALLOWED_HEADERS
    elif "*" in options.allowed_headers:
        allow_all_headers = True
        allowed_headers = ()
    else:
        allowed_headers = tuple(
            convert([*options.allowed_headers, "Origin"], canonical_header_key)
        )

    if not options.allowed_methods:
        allowed_methods = DEFAULT_ALLOWED_METHODS
    else:
        allowed_methods = tuple(convert(options.allowed_methods, str.upper))

    return Policy(
        origins=_compile_origins(options),
        allowed_methods=allowed_methods,
        allow_all_headers=allow_all_headers,
        allowed_headers=allowed_headers,
        exposed_headers=tuple(convert(options.exposed_headers, canonical_header_key)),
        allow_credentials=options.allow_credentials,
        max_age=options.max_age,
        options_passthrough=options.options_passthrough,
    )
