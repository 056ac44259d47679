"""
CORS (Cross-Origin Resource Sharing) negotiation engine.

Cors compiles Options into an immutable Policy once, then for every
request runs one of two ordered check chains:

- preflight: OPTIONS with a non-empty Access-Control-Request-Method
- actual: everything else

A failed check is not an error. The chain stops and the response simply
does not get the Access-Control-* headers (only Vary).

Three adapters expose the same decision with different plumbing:
handler() wraps a downstream callable, handler_func() only writes
headers, serve_http() takes the downstream as a continuation.

Thread-safe: the Policy is never mutated after construction.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from http import HTTPStatus
from typing import Callable, NamedTuple, Optional, Sequence
from wsgiref.headers import Headers

from fluxcors.headers import canonical_header_key, parse_header_list
from fluxcors.logging_config import get_logger
from fluxcors.messages import Request, Response
from fluxcors.policy import Options, Policy, compile_policy

METHOD_OPTIONS = "OPTIONS"

ORIGIN = "Origin"
VARY = "Vary"
REQUEST_METHOD = "Access-Control-Request-Method"
REQUEST_HEADERS = "Access-Control-Request-Headers"
ALLOW_ORIGIN = "Access-Control-Allow-Origin"
ALLOW_METHODS = "Access-Control-Allow-Methods"
ALLOW_HEADERS = "Access-Control-Allow-Headers"
ALLOW_CREDENTIALS = "Access-Control-Allow-Credentials"
MAX_AGE = "Access-Control-Max-Age"
EXPOSE_HEADERS = "Access-Control-Expose-Headers"

Handler = Callable[[Request, Response], None]


class Outcome(NamedTuple):
    """Result of a check: proceed, or abort silently with a reason."""

    proceed: bool
    reason: str = ""


CONTINUE = Outcome(True)


def abort(reason: str) -> Outcome:
    return Outcome(False, reason)


@dataclass(frozen=True)
class Negotiation:
    """Request values a check chain looks at."""

    method: str
    origin: str
    requested_method: str = ""
    requested_headers: tuple[str, ...] = ()

    @classmethod
    def from_request(cls, request: Request) -> "Negotiation":
        return cls(
            method=request.method,
            origin=request.header(ORIGIN),
            requested_method=request.header(REQUEST_METHOD),
            requested_headers=tuple(parse_header_list(request.header(REQUEST_HEADERS))),
        )


Check = Callable[[Negotiation], Outcome]


def run_checks(checks: Sequence[Check], negotiation: Negotiation) -> Outcome:
    """Run ``checks`` in order and return the first abort, else CONTINUE."""
    for check in checks:
        outcome = check(negotiation)
        if not outcome.proceed:
            return outcome
    return CONTINUE


def is_preflight(request: Request) -> bool:
    return request.method == METHOD_OPTIONS and request.header(REQUEST_METHOD) != ""


class Cors:
    """CORS request decorator.

    Args:
        options: CORS configuration; None uses the defaults.
        logger: Diagnostic sink for decision traces. When omitted and
            ``options.debug`` is set, the "cors" project logger is used.
    """

    def __init__(self, options: Optional[Options] = None,
                 logger: Optional[logging.Logger] = None):
        if options is None:
            options = Options()
        self.policy: Policy = compile_policy(options)
        if logger is None and options.debug:
            logger = get_logger("cors")
        self._log = logger

        self.preflight_checks: tuple[Check, ...] = (
            self._check_preflight_method,
            self._check_origin_present,
            self._check_origin_allowed,
            self._check_requested_method,
            self._check_requested_headers,
        )
        self.actual_checks: tuple[Check, ...] = (
            self._check_origin_present,
            self._check_origin_allowed,
            self._check_request_method,
        )

    # ---- adapters ----

    def handler(self, downstream: Handler) -> Handler:
        """Wrap ``downstream`` so every request goes through CORS first."""
        def wrapped(request: Request, response: Response) -> None:
            self._dispatch("Handler", request, response, downstream)
        return wrapped

    def handler_func(self, request: Request, response: Response) -> None:
        """Write CORS headers into ``response`` without calling anything else."""
        if is_preflight(request):
            self._logf("HandlerFunc: Preflight request")
            self.handle_preflight(request, response.headers)
        else:
            self._logf("HandlerFunc: Actual request")
            self.handle_actual_request(request, response.headers)

    def serve_http(self, request: Request, response: Response,
                   next_handler: Handler) -> None:
        """Apply CORS, then continue with ``next_handler`` when appropriate."""
        self._dispatch("ServeHTTP", request, response, next_handler)

    def _dispatch(self, label: str, request: Request, response: Response,
                  downstream: Handler) -> None:
        if is_preflight(request):
            self._logf("%s: Preflight request", label)
            self.handle_preflight(request, response.headers)
            if self.policy.options_passthrough:
                downstream(request, response)
            else:
                response.write_header(HTTPStatus.OK.value)
        else:
            self._logf("%s: Actual request", label)
            self.handle_actual_request(request, response.headers)
            downstream(request, response)

    # ---- negotiation ----

    def handle_preflight(self, request: Request, headers: Headers) -> Outcome:
        """Run the preflight chain and write its headers."""
        headers.add_header(VARY, ORIGIN)
        headers.add_header(VARY, REQUEST_METHOD)
        headers.add_header(VARY, REQUEST_HEADERS)

        negotiation = Negotiation.from_request(request)
        outcome = run_checks(self.preflight_checks, negotiation)
        if not outcome.proceed:
            self._logf("    Preflight aborted: %s", outcome.reason)
            return outcome

        headers[ALLOW_ORIGIN] = self._allow_origin_value(negotiation.origin)
        headers[ALLOW_METHODS] = negotiation.requested_method.upper()
        if negotiation.requested_headers:
            headers[ALLOW_HEADERS] = ", ".join(negotiation.requested_headers)
        if self.policy.allow_credentials:
            headers[ALLOW_CREDENTIALS] = "true"
        if self.policy.max_age > 0:
            headers[MAX_AGE] = str(self.policy.max_age)
        self._logf("    Preflight response headers: %s", headers.items())
        return outcome

    def handle_actual_request(self, request: Request, headers: Headers) -> Outcome:
        """Run the actual-request chain and write its headers."""
        if request.method == METHOD_OPTIONS:
            self._logf("    Actual request no headers added: method == %s", request.method)
            return abort(f"method == {METHOD_OPTIONS}")

        headers.add_header(VARY, ORIGIN)

        negotiation = Negotiation.from_request(request)
        outcome = run_checks(self.actual_checks, negotiation)
        if not outcome.proceed:
            self._logf("    Actual request no headers added: %s", outcome.reason)
            return outcome

        headers[ALLOW_ORIGIN] = self._allow_origin_value(negotiation.origin)
        if self.policy.exposed_headers:
            headers[EXPOSE_HEADERS] = ", ".join(self.policy.exposed_headers)
        if self.policy.allow_credentials:
            headers[ALLOW_CREDENTIALS] = "true"
        self._logf("    Actual response added headers: %s", headers.items())
        return outcome

    # ---- checks ----

    def _check_preflight_method(self, n: Negotiation) -> Outcome:
        if n.method != METHOD_OPTIONS:
            return abort(f"{n.method}!={METHOD_OPTIONS}")
        return CONTINUE

    def _check_origin_present(self, n: Negotiation) -> Outcome:
        if not n.origin:
            return abort("missing origin")
        return CONTINUE

    def _check_origin_allowed(self, n: Negotiation) -> Outcome:
        if not self.is_origin_allowed(n.origin):
            return abort(f"origin '{n.origin}' not allowed")
        return CONTINUE

    def _check_requested_method(self, n: Negotiation) -> Outcome:
        if not self.is_method_allowed(n.requested_method):
            return abort(f"method '{n.requested_method}' not allowed")
        return CONTINUE

    def _check_request_method(self, n: Negotiation) -> Outcome:
        if not self.is_method_allowed(n.method):
            return abort(f"method '{n.method}' not allowed")
        return CONTINUE

    def _check_requested_headers(self, n: Negotiation) -> Outcome:
        if not self.are_headers_allowed(n.requested_headers):
            return abort(f"headers '{list(n.requested_headers)}' not allowed")
        return CONTINUE

    # ---- policy queries ----

    def is_origin_allowed(self, origin: str) -> bool:
        return self.policy.origins.admits(origin)

    def is_method_allowed(self, method: str) -> bool:
        """OPTIONS is always allowed; anything else must be in the allow-list."""
        method = method.upper()
        if method == METHOD_OPTIONS:
            return True
        return method in self.policy.allowed_methods

    def are_headers_allowed(self, requested: Sequence[str]) -> bool:
        """All-or-nothing: one unknown header rejects the whole list."""
        if self.policy.allow_all_headers or not requested:
            return True
        return all(canonical_header_key(h) in self.policy.allowed_headers for h in requested)

    def _allow_origin_value(self, origin: str) -> str:
        if self.policy.allow_all_origins and not self.policy.allow_credentials:
            return "*"
        return origin

    def _logf(self, fmt: str, *args) -> None:
        if self._log is not None:
            self._log.debug(fmt, *args)


def new(options: Optional[Options] = None,
        logger: Optional[logging.Logger] = None) -> Cors:
    """Create a Cors instance from ``options``."""
    return Cors(options, logger=logger)


def default() -> Cors:
    """Cors with every option at its default."""
    return Cors(Options())


def allow_all() -> Cors:
    """Cors admitting any origin, header and common method, with credentials."""
    return Cors(Options(
        allowed_origins=["*"],
        allowed_methods=["HEAD", "GET", "POST", "PUT", "PATCH", "DELETE"],
        allowed_headers=["*"],
        allow_credentials=True,
    ))
