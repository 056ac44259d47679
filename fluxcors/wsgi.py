"""WSGI middleware applying a Cors policy in front of any WSGI application.

Preflights that are not passed through are answered with ``200 OK`` and an
empty body. For everything else the wrapped application runs and the
CORS headers are merged into the headers it passes to ``start_response``:
Vary is appended, any other CORS header replaces one of the same name.
"""
from __future__ import annotations

from http import HTTPStatus
from typing import Optional

from fluxcors.cors import VARY, Cors, default
from fluxcors.logging_config import get_logger
from fluxcors.messages import Request, Response

logger = get_logger("wsgi")


def _status_line(status: int) -> str:
    try:
        return f"{status} {HTTPStatus(status).phrase}"
    except ValueError:
        return f"{status} Unknown"


def merge_headers(app_headers, cors_headers) -> list[tuple[str, str]]:
    """Merge CORS headers into an application header list."""
    merged = list(app_headers)
    for name, value in cors_headers:
        if name.lower() != VARY.lower():
            merged = [(n, v) for n, v in merged if n.lower() != name.lower()]
        merged.append((name, value))
    return merged


class CORSMiddleware:
    """Wrap ``app`` with ``cors`` (the default policy when omitted)."""

    def __init__(self, app, cors: Optional[Cors] = None):
        self.app = app
        self.cors = cors if cors is not None else default()

    def __call__(self, environ, start_response):
        request = Request.from_environ(environ)
        response = Response()
        result = []

        def call_app(request, response):
            def cors_start_response(status, headers, exc_info=None):
                return start_response(status, merge_headers(headers, response.headers.items()), exc_info)
            result.append(self.app(environ, cors_start_response))

        self.cors.serve_http(request, response, call_app)
        if result:
            return result[0]

        logger.debug("Preflight answered without calling the application: %s", request.path)
        start_response(_status_line(response.status or HTTPStatus.OK.value), response.headers.items())
        return [bytes(response.body)]
