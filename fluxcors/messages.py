"""
Minimal request/response views shared by every adapter.

Request is a read-only view of method, path and headers (case-insensitive
lookup). Response collects status, headers and body for a single request;
its headers are a ``wsgiref.headers.Headers`` so ``add_header`` appends
and item assignment replaces.

No external dependencies.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional, Union
from wsgiref.headers import Headers

HeaderSource = Union[Mapping[str, str], Iterable[tuple[str, str]]]


def _to_headers(source: Optional[HeaderSource]) -> Headers:
    if source is None:
        return Headers([])
    if isinstance(source, Headers):
        return source
    items = source.items() if isinstance(source, Mapping) else source
    return Headers([(str(k), str(v)) for k, v in items])


@dataclass(frozen=True)
class Request:
    """Inbound request as seen by the CORS engine."""

    method: str
    headers: Headers = field(default_factory=lambda: Headers([]))
    path: str = "/"

    @classmethod
    def build(cls, method: str, headers: Optional[HeaderSource] = None,
              path: str = "/") -> "Request":
        """Create a Request from a dict or a list of (name, value) pairs."""
        return cls(method=method, headers=_to_headers(headers), path=path)

    @classmethod
    def from_environ(cls, environ: Mapping[str, object]) -> "Request":
        """Create a Request from a WSGI environ."""
        pairs = []
        for key, value in environ.items():
            if key.startswith("HTTP_"):
                name = key[5:].replace("_", "-")
                pairs.append((name, str(value)))
            elif key in ("CONTENT_TYPE", "CONTENT_LENGTH") and value:
                pairs.append((key.replace("_", "-"), str(value)))
        return cls(
            method=str(environ.get("REQUEST_METHOD", "GET")),
            headers=Headers(pairs),
            path=str(environ.get("PATH_INFO", "/")) or "/",
        )

    @classmethod
    def from_http_handler(cls, handler) -> "Request":
        """Create a Request from a ``BaseHTTPRequestHandler`` instance."""
        return cls(
            method=handler.command,
            headers=Headers(list(handler.headers.items())),
            path=handler.path,
        )

    def header(self, name: str) -> str:
        """First value of ``name`` or "" when absent."""
        return self.headers.get(name) or ""


class Response:
    """Per-request response accumulator.

    ``status`` stays None until ``write_header`` or ``write`` is called;
    only the first status written is kept.
    """

    def __init__(self):
        self.status: Optional[int] = None
        self.headers = Headers([])
        self.body = bytearray()

    @property
    def written(self) -> bool:
        return self.status is not None

    def write_header(self, status: int) -> None:
        if self.status is None:
            self.status = status

    def write(self, data: bytes) -> int:
        if self.status is None:
            self.status = 200
        self.body.extend(data)
        return len(data)
