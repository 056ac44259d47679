"""HTTP header-name helpers.

Canonicalization follows the usual MIME header casing
("x-requested-with" -> "X-Requested-With").

Thread-safe: pure functions, no module state.
"""
from __future__ import annotations

import string
from typing import Callable, Iterable

# Characters stripped around comma-separated tokens
_ASCII_WHITESPACE = " \t\r\n\f\v"

# Characters allowed in a header field name (RFC 7230 token)
_TOKEN_CHARS = frozenset(string.ascii_letters + string.digits + "!#$%&'*+-.^_`|~")


def canonical_header_key(name: str) -> str:
    """Return the canonical form of a header name.

    The first letter and every letter following a hyphen are upper-cased,
    all other letters lower-cased. Only ASCII letters change case; a name
    holding any character that is not valid in a header name is returned
    unchanged. Applying it twice is a no-op.
    """
    if any(c not in _TOKEN_CHARS for c in name):
        return name
    chars = []
    upper = True
    for c in name:
        if upper and "a" <= c <= "z":
            c = chr(ord(c) - 32)
        elif not upper and "A" <= c <= "Z":
            c = chr(ord(c) + 32)
        chars.append(c)
        upper = c == "-"
    return "".join(chars)


def convert(values: Iterable[str], transform: Callable[[str], str]) -> list[str]:
    """Apply ``transform`` to every element, keeping order and length."""
    return [transform(value) for value in values]


def parse_header_list(raw: str) -> list[str]:
    """Parse a comma-separated header-name list.

    Args:
        raw: Header value such as ``Access-Control-Request-Headers``.

    Returns:
        Canonicalized, de-duplicated names in first-seen order.
        Empty or whitespace-only input gives an empty list.
    """
    if not raw:
        return []

    headers: list[str] = []
    seen: set[str] = set()
    for token in raw.split(","):
        token = token.strip(_ASCII_WHITESPACE)
        if not token:
            continue
        name = canonical_header_key(token)
        if name in seen:
            continue
        seen.add(name)
        headers.append(name)
    return headers
