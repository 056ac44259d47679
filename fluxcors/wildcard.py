"""Single-asterisk origin patterns such as ``https://*.example.com``."""
from __future__ import annotations

from typing import NamedTuple


class Wildcard(NamedTuple):
    """Origin pattern split at its first ``*``."""

    prefix: str
    suffix: str

    @classmethod
    def from_origin(cls, origin: str) -> "Wildcard":
        """Split ``origin`` at the first ``*``.

        Anything after the first ``*`` (further asterisks included) is kept
        as the literal suffix.
        """
        prefix, _, suffix = origin.partition("*")
        return cls(prefix, suffix)

    def match(self, candidate: str) -> bool:
        return (
            len(candidate) >= len(self.prefix) + len(self.suffix)
            and candidate.startswith(self.prefix)
            and candidate.endswith(self.suffix)
        )
