"""flux-cors: Cross-Origin Resource Sharing for Python HTTP handlers."""

from fluxcors.cors import Cors, Outcome, allow_all, default, is_preflight, new
from fluxcors.messages import Request, Response
from fluxcors.policy import Options, Policy, compile_policy

__all__ = [
    "Cors",
    "Options",
    "Outcome",
    "Policy",
    "Request",
    "Response",
    "allow_all",
    "compile_policy",
    "default",
    "is_preflight",
    "new",
]
