"""
CORS (Cross-Origin Resource Sharing) origin policy module.

Decides whether a cross-origin request is permitted and builds the
``Access-Control-*`` response headers for the preflight and actual steps.

Matching is exact string equality against an immutable allow-list. There is
no wildcard, subdomain or pattern matching.

Thread-safe: pure functions over immutable inputs.
No external dependencies (stdlib only).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Collection, Optional

WILDCARD = "*"

DEFAULT_ALLOWED_METHODS = "GET, POST, PUT, DELETE, OPTIONS"
DEFAULT_ALLOWED_HEADERS = "Content-Type, Authorization"


@dataclass(frozen=True)
class PolicyDecision:
    """Outcome of evaluating a request origin.

    Attributes:
        allowed: Whether the request may proceed with CORS access.
        origin: The exact origin to echo back. None for an allowed
            non-CORS request (no Origin header) and for every denial.
    """
    allowed: bool
    origin: Optional[str] = None

    @classmethod
    def allow(cls, origin: Optional[str] = None) -> "PolicyDecision":
        return cls(allowed=True, origin=origin)

    @classmethod
    def deny(cls) -> "PolicyDecision":
        return cls(allowed=False, origin=None)

    @property
    def is_cors(self) -> bool:
        """True when there is an origin to echo."""
        return self.allowed and self.origin is not None


@dataclass(frozen=True)
class CORSConfig:
    """Immutable CORS header policy, fixed per deployment.

    Attributes:
        allowed_methods: Comma-separated HTTP methods for preflight responses.
        allowed_headers: Comma-separated request headers for preflight responses.
        expose_headers: Comma-separated response headers readable by the page.
        max_age: Preflight cache duration in seconds.
        credentials: Credential mode. Adds Access-Control-Allow-Credentials.
    """
    allowed_methods: str = DEFAULT_ALLOWED_METHODS
    allowed_headers: str = DEFAULT_ALLOWED_HEADERS
    expose_headers: str = ""
    max_age: int = 86400
    credentials: bool = True


def evaluate(
    request_origin: Optional[str],
    allow_list: Collection[str],
    credential_mode: bool = False,
) -> PolicyDecision:
    """Decide whether a request origin is permitted.

    Args:
        request_origin: The Origin header value, or None when absent.
        allow_list: Configured origins. Compared by exact string equality.
        credential_mode: Whether credentialed access is enabled.

    Returns:
        PolicyDecision. Never raises for any string input.
    """
    if request_origin is None:
        return PolicyDecision.allow()
    if credential_mode and request_origin == WILDCARD:
        return PolicyDecision.deny()
    if request_origin in allow_list:
        return PolicyDecision.allow(request_origin)
    return PolicyDecision.deny()


def _can_echo(decision: PolicyDecision, credential_mode: bool) -> bool:
    """Whether the decision may produce CORS headers under this credential mode."""
    if not decision.is_cors:
        return False
    return not (credential_mode and decision.origin == WILDCARD)


def _origin_headers(decision: PolicyDecision, credential_mode: bool) -> dict[str, str]:
    headers: dict[str, str] = {
        "Access-Control-Allow-Origin": decision.origin,
        "Vary": "Origin",
    }
    if credential_mode:
        headers["Access-Control-Allow-Credentials"] = "true"
    return headers


def respond_preflight(
    decision: PolicyDecision,
    credential_mode: bool,
    config: Optional[CORSConfig] = None,
) -> dict[str, str]:
    """Build the headers for an OPTIONS preflight response.

    Args:
        decision: Result of evaluate().
        credential_mode: Whether to emit Access-Control-Allow-Credentials.
        config: CORSConfig instance. Uses default if None.

    Returns:
        Dictionary of CORS headers. Empty if the origin is denied or
        the request carried no Origin header.
    """
    if not _can_echo(decision, credential_mode):
        return {}
    if config is None:
        config = CORSConfig()

    headers = _origin_headers(decision, credential_mode)
    headers["Access-Control-Allow-Methods"] = config.allowed_methods
    headers["Access-Control-Allow-Headers"] = config.allowed_headers
    headers["Access-Control-Max-Age"] = str(config.max_age)
    return headers


def respond_actual(
    decision: PolicyDecision,
    credential_mode: bool,
    config: Optional[CORSConfig] = None,
) -> dict[str, str]:
    """Build the headers attached to a non-preflight response.

    Same origin/credentials headers as the preflight, without the
    methods and headers enumeration.
    """
    if not _can_echo(decision, credential_mode):
        return {}
    if config is None:
        config = CORSConfig()

    headers = _origin_headers(decision, credential_mode)
    if config.expose_headers:
        headers["Access-Control-Expose-Headers"] = config.expose_headers
    return headers


def _normalize_csv(value: str) -> str:
    return ", ".join(p.strip() for p in value.split(",") if p.strip())


def create_cors_config(
    allowed_methods_str: str = DEFAULT_ALLOWED_METHODS,
    allowed_headers_str: str = DEFAULT_ALLOWED_HEADERS,
    expose_headers_str: str = "",
    max_age: int = 86400,
    credentials: bool = True,
) -> CORSConfig:
    """Create a CORSConfig from comma-separated strings.

    Method names are upper-cased. Blank lists fall back to the defaults.

    Returns:
        CORSConfig instance.
    """
    methods = _normalize_csv(allowed_methods_str).upper() or DEFAULT_ALLOWED_METHODS
    headers = _normalize_csv(allowed_headers_str) or DEFAULT_ALLOWED_HEADERS
    return CORSConfig(
        allowed_methods=methods,
        allowed_headers=headers,
        expose_headers=_normalize_csv(expose_headers_str),
        max_age=max_age,
        credentials=credentials,
    )


def cors_config_from_config(cfg) -> CORSConfig:
    """Build a CORSConfig from the central Config."""
    return create_cors_config(
        allowed_methods_str=cfg.cors_allowed_methods,
        allowed_headers_str=cfg.cors_allowed_headers,
        expose_headers_str=cfg.cors_expose_headers,
        max_age=cfg.cors_max_age,
        credentials=cfg.cors_credentials,
    )
