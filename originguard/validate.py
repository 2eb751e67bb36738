"""Startup validation of the CORS configuration."""
from __future__ import annotations

from urllib.parse import urlsplit

from cors import WILDCARD
from logging_config import get_logger

logger = get_logger("validate")


class ConfigurationError(RuntimeError):
    """Raised at startup when the deployment configuration is unusable."""


def origin_problem(origin: str) -> str | None:
    """Return why ``origin`` is not a bare scheme://host[:port], or None."""
    try:
        parts = urlsplit(origin)
        port = parts.port
    except ValueError:
        return "unparseable"
    if parts.scheme not in ("http", "https"):
        return "scheme must be http or https"
    if not parts.hostname:
        return "missing host"
    if parts.username or parts.password:
        return "must not contain credentials"
    if parts.path or parts.query or parts.fragment or origin.endswith(("?", "#")):
        return "must not contain a path, query or fragment"
    if port == 0:
        return "invalid port"
    # Browsers send scheme and host lowercased; anything else never matches.
    if origin != origin.lower():
        return "scheme and host must be lowercase"
    return None


def validate_on_boot(cfg, allow_list) -> None:
    """Validate the allow-list against the deployment mode.

    Raises:
        ConfigurationError: when a production deployment lacks FRONTEND_URL,
            has an empty allow-list or malformed origins, or when any entry
            is the wildcard.
    """
    if WILDCARD in allow_list:
        raise ConfigurationError(
            "Wildcard origin '*' is not supported; list exact origins instead"
            + (" (credentials are enabled)" if cfg.cors_credentials else "")
        )

    if cfg.is_production:
        if not cfg.frontend_url.strip():
            raise ConfigurationError("FRONTEND_URL must be set in production")
        if not len(allow_list):
            raise ConfigurationError("Allow-list is empty in production")

    for origin in allow_list:
        problem = origin_problem(origin)
        if problem is None:
            continue
        if cfg.is_production:
            raise ConfigurationError(f"Invalid origin {origin!r}: {problem}")
        logger.warning("Origin %r looks invalid (%s); it can never match", origin, problem)

    logger.info("CORS environment: %s", cfg.app_env)
    for origin in allow_list:
        logger.info("  allowed origin: %s", origin)
    logger.info("CORS credentials: %s, reject denied: %s",
                cfg.cors_credentials, cfg.cors_reject_denied)
