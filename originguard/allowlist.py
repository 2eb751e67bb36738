"""Allow-list of permitted CORS origins.

Built once at startup from configuration and never mutated. Runtime
reconfiguration swaps the whole snapshot through AllowListHolder.
"""
from __future__ import annotations

import threading
from typing import Iterable, Iterator, Optional

from logging_config import get_logger

logger = get_logger("allowlist")

DEV_DEFAULT_ORIGINS = ("http://localhost:3000", "http://localhost:5000")


class AllowList:
    """Ordered, duplicate-free, immutable set of origin strings.

    Membership is exact string equality.
    """

    __slots__ = ("_origins", "_lookup")

    def __init__(self, origins: Iterable[str] = ()):
        seen = []
        for origin in origins:
            if origin and origin not in seen:
                seen.append(origin)
        object.__setattr__(self, "_origins", tuple(seen))
        object.__setattr__(self, "_lookup", frozenset(seen))

    def __setattr__(self, name, value):
        raise AttributeError("AllowList is immutable")

    def __contains__(self, origin) -> bool:
        return isinstance(origin, str) and origin in self._lookup

    def __iter__(self) -> Iterator[str]:
        return iter(self._origins)

    def __len__(self) -> int:
        return len(self._origins)

    def __eq__(self, other) -> bool:
        if isinstance(other, AllowList):
            return self._origins == other._origins
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._origins)

    def __repr__(self) -> str:
        return f"AllowList({list(self._origins)!r})"

    @property
    def origins(self) -> tuple[str, ...]:
        return self._origins


def _split_origins(value) -> list[str]:
    if not value:
        return []
    if isinstance(value, str):
        value = value.split(",")
    return [v.strip() for v in value if v and v.strip()]


def _clean_configured(origin: str) -> str:
    """Strip one trailing slash from a configured origin."""
    if origin.endswith("/") and not origin.endswith("://"):
        logger.warning("Configured origin %r has a trailing slash; using %r",
                       origin, origin[:-1])
        return origin[:-1]
    return origin


def build_allow_list(
    frontend_url: Optional[str],
    dev_origins: Iterable[str] | str = DEV_DEFAULT_ORIGINS,
    extra_origins: Iterable[str] | str = (),
) -> AllowList:
    """Combine configured origins into an AllowList.

    Args:
        frontend_url: The deployed frontend URL (may be empty).
        dev_origins: Development defaults, appended last.
        extra_origins: Additional configured origins.

    Returns:
        AllowList in the order frontend, extras, dev defaults.
    """
    combined = _split_origins(frontend_url) + _split_origins(extra_origins)
    combined += _split_origins(dev_origins)
    return AllowList(_clean_configured(o) for o in combined)


def allow_list_from_config(cfg) -> AllowList:
    """Build the AllowList from the central Config."""
    dev = cfg.dev_origins if cfg.include_dev_origins else ()
    return build_allow_list(cfg.frontend_url, dev_origins=dev,
                            extra_origins=cfg.extra_origins)


class AllowListHolder:
    """Process-wide reference to the current AllowList snapshot.

    Readers call get() without locking; replace() swaps the reference
    atomically. Writers are serialized with their own lock.
    """

    def __init__(self, allow_list: AllowList):
        self._current = allow_list
        self._write_lock = threading.Lock()

    def get(self) -> AllowList:
        return self._current

    def replace(self, allow_list: AllowList) -> AllowList:
        """Swap in a new snapshot and return the previous one."""
        if not isinstance(allow_list, AllowList):
            raise TypeError("replace() expects an AllowList")
        with self._write_lock:
            previous = self._current
            self._current = allow_list
        logger.info("Allow-list replaced: %d -> %d origins",
                    len(previous), len(allow_list))
        return previous
