from __future__ import annotations

from ..config import ConfigError
from .base import BaseSite

# Global in-process registry: kind -> site adapter class
_REGISTRY: dict[str, type[BaseSite]] = {}


def register(cls: type[BaseSite]) -> type[BaseSite]:
    """
    Class decorator or direct call to register a site adapter.
    Requires cls.kind to be a non-empty string.
    """
    kind = getattr(cls, "kind", "") or ""
    if not isinstance(kind, str) or not kind.strip():
        raise ValueError(f"Cannot register site {cls!r}: missing/empty 'kind'.")
    key = kind.strip().lower()
    if key in _REGISTRY and _REGISTRY[key] is not cls:
        raise ValueError(f"Site kind {key!r} already registered to {_REGISTRY[key]!r}.")
    _REGISTRY[key] = cls
    return cls


def get(kind: str) -> type[BaseSite]:
    """
    Look up a site adapter class by kind (case-insensitive).
    Raises ConfigError if not found.
    """
    key = (kind or "").strip().lower()
    if key not in _REGISTRY:
        raise ConfigError(f"No site registered for kind {kind!r}. Known: {sorted(_REGISTRY)}")
    return _REGISTRY[key]


def all_kinds() -> dict[str, type[BaseSite]]:
    """
    Return a shallow copy of the registry (useful for debugging/tests).
    """
    return dict(_REGISTRY)
