# ============================================================================
# RECONCILER REGISTRY
# ============================================================================
# EPOCH: 2 - LIFECYCLE RECONCILIATION
# STATUS: Core - Reconciler registration and lookup
# PURPOSE: Resolve a resource type (or its wire alias) to a reconciler class
# CREATED: 14 OCT 2026
# ============================================================================
"""
Reconciler Registry

Central registry of reconciler classes. The HTTP surface and the provider
registry use it to find the reconciler for a resource type.

Design:
- Reconcilers are registered at import time via class decorator
- Registry is a simple dict (name -> class), aliases resolve to the same class
- Fail-fast on duplicate registration
- Lookup is case-insensitive ("Schema", "schema", "Custom::TemporalSchema")
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=type)


# ============================================================================
# EXCEPTIONS
# ============================================================================

class ReconcilerRegistryError(Exception):
    """Base exception for registry errors."""
    pass


class ReconcilerNotFoundError(ReconcilerRegistryError):
    """Raised when no reconciler is registered for a resource type."""
    def __init__(self, resource_type: str):
        self.resource_type = resource_type
        super().__init__(f"Reconciler not found: {resource_type}")


class DuplicateReconcilerError(ReconcilerRegistryError):
    """Raised when a resource type or alias is already registered."""
    def __init__(self, resource_type: str):
        self.resource_type = resource_type
        super().__init__(f"Reconciler already registered: {resource_type}")


# ============================================================================
# REGISTRY
# ============================================================================

# Global registry, keys lower-cased
_reconcilers: Dict[str, type] = {}
_reconciler_metadata: Dict[str, Dict[str, Any]] = {}


def _key(name: str) -> str:
    return name.strip().lower()


def register_reconciler(
    name: str,
    *,
    aliases: Optional[List[str]] = None,
    description: str = "",
) -> Callable[[R], R]:
    """
    Decorator to register a reconciler class.

    Args:
        name: Canonical resource type (must be unique)
        aliases: Wire resource type names resolving to the same class
        description: Human-readable description (defaults to class docstring)

    Example:
        @register_reconciler("namespace", aliases=["Custom::TemporalNamespace"])
        class NamespaceReconciler(Reconciler):
            ...
    """
    def decorator(cls: R) -> R:
        doc_lines = (cls.__doc__ or "").strip().splitlines()
        names = [name] + list(aliases or [])
        for candidate in names:
            existing = _reconcilers.get(_key(candidate))
            if existing is not None and existing is not cls:
                raise DuplicateReconcilerError(candidate)

        for candidate in names:
            _reconcilers[_key(candidate)] = cls

        _reconciler_metadata[_key(name)] = {
            "name": name,
            "aliases": list(aliases or []),
            "description": description or (doc_lines[0] if doc_lines else ""),
            "class": cls.__name__,
            "module": cls.__module__,
            "registered_at": datetime.now(timezone.utc).isoformat(),
        }

        logger.debug(f"Registered reconciler: {name} ({cls.__module__}.{cls.__name__})")
        return cls

    return decorator


def get_reconciler_class(resource_type: str) -> Optional[type]:
    """
    Get a reconciler class by resource type or alias.

    Returns:
        Reconciler class or None if not found
    """
    return _reconcilers.get(_key(resource_type))


def get_reconciler_class_or_raise(resource_type: str) -> type:
    """
    Get a reconciler class by resource type, raising if not found.

    Raises:
        ReconcilerNotFoundError if no reconciler is registered
    """
    cls = get_reconciler_class(resource_type)
    if cls is None:
        raise ReconcilerNotFoundError(resource_type)
    return cls


def canonical_name(resource_type: str) -> str:
    """Resolve an alias to the canonical resource type."""
    cls = get_reconciler_class_or_raise(resource_type)
    return getattr(cls, "resource_type", _key(resource_type))


def list_reconcilers() -> List[Dict[str, Any]]:
    """List all registered reconcilers with metadata."""
    return list(_reconciler_metadata.values())


def clear_reconcilers() -> None:
    """
    Clear all registered reconcilers.

    Primarily for testing.
    """
    _reconcilers.clear()
    _reconciler_metadata.clear()
    logger.debug("Cleared all reconcilers")


__all__ = [
    "register_reconciler",
    "get_reconciler_class",
    "get_reconciler_class_or_raise",
    "canonical_name",
    "list_reconcilers",
    "clear_reconcilers",
    "ReconcilerRegistryError",
    "ReconcilerNotFoundError",
    "DuplicateReconcilerError",
]
