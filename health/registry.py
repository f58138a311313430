# ============================================================================
# HEALTH CHECK REGISTRY
# ============================================================================
# EPOCH: 2 - LIFECYCLE RECONCILIATION
# STATUS: Infrastructure - Health check plugin registration
# PURPOSE: Register and look up health check plugins
# CREATED: 17 OCT 2026
# ============================================================================
"""
Health Check Registry

Built-in checks register themselves when health.checks is imported:

    @register_check(category="storage", required_for_ready=False)
    class SharedStorageCheck(HealthCheckPlugin):
        name = "shared_storage"
        ...

Tests build a private HealthCheckRegistry and register instances directly.
"""

import logging
from collections import OrderedDict
from typing import Dict, Iterator, List, Optional, Type, Union

from health.core import HealthCheckCategory, HealthCheckPlugin

logger = logging.getLogger(__name__)


class HealthCheckRegistry:
    """Named health check instances. Iteration follows priority."""

    def __init__(self):
        self._checks: Dict[str, HealthCheckPlugin] = {}
        self._initialized = False

    def register(self, check: HealthCheckPlugin) -> None:
        previous = self._checks.get(check.name)
        if previous is not None and type(previous) is not type(check):
            logger.warning(
                f"Health check {check.name}: {type(previous).__name__} replaced by {type(check).__name__}"
            )
        self._checks[check.name] = check

    def unregister(self, name: str) -> bool:
        return self._checks.pop(name, None) is not None

    def get(self, name: str) -> Optional[HealthCheckPlugin]:
        return self._checks.get(name)

    def get_checks_by_priority(self) -> List[HealthCheckPlugin]:
        # sorted() is stable: equal priorities keep registration order
        return sorted(self._checks.values(), key=lambda c: c.effective_priority)

    def get_required_checks(self) -> List[HealthCheckPlugin]:
        """Checks whose failure takes the provisioner out of rotation."""
        return [c for c in self.get_checks_by_priority() if c.required_for_ready]

    def get_checks_by_category(self) -> "OrderedDict[HealthCheckCategory, List[HealthCheckPlugin]]":
        grouped: "OrderedDict[HealthCheckCategory, List[HealthCheckPlugin]]" = OrderedDict()
        for check in self.get_checks_by_priority():
            grouped.setdefault(check.category, []).append(check)
        return grouped

    def clear(self) -> None:
        self._checks.clear()
        self._initialized = False

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def mark_initialized(self) -> None:
        self._initialized = True
        logger.info(
            "Health checks ready: "
            + ", ".join(f"{c.name}({c.category.value})" for c in self.get_checks_by_priority())
        )

    def __iter__(self) -> Iterator[HealthCheckPlugin]:
        return iter(self.get_checks_by_priority())

    def __len__(self) -> int:
        return len(self._checks)

    def __contains__(self, name: str) -> bool:
        return name in self._checks


_registry: Optional[HealthCheckRegistry] = None


def get_registry() -> HealthCheckRegistry:
    """Process-wide registry used by the probe endpoints."""
    global _registry
    if _registry is None:
        _registry = HealthCheckRegistry()
    return _registry


def register_check(
    category: Union[str, HealthCheckCategory, None] = None,
    priority: Optional[int] = None,
    timeout_seconds: Optional[float] = None,
    required_for_ready: Optional[bool] = None,
):
    """
    Class decorator: register one instance in the process-wide registry.

    Overrides are applied to the class, so instances created later (e.g.
    in tests) behave the same as the registered one.
    """
    overrides = {
        "category": HealthCheckCategory(category) if category is not None else None,
        "priority": priority,
        "timeout_seconds": timeout_seconds,
        "required_for_ready": required_for_ready,
    }

    def decorator(cls: Type[HealthCheckPlugin]) -> Type[HealthCheckPlugin]:
        for attribute, value in overrides.items():
            if value is not None:
                setattr(cls, attribute, value)
        get_registry().register(cls())
        return cls

    return decorator


__all__ = [
    "HealthCheckRegistry",
    "get_registry",
    "register_check",
]
