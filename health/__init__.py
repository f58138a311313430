# ============================================================================
# HEALTH CHECK MODULE
# ============================================================================
# EPOCH: 2 - LIFECYCLE RECONCILIATION
# STATUS: Infrastructure - Health check plugin system
# PURPOSE: Liveness, readiness and full health endpoints
# CREATED: 17 OCT 2026
# ============================================================================
"""
Health Check Module

Plugin-based health checks for the provisioner:
- /livez: process alive
- /readyz: required checks (admin tools, configuration)
- /health: every registered check

Usage:
    from health import health_router, get_registry
    import health.checks  # registers built-in checks

    app.include_router(health_router)
"""

from health.core import (
    HealthStatus,
    HealthCheckResult,
    HealthCheckPlugin,
    HealthCheckCategory,
    AggregatedHealthResult,
)
from health.registry import (
    HealthCheckRegistry,
    register_check,
    get_registry,
)
from health.executor import HealthCheckExecutor
from health.router import health_router

__all__ = [
    # Core types
    "HealthStatus",
    "HealthCheckResult",
    "HealthCheckPlugin",
    "HealthCheckCategory",
    "AggregatedHealthResult",
    # Registry
    "HealthCheckRegistry",
    "register_check",
    "get_registry",
    # Executor
    "HealthCheckExecutor",
    # Router
    "health_router",
]
