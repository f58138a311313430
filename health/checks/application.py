# ============================================================================
# APPLICATION HEALTH CHECKS
# ============================================================================
# EPOCH: 2 - LIFECYCLE RECONCILIATION
# STATUS: Infrastructure - Reconciler registry health check
# PURPOSE: Verify every lifecycle resource type has a reconciler
# CREATED: 17 OCT 2026
# ============================================================================
"""
Application Health Checks

- ReconcilersCheck: schema, namespace and config-file are registered
"""

import logging

from health.core import HealthCheckPlugin, HealthCheckResult
from health.registry import register_check
from reconcilers import get_reconciler_class, list_reconcilers

logger = logging.getLogger(__name__)

EXPECTED_RECONCILERS = ("schema", "namespace", "config-file")


@register_check(category="application")
class ReconcilersCheck(HealthCheckPlugin):
    name = "reconcilers"
    timeout_seconds = 1.0

    async def check(self) -> HealthCheckResult:
        missing = [name for name in EXPECTED_RECONCILERS if get_reconciler_class(name) is None]
        registered = sorted(meta["name"] for meta in list_reconcilers())

        if missing:
            return HealthCheckResult.unhealthy(
                f"Reconcilers not registered: {', '.join(missing)}",
                registered=registered,
            )
        return HealthCheckResult.healthy(
            message=f"{len(registered)} reconcilers registered",
            registered=registered,
        )


__all__ = [
    "ReconcilersCheck",
]
