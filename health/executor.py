# ============================================================================
# HEALTH CHECK EXECUTOR
# ============================================================================
# EPOCH: 2 - LIFECYCLE RECONCILIATION
# STATUS: Infrastructure - Concurrent health check execution
# PURPOSE: Run checks with per-check timeouts and aggregate results
# CREATED: 17 OCT 2026
# ============================================================================
"""
Health Check Executor

All selected checks run concurrently; each is bounded by its own
timeout_seconds. A check that raises or times out is reported unhealthy.
Results keep priority order.
"""

import asyncio
import logging
import time
from typing import List, Optional

from health.core import (
    AggregatedHealthResult,
    HealthCheckPlugin,
    HealthCheckResult,
    HealthStatus,
)
from health.registry import HealthCheckRegistry, get_registry

logger = logging.getLogger(__name__)


class HealthCheckExecutor:

    def __init__(self, registry: Optional[HealthCheckRegistry] = None):
        self.registry = registry or get_registry()

    async def execute_all(self) -> AggregatedHealthResult:
        return await self._execute(self.registry.get_checks_by_priority())

    async def execute_required(self) -> AggregatedHealthResult:
        """Only checks marked required_for_ready (for /readyz)."""
        return await self._execute(self.registry.get_required_checks())

    async def execute_single(self, name: str) -> Optional[HealthCheckResult]:
        check = self.registry.get(name)
        if check is None:
            return None
        return await self._execute_check(check)

    async def _execute(self, checks: List[HealthCheckPlugin]) -> AggregatedHealthResult:
        start = time.monotonic()
        results = await asyncio.gather(*(self._execute_check(c) for c in checks))
        by_name = {check.name: result for check, result in zip(checks, results)}
        return AggregatedHealthResult(
            status=HealthStatus.aggregate([r.status for r in results]),
            checks=by_name,
            total_duration_ms=(time.monotonic() - start) * 1000,
        )

    async def _execute_check(self, check: HealthCheckPlugin) -> HealthCheckResult:
        start = time.monotonic()
        try:
            result = await asyncio.wait_for(check.check(), timeout=check.timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning(f"Health check {check.name} timed out after {check.timeout_seconds}s")
            result = HealthCheckResult.unhealthy(f"Timeout after {check.timeout_seconds}s")
        except Exception as e:
            logger.error(f"Health check {check.name} failed: {e}")
            result = HealthCheckResult.from_exception(e)

        result.duration_ms = (time.monotonic() - start) * 1000
        logger.debug(f"Health check {check.name}: {result.status.value} ({result.duration_ms:.1f}ms)")
        return result


__all__ = [
    "HealthCheckExecutor",
]
