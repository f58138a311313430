# ============================================================================
# HEALTH CHECK ROUTER
# ============================================================================
# EPOCH: 2 - LIFECYCLE RECONCILIATION
# STATUS: Infrastructure - Probe endpoints
# PURPOSE: Liveness, readiness and detailed health over HTTP
# CREATED: 17 OCT 2026
# ============================================================================
"""
Health Check Router

Endpoints:
    GET /livez               process alive, no checks run
    GET /readyz              required checks only; 503 if any is unhealthy
    GET /health              every check, with a per-category summary
    GET /health/{check_name} one check

Response codes: 200 healthy, 206 degraded, 503 unhealthy.
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from __version__ import __version__, BUILD_DATE
from health.core import AggregatedHealthResult, HealthStatus
from health.executor import HealthCheckExecutor
from health.registry import HealthCheckRegistry, get_registry

logger = logging.getLogger(__name__)

health_router = APIRouter(tags=["Health"])

_HTTP_CODES = {
    HealthStatus.HEALTHY: 200,
    HealthStatus.DEGRADED: 206,
    HealthStatus.UNHEALTHY: 503,
}


def _summary(registry: HealthCheckRegistry, result: AggregatedHealthResult) -> Dict[str, Dict[str, int]]:
    """Status counts per category, categories in execution order."""
    summary = {}
    for category, checks in registry.get_checks_by_category().items():
        counts = {status.value: 0 for status in HealthStatus}
        for check in checks:
            check_result = result.checks.get(check.name)
            if check_result is not None:
                counts[check_result.status.value] += 1
        summary[category.value] = counts
    return summary


@health_router.get("/livez")
async def liveness_probe():
    return {"status": "alive", "version": __version__, "build_date": BUILD_DATE}


@health_router.get("/readyz")
async def readiness_probe():
    """
    Ready when every required check is at least degraded.

    A degraded provisioner still serves the resource types that work.
    """
    registry = get_registry()
    if len(registry) == 0:
        return {"status": "ready", "message": "No checks registered"}

    result = await HealthCheckExecutor(registry).execute_required()
    failing = {
        name: check.to_dict()
        for name, check in result.checks.items()
        if check.status is HealthStatus.UNHEALTHY
    }
    body: Dict[str, Any] = {"total_duration_ms": round(result.total_duration_ms, 2)}

    if failing:
        logger.warning(f"Not ready: {', '.join(failing)}")
        body.update(status="not_ready", checks=failing)
        return JSONResponse(status_code=503, content=body)

    body.update(status="ready", checks_passed=len(result.checks))
    return body


@health_router.get("/health")
async def full_health_check():
    registry = get_registry()
    if len(registry) == 0:
        return {"status": "healthy", "message": "No checks registered", "checks": {}}

    result = await HealthCheckExecutor(registry).execute_all()

    body = result.to_dict()
    body.update(
        version=__version__,
        build_date=BUILD_DATE,
        summary=_summary(registry, result),
    )
    return JSONResponse(status_code=_HTTP_CODES[result.status], content=body)


@health_router.get("/health/{check_name}")
async def single_health_check(check_name: str):
    result = await HealthCheckExecutor().execute_single(check_name)
    if result is None:
        return JSONResponse(status_code=404, content={"error": f"Unknown health check: {check_name}"})
    return JSONResponse(status_code=_HTTP_CODES[result.status], content=result.to_dict())


__all__ = [
    "health_router",
]
