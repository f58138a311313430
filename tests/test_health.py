# ============================================================================
# HEALTH CHECK TESTS
# ============================================================================
# EPOCH: 2 - LIFECYCLE RECONCILIATION
# STATUS: Tests - Health plugins, executor and probe endpoints
# PURPOSE: Verify aggregation, timeouts, individual checks and HTTP codes
# CREATED: 18 OCT 2026
# ============================================================================
"""
Health Check Tests

Run with:
    pytest tests/test_health.py -v
"""

import asyncio
import os
import stat

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

import health.registry
from health import (
    HealthCheckCategory,
    HealthCheckExecutor,
    HealthCheckPlugin,
    HealthCheckRegistry,
    HealthCheckResult,
    HealthStatus,
    health_router,
)
from health.checks.application import ReconcilersCheck
from health.checks.startup import ConfigCheck, ProcessCheck
from health.checks.storage import SharedStorageCheck
from health.checks.tooling import AdminToolsCheck, SchemaFilesCheck


def _check(name, status=HealthStatus.HEALTHY, category=HealthCheckCategory.APPLICATION,
           required=True, delay=0.0, error=None):
    """Build a check instance with a fixed outcome."""

    class _Fixed(HealthCheckPlugin):
        async def check(self) -> HealthCheckResult:
            if delay:
                await asyncio.sleep(delay)
            if error is not None:
                raise error
            return HealthCheckResult(status=status, message=f"{name} {status.value}")

    check = _Fixed()
    check.name = name
    check.category = category
    check.required_for_ready = required
    check.timeout_seconds = 0.2
    return check


@pytest.fixture
def registry(monkeypatch):
    fresh = HealthCheckRegistry()
    monkeypatch.setattr(health.registry, "_registry", fresh)
    return fresh


@pytest.fixture
def client(registry):
    app = FastAPI()
    app.include_router(health_router)
    return TestClient(app)


# ============================================================================
# CORE TYPES
# ============================================================================

class TestStatus:

    def test_worst_status_wins(self):
        assert HealthStatus.aggregate([]) is HealthStatus.HEALTHY
        assert HealthStatus.aggregate([HealthStatus.HEALTHY, HealthStatus.DEGRADED]) is HealthStatus.DEGRADED
        assert HealthStatus.aggregate([HealthStatus.UNHEALTHY, HealthStatus.DEGRADED]) is HealthStatus.UNHEALTHY

    def test_result_to_dict(self):
        result = HealthCheckResult.degraded("half there", missing=["x"])

        assert result.to_dict() == {
            "status": "degraded", "duration_ms": 0.0, "message": "half there", "details": {"missing": ["x"]},
        }

    def test_from_exception(self):
        result = HealthCheckResult.from_exception(RuntimeError("boom"))

        assert result.status is HealthStatus.UNHEALTHY
        assert result.details == {"exception_type": "RuntimeError"}


# ============================================================================
# REGISTRY & EXECUTOR
# ============================================================================

class TestRegistry:

    def test_priority_order_by_category(self, registry):
        registry.register(_check("app", category=HealthCheckCategory.APPLICATION))
        registry.register(_check("boot", category=HealthCheckCategory.STARTUP))
        registry.register(_check("disk", category=HealthCheckCategory.STORAGE))

        assert [c.name for c in registry.get_checks_by_priority()] == ["boot", "disk", "app"]

    def test_grouped_by_category(self, registry):
        registry.register(_check("app", category=HealthCheckCategory.APPLICATION))
        registry.register(_check("tctl", category=HealthCheckCategory.TOOLING))
        registry.register(_check("sql", category=HealthCheckCategory.TOOLING))

        grouped = registry.get_checks_by_category()

        assert list(grouped) == [HealthCheckCategory.TOOLING, HealthCheckCategory.APPLICATION]
        assert [c.name for c in grouped[HealthCheckCategory.TOOLING]] == ["tctl", "sql"]

    def test_required_checks(self, registry):
        registry.register(_check("a"))
        registry.register(_check("b", required=False))

        assert [c.name for c in registry.get_required_checks()] == ["a"]

    def test_unregister_and_clear(self, registry):
        registry.register(_check("a"))
        registry.mark_initialized()

        assert "a" in registry
        assert registry.unregister("a")
        assert not registry.unregister("a")
        registry.clear()
        assert not registry.is_initialized


class TestExecutor:

    def test_aggregates_all(self, registry):
        registry.register(_check("ok"))
        registry.register(_check("slow_disk", HealthStatus.DEGRADED))

        result = asyncio.run(HealthCheckExecutor(registry).execute_all())

        assert result.status is HealthStatus.DEGRADED
        assert list(result.checks) == ["ok", "slow_disk"]

    def test_timeout_is_unhealthy(self, registry):
        registry.register(_check("stuck", delay=1.0))

        result = asyncio.run(HealthCheckExecutor(registry).execute_all())

        assert result.checks["stuck"].status is HealthStatus.UNHEALTHY
        assert "Timeout" in result.checks["stuck"].message

    def test_exception_is_unhealthy(self, registry):
        registry.register(_check("broken", error=RuntimeError("kaput")))

        result = asyncio.run(HealthCheckExecutor(registry).execute_all())

        assert result.checks["broken"].message == "kaput"

    def test_required_only(self, registry):
        registry.register(_check("a"))
        registry.register(_check("optional", HealthStatus.UNHEALTHY, required=False))

        result = asyncio.run(HealthCheckExecutor(registry).execute_required())

        assert result.status is HealthStatus.HEALTHY
        assert list(result.checks) == ["a"]

    def test_single(self, registry):
        registry.register(_check("a"))

        executor = HealthCheckExecutor(registry)

        assert asyncio.run(executor.execute_single("a")).status is HealthStatus.HEALTHY
        assert asyncio.run(executor.execute_single("nope")) is None


# ============================================================================
# ENDPOINTS
# ============================================================================

class TestProbes:

    def test_livez(self, client):
        body = client.get("/livez").json()

        assert body["status"] == "alive"
        assert body["version"]

    def test_readyz_without_checks(self, client):
        assert client.get("/readyz").json()["status"] == "ready"

    def test_readyz_degraded_is_ready(self, client, registry):
        registry.register(_check("tools", HealthStatus.DEGRADED))

        response = client.get("/readyz")

        assert response.status_code == 200
        assert response.json()["checks_passed"] == 1

    def test_readyz_unhealthy(self, client, registry):
        registry.register(_check("ok"))
        registry.register(_check("tools", HealthStatus.UNHEALTHY))

        response = client.get("/readyz")

        assert response.status_code == 503
        assert list(response.json()["checks"]) == ["tools"]

    @pytest.mark.parametrize("status, code", [
        (HealthStatus.HEALTHY, 200),
        (HealthStatus.DEGRADED, 206),
        (HealthStatus.UNHEALTHY, 503),
    ])
    def test_health_codes(self, client, registry, status, code):
        registry.register(_check("x", status, category=HealthCheckCategory.TOOLING))

        response = client.get("/health")

        assert response.status_code == code
        assert response.json()["summary"]["tooling"][status.value] == 1

    def test_single_check_endpoint(self, client, registry):
        registry.register(_check("x"))

        assert client.get("/health/x").status_code == 200
        assert client.get("/health/y").status_code == 404


# ============================================================================
# BUILT-IN CHECKS
# ============================================================================

def _make_executable(path):
    path.write_text("#!/bin/sh\n")
    path.chmod(path.stat().st_mode | stat.S_IXUSR)
    return str(path)


class TestBuiltinChecks:

    def test_process(self):
        assert asyncio.run(ProcessCheck().check()).details["pid"] == os.getpid()

    def test_config_env_backend(self, monkeypatch):
        monkeypatch.setenv("SECRET_STORE_BACKEND", "env")

        assert asyncio.run(ConfigCheck().check()).status is HealthStatus.HEALTHY

    def test_config_keyvault_without_url(self, monkeypatch):
        monkeypatch.setenv("SECRET_STORE_BACKEND", "keyvault")
        monkeypatch.delenv("KEY_VAULT_URL", raising=False)

        assert asyncio.run(ConfigCheck().check()).status is HealthStatus.UNHEALTHY

    def test_config_unknown_backend(self, monkeypatch):
        monkeypatch.setenv("SECRET_STORE_BACKEND", "vault9000")

        assert asyncio.run(ConfigCheck().check()).status is HealthStatus.UNHEALTHY

    def test_config_bad_number(self, monkeypatch):
        monkeypatch.setenv("TOOL_TIMEOUT_SECONDS", "soon")

        assert asyncio.run(ConfigCheck().check()).status is HealthStatus.UNHEALTHY

    def test_admin_tools(self, monkeypatch, tmp_path):
        monkeypatch.setenv("SCHEMA_TOOL_PATH", _make_executable(tmp_path / "temporal-sql-tool"))
        monkeypatch.setenv("NAMESPACE_TOOL_PATH", str(tmp_path / "tctl"))

        assert asyncio.run(AdminToolsCheck().check()).status is HealthStatus.DEGRADED

        _make_executable(tmp_path / "tctl")
        assert asyncio.run(AdminToolsCheck().check()).status is HealthStatus.HEALTHY

    def test_admin_tools_all_missing(self, monkeypatch, tmp_path):
        monkeypatch.setenv("SCHEMA_TOOL_PATH", str(tmp_path / "a"))
        monkeypatch.setenv("NAMESPACE_TOOL_PATH", str(tmp_path / "b"))

        assert asyncio.run(AdminToolsCheck().check()).status is HealthStatus.UNHEALTHY

    def test_schema_files(self, monkeypatch, tmp_path):
        monkeypatch.setenv("SCHEMA_ROOT", str(tmp_path))

        result = asyncio.run(SchemaFilesCheck().check())
        assert result.status is HealthStatus.DEGRADED
        assert len(result.details["missing"]) == 4

        for engine_dir in ("mysql/v57", "postgresql/v96"):
            for database in ("temporal", "visibility"):
                (tmp_path / engine_dir / database / "versioned").mkdir(parents=True)
        assert asyncio.run(SchemaFilesCheck().check()).status is HealthStatus.HEALTHY

    def test_shared_storage(self, monkeypatch, tmp_path):
        monkeypatch.setenv("SHARED_STORAGE_MOUNT", str(tmp_path / "missing"))
        assert asyncio.run(SharedStorageCheck().check()).status is HealthStatus.DEGRADED

        monkeypatch.setenv("SHARED_STORAGE_MOUNT", str(tmp_path))
        assert asyncio.run(SharedStorageCheck().check()).status is HealthStatus.HEALTHY

    def test_reconcilers_registered(self):
        result = asyncio.run(ReconcilersCheck().check())

        assert result.status is HealthStatus.HEALTHY
        assert {"schema", "namespace", "config-file"} <= set(result.details["registered"])
