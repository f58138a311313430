# ============================================================================
# TOOLING HEALTH CHECKS
# ============================================================================
# EPOCH: 2 - LIFECYCLE RECONCILIATION
# STATUS: Infrastructure - Admin CLI health checks
# PURPOSE: Verify the schema and namespace tools and migration files exist
# CREATED: 17 OCT 2026
# ============================================================================
"""
Tooling Health Checks

- AdminToolsCheck: temporal-sql-tool and tctl are executable
- SchemaFilesCheck: versioned migration directories exist per SQL engine
"""

import logging
import os
from pathlib import Path

from core.config.defaults import ToolDefaults
from health.core import HealthCheckPlugin, HealthCheckResult
from health.registry import register_check
from reconcilers.drivers import SQL_ENGINES

logger = logging.getLogger(__name__)

SCHEMA_DATABASES = ("temporal", "visibility")


def _executable(path: str) -> bool:
    return os.path.isfile(path) and os.access(path, os.X_OK)


@register_check(category="tooling")
class AdminToolsCheck(HealthCheckPlugin):
    """
    Both admin CLIs must be present.

    One missing tool degrades (the other resource type still works);
    both missing is unhealthy.
    """

    name = "admin_tools"
    timeout_seconds = 2.0

    async def check(self) -> HealthCheckResult:
        tools = ToolDefaults.from_env()
        paths = {
            "schema_tool": tools.schema_tool_path,
            "namespace_tool": tools.namespace_tool_path,
        }
        missing = {name: path for name, path in paths.items() if not _executable(path)}

        if len(missing) == len(paths):
            return HealthCheckResult.unhealthy("No admin tools found", missing=missing)
        if missing:
            return HealthCheckResult.degraded(
                f"Missing admin tools: {', '.join(sorted(missing))}",
                missing=missing,
            )
        return HealthCheckResult.healthy(message="Admin tools present", **paths)


@register_check(category="tooling", required_for_ready=False)
class SchemaFilesCheck(HealthCheckPlugin):
    name = "schema_files"
    timeout_seconds = 2.0

    async def check(self) -> HealthCheckResult:
        root = Path(ToolDefaults.from_env().schema_root)
        missing = []
        for engine in SQL_ENGINES.values():
            for database in SCHEMA_DATABASES:
                path = root / engine.schema_dir / engine.schema_version_dir / database / "versioned"
                if not path.is_dir():
                    missing.append(str(path))

        if missing:
            return HealthCheckResult.degraded(
                f"{len(missing)} migration directories missing",
                schema_root=str(root),
                missing=missing,
            )
        return HealthCheckResult.healthy(message="Migration files present", schema_root=str(root))


__all__ = [
    "AdminToolsCheck",
    "SchemaFilesCheck",
]
