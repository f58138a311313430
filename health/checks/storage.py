# ============================================================================
# STORAGE HEALTH CHECKS
# ============================================================================
# EPOCH: 2 - LIFECYCLE RECONCILIATION
# STATUS: Infrastructure - Shared filesystem health check
# PURPOSE: Verify the config filesystem mount is writable
# CREATED: 17 OCT 2026
# ============================================================================
"""
Storage Health Checks

Config file reconciliation writes under the shared mount. Without it only
schema and namespace reconciliation work, so a bad mount degrades.
"""

import logging
import os
from pathlib import Path

from core.config.defaults import SharedStorageDefaults
from health.core import HealthCheckPlugin, HealthCheckResult
from health.registry import register_check

logger = logging.getLogger(__name__)


@register_check(category="storage", required_for_ready=False)
class SharedStorageCheck(HealthCheckPlugin):
    name = "shared_storage"
    timeout_seconds = 3.0

    async def check(self) -> HealthCheckResult:
        mount = Path(SharedStorageDefaults.from_env().mount_root)

        if not mount.is_dir():
            return HealthCheckResult.degraded(f"Mount not found: {mount}", mount_root=str(mount))
        if not os.access(mount, os.W_OK):
            return HealthCheckResult.degraded(f"Mount not writable: {mount}", mount_root=str(mount))

        return HealthCheckResult.healthy(message="Shared storage writable", mount_root=str(mount))


__all__ = [
    "SharedStorageCheck",
]
