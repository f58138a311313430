# ============================================================================
# STARTUP HEALTH CHECKS
# ============================================================================
# EPOCH: 2 - LIFECYCLE RECONCILIATION
# STATUS: Infrastructure - Startup health checks
# PURPOSE: Process and configuration checks
# CREATED: 17 OCT 2026
# ============================================================================
"""
Startup Health Checks

- ProcessCheck: healthy whenever it runs
- ConfigCheck: environment parses into Defaults, secret backend is usable
"""

import logging
import os
import platform
import sys

from core.config.defaults import Defaults
from health.core import HealthCheckPlugin, HealthCheckResult
from health.registry import register_check

logger = logging.getLogger(__name__)

SECRET_BACKENDS = ("keyvault", "env")


@register_check(category="startup")
class ProcessCheck(HealthCheckPlugin):
    name = "process"
    timeout_seconds = 1.0

    async def check(self) -> HealthCheckResult:
        return HealthCheckResult.healthy(
            message="Process running",
            python_version=sys.version.split()[0],
            platform=platform.platform(),
            pid=os.getpid(),
        )


@register_check(category="startup")
class ConfigCheck(HealthCheckPlugin):
    """
    Parses configuration from the environment.

    Does not contact the vault; a wrong vault URL surfaces as
    CredentialFetchError on the first schema reconciliation.
    """

    name = "config"
    timeout_seconds = 1.0

    async def check(self) -> HealthCheckResult:
        try:
            defaults = Defaults.from_env()
        except ValueError as e:
            return HealthCheckResult.unhealthy(f"Invalid configuration: {e}")

        backend = defaults.secrets.backend
        if backend not in SECRET_BACKENDS:
            return HealthCheckResult.unhealthy(
                f"Unknown secret store backend: {backend}",
                supported=list(SECRET_BACKENDS),
            )
        if backend == "keyvault" and not defaults.secrets.vault_url:
            return HealthCheckResult.unhealthy(
                "KEY_VAULT_URL is required for the keyvault secret backend"
            )

        return HealthCheckResult.healthy(
            message="Configuration loaded",
            secret_backend=backend,
            readiness_timeout_seconds=defaults.readiness.timeout_seconds,
            tool_timeout_seconds=defaults.tools.tool_timeout_seconds,
        )


__all__ = [
    "ProcessCheck",
    "ConfigCheck",
]
