# ============================================================================
# HEALTH CHECK PLUGINS
# ============================================================================
# EPOCH: 2 - LIFECYCLE RECONCILIATION
# STATUS: Infrastructure - Health check implementations
# PURPOSE: Checks for the provisioner's tools, storage and reconcilers
# CREATED: 17 OCT 2026
# ============================================================================
"""
Health Check Plugins

Startup (10):     process, config
Tooling (20):     admin_tools, schema_files
Storage (30):     shared_storage
Application (40): reconcilers

Import this module to register all checks:
    import health.checks
"""

from health.checks.startup import ProcessCheck, ConfigCheck
from health.checks.tooling import AdminToolsCheck, SchemaFilesCheck
from health.checks.storage import SharedStorageCheck
from health.checks.application import ReconcilersCheck

__all__ = [
    "ProcessCheck",
    "ConfigCheck",
    "AdminToolsCheck",
    "SchemaFilesCheck",
    "SharedStorageCheck",
    "ReconcilersCheck",
]
