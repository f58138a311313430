# ============================================================================
# CONFIGURATION MODULE
# ============================================================================
# EPOCH: 2 - LIFECYCLE RECONCILIATION
# STATUS: Core - Configuration and defaults
# PURPOSE: Centralized configuration management
# ============================================================================
"""
Configuration Module

Provides centralized configuration and defaults for the provisioner.
"""

from core.config.defaults import (
    ToolDefaults,
    ReadinessDefaults,
    RolePort,
    RolePortTable,
    MachineShape,
    SecretStoreDefaults,
    SharedStorageDefaults,
    Defaults,
    get_defaults,
    reset_defaults,
)

__all__ = [
    "ToolDefaults",
    "ReadinessDefaults",
    "RolePort",
    "RolePortTable",
    "MachineShape",
    "SecretStoreDefaults",
    "SharedStorageDefaults",
    "Defaults",
    "get_defaults",
    "reset_defaults",
]
