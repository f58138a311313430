# ============================================================================
# INFRASTRUCTURE MODULE
# ============================================================================
# EPOCH: 2 - LIFECYCLE RECONCILIATION
# STATUS: Infrastructure - Network, subprocess, secret and storage boundaries
# PURPOSE: Side-effecting primitives used by the reconcilers
# ============================================================================
"""
Infrastructure module.

Provides:
- ReadinessWaiter: TCP reachability polling with bounded backoff
- ToolRunner: admin CLI subprocess boundary (stderr captured, stdout discarded)
- SecretStore: datastore credential resolution (Azure Key Vault, environment)
- SharedFileStore: idempotent file staging on the shared config filesystem

Usage:
    from infrastructure import ReadinessWaiter, ToolRunner, get_secret_store

    ReadinessWaiter().wait_until_reachable("db.internal", 3306)
    credentials = get_secret_store().get_credentials("datastore-secret")
"""

from infrastructure.readiness import (
    ReadinessWaiter,
    parse_host_port,
    wait_until_reachable,
)
from infrastructure.tools import (
    ToolResult,
    ToolRunner,
)
from infrastructure.secrets import (
    SecretStore,
    KeyVaultSecretStore,
    EnvironmentSecretStore,
    parse_credentials,
    get_secret_store,
)
from infrastructure.shared_storage import SharedFileStore

__all__ = [
    # Readiness
    'ReadinessWaiter',
    'parse_host_port',
    'wait_until_reachable',
    # Tools
    'ToolResult',
    'ToolRunner',
    # Secrets
    'SecretStore',
    'KeyVaultSecretStore',
    'EnvironmentSecretStore',
    'parse_credentials',
    'get_secret_store',
    # Shared storage
    'SharedFileStore',
]
