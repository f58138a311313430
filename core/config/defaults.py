# ============================================================================
# CONFIGURATION DEFAULTS
# ============================================================================
# EPOCH: 2 - LIFECYCLE RECONCILIATION
# STATUS: Core - Default configuration values
# PURPOSE: Admin tool locations, readiness polling, role ports, machine shapes
# ============================================================================
"""
Configuration Defaults

Immutable defaults for the reconcilers, planner and composer.
These can be overridden via environment variables at the application edge.

Design:
- Immutable dataclasses for defaults
- Passed explicitly to constructors (no module-level lookups inside components)
- Environment variable overrides via from_env()
"""

import os
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Mapping, Optional, Tuple

from core.contracts import Role, SERVER_ROLES


# ============================================================================
# ADMIN TOOLS
# ============================================================================

@dataclass(frozen=True)
class ToolDefaults:
    """
    Locations of the administrative CLIs shipped with the engine admin image.
    """
    schema_tool_path: str = "/opt/temporal/bin/temporal-sql-tool"
    namespace_tool_path: str = "/opt/temporal/bin/tctl"
    schema_root: str = "/opt/temporal/schema"
    # Hard ceiling on a single tool invocation
    tool_timeout_seconds: float = 240.0

    @classmethod
    def from_env(cls) -> "ToolDefaults":
        """Create from environment variables."""
        return cls(
            schema_tool_path=os.getenv("SCHEMA_TOOL_PATH", "/opt/temporal/bin/temporal-sql-tool"),
            namespace_tool_path=os.getenv("NAMESPACE_TOOL_PATH", "/opt/temporal/bin/tctl"),
            schema_root=os.getenv("SCHEMA_ROOT", "/opt/temporal/schema"),
            tool_timeout_seconds=float(os.getenv("TOOL_TIMEOUT_SECONDS", 240.0)),
        )


# ============================================================================
# READINESS POLLING
# ============================================================================

@dataclass(frozen=True)
class ReadinessDefaults:
    """
    Bounded backoff for TCP reachability polling.

    Delays grow from initial_delay_seconds by backoff_multiplier up to
    max_delay_seconds, and never past the overall deadline.
    """
    timeout_seconds: float = 240.0
    connect_timeout_seconds: float = 3.0
    initial_delay_seconds: float = 0.5
    max_delay_seconds: float = 5.0
    backoff_multiplier: float = 2.0

    @classmethod
    def from_env(cls) -> "ReadinessDefaults":
        """Create from environment variables."""
        return cls(
            timeout_seconds=float(os.getenv("READINESS_TIMEOUT_SECONDS", 240.0)),
            connect_timeout_seconds=float(os.getenv("READINESS_CONNECT_TIMEOUT_SECONDS", 3.0)),
            initial_delay_seconds=float(os.getenv("READINESS_INITIAL_DELAY_SECONDS", 0.5)),
            max_delay_seconds=float(os.getenv("READINESS_MAX_DELAY_SECONDS", 5.0)),
            backoff_multiplier=float(os.getenv("READINESS_BACKOFF_MULTIPLIER", 2.0)),
        )


# ============================================================================
# ROLE PORTS
# ============================================================================

@dataclass(frozen=True)
class RolePort:
    """RPC and membership (gossip) ports of one server role."""
    role: Role
    rpc_port: int
    membership_port: int


@dataclass(frozen=True)
class RolePortTable:
    """
    Per-role network ports.

    The single role listens on every server role's ports, so it has no
    entry of its own. The web role only has an HTTP port.
    """
    frontend: RolePort = RolePort(Role.FRONTEND, 7233, 6933)
    history: RolePort = RolePort(Role.HISTORY, 7234, 6934)
    matching: RolePort = RolePort(Role.MATCHING, 7235, 6935)
    worker: RolePort = RolePort(Role.WORKER, 7239, 6939)
    web_port: int = 8088

    def for_role(self, role: Role) -> RolePort:
        """Get the ports of a server role (frontend, history, matching, worker)."""
        if role not in SERVER_ROLES:
            raise KeyError(f"No port entry for role: {role.value}")
        return getattr(self, role.value)

    def server_ports(self) -> Tuple[RolePort, ...]:
        """All four server role entries, in canonical order."""
        return tuple(self.for_role(role) for role in SERVER_ROLES)

    def exposed_ports(self, role: Role) -> Tuple[int, ...]:
        """Container ports a task of the given role listens on."""
        if role is Role.WEB:
            return (self.web_port,)
        if role is Role.SINGLE:
            ports = []
            for entry in self.server_ports():
                ports.extend([entry.rpc_port, entry.membership_port])
            return tuple(ports)
        entry = self.for_role(role)
        return (entry.rpc_port, entry.membership_port)

    @classmethod
    def from_overrides(cls, overrides: Optional[Mapping[str, Any]] = None) -> "RolePortTable":
        """
        Build a table from partial overrides.

        Example:
            RolePortTable.from_overrides({"frontend": {"rpc_port": 17233}, "web_port": 8080})

        Raises:
            ValueError: Unknown role key, malformed entry or port outside 1-65535
        """
        table = cls()
        if not overrides:
            return table
        changes: Dict[str, Any] = {}
        for key, value in overrides.items():
            if key == "web_port":
                changes["web_port"] = _port(value, key)
                continue
            if key not in {role.value for role in SERVER_ROLES}:
                raise ValueError(f"Unknown port entry: {key}")
            if not isinstance(value, Mapping):
                raise ValueError(f"Port entry for {key} must be a mapping of rpc_port/membership_port")
            unknown = set(value) - {"rpc_port", "membership_port"}
            if unknown:
                raise ValueError(f"Unknown port fields for {key}: {', '.join(sorted(unknown))}")
            current = table.for_role(Role(key))
            changes[key] = RolePort(
                role=current.role,
                rpc_port=_port(value.get("rpc_port", current.rpc_port), f"{key}.rpc_port"),
                membership_port=_port(
                    value.get("membership_port", current.membership_port), f"{key}.membership_port",
                ),
            )
        return replace(table, **changes)


def _port(value: Any, name: str) -> int:
    if isinstance(value, bool):
        raise ValueError(f"{name} must be a port number")
    try:
        port = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be a port number, got {value!r}")
    if not 1 <= port <= 65535:
        raise ValueError(f"{name} must be between 1 and 65535, got {port}")
    return port


# ============================================================================
# MACHINE SHAPES
# ============================================================================

@dataclass(frozen=True)
class MachineShape:
    """
    Task size handed to the container scheduler.

    cpu is in scheduler CPU units (1024 = one vCPU).
    """
    cpu: int = 256
    memory_mib: int = 512
    cpu_architecture: str = "X86_64"

    def merged(self, overrides: Optional[Mapping[str, Any]]) -> "MachineShape":
        """Return a copy with the non-None override values applied."""
        if not overrides:
            return self
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes)


# ============================================================================
# SECRET STORE
# ============================================================================

@dataclass(frozen=True)
class SecretStoreDefaults:
    """
    Where datastore credentials are read from.

    backend: "keyvault" (Azure Key Vault) or "env" (local development)
    """
    backend: str = "keyvault"
    vault_url: str = ""

    @classmethod
    def from_env(cls) -> "SecretStoreDefaults":
        """Create from environment variables."""
        return cls(
            backend=os.getenv("SECRET_STORE_BACKEND", "keyvault").lower(),
            vault_url=os.getenv("KEY_VAULT_URL", ""),
        )


# ============================================================================
# SHARED STORAGE
# ============================================================================

@dataclass(frozen=True)
class SharedStorageDefaults:
    """Mount point of the shared configuration filesystem."""
    mount_root: str = "/mnt"

    @classmethod
    def from_env(cls) -> "SharedStorageDefaults":
        """Create from environment variables."""
        return cls(mount_root=os.getenv("SHARED_STORAGE_MOUNT", "/mnt"))


# ============================================================================
# GLOBAL DEFAULTS INSTANCE
# ============================================================================

@dataclass
class Defaults:
    """Container for all default configurations."""
    tools: ToolDefaults = field(default_factory=ToolDefaults)
    readiness: ReadinessDefaults = field(default_factory=ReadinessDefaults)
    ports: RolePortTable = field(default_factory=RolePortTable)
    machine: MachineShape = field(default_factory=MachineShape)
    secrets: SecretStoreDefaults = field(default_factory=SecretStoreDefaults)
    storage: SharedStorageDefaults = field(default_factory=SharedStorageDefaults)

    @classmethod
    def from_env(cls) -> "Defaults":
        """Create all defaults from environment variables."""
        return cls(
            tools=ToolDefaults.from_env(),
            readiness=ReadinessDefaults.from_env(),
            secrets=SecretStoreDefaults.from_env(),
            storage=SharedStorageDefaults.from_env(),
        )


_defaults: Optional[Defaults] = None


def get_defaults() -> Defaults:
    """Get global defaults instance (application edge only)."""
    global _defaults
    if _defaults is None:
        _defaults = Defaults.from_env()
    return _defaults


def reset_defaults() -> None:
    """Reset defaults (for testing)."""
    global _defaults
    _defaults = None


# ============================================================================
# EXPORTS
# ============================================================================

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
