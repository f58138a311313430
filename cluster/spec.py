# ============================================================================
# CLUSTER SPEC
# ============================================================================
# EPOCH: 2 - LIFECYCLE RECONCILIATION
# STATUS: Cluster - Declarative cluster description
# PURPOSE: Validated input of the composer, loadable from YAML
# CREATED: 16 OCT 2026
# ============================================================================
"""
Cluster Spec

Declarative description of one cluster:

    cluster_name: orders
    cluster_version: 1.16.2
    topology: distributed          # or: single
    removal_policy: retain         # or: destroy
    public_access_cidr: 10.0.0.0/8
    datastore:                     # bring your own ...
      plugin: mysql
      host: db.internal
      port: 3306
      secret_id: orders-db
    # datastore_options: {...}     # ... or have one created (not both)
    services:
      defaults:
        machine: {cpu: 512}
      history:
        machine: {memory_mib: 2048}
      web:
        enabled: false
    ports:
      frontend: {rpc_port: 17233}
    discovery_registration:        # frontend A records
      namespace: ns-0123
      service_name: temporal
    namespaces: [default, billing]

Machine shapes resolve as builtin defaults -> services.defaults -> per role.
"""

from pathlib import Path
from typing import List, Literal, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from core.config.defaults import MachineShape, RolePortTable
from core.contracts import DatastorePlugin, RemovalPolicy, Role, SERVER_ROLES
from core.errors import ConfigurationError
from core.models.datastore import DatastoreDescriptor
from cluster.versions import ServerVersion, LATEST


# ============================================================================
# SERVICES
# ============================================================================

class MachineOverrides(BaseModel):
    """Partial machine shape. Unset fields inherit."""

    model_config = ConfigDict(extra="forbid")

    cpu: Optional[int] = Field(default=None, gt=0)
    memory_mib: Optional[int] = Field(default=None, gt=0)
    cpu_architecture: Optional[str] = None

    @field_validator("cpu_architecture")
    @classmethod
    def known_architecture(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v.upper() not in ("X86_64", "ARM64"):
            raise ValueError("must be X86_64 or ARM64")
        return v.upper() if v else v


class ServiceOptions(BaseModel):
    """Options of one role."""

    model_config = ConfigDict(extra="forbid")

    machine: MachineOverrides = Field(default_factory=MachineOverrides)


class WebServiceOptions(ServiceOptions):
    """Web role options. enabled defaults to True."""

    enabled: Optional[bool] = None


class ServicesSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    defaults: ServiceOptions = Field(default_factory=ServiceOptions)
    single: ServiceOptions = Field(default_factory=ServiceOptions)
    frontend: ServiceOptions = Field(default_factory=ServiceOptions)
    history: ServiceOptions = Field(default_factory=ServiceOptions)
    matching: ServiceOptions = Field(default_factory=ServiceOptions)
    worker: ServiceOptions = Field(default_factory=ServiceOptions)
    web: WebServiceOptions = Field(default_factory=WebServiceOptions)

    def for_role(self, role: Role) -> ServiceOptions:
        return getattr(self, Role(role).value)

    @property
    def web_enabled(self) -> bool:
        return True if self.web.enabled is None else self.web.enabled


# ============================================================================
# PORTS
# ============================================================================

class RolePortOverrides(BaseModel):
    """Partial ports of one server role. Unset fields keep the default."""

    model_config = ConfigDict(extra="forbid")

    rpc_port: Optional[int] = Field(default=None, ge=1, le=65535)
    membership_port: Optional[int] = Field(default=None, ge=1, le=65535)


class PortOverrides(BaseModel):
    """
    Overrides of the default RolePortTable.

        ports:
          frontend: {rpc_port: 17233}
          web_port: 8080
    """

    model_config = ConfigDict(extra="forbid")

    frontend: Optional[RolePortOverrides] = None
    history: Optional[RolePortOverrides] = None
    matching: Optional[RolePortOverrides] = None
    worker: Optional[RolePortOverrides] = None
    web_port: Optional[int] = Field(default=None, ge=1, le=65535)

    def to_table(self) -> RolePortTable:
        return RolePortTable.from_overrides(self.model_dump(exclude_none=True))


# ============================================================================
# DISCOVERY
# ============================================================================

class DiscoveryRegistration(BaseModel):
    """Service discovery entry for the frontend (or single) task."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    namespace: str = Field(..., min_length=1, description="Discovery namespace id or name")
    service_name: str = Field(..., min_length=1)


# ============================================================================
# DATASTORE
# ============================================================================

class ExistingDatastore(BaseModel):
    """A datastore the cluster brings along."""

    model_config = ConfigDict(extra="forbid")

    plugin: DatastorePlugin = DatastorePlugin.MYSQL
    host: str = Field(..., min_length=1)
    port: int = Field(..., ge=1, le=65535)
    secret_id: str = Field(..., min_length=1)

    def to_descriptor(self) -> DatastoreDescriptor:
        return DatastoreDescriptor(
            plugin=self.plugin, host=self.host, port=self.port, secret_id=self.secret_id,
        )


class DatastoreOptions(BaseModel):
    """How the datastore provisioner should create a datastore."""

    model_config = ConfigDict(extra="allow")

    plugin: DatastorePlugin = DatastorePlugin.MYSQL
    engine_version: Optional[str] = None
    min_capacity: Optional[int] = Field(default=None, gt=0)
    max_capacity: Optional[int] = Field(default=None, gt=0)


# ============================================================================
# CLUSTER
# ============================================================================

class ClusterSpec(BaseModel):
    """Complete description of one cluster."""

    model_config = ConfigDict(extra="forbid")

    cluster_name: str = Field(..., min_length=1, max_length=48, pattern=r"^[a-z][a-z0-9-]*$")
    cluster_version: str = LATEST.version
    repository_base: str = ""
    topology: Literal["distributed", "single"] = "distributed"

    services: ServicesSpec = Field(default_factory=ServicesSpec)
    ports: PortOverrides = Field(default_factory=PortOverrides)

    datastore: Optional[ExistingDatastore] = None
    datastore_options: Optional[DatastoreOptions] = None
    main_database_name: str = Field(default="temporal", min_length=1, max_length=64)
    visibility_database_name: str = Field(default="temporal_visibility", min_length=1, max_length=64)

    scheduler_cluster: Optional[str] = Field(default=None, description="Existing scheduler cluster id")
    removal_policy: RemovalPolicy = RemovalPolicy.RETAIN
    public_access_cidr: Optional[str] = None
    discovery_registration: Optional[DiscoveryRegistration] = None
    cross_role_membership: bool = False
    namespaces: List[str] = Field(default_factory=list)

    @field_validator("cluster_version")
    @classmethod
    def semantic_version(cls, v: str) -> str:
        ServerVersion(v)
        return v

    @field_validator("repository_base")
    @classmethod
    def trailing_slash(cls, v: str) -> str:
        if v and not v.endswith("/"):
            raise ValueError("must end with '/'")
        return v

    @field_validator("namespaces")
    @classmethod
    def unique_namespaces(cls, v: List[str]) -> List[str]:
        if any(not name.strip() for name in v):
            raise ValueError("namespace names must not be empty")
        if len(set(v)) != len(v):
            raise ValueError("namespace names must be unique")
        return v

    @classmethod
    def from_yaml(cls, document: str) -> "ClusterSpec":
        """
        Load a spec from a YAML document.

        Raises:
            ValueError: If the document is not a mapping
            pydantic.ValidationError: If fields are invalid
        """
        data = yaml.safe_load(document)
        if not isinstance(data, dict):
            raise ValueError("Cluster spec must be a YAML mapping")
        return cls.model_validate(data)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "ClusterSpec":
        with open(path) as f:
            return cls.from_yaml(f.read())

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    def validate_composition(self) -> None:
        """
        Check options that contradict each other.

        Raises:
            ConfigurationError: If both datastore and datastore_options are set
        """
        if self.datastore is not None and self.datastore_options is not None:
            raise ConfigurationError(
                "You must specify either a datastore or datastore_options, not both."
            )

    @property
    def server_version(self) -> ServerVersion:
        return ServerVersion(self.cluster_version, self.repository_base)

    @property
    def port_table(self) -> RolePortTable:
        return self.ports.to_table()

    def active_roles(self) -> List[Role]:
        """Roles that get a task, server roles first."""
        roles = [Role.SINGLE] if self.topology == "single" else list(SERVER_ROLES)
        if self.services.web_enabled:
            roles.append(Role.WEB)
        return roles

    def machine_for(self, role: Role, builtin: Optional[MachineShape] = None) -> MachineShape:
        """Resolve builtin -> services.defaults -> per-role machine shape."""
        shape = builtin or MachineShape()
        shape = shape.merged(self.services.defaults.machine.model_dump())
        return shape.merged(self.services.for_role(role).machine.model_dump())


__all__ = [
    "MachineOverrides",
    "ServiceOptions",
    "WebServiceOptions",
    "ServicesSpec",
    "RolePortOverrides",
    "PortOverrides",
    "DiscoveryRegistration",
    "ExistingDatastore",
    "DatastoreOptions",
    "ClusterSpec",
]
