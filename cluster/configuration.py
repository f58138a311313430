# ============================================================================
# CLUSTER CONFIGURATION ARTIFACTS
# ============================================================================
# EPOCH: 2 - LIFECYCLE RECONCILIATION
# STATUS: Cluster - Generated configuration consumed by server tasks
# PURPOSE: Dynamic config, web config, task environment and secret references
# CREATED: 15 OCT 2026
# ============================================================================
"""
Cluster Configuration

Server tasks build their main configuration at startup from environment
variables. Two documents are staged on the shared filesystem instead:

    /temporal/dynamic_config/dynamic_config.yaml   runtime-tunable settings
    /temporal/web_config/web_config.yaml           web UI settings

Server tasks mount /temporal/dynamic_config at /etc/temporal/dynamic_config,
the web task mounts /temporal/web_config at /etc/temporal/web_config.

Datastore credentials reach the tasks as secret references resolved by the
scheduler, never as plain environment values.
"""

import copy
from dataclasses import dataclass
from typing import Any, Dict, Optional

import yaml

from core.config.defaults import RolePortTable
from core.contracts import DatastorePlugin, SchemaType, SERVER_ROLES
from core.errors import ConfigurationError
from core.models.datastore import DatabaseDescriptor, DatastoreDescriptor

# Locations on the shared filesystem
DYNAMIC_CONFIG_DIR = "/temporal/dynamic_config"
WEB_CONFIG_DIR = "/temporal/web_config"
DYNAMIC_CONFIG_PATH = f"{DYNAMIC_CONFIG_DIR}/dynamic_config.yaml"
WEB_CONFIG_PATH = f"{WEB_CONFIG_DIR}/web_config.yaml"

# Locations inside the containers
DYNAMIC_CONFIG_MOUNT = "/etc/temporal/dynamic_config"
WEB_CONFIG_MOUNT = "/etc/temporal/web_config"

BASE_DYNAMIC_CONFIGURATION: Dict[str, Any] = {}

BASE_WEB_CONFIGURATION: Dict[str, Any] = {
    "auth": {
        "enabled": False,
    },
    "routing": {
        "issue_report_link": "https://github.com/temporalio/web/issues/new/choose",
    },
}

# plugin -> (DB value, seeds/credential variable prefix) of the server image
_ENGINE_ENV = {
    DatastorePlugin.MYSQL: ("mysql", "MYSQL"),
    DatastorePlugin.POSTGRES: ("postgresql", "POSTGRES"),
    DatastorePlugin.CASSANDRA: ("cassandra", "CASSANDRA"),
}


@dataclass(frozen=True)
class SecretReference:
    """A field of a secret, resolved by the scheduler at task start."""
    secret_id: str
    key: str


class ClusterConfiguration:
    """
    Configuration shared by every task of one cluster.

    attach_database() must be called for both schema types before
    to_environment() or to_secrets().
    """

    def __init__(
        self,
        ports: Optional[RolePortTable] = None,
        dynamic: Optional[Dict[str, Any]] = None,
        web: Optional[Dict[str, Any]] = None,
    ):
        self.ports = ports or RolePortTable()
        self.dynamic = copy.deepcopy(BASE_DYNAMIC_CONFIGURATION if dynamic is None else dynamic)
        self.web = copy.deepcopy(BASE_WEB_CONFIGURATION if web is None else web)
        self.databases: Dict[SchemaType, DatabaseDescriptor] = {}

    def attach_database(self, database: DatabaseDescriptor) -> None:
        if database.schema_type in self.databases:
            raise ConfigurationError(f"A {database.schema_type.value} database is already attached")
        self.databases[database.schema_type] = database

    # ------------------------------------------------------------------
    # Staged documents
    # ------------------------------------------------------------------

    def stringify_dynamic(self) -> str:
        return yaml.safe_dump(self.dynamic, default_flow_style=False, sort_keys=False)

    def stringify_web(self) -> str:
        return yaml.safe_dump(self.web, default_flow_style=False, sort_keys=False)

    # ------------------------------------------------------------------
    # Task environment
    # ------------------------------------------------------------------

    def _datastore(self) -> DatastoreDescriptor:
        missing = [t.value for t in SchemaType if t not in self.databases]
        if missing:
            raise ConfigurationError(f"No database attached for: {', '.join(missing)}")
        main = self.databases[SchemaType.MAIN].datastore
        if self.databases[SchemaType.VISIBILITY].datastore != main:
            raise ConfigurationError("Main and visibility databases must share one datastore")
        if main.plugin not in _ENGINE_ENV:
            raise ConfigurationError(f"{main.plugin.value} cannot be the main datastore")
        return main

    def to_environment(self) -> Dict[str, str]:
        """Environment variables common to every server task."""
        datastore = self._datastore()
        db_value, prefix = _ENGINE_ENV[datastore.plugin]

        env = {
            "DB": db_value,
            "DB_PORT": str(datastore.port),
            f"{prefix}_SEEDS": datastore.host,
            "DBNAME": self.databases[SchemaType.MAIN].name,
            "VISIBILITY_DBNAME": self.databases[SchemaType.VISIBILITY].name,
            "DYNAMIC_CONFIG_FILE_PATH": f"{DYNAMIC_CONFIG_MOUNT}/dynamic_config.yaml",
        }
        for role in SERVER_ROLES:
            entry = self.ports.for_role(role)
            env[f"{role.value.upper()}_GRPC_PORT"] = str(entry.rpc_port)
            env[f"{role.value.upper()}_MEMBERSHIP_PORT"] = str(entry.membership_port)
        return env

    def to_secrets(self) -> Dict[str, SecretReference]:
        """Credential variables, as references into the datastore secret."""
        datastore = self._datastore()
        _, prefix = _ENGINE_ENV[datastore.plugin]
        return {
            f"{prefix}_USER": SecretReference(datastore.secret_id, "username"),
            f"{prefix}_PWD": SecretReference(datastore.secret_id, "password"),
        }

    def web_environment(self) -> Dict[str, str]:
        return {
            "TEMPORAL_CONFIG_PATH": f"{WEB_CONFIG_MOUNT}/web_config.yaml",
            "TEMPORAL_WEB_PORT": str(self.ports.web_port),
        }


__all__ = [
    "ClusterConfiguration",
    "SecretReference",
    "BASE_DYNAMIC_CONFIGURATION",
    "BASE_WEB_CONFIGURATION",
    "DYNAMIC_CONFIG_DIR",
    "WEB_CONFIG_DIR",
    "DYNAMIC_CONFIG_PATH",
    "WEB_CONFIG_PATH",
    "DYNAMIC_CONFIG_MOUNT",
    "WEB_CONFIG_MOUNT",
]
