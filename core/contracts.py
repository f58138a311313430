# ============================================================================
# BASE CONTRACTS & ENUMS
# ============================================================================
# EPOCH: 2 - LIFECYCLE RECONCILIATION
# STATUS: Foundation - Core enums shared by reconcilers, planner and composer
# PURPOSE: Define lifecycle, datastore, schema and role enums
# EXPORTS: LifecycleEvent, DatastorePlugin, SchemaType, Role, RemovalPolicy
# DEPENDENCIES: enum
# ============================================================================
"""
Base contracts for the cluster provisioner.

These values cross boundaries:
- Wire (lifecycle request envelopes from the provisioning engine)
- Subprocess (admin tool arguments)
- Python (internal planning and composition)
"""

from enum import Enum


# ============================================================================
# LIFECYCLE
# ============================================================================

class LifecycleEvent(str, Enum):
    """
    Lifecycle events delivered by the external provisioning engine.

    Values match the RequestType field of the wire envelope.
    """
    CREATE = "Create"
    UPDATE = "Update"
    DELETE = "Delete"

    def is_mutating(self) -> bool:
        """Create and Update converge state; Delete tears it down."""
        return self in (LifecycleEvent.CREATE, LifecycleEvent.UPDATE)


class RemovalPolicy(str, Enum):
    """
    What the caller does with a reconciled resource when its owner is removed.

    RETAIN suppresses the Delete lifecycle event entirely.
    """
    RETAIN = "retain"
    DESTROY = "destroy"


# ============================================================================
# DATASTORE
# ============================================================================

class DatastorePlugin(str, Enum):
    """Datastore engines known to the schema tooling."""
    MYSQL = "mysql"
    POSTGRES = "postgres"
    CASSANDRA = "cassandra"
    ELASTICSEARCH = "elasticsearch"

    def is_sql(self) -> bool:
        """Check if the engine is driven by the SQL schema tool."""
        return self in (DatastorePlugin.MYSQL, DatastorePlugin.POSTGRES)


class SchemaType(str, Enum):
    """
    Logical schema families.

    MAIN holds workflow state, VISIBILITY holds the search/listing tables.
    """
    MAIN = "main"
    VISIBILITY = "visibility"

    @property
    def schema_dir_name(self) -> str:
        """Directory name used by the versioned migration layout."""
        return "temporal" if self is SchemaType.MAIN else "visibility"


# ============================================================================
# ROLES
# ============================================================================

class Role(str, Enum):
    """
    Server roles composing a cluster.

    SINGLE is the degenerate all-in-one node playing every server role.
    WEB is the auxiliary UI and never takes part in membership.
    """
    FRONTEND = "frontend"
    HISTORY = "history"
    MATCHING = "matching"
    WORKER = "worker"
    SINGLE = "single"
    WEB = "web"

    @property
    def is_server(self) -> bool:
        """Check if the role runs engine server processes."""
        return self is not Role.WEB


SERVER_ROLES = (Role.FRONTEND, Role.HISTORY, Role.MATCHING, Role.WORKER)


__all__ = [
    "LifecycleEvent",
    "RemovalPolicy",
    "DatastorePlugin",
    "SchemaType",
    "Role",
    "SERVER_ROLES",
]
