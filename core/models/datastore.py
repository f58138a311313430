# ============================================================================
# DATASTORE & DATABASE DESCRIPTORS
# ============================================================================
# EPOCH: 2 - LIFECYCLE RECONCILIATION
# STATUS: Core model - Resolved datastore and logical database references
# PURPOSE: Immutable descriptors shared across schema operations
# EXPORTS: DatastoreDescriptor, DatabaseDescriptor, DatastoreCredentials
# DEPENDENCIES: pydantic, dataclasses
# ============================================================================
"""
Datastore Descriptors

A DatastoreDescriptor is resolved once per cluster (created or supplied by
the caller) and shared by reference by every DatabaseDescriptor built on it.
Both are frozen: the datastore a database lives on never changes after
construction.
"""

from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict, Field

from core.contracts import DatastorePlugin, SchemaType


class DatastoreDescriptor(BaseModel):
    """Network location and credential reference of a relational datastore."""

    model_config = ConfigDict(frozen=True)

    plugin: DatastorePlugin
    host: str = Field(..., min_length=1)
    port: int = Field(..., ge=1, le=65535)
    secret_id: str = Field(..., min_length=1, description="Secret store reference")

    @property
    def endpoint(self) -> str:
        return f"{self.host}:{self.port}"


class DatabaseDescriptor(BaseModel):
    """
    One logical database (main or visibility) on a shared datastore.

    Drives one Schema Reconciler invocation per lifecycle event.
    """

    model_config = ConfigDict(frozen=True)

    datastore: DatastoreDescriptor
    name: str = Field(..., min_length=1, max_length=64)
    schema_type: SchemaType

    def to_request(self, cluster_version: str) -> "SchemaReconcileRequest":
        """Build the reconcile request for this database."""
        from core.models.requests import SchemaReconcileRequest

        return SchemaReconcileRequest(
            datastore_plugin=self.datastore.plugin,
            datastore_host=self.datastore.host,
            datastore_port=self.datastore.port,
            datastore_secret_id=self.datastore.secret_id,
            database_name=self.name,
            schema_type=self.schema_type,
            cluster_version=cluster_version,
        )


@dataclass(frozen=True)
class DatastoreCredentials:
    """Resolved username/password pair. The password is kept out of repr."""
    username: str
    password: str = field(repr=False)


__all__ = [
    "DatastoreDescriptor",
    "DatabaseDescriptor",
    "DatastoreCredentials",
]
