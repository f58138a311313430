# ============================================================================
# EXTERNAL COLLABORATORS
# ============================================================================
# EPOCH: 2 - LIFECYCLE RECONCILIATION
# STATUS: Cluster - Interfaces to platform services
# PURPOSE: Datastore, scheduler, filesystem and network policy boundaries
# CREATED: 15 OCT 2026
# ============================================================================
"""
External Collaborators

The composer does not manage cloud resources itself. It talks to four
interfaces, implemented by whatever platform hosts the cluster:

    DatastoreProvisioner   obtain-or-create the relational datastore
    ContainerScheduler     obtain-or-create the scheduler cluster, run tasks
    FileSystemProvisioner  obtain-or-create the shared config filesystem
    NetworkPolicy          apply/revoke port-level allow rules

All operations must be idempotent: the composer calls them again on update.
"""

from abc import ABC, abstractmethod
from typing import Optional, Sequence, TYPE_CHECKING

from core.models.datastore import DatastoreDescriptor

if TYPE_CHECKING:
    from cluster.services import TaskSpec
    from cluster.spec import DatastoreOptions, DiscoveryRegistration
    from topology.planner import NetworkAuthorization


class DatastoreProvisioner(ABC):
    """Creates the datastore when the cluster does not bring its own."""

    @abstractmethod
    def obtain_or_create(self, cluster_name: str, options: "DatastoreOptions") -> DatastoreDescriptor:
        """Return the datastore for cluster_name, creating it if needed."""
        ...

    def release(self, cluster_name: str) -> None:
        """Remove a datastore created by obtain_or_create (destroy policy only)."""


class ContainerScheduler(ABC):
    """Runs role tasks."""

    @abstractmethod
    def obtain_or_create_cluster(self, cluster_name: str, existing_cluster: Optional[str] = None) -> str:
        """
        Return the scheduler cluster id.

        Args:
            existing_cluster: Use this cluster instead of creating one
        """
        ...

    @abstractmethod
    def run_task(
        self,
        cluster_id: str,
        task: "TaskSpec",
        discovery: Optional["DiscoveryRegistration"] = None,
    ) -> str:
        """
        Create or replace the service running task.

        Args:
            discovery: Also register the service under this discovery
                namespace (A records). Only passed for the frontend or
                single task.

        Returns:
            Hostname at which the service is reachable inside the network
        """
        ...

    @abstractmethod
    def remove_task(self, cluster_id: str, task_name: str) -> None:
        ...


class FileSystemProvisioner(ABC):
    """Shared filesystem holding the staged configuration documents."""

    @abstractmethod
    def obtain_or_create(self, cluster_name: str) -> str:
        """Return the file system id for cluster_name."""
        ...


class NetworkPolicy(ABC):
    """Port-level allow rules between roles, the datastore and the outside."""

    @abstractmethod
    def apply(self, cluster_name: str, rules: Sequence["NetworkAuthorization"]) -> None:
        """Make rules the complete rule set of the cluster."""
        ...

    @abstractmethod
    def revoke(self, cluster_name: str) -> None:
        ...


__all__ = [
    "DatastoreProvisioner",
    "ContainerScheduler",
    "FileSystemProvisioner",
    "NetworkPolicy",
]
