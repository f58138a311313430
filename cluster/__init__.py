# ============================================================================
# CLUSTER MODULE
# ============================================================================
# EPOCH: 2 - LIFECYCLE RECONCILIATION
# STATUS: Cluster - Composition of a multi-role cluster
# PURPOSE: Spec, configuration artifacts, task shapes and the composer
# ============================================================================
"""
Cluster module.

Usage:
    from cluster import ClusterComposer, ClusterSpec

    spec = ClusterSpec.from_file("orders.yaml")
    composed = ClusterComposer(datastores, scheduler, file_systems, network,
                               dependencies=deps).compose(spec)
"""

from cluster.versions import ServerVersion, ContainerImages, KNOWN_VERSIONS, LATEST
from cluster.configuration import ClusterConfiguration, SecretReference
from cluster.services import TaskSpec, VolumeSpec, build_task
from cluster.collaborators import (
    ContainerScheduler,
    DatastoreProvisioner,
    FileSystemProvisioner,
    NetworkPolicy,
)
from cluster.spec import (
    ClusterSpec,
    DatastoreOptions,
    DiscoveryRegistration,
    ExistingDatastore,
    PortOverrides,
)
from cluster.composer import ClusterComposer, ComposedCluster

__all__ = [
    # Versions
    'ServerVersion',
    'ContainerImages',
    'KNOWN_VERSIONS',
    'LATEST',
    # Configuration
    'ClusterConfiguration',
    'SecretReference',
    # Tasks
    'TaskSpec',
    'VolumeSpec',
    'build_task',
    # Collaborators
    'ContainerScheduler',
    'DatastoreProvisioner',
    'FileSystemProvisioner',
    'NetworkPolicy',
    # Spec & composer
    'ClusterSpec',
    'DatastoreOptions',
    'ExistingDatastore',
    'PortOverrides',
    'DiscoveryRegistration',
    'ClusterComposer',
    'ComposedCluster',
]
