# ============================================================================
# RECONCILERS MODULE
# ============================================================================
# EPOCH: 2 - LIFECYCLE RECONCILIATION
# STATUS: Core - Lifecycle reconcilers for external resources
# PURPOSE: Schema, namespace and config file reconciliation
# ============================================================================
"""
Reconcilers module.

Importing this package registers every reconciler:

    schema       (Custom::TemporalSchema)     SchemaReconciler
    namespace    (Custom::TemporalNamespace)  NamespaceReconciler
    config-file  (Custom::EfsFile)            ConfigFileReconciler

Usage:
    from reconcilers import get_reconciler_class_or_raise, ReconcilerDependencies

    reconciler = get_reconciler_class_or_raise("namespace").from_dependencies(deps)
    response = reconciler.reconcile("Create", {"ClusterAdminHost": "fe:7233",
                                               "NamespaceName": "default"})
"""

from reconcilers.registry import (
    register_reconciler,
    get_reconciler_class,
    get_reconciler_class_or_raise,
    canonical_name,
    list_reconcilers,
    clear_reconcilers,
    ReconcilerRegistryError,
    ReconcilerNotFoundError,
    DuplicateReconcilerError,
)
from reconcilers.base import Reconciler, ReconcilerDependencies
from reconcilers.drivers import (
    SchemaDriver,
    SqlSchemaDriver,
    UnsupportedSchemaDriver,
    driver_for,
)
from reconcilers.schema import SchemaReconciler
from reconcilers.namespace import NamespaceReconciler
from reconcilers.config_file import ConfigFileReconciler
from reconcilers.providers import ProviderKey, ReconcilerProvider, ProviderRegistry

__all__ = [
    # Registry
    'register_reconciler',
    'get_reconciler_class',
    'get_reconciler_class_or_raise',
    'canonical_name',
    'list_reconcilers',
    'clear_reconcilers',
    'ReconcilerRegistryError',
    'ReconcilerNotFoundError',
    'DuplicateReconcilerError',
    # Base
    'Reconciler',
    'ReconcilerDependencies',
    # Drivers
    'SchemaDriver',
    'SqlSchemaDriver',
    'UnsupportedSchemaDriver',
    'driver_for',
    # Reconcilers
    'SchemaReconciler',
    'NamespaceReconciler',
    'ConfigFileReconciler',
    # Providers
    'ProviderKey',
    'ReconcilerProvider',
    'ProviderRegistry',
]
