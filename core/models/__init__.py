# ============================================================================
# MODELS MODULE
# ============================================================================
# EPOCH: 2 - LIFECYCLE RECONCILIATION
# STATUS: Model exports
# PURPOSE: Central export point for all Pydantic models
# ============================================================================
"""
Models Module - Central Export Point

Pydantic models for descriptors, reconcile requests and the lifecycle envelope.
"""

from core.models.datastore import DatastoreDescriptor, DatabaseDescriptor, DatastoreCredentials
from core.models.requests import (
    ResourceProperties,
    SchemaReconcileRequest,
    NamespaceReconcileRequest,
    ConfigFileRequest,
)
from core.models.lifecycle import LifecycleRequest, LifecycleResponse

__all__ = [
    # Descriptors
    "DatastoreDescriptor",
    "DatabaseDescriptor",
    "DatastoreCredentials",
    # Requests
    "ResourceProperties",
    "SchemaReconcileRequest",
    "NamespaceReconcileRequest",
    "ConfigFileRequest",
    # Envelope
    "LifecycleRequest",
    "LifecycleResponse",
]
