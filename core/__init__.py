# ============================================================================
# CORE MODULE
# ============================================================================
# EPOCH: 2 - LIFECYCLE RECONCILIATION
# STATUS: Core module initialization
# PURPOSE: Export core contracts, errors and models
# ============================================================================

from core.contracts import DatastorePlugin, LifecycleEvent, RemovalPolicy, Role, SchemaType
from core.errors import (
    ReconcileError,
    RequestValidationError,
    UnsupportedOperationError,
    UnreachableResourceError,
    ExternalToolError,
    CredentialFetchError,
    ConfigurationError,
)
from core.models import (
    DatastoreDescriptor,
    DatabaseDescriptor,
    SchemaReconcileRequest,
    NamespaceReconcileRequest,
    ConfigFileRequest,
    LifecycleRequest,
    LifecycleResponse,
)

__all__ = [
    # Enums
    "DatastorePlugin",
    "LifecycleEvent",
    "RemovalPolicy",
    "Role",
    "SchemaType",
    # Errors
    "ReconcileError",
    "RequestValidationError",
    "UnsupportedOperationError",
    "UnreachableResourceError",
    "ExternalToolError",
    "CredentialFetchError",
    "ConfigurationError",
    # Models
    "DatastoreDescriptor",
    "DatabaseDescriptor",
    "SchemaReconcileRequest",
    "NamespaceReconcileRequest",
    "ConfigFileRequest",
    "LifecycleRequest",
    "LifecycleResponse",
]
