# ============================================================================
# API ROUTES
# ============================================================================
# EPOCH: 2 - LIFECYCLE RECONCILIATION
# STATUS: Core - FastAPI route definitions
# PURPOSE: HTTP lifecycle endpoint for reconcilers, topology planning
# CREATED: 16 OCT 2026
# ============================================================================
"""
API Routes

The provisioning engine delivers lifecycle envelopes over HTTP:

    POST /api/v1/reconcile/{resource_type}
        resource_type: schema | namespace | config-file
                       (or Custom::TemporalSchema, Custom::TemporalNamespace, ...)
        body: {"RequestType": "Create", "ResourceProperties": {...},
               "PhysicalResourceId": "...", "RequestId": "..."}
        200:  {"PhysicalResourceId": "..."}

Failures map to status codes so the engine can decide to retry:

    400 RequestValidationError, ConfigurationError
    404 unknown resource type
    501 UnsupportedOperationError
    502 ExternalToolError, CredentialFetchError
    503 UnreachableResourceError

Handlers are sync: reconciliations block on sockets and subprocesses and
run in FastAPI's threadpool.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse

from core.errors import (
    ConfigurationError,
    CredentialFetchError,
    ExternalToolError,
    ReconcileError,
    RequestValidationError,
    UnreachableResourceError,
    UnsupportedOperationError,
)
from core.logging import get_logger, log_context, ComponentType
from core.models.lifecycle import LifecycleRequest
from reconcilers import ProviderRegistry, ReconcilerDependencies, canonical_name, list_reconcilers
from reconcilers.registry import ReconcilerNotFoundError
from topology.planner import TopologyPlanner
from .schemas import (
    AuthorizationRule,
    ErrorResponse,
    ReconcilerInfo,
    TopologyPlanRequest,
    TopologyPlanResponse,
)

logger = get_logger(__name__, ComponentType.API)

router = APIRouter()

# Scope of the providers serving HTTP requests
HTTP_SCOPE = "http"


# ============================================================================
# DEPENDENCY INJECTION
# ============================================================================
# Set by the main app at startup

_providers: Optional[ProviderRegistry] = None


def set_dependencies(dependencies: Optional[ReconcilerDependencies]) -> None:
    """Set reconciler collaborators (None to reset)."""
    global _providers
    _providers = ProviderRegistry(dependencies) if dependencies is not None else None


def get_providers() -> ProviderRegistry:
    if _providers is None:
        raise HTTPException(500, "Reconcilers not initialized")
    return _providers


# ============================================================================
# ERROR MAPPING
# ============================================================================

_STATUS_CODES = (
    (RequestValidationError, 400),
    (ConfigurationError, 400),
    (UnsupportedOperationError, 501),
    (UnreachableResourceError, 503),
    (ExternalToolError, 502),
    (CredentialFetchError, 502),
)


def status_code_for(error: ReconcileError) -> int:
    for error_type, code in _STATUS_CODES:
        if isinstance(error, error_type):
            return code
    return 500


def _error_response(error: ReconcileError) -> JSONResponse:
    details: Dict[str, Any] = {}
    if isinstance(error, RequestValidationError):
        details["errors"] = error.errors
    elif isinstance(error, ExternalToolError):
        details["returncode"] = error.returncode
        details["stderr"] = error.stderr
    body = ErrorResponse(error=type(error).__name__, message=str(error), details=details or None)
    return JSONResponse(status_code=status_code_for(error), content=body.model_dump(exclude_none=True))


# ============================================================================
# RECONCILE
# ============================================================================

@router.get("/reconcilers", response_model=List[ReconcilerInfo], tags=["Reconcile"])
def get_reconcilers():
    """List registered reconcilers and their wire aliases."""
    return [
        ReconcilerInfo(name=meta["name"], aliases=meta["aliases"], description=meta["description"])
        for meta in list_reconcilers()
    ]


@router.post(
    "/reconcile/{resource_type}",
    tags=["Reconcile"],
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        501: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)
def reconcile(resource_type: str, envelope: LifecycleRequest):
    """
    Apply one lifecycle event to a resource.

    Returns {PhysicalResourceId} on success.
    """
    try:
        kind = canonical_name(resource_type)
    except ReconcilerNotFoundError as e:
        return JSONResponse(
            status_code=404,
            content=ErrorResponse(error=type(e).__name__, message=str(e)).model_dump(exclude_none=True),
        )

    provider = get_providers().get_or_create(kind, HTTP_SCOPE)

    with log_context(request_id=envelope.request_id):
        try:
            response = provider.reconciler.handle(envelope)
        except ReconcileError as e:
            logger.error(f"{envelope.request_type.value} {kind} failed: {e}")
            return _error_response(e)

    return response.to_wire()


# ============================================================================
# TOPOLOGY
# ============================================================================

@router.post("/topology/plan", response_model=TopologyPlanResponse, tags=["Topology"])
def plan_topology(request: TopologyPlanRequest):
    """Compute the allow rules for a set of active roles."""
    ports = request.ports.to_table()

    rules = TopologyPlanner().plan(
        active_roles=request.active_roles,
        ports=ports,
        datastore_ports=request.datastore_ports,
        public_cidr=request.public_cidr,
        cross_role_membership=request.cross_role_membership,
    )
    return TopologyPlanResponse(
        rules=[AuthorizationRule(**rule.to_dict()) for rule in rules],
        count=len(rules),
    )


__all__ = [
    "router",
    "set_dependencies",
    "get_providers",
    "status_code_for",
]
