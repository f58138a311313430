# ============================================================================
# API SCHEMAS
# ============================================================================
# EPOCH: 2 - LIFECYCLE RECONCILIATION
# STATUS: Core - Request/Response schemas
# PURPOSE: Pydantic models for the reconcile and topology endpoints
# CREATED: 16 OCT 2026
# ============================================================================
"""
API Schemas

Request and response models for the API. The lifecycle envelope itself is
core.models.LifecycleRequest / LifecycleResponse.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from cluster.spec import PortOverrides
from core.contracts import Role


# ============================================================================
# REQUEST SCHEMAS
# ============================================================================

class TopologyPlanRequest(BaseModel):
    """Request to compute network authorizations for a set of roles."""
    active_roles: List[Role] = Field(..., min_length=1)
    ports: PortOverrides = Field(
        default_factory=PortOverrides,
        description="Port table overrides, e.g. {\"frontend\": {\"rpc_port\": 17233}}",
    )
    datastore_ports: List[int] = Field(default_factory=list)
    public_cidr: Optional[str] = Field(None, max_length=64)
    cross_role_membership: bool = False

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "active_roles": ["frontend", "history", "matching", "worker", "web"],
                    "datastore_ports": [3306],
                    "public_cidr": "10.0.0.0/8",
                }
            ]
        }
    }


# ============================================================================
# RESPONSE SCHEMAS
# ============================================================================

class AuthorizationRule(BaseModel):
    """One allow rule."""
    sources: List[str]
    destinations: List[str]
    port: int
    direction: str


class TopologyPlanResponse(BaseModel):
    rules: List[AuthorizationRule]
    count: int


class ReconcilerInfo(BaseModel):
    name: str
    aliases: List[str] = Field(default_factory=list)
    description: str = ""


class ErrorResponse(BaseModel):
    """Error body of a failed reconciliation."""
    error: str
    message: str
    details: Optional[Dict[str, Any]] = None


__all__ = [
    "TopologyPlanRequest",
    "AuthorizationRule",
    "TopologyPlanResponse",
    "ReconcilerInfo",
    "ErrorResponse",
]
