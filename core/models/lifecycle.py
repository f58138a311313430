# ============================================================================
# LIFECYCLE ENVELOPE MODELS
# ============================================================================
# EPOCH: 2 - LIFECYCLE RECONCILIATION
# STATUS: Core model - Request/response envelope of the provisioning engine
# PURPOSE: Carry the event type, resource properties and previous identity
# EXPORTS: LifecycleRequest, LifecycleResponse
# DEPENDENCIES: pydantic
# ============================================================================
"""
Lifecycle Envelope

The external provisioning engine invokes a reconciler with:

    {
        "RequestType": "Create" | "Update" | "Delete",
        "ResourceType": "Custom::TemporalSchema",
        "ResourceProperties": {...},
        "OldResourceProperties": {...},     # Update only
        "PhysicalResourceId": "...",        # Update and Delete
        "RequestId": "..."
    }

and expects back {"PhysicalResourceId": "...", "Data": {...}}.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from core.contracts import LifecycleEvent


class LifecycleRequest(BaseModel):
    """One lifecycle event for one resource."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    request_type: LifecycleEvent = Field(..., alias="RequestType")
    resource_type: Optional[str] = Field(default=None, alias="ResourceType")
    resource_properties: Dict[str, Any] = Field(default_factory=dict, alias="ResourceProperties")
    old_resource_properties: Optional[Dict[str, Any]] = Field(
        default=None, alias="OldResourceProperties"
    )
    physical_resource_id: Optional[str] = Field(default=None, alias="PhysicalResourceId")
    request_id: Optional[str] = Field(default=None, alias="RequestId")


class LifecycleResponse(BaseModel):
    """Result of a successful reconciliation."""

    model_config = ConfigDict(populate_by_name=True)

    physical_resource_id: str = Field(..., alias="PhysicalResourceId")
    data: Dict[str, Any] = Field(default_factory=dict, alias="Data")

    def to_wire(self) -> Dict[str, Any]:
        """Serialize with wire names, omitting empty Data."""
        wire: Dict[str, Any] = {"PhysicalResourceId": self.physical_resource_id}
        if self.data:
            wire["Data"] = self.data
        return wire


__all__ = [
    "LifecycleRequest",
    "LifecycleResponse",
]
