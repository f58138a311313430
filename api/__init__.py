# ============================================================================
# API MODULE
# ============================================================================
# EPOCH: 2 - LIFECYCLE RECONCILIATION
# STATUS: Core - FastAPI routes
# PURPOSE: HTTP lifecycle endpoint and topology planning
# CREATED: 16 OCT 2026
# ============================================================================
"""
API Module

FastAPI routes for the cluster provisioner.
"""

from .routes import router, set_dependencies
from .schemas import (
    TopologyPlanRequest,
    TopologyPlanResponse,
    ErrorResponse,
)

__all__ = [
    "router",
    "set_dependencies",
    "TopologyPlanRequest",
    "TopologyPlanResponse",
    "ErrorResponse",
]
