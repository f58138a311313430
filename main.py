# ============================================================================
# CLUSTER PROVISIONER - MAIN APPLICATION
# ============================================================================
# EPOCH: 2 - LIFECYCLE RECONCILIATION
# STATUS: Core - FastAPI application entry point
# PURPOSE: HTTP lifecycle endpoint for schema, namespace and config reconcilers
# CREATED: 17 OCT 2026
# ============================================================================
"""
Cluster Provisioner Main Application

FastAPI application that:
1. Receives lifecycle envelopes from the provisioning engine
2. Dispatches them to the registered reconcilers
3. Serves topology plans and health probes

Usage:
    uvicorn main:app --host 0.0.0.0 --port 8000
"""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI

from __version__ import __version__, BUILD_DATE, EPOCH
from api.routes import router, set_dependencies
from core.config.defaults import get_defaults
from core.logging import configure_logging, get_logger
from health import health_router, get_registry
from infrastructure import ReadinessWaiter, SharedFileStore, ToolRunner, get_secret_store
from reconcilers import ReconcilerDependencies

configure_logging(
    level=os.environ.get("LOG_LEVEL", "INFO"),
    json_output=os.environ.get("LOG_FORMAT", "").lower() == "json",
)
logger = get_logger(__name__)


def build_dependencies() -> ReconcilerDependencies:
    """Reconciler collaborators from environment configuration."""
    defaults = get_defaults()
    return ReconcilerDependencies(
        waiter=ReadinessWaiter(defaults.readiness),
        runner=ToolRunner(timeout_seconds=defaults.tools.tool_timeout_seconds),
        tools=defaults.tools,
        secrets=get_secret_store(defaults.secrets),
        storage=SharedFileStore(defaults.storage.mount_root),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting Cluster Provisioner v{__version__} (Epoch {EPOCH}, Build {BUILD_DATE})")

    set_dependencies(build_dependencies())
    logger.info("Reconciler dependencies initialized")

    import health.checks  # noqa: F401  registers built-in checks
    get_registry().mark_initialized()
    logger.info(f"Health checks initialized ({len(get_registry())} checks registered)")

    yield

    set_dependencies(None)
    logger.info("Cluster Provisioner stopped")


app = FastAPI(
    title="Cluster Provisioner",
    description=f"Epoch {EPOCH} lifecycle reconciliation for workflow engine clusters",
    version=__version__,
    lifespan=lifespan,
)

# /livez, /readyz, /health
app.include_router(health_router)

app.include_router(router, prefix="/api/v1")


@app.get("/")
async def root():
    return {
        "service": "Cluster Provisioner",
        "version": __version__,
        "epoch": EPOCH,
        "build_date": BUILD_DATE,
        "status": "running",
        "docs": "/docs",
    }


# ============================================================================
# MAIN ENTRY POINT
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", "8000"))

    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        reload=os.environ.get("RELOAD", "false").lower() == "true",
    )
