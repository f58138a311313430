# ============================================================================
# NAMESPACE RECONCILER
# ============================================================================
# EPOCH: 2 - LIFECYCLE RECONCILIATION
# STATUS: Core - Cluster namespace registration
# PURPOSE: Register namespaces idempotently against a live cluster
# CREATED: 14 OCT 2026
# ============================================================================
"""
Namespace Reconciler

Create/Update: wait for the cluster admin endpoint, then

    tctl --address <host:port> --auto_confirm --namespace <name> namespace register

An "already exists" diagnostic is success. Any other failure is retried
once, since concurrent registrations can surface transient errors.

Delete: namespaces cannot be deleted by the cluster; the event is a no-op
that returns the same physical id.
"""

from typing import List, Optional

from core.config.defaults import ToolDefaults
from core.contracts import LifecycleEvent
from core.logging import get_logger, ComponentType
from core.models.requests import NamespaceReconcileRequest
from infrastructure.readiness import ReadinessWaiter
from infrastructure.tools import ToolRunner
from reconcilers.base import Reconciler, ReconcilerDependencies
from reconcilers.registry import register_reconciler

logger = get_logger(__name__, ComponentType.RECONCILER)


def is_already_exists(stderr: str) -> bool:
    """Classify a tctl diagnostic as "namespace already registered"."""
    text = stderr or ""
    return "AlreadyExists" in text or "already exists" in text.lower()


@register_reconciler("namespace", aliases=["Custom::TemporalNamespace"])
class NamespaceReconciler(Reconciler):
    """Registers one namespace on a cluster."""

    resource_type = "namespace"
    request_model = NamespaceReconcileRequest

    def __init__(
        self,
        waiter: Optional[ReadinessWaiter] = None,
        runner: Optional[ToolRunner] = None,
        tools: Optional[ToolDefaults] = None,
    ):
        self.waiter = waiter or ReadinessWaiter()
        self.runner = runner or ToolRunner()
        self.tools = tools or ToolDefaults()

    @classmethod
    def from_dependencies(cls, deps: ReconcilerDependencies) -> "NamespaceReconciler":
        return cls(waiter=deps.waiter, runner=deps.runner, tools=deps.tools)

    def register_command(self, request: NamespaceReconcileRequest) -> List[str]:
        return [
            self.tools.namespace_tool_path,
            "--address", request.cluster_admin_host,
            "--auto_confirm",
            "--namespace", request.namespace_name,
            "namespace", "register",
        ]

    def apply(self, event, request: NamespaceReconcileRequest, previous_physical_id=None) -> None:
        if event is LifecycleEvent.DELETE:
            logger.info(f"Namespace {request.namespace_name} is left registered (deletion unsupported)")
            return

        self.waiter.wait_for_address(request.cluster_admin_host)
        self.register(request)

    def register(self, request: NamespaceReconcileRequest) -> None:
        """
        Register the namespace.

        Raises:
            ExternalToolError: If both attempts fail with anything but "already exists"
        """
        command = self.register_command(request)

        result = self.runner.run(command, check=False)
        if result.ok:
            logger.info(f"Registered namespace {request.namespace_name}")
            return
        if is_already_exists(result.stderr):
            logger.info(f"Namespace {request.namespace_name} already registered")
            return

        logger.warning(f"Namespace registration failed (exit {result.returncode}), retrying once")
        retry = self.runner.run(command, check=False)
        if retry.ok or is_already_exists(retry.stderr):
            logger.info(f"Namespace {request.namespace_name} registered on retry")
            return
        retry.raise_for_status()


__all__ = [
    "NamespaceReconciler",
    "is_already_exists",
]
