# ============================================================================
# RECONCILER BASE
# ============================================================================
# EPOCH: 2 - LIFECYCLE RECONCILIATION
# STATUS: Core - Lifecycle dispatch shared by all reconcilers
# PURPOSE: Validate properties, bind log context, dispatch Create/Update/Delete
# CREATED: 14 OCT 2026
# ============================================================================
"""
Reconciler Base

A reconciler converges one external resource to the state declared in its
properties, in response to a lifecycle event. Every reconciler:

1. Validates its properties (RequestValidationError, no side effects)
2. Derives the physical identity from the validated properties
3. Applies the event
4. Returns {PhysicalResourceId}

Invocations are synchronous and independent. Reconcilers hold only their
collaborators (waiter, tool runner, secret store, storage), never per-request
state, so one instance may serve concurrent requests from separate threads.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, ClassVar, Mapping, Optional, Type, Union

from core.config.defaults import ToolDefaults
from core.contracts import LifecycleEvent
from core.logging import get_logger, log_context, ComponentType
from core.models.lifecycle import LifecycleRequest, LifecycleResponse
from core.models.requests import ResourceProperties
from infrastructure.readiness import ReadinessWaiter
from infrastructure.secrets import SecretStore
from infrastructure.shared_storage import SharedFileStore
from infrastructure.tools import ToolRunner

logger = get_logger(__name__, ComponentType.RECONCILER)


@dataclass
class ReconcilerDependencies:
    """
    Collaborators handed to reconciler factories.

    secrets and storage are optional because not every reconciler needs them;
    a reconciler that does raises ValueError at construction if missing.
    """
    waiter: ReadinessWaiter = field(default_factory=ReadinessWaiter)
    runner: ToolRunner = field(default_factory=ToolRunner)
    tools: ToolDefaults = field(default_factory=ToolDefaults)
    secrets: Optional[SecretStore] = None
    storage: Optional[SharedFileStore] = None


class Reconciler(ABC):
    """
    Base class for lifecycle reconcilers.

    Subclasses declare resource_type and request_model and implement apply().
    """

    resource_type: ClassVar[str] = "unnamed"
    request_model: ClassVar[Type[ResourceProperties]] = ResourceProperties

    @classmethod
    @abstractmethod
    def from_dependencies(cls, deps: ReconcilerDependencies) -> "Reconciler":
        """Build an instance from shared collaborators."""
        ...

    @abstractmethod
    def apply(
        self,
        event: LifecycleEvent,
        request: ResourceProperties,
        previous_physical_id: Optional[str] = None,
    ) -> None:
        """
        Converge the external resource for one event.

        Raises:
            ReconcileError subclasses; never returns partial success
        """
        ...

    def reconcile(
        self,
        event: LifecycleEvent,
        properties: Union[Mapping[str, Any], ResourceProperties],
        previous_physical_id: Optional[str] = None,
    ) -> LifecycleResponse:
        """
        Validate properties and apply one lifecycle event.

        Args:
            event: Create, Update or Delete
            properties: Wire (PascalCase) or Python (snake_case) properties,
                or an already validated request model
            previous_physical_id: Identity recorded by the last successful event

        Returns:
            LifecycleResponse carrying the physical resource id
        """
        event = LifecycleEvent(event)
        if isinstance(properties, self.request_model):
            request = properties
        else:
            request = self.request_model.from_properties(properties)
        physical_id = request.physical_id

        with log_context(
            resource_type=self.resource_type,
            request_type=event.value,
            physical_id=physical_id,
        ):
            logger.info(f"{event.value} {self.resource_type} {physical_id}")
            self.apply(event, request, previous_physical_id)
            logger.info(f"{event.value} {self.resource_type} completed")

        return LifecycleResponse(physical_resource_id=physical_id)

    def handle(self, envelope: LifecycleRequest) -> LifecycleResponse:
        """Reconcile a full lifecycle envelope."""
        with log_context(request_id=envelope.request_id):
            return self.reconcile(
                envelope.request_type,
                envelope.resource_properties,
                previous_physical_id=envelope.physical_resource_id,
            )


__all__ = [
    "Reconciler",
    "ReconcilerDependencies",
]
