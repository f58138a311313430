# ============================================================================
# CONFIG FILE RECONCILER
# ============================================================================
# EPOCH: 2 - LIFECYCLE RECONCILIATION
# STATUS: Core - Configuration artifacts on shared storage
# PURPOSE: Stage dynamic and web config files read by the server tasks
# CREATED: 15 OCT 2026
# ============================================================================
"""
Config File Reconciler

Create/Update write Contents to Path on the shared filesystem identified by
FileSystemId. Delete removes the file (missing files are fine).

When an Update moves the file to a new path, the old file is removed after
the new one is written.
"""

from typing import Optional

from core.contracts import LifecycleEvent
from core.logging import get_logger, ComponentType
from core.models.requests import ConfigFileRequest
from infrastructure.shared_storage import SharedFileStore
from reconcilers.base import Reconciler, ReconcilerDependencies
from reconcilers.registry import register_reconciler

logger = get_logger(__name__, ComponentType.RECONCILER)

_SCHEME = "efs://"


def path_from_physical_id(physical_id: Optional[str]) -> Optional[str]:
    """Recover the in-filesystem path from efs://{fsid}/{path}. The path keeps its leading slash."""
    if not physical_id or not physical_id.startswith(_SCHEME):
        return None
    _, sep, path = physical_id[len(_SCHEME):].partition("/")
    return "/" + path.lstrip("/") if sep else None


@register_reconciler("config-file", aliases=["Custom::EfsFile", "Custom::ConfigFile"])
class ConfigFileReconciler(Reconciler):
    """Keeps one file on the shared configuration filesystem."""

    resource_type = "config-file"
    request_model = ConfigFileRequest

    def __init__(self, storage: SharedFileStore):
        self.storage = storage

    @classmethod
    def from_dependencies(cls, deps: ReconcilerDependencies) -> "ConfigFileReconciler":
        if deps.storage is None:
            raise ValueError("ConfigFileReconciler requires shared storage")
        return cls(storage=deps.storage)

    def apply(self, event, request: ConfigFileRequest, previous_physical_id=None) -> None:
        if event is LifecycleEvent.DELETE:
            self.storage.delete(request.path)
            return

        self.storage.put(request.path, request.contents)

        previous_path = path_from_physical_id(previous_physical_id)
        if (
            event is LifecycleEvent.UPDATE
            and previous_path is not None
            and previous_physical_id != request.physical_id
            and previous_physical_id.startswith(f"{_SCHEME}{request.file_system_id}/")
        ):
            logger.info(f"Config file moved, removing {previous_path}")
            self.storage.delete(previous_path)


__all__ = [
    "ConfigFileReconciler",
    "path_from_physical_id",
]
