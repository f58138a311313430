# ============================================================================
# ROLE TASK SHAPES
# ============================================================================
# EPOCH: 2 - LIFECYCLE RECONCILIATION
# STATUS: Cluster - Scheduler-agnostic task descriptions per role
# PURPOSE: Build the container task each role runs
# CREATED: 15 OCT 2026
# ============================================================================
"""
Role Task Shapes

A TaskSpec is what the composer hands the container scheduler for one role:
image, machine shape, environment, secret references, shared-storage volumes
and exposed ports. Building a TaskSpec has no side effects.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Tuple

from core.config.defaults import MachineShape
from core.contracts import Role, SERVER_ROLES
from cluster.configuration import (
    ClusterConfiguration,
    SecretReference,
    DYNAMIC_CONFIG_DIR,
    DYNAMIC_CONFIG_MOUNT,
    WEB_CONFIG_DIR,
    WEB_CONFIG_MOUNT,
)
from cluster.versions import ServerVersion

# SERVICES value understood by the server image
_SERVICES = {role: role.value for role in SERVER_ROLES}
_SERVICES[Role.SINGLE] = ":".join(role.value for role in SERVER_ROLES)


@dataclass(frozen=True)
class VolumeSpec:
    """A directory of the shared filesystem mounted into a task."""
    name: str
    file_system_id: str
    volume_path: str
    container_path: str
    read_only: bool = True


@dataclass(frozen=True)
class TaskSpec:
    """One role's container task."""
    name: str
    role: Role
    image: str
    machine: MachineShape
    environment: Dict[str, str] = field(default_factory=dict)
    secrets: Dict[str, SecretReference] = field(default_factory=dict)
    volumes: Tuple[VolumeSpec, ...] = ()
    exposed_ports: Tuple[int, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "role": self.role.value,
            "image": self.image,
            "machine": {
                "cpu": self.machine.cpu,
                "memory_mib": self.machine.memory_mib,
                "cpu_architecture": self.machine.cpu_architecture,
            },
            "environment": dict(self.environment),
            "secrets": {k: {"secret_id": v.secret_id, "key": v.key} for k, v in self.secrets.items()},
            "volumes": [asdict(v) for v in self.volumes],
            "exposed_ports": list(self.exposed_ports),
        }


def build_task(
    role: Role,
    cluster_name: str,
    version: ServerVersion,
    configuration: ClusterConfiguration,
    machine: MachineShape,
    file_system_id: str,
) -> TaskSpec:
    """
    Build the task of one role.

    Server roles (and single) run the server image with the shared datastore
    environment and the dynamic config volume. The web role runs the web
    image with the web config volume.
    """
    role = Role(role)
    name = f"{cluster_name}-{role.value}"
    ports = configuration.ports.exposed_ports(role)

    if role is Role.WEB:
        return TaskSpec(
            name=name,
            role=role,
            image=version.container_images.web,
            machine=machine,
            environment=configuration.web_environment(),
            volumes=(VolumeSpec("web_config", file_system_id, WEB_CONFIG_DIR, WEB_CONFIG_MOUNT),),
            exposed_ports=ports,
        )

    environment = {"SERVICES": _SERVICES[role]}
    environment.update(configuration.to_environment())
    return TaskSpec(
        name=name,
        role=role,
        image=version.container_images.server,
        machine=machine,
        environment=environment,
        secrets=configuration.to_secrets(),
        volumes=(VolumeSpec("dynamic_config", file_system_id, DYNAMIC_CONFIG_DIR, DYNAMIC_CONFIG_MOUNT),),
        exposed_ports=ports,
    )


__all__ = [
    "VolumeSpec",
    "TaskSpec",
    "build_task",
]
