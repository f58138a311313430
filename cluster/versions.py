# ============================================================================
# SERVER VERSIONS
# ============================================================================
# EPOCH: 2 - LIFECYCLE RECONCILIATION
# STATUS: Cluster - Supported engine versions and container images
# PURPOSE: Map a server version to the images every role runs
# CREATED: 15 OCT 2026
# ============================================================================
"""
Server Versions

Known engine releases and the container images they map to. Images can be
pulled from a mirror by setting a repository base ("registry.example/").

The web UI is versioned independently of the server.
"""

import re
from dataclasses import dataclass, replace
from typing import Tuple

WEB_IMAGE_VERSION = "1.13.0"

_VERSION_PATTERN = re.compile(r"^\d+\.\d+\.\d+$")


@dataclass(frozen=True)
class ContainerImages:
    """Images for every role of one server version."""
    server: str
    auto_setup: str
    admin_tools: str
    web: str


@dataclass(frozen=True)
class ServerVersion:
    """An engine release, optionally pulled from a mirror registry."""
    version: str
    repository_base: str = ""

    def __post_init__(self):
        if not _VERSION_PATTERN.match(self.version):
            raise ValueError(f"Invalid server version: {self.version!r}")
        if self.repository_base and not self.repository_base.endswith("/"):
            raise ValueError(f"repository_base must end with '/': {self.repository_base!r}")

    @property
    def container_images(self) -> ContainerImages:
        prefix = self.repository_base
        return ContainerImages(
            server=f"{prefix}temporalio/server:{self.version}",
            auto_setup=f"{prefix}temporalio/auto-setup:{self.version}",
            admin_tools=f"{prefix}temporalio/admin-tools:{self.version}",
            web=f"{prefix}temporalio/web:{WEB_IMAGE_VERSION}",
        )

    def with_repository_base(self, repository_base: str) -> "ServerVersion":
        return replace(self, repository_base=repository_base)

    @property
    def is_known(self) -> bool:
        return self.version in KNOWN_VERSIONS

    def __str__(self) -> str:
        return self.version


# https://github.com/temporalio/temporal/releases
KNOWN_VERSIONS: Tuple[str, ...] = (
    "1.13.0", "1.13.1", "1.13.2",
    "1.14.0", "1.14.1", "1.14.2", "1.14.3", "1.14.4", "1.14.5", "1.14.6",
    "1.15.0", "1.15.1", "1.15.2",
    "1.16.0", "1.16.1", "1.16.2",
)

LATEST = ServerVersion(KNOWN_VERSIONS[-1])


__all__ = [
    "ContainerImages",
    "ServerVersion",
    "KNOWN_VERSIONS",
    "LATEST",
    "WEB_IMAGE_VERSION",
]
