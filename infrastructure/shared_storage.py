# ============================================================================
# SHARED CONFIGURATION STORAGE
# ============================================================================
# EPOCH: 2 - LIFECYCLE RECONCILIATION
# STATUS: Infrastructure - Mounted shared filesystem operations
# PURPOSE: Idempotent put/delete of configuration files read by server tasks
# ============================================================================
"""
Shared Configuration Storage

Server tasks mount a shared filesystem read-only and read their dynamic and
web configuration from it. The config-file reconciler runs where the same
filesystem is mounted read-write (under mount_root) and stages files here.

Both operations are idempotent:
- put() overwrites atomically (temp file + rename in the same directory)
- delete() of a missing file succeeds
"""

import os
import tempfile
from pathlib import Path
from typing import Union

from core.logging import get_logger, ComponentType

logger = get_logger(__name__, ComponentType.INFRASTRUCTURE)


class SharedFileStore:
    """
    Files on a shared filesystem mounted at mount_root.

    Paths are absolute within the filesystem ("/temporal/x.yaml") and are
    resolved under mount_root. Paths escaping the mount are rejected.
    """

    def __init__(self, mount_root: Union[str, Path] = "/mnt"):
        self.mount_root = Path(mount_root)

    def local_path(self, path: str) -> Path:
        """Map a filesystem path to its location under the mount."""
        candidate = (self.mount_root / path.lstrip("/")).resolve()
        root = self.mount_root.resolve()
        if candidate != root and root not in candidate.parents:
            raise ValueError(f"Path escapes shared storage mount: {path}")
        return candidate

    def put(self, path: str, contents: str) -> Path:
        """Write contents to path, creating parent directories."""
        target = self.local_path(path)
        target.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(contents)
            os.replace(tmp_name, target)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        logger.info(f"Wrote {len(contents)} bytes to {target}")
        return target

    def read(self, path: str) -> str:
        return self.local_path(path).read_text(encoding="utf-8")

    def exists(self, path: str) -> bool:
        return self.local_path(path).exists()

    def delete(self, path: str) -> bool:
        """
        Delete path if present.

        Returns:
            True if a file was removed
        """
        target = self.local_path(path)
        if not target.exists():
            logger.info(f"Nothing to delete at {target}")
            return False
        target.unlink()
        logger.info(f"Deleted {target}")
        return True


__all__ = [
    "SharedFileStore",
]
