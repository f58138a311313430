# ============================================================================
# ADMIN TOOL RUNNER
# ============================================================================
# EPOCH: 2 - LIFECYCLE RECONCILIATION
# STATUS: Infrastructure - Subprocess boundary for administrative CLIs
# PURPOSE: Run schema/namespace tools, capture diagnostics, raise on failure
# ============================================================================
"""
Admin Tool Runner

All administrative commands against the datastore and the cluster go through
ToolRunner.run(). The contract:

- stdin is closed
- stdout is discarded (the tools are chatty, and it would drown our logs)
- stderr is captured, logged, and attached to ExternalToolError on failure
- the environment is minimal: PATH plus whatever the caller passes
  (credentials travel in environment variables, never on the command line)

Reconcilers depend on the ToolRunner interface only, so tests can record
invocations with a fake.
"""

import os
import subprocess
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence

from core.errors import ExternalToolError
from core.logging import get_logger, ComponentType

logger = get_logger(__name__, ComponentType.INFRASTRUCTURE)


@dataclass
class ToolResult:
    """Outcome of one admin tool invocation."""
    command: List[str]
    returncode: int
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def raise_for_status(self) -> "ToolResult":
        if not self.ok:
            raise ExternalToolError(self.command, self.returncode, self.stderr)
        return self


class ToolRunner:
    """
    Runs admin CLIs as blocking subprocesses.

    Invocations are not cancellable once started; the timeout only bounds a
    hung tool.
    """

    def __init__(self, timeout_seconds: float = 240.0):
        self.timeout_seconds = timeout_seconds

    def run(
        self,
        command: Sequence[str],
        env: Optional[Mapping[str, str]] = None,
        check: bool = True,
    ) -> ToolResult:
        """
        Run a command to completion.

        Args:
            command: Executable and arguments
            env: Extra environment variables (e.g. SQL_PASSWORD)
            check: Raise ExternalToolError on nonzero exit

        Returns:
            ToolResult with captured stderr

        Raises:
            ExternalToolError: On nonzero exit (check=True), missing binary, or timeout
        """
        command = [str(part) for part in command]
        process_env: Dict[str, str] = {"PATH": os.environ.get("PATH", "/usr/bin:/bin")}
        if env:
            process_env.update(env)

        logger.info(f"Running: {' '.join(command)}")

        try:
            completed = subprocess.run(
                command,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                env=process_env,
                text=True,
                timeout=self.timeout_seconds,
            )
        except FileNotFoundError as e:
            raise ExternalToolError(command, 127, f"executable not found: {e.filename}") from e
        except subprocess.TimeoutExpired as e:
            stderr = e.stderr.decode() if isinstance(e.stderr, bytes) else (e.stderr or "")
            raise ExternalToolError(
                command, -1, f"{stderr}\ntimed out after {self.timeout_seconds:.0f}s"
            ) from e

        result = ToolResult(command=command, returncode=completed.returncode, stderr=completed.stderr or "")

        if result.ok:
            logger.debug(f"Command succeeded: {command[0]}")
        else:
            logger.warning(f"Command exited with {result.returncode}: {result.stderr.strip()}")

        if check:
            result.raise_for_status()
        return result


__all__ = [
    "ToolResult",
    "ToolRunner",
]
