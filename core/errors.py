# ============================================================================
# ERROR TAXONOMY
# ============================================================================
# EPOCH: 2 - LIFECYCLE RECONCILIATION
# STATUS: Foundation - Exceptions raised by reconcilers and composer
# PURPOSE: Let callers map failures to retries, operator alerts or HTTP codes
# ============================================================================
"""
Error taxonomy.

Every failure propagates to the lifecycle runner as a failed reconciliation.
The runner decides whether to retry or surface it to an operator.

    RequestValidationError     malformed or missing fields, before any side effect
    UnsupportedOperationError  recognized engine/operation without an implementation
    UnreachableResourceError   readiness wait exhausted, nothing was mutated
    ExternalToolError          admin subprocess exited nonzero
    CredentialFetchError       secret lookup failed, nothing was mutated
    ConfigurationError         inconsistent cluster composition options
"""

from typing import List, Optional, Sequence


class ReconcileError(Exception):
    """Base class for all provisioner exceptions."""
    pass


class RequestValidationError(ReconcileError):
    """Raised when a lifecycle request is malformed."""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        self.errors = errors or [message]
        super().__init__(message)


class UnsupportedOperationError(ReconcileError):
    """Raised for a known datastore engine whose operation is not implemented."""

    def __init__(self, operation: str, plugin: str):
        self.operation = operation
        self.plugin = plugin
        super().__init__(f"{operation}({plugin}) is not yet implemented")


class UnreachableResourceError(ReconcileError):
    """Raised when a TCP endpoint never accepted a connection before the deadline."""

    def __init__(self, host: str, port: int, timeout: float, attempts: int = 0):
        self.host = host
        self.port = port
        self.timeout = timeout
        self.attempts = attempts
        super().__init__(
            f"{host}:{port} not reachable after {timeout:.0f}s ({attempts} attempts)"
        )


class ExternalToolError(ReconcileError):
    """Raised when an admin tool subprocess fails."""

    def __init__(
        self,
        command: Sequence[str],
        returncode: int,
        stderr: str = "",
    ):
        self.command = list(command)
        self.returncode = returncode
        self.stderr = stderr
        detail = stderr.strip().splitlines()[-1] if stderr.strip() else "no diagnostic output"
        super().__init__(
            f"Command failed with exit code {returncode}: {' '.join(self.command)}: {detail}"
        )


class CredentialFetchError(ReconcileError):
    """Raised when datastore credentials cannot be resolved."""

    def __init__(self, secret_id: str, reason: str):
        self.secret_id = secret_id
        self.reason = reason
        super().__init__(f"Unable to fetch credentials from secret '{secret_id}': {reason}")


class ConfigurationError(ReconcileError):
    """Raised when cluster composition options contradict each other."""
    pass


__all__ = [
    "ReconcileError",
    "RequestValidationError",
    "UnsupportedOperationError",
    "UnreachableResourceError",
    "ExternalToolError",
    "CredentialFetchError",
    "ConfigurationError",
]
