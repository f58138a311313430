# ============================================================================
# READINESS WAITER
# ============================================================================
# EPOCH: 2 - LIFECYCLE RECONCILIATION
# STATUS: Infrastructure - TCP reachability gate
# PURPOSE: Block until a freshly provisioned endpoint accepts connections
# ============================================================================
"""
Readiness Waiter

Network resources (datastores, cluster frontends) finish provisioning
asynchronously relative to when a reconciler is invoked. Every reconciler
operation that talks to such an endpoint first waits here.

Polling:
- TCP connect attempt with a per-attempt connect timeout
- Sleep with bounded exponential backoff between attempts
- Never sleeps past the overall deadline
- Raises UnreachableResourceError once the deadline has passed

Abandoning a wait leaves no state behind: each attempt closes its socket.

Usage:
    waiter = ReadinessWaiter(ReadinessDefaults(timeout_seconds=120))
    waiter.wait_until_reachable("db.internal", 3306)
"""

import socket
import time
from typing import Callable, Optional, Tuple

from core.config.defaults import ReadinessDefaults
from core.errors import RequestValidationError, UnreachableResourceError
from core.logging import get_logger, ComponentType

logger = get_logger(__name__, ComponentType.INFRASTRUCTURE)

ConnectFunc = Callable[[Tuple[str, int], float], socket.socket]


def parse_host_port(address: str) -> Tuple[str, int]:
    """
    Split a "host:port" string.

    Raises:
        RequestValidationError: If the port is missing or not numeric
    """
    host, sep, port = address.strip().rpartition(":")
    if not sep or not host or not port.isdigit():
        raise RequestValidationError(f'"{address}" is not in host:port form')
    return host, int(port)


class ReadinessWaiter:
    """
    Polls a TCP endpoint until it accepts a connection or the timeout elapses.

    connect, sleep and clock are injectable so tests never touch the network
    or wait on real time.
    """

    def __init__(
        self,
        defaults: Optional[ReadinessDefaults] = None,
        connect: Optional[ConnectFunc] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.defaults = defaults or ReadinessDefaults()
        self._connect = connect or socket.create_connection
        self._sleep = sleep
        self._clock = clock

    def _attempt(self, host: str, port: int, connect_timeout: float) -> bool:
        try:
            sock = self._connect((host, port), connect_timeout)
        except OSError as e:
            logger.debug(f"Connect to {host}:{port} failed: {e}")
            return False
        sock.close()
        return True

    def wait_until_reachable(
        self,
        host: str,
        port: int,
        timeout: Optional[float] = None,
    ) -> int:
        """
        Wait until host:port accepts a TCP connection.

        Args:
            host: Hostname or IP
            port: TCP port
            timeout: Overall deadline in seconds (defaults.timeout_seconds if None)

        Returns:
            Number of attempts it took

        Raises:
            UnreachableResourceError: If the deadline passes first
        """
        timeout = self.defaults.timeout_seconds if timeout is None else timeout
        deadline = self._clock() + timeout
        delay = self.defaults.initial_delay_seconds
        attempts = 0

        logger.info(f"Waiting for {host}:{port} (timeout {timeout:.0f}s)")

        while True:
            remaining = deadline - self._clock()
            connect_timeout = max(0.1, min(self.defaults.connect_timeout_seconds, remaining))
            attempts += 1
            if self._attempt(host, port, connect_timeout):
                logger.info(f"{host}:{port} reachable after {attempts} attempt(s)")
                return attempts

            remaining = deadline - self._clock()
            if remaining <= 0:
                logger.error(f"{host}:{port} still unreachable after {attempts} attempts")
                raise UnreachableResourceError(host, port, timeout, attempts)

            self._sleep(min(delay, remaining))
            delay = min(delay * self.defaults.backoff_multiplier, self.defaults.max_delay_seconds)

    def wait_for_address(self, address: str, timeout: Optional[float] = None) -> int:
        """Same as wait_until_reachable, for a "host:port" string."""
        host, port = parse_host_port(address)
        return self.wait_until_reachable(host, port, timeout)


def wait_until_reachable(host: str, port: int, timeout: float) -> int:
    """Module-level convenience using default backoff settings."""
    return ReadinessWaiter().wait_until_reachable(host, port, timeout)


__all__ = [
    "ReadinessWaiter",
    "parse_host_port",
    "wait_until_reachable",
]
