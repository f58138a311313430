# ============================================================================
# TOPOLOGY PLANNER
# ============================================================================
# EPOCH: 2 - LIFECYCLE RECONCILIATION
# STATUS: Core - Network authorization derivation
# PURPOSE: Compute port-level allow rules between roles, datastore and public
# CREATED: 15 OCT 2026
# ============================================================================
"""
Topology Planner

Pure computation of the allow rules a cluster needs. Given the active roles
and the port table it walks a fixed directed graph:

    frontend -> history, matching, worker, datastore
    matching -> frontend, history, datastore
    history  -> matching, datastore
    worker   -> frontend
    web      -> frontend

Every edge is allowed on the destination's RPC port (the datastore on each of
its ports). Every active server role also talks to itself on its membership
port (direction INTERNAL).

The single role plays all four server roles: wherever frontend, history,
matching or worker appears, single is substituted. Edges whose source or
destination is not active are dropped, so any role combination is valid.

Usage:
    rules = TopologyPlanner().plan(
        active_roles=[Role.FRONTEND, Role.HISTORY, Role.MATCHING, Role.WORKER],
        ports=RolePortTable(),
        datastore_ports=[3306],
        public_cidr="0.0.0.0/0",
    )
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple, Union

from core.config.defaults import RolePortTable
from core.contracts import Role, SERVER_ROLES
from core.logging import get_logger, ComponentType

logger = get_logger(__name__, ComponentType.PLANNER)

# Endpoint name of the relational datastore in rules
DATASTORE = "datastore"


class Direction(str, Enum):
    """FORWARD between distinct parties, INTERNAL among instances of one role."""
    FORWARD = "forward"
    INTERNAL = "internal"


@dataclass(frozen=True)
class NetworkAuthorization:
    """
    One allow rule: any of sources may connect to any of destinations on port.

    Endpoints are role values, DATASTORE, or a CIDR block for public access.
    """
    sources: FrozenSet[str]
    destinations: FrozenSet[str]
    port: int
    direction: Direction = Direction.FORWARD

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sources": sorted(self.sources),
            "destinations": sorted(self.destinations),
            "port": self.port,
            "direction": self.direction.value,
        }

    def __str__(self) -> str:
        return f"{','.join(sorted(self.sources))}->{','.join(sorted(self.destinations))}:{self.port}"


# Fixed authorization graph, (source, destination)
SERVICE_GRAPH: Tuple[Tuple[Role, Union[Role, str]], ...] = (
    (Role.FRONTEND, Role.HISTORY),
    (Role.FRONTEND, Role.MATCHING),
    (Role.FRONTEND, Role.WORKER),
    (Role.FRONTEND, DATASTORE),
    (Role.MATCHING, Role.FRONTEND),
    (Role.MATCHING, Role.HISTORY),
    (Role.MATCHING, DATASTORE),
    (Role.HISTORY, Role.MATCHING),
    (Role.HISTORY, DATASTORE),
    (Role.WORKER, Role.FRONTEND),
    (Role.WEB, Role.FRONTEND),
)


class TopologyPlanner:
    """Derives NetworkAuthorization rules. Stateless."""

    def plan(
        self,
        active_roles: Iterable[Union[Role, str]],
        ports: Optional[RolePortTable] = None,
        datastore_ports: Sequence[int] = (),
        public_cidr: Optional[str] = None,
        cross_role_membership: bool = False,
    ) -> List[NetworkAuthorization]:
        """
        Compute the allow rules for a set of active roles.

        Args:
            active_roles: Roles with a running task
            ports: Port table (defaults if None)
            datastore_ports: Ports of the datastore; no datastore rules if empty
            public_cidr: If set, the frontend RPC port is opened to this block
            cross_role_membership: Allow every active server role to every
                other on every membership port, instead of each role to itself

        Returns:
            De-duplicated rules, in graph order
        """
        ports = ports or RolePortTable()
        active = frozenset(Role(role) for role in active_roles)
        rules: List[NetworkAuthorization] = []

        for source, destination in SERVICE_GRAPH:
            src = self._resolve(source, active)
            if src is None:
                continue
            if destination == DATASTORE:
                for port in datastore_ports:
                    rules.append(NetworkAuthorization(
                        frozenset([src]), frozenset([DATASTORE]), int(port),
                    ))
                continue
            dst = self._resolve(destination, active)
            if dst is None:
                continue
            rules.append(NetworkAuthorization(
                frozenset([src]), frozenset([dst]), self._rpc_port(destination, ports),
            ))

        rules.extend(self._membership_rules(active, ports, cross_role_membership))

        if public_cidr:
            frontend = self._resolve(Role.FRONTEND, active)
            if frontend is not None:
                rules.append(NetworkAuthorization(
                    frozenset([public_cidr]), frozenset([frontend]), ports.frontend.rpc_port,
                ))
            else:
                logger.warning("Public access requested but no frontend role is active")

        planned = _dedupe(rules)
        logger.info(f"Planned {len(planned)} rules for roles {sorted(r.value for r in active)}")
        return planned

    @staticmethod
    def _resolve(role: Role, active: FrozenSet[Role]) -> Optional[str]:
        """Active endpoint playing role, or None."""
        if role in SERVER_ROLES and Role.SINGLE in active:
            return Role.SINGLE.value
        return role.value if role in active else None

    @staticmethod
    def _rpc_port(role: Role, ports: RolePortTable) -> int:
        if role is Role.WEB:
            return ports.web_port
        return ports.for_role(role).rpc_port

    def _membership_rules(
        self,
        active: FrozenSet[Role],
        ports: RolePortTable,
        cross_role_membership: bool,
    ) -> List[NetworkAuthorization]:
        rules = []
        members = [
            (entry, self._resolve(entry.role, active))
            for entry in ports.server_ports()
        ]
        members = [(entry, endpoint) for entry, endpoint in members if endpoint is not None]

        if cross_role_membership:
            everyone = frozenset(endpoint for _, endpoint in members)
            for entry, _ in members:
                rules.append(NetworkAuthorization(
                    everyone, everyone, entry.membership_port, Direction.INTERNAL,
                ))
            return rules

        for entry, endpoint in members:
            rules.append(NetworkAuthorization(
                frozenset([endpoint]), frozenset([endpoint]),
                entry.membership_port, Direction.INTERNAL,
            ))
        return rules


def _dedupe(rules: Iterable[NetworkAuthorization]) -> List[NetworkAuthorization]:
    seen = set()
    unique = []
    for rule in rules:
        if rule not in seen:
            seen.add(rule)
            unique.append(rule)
    return unique


def plan_topology(
    active_roles: Iterable[Union[Role, str]],
    ports: Optional[RolePortTable] = None,
    datastore_ports: Sequence[int] = (),
    public_cidr: Optional[str] = None,
    cross_role_membership: bool = False,
) -> List[NetworkAuthorization]:
    """Module-level convenience for TopologyPlanner().plan()."""
    return TopologyPlanner().plan(
        active_roles, ports, datastore_ports, public_cidr, cross_role_membership,
    )


__all__ = [
    "DATASTORE",
    "Direction",
    "NetworkAuthorization",
    "SERVICE_GRAPH",
    "TopologyPlanner",
    "plan_topology",
]
