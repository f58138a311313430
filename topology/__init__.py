"""
Topology module.

Derives network authorization rules between cluster roles.

Usage:
    from topology import TopologyPlanner, NetworkAuthorization
"""

from topology.planner import (
    DATASTORE,
    Direction,
    NetworkAuthorization,
    SERVICE_GRAPH,
    TopologyPlanner,
    plan_topology,
)

__all__ = [
    'DATASTORE',
    'Direction',
    'NetworkAuthorization',
    'SERVICE_GRAPH',
    'TopologyPlanner',
    'plan_topology',
]
