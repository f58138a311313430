# ============================================================================
# TOPOLOGY PLANNER TESTS
# ============================================================================
# EPOCH: 2 - LIFECYCLE RECONCILIATION
# STATUS: Tests - Network authorization derivation
# PURPOSE: Verify graph edges, single-role substitution and membership rules
# CREATED: 17 OCT 2026
# ============================================================================
"""
Topology Planner Tests

Run with:
    pytest tests/test_topology_planner.py -v
"""

import pytest

from core.config.defaults import RolePortTable
from core.contracts import Role, SERVER_ROLES
from topology import DATASTORE, Direction, NetworkAuthorization, TopologyPlanner, plan_topology


def _rule(source, destination, port, direction=Direction.FORWARD):
    return NetworkAuthorization(frozenset([source]), frozenset([destination]), port, direction)


DISTRIBUTED = list(SERVER_ROLES) + [Role.WEB]


class TestDistributed:

    def test_full_rule_set(self):
        rules = TopologyPlanner().plan(DISTRIBUTED, datastore_ports=[3306])

        assert rules == [
            _rule("frontend", "history", 7234),
            _rule("frontend", "matching", 7235),
            _rule("frontend", "worker", 7239),
            _rule("frontend", DATASTORE, 3306),
            _rule("matching", "frontend", 7233),
            _rule("matching", "history", 7234),
            _rule("matching", DATASTORE, 3306),
            _rule("history", "matching", 7235),
            _rule("history", DATASTORE, 3306),
            _rule("worker", "frontend", 7233),
            _rule("web", "frontend", 7233),
            _rule("frontend", "frontend", 6933, Direction.INTERNAL),
            _rule("history", "history", 6934, Direction.INTERNAL),
            _rule("matching", "matching", 6935, Direction.INTERNAL),
            _rule("worker", "worker", 6939, Direction.INTERNAL),
        ]

    def test_web_never_in_membership(self):
        rules = TopologyPlanner().plan(DISTRIBUTED)

        internal = [r for r in rules if r.direction is Direction.INTERNAL]
        assert all("web" not in r.sources for r in internal)

    def test_no_datastore_ports_no_datastore_rules(self):
        rules = TopologyPlanner().plan(DISTRIBUTED)

        assert all(DATASTORE not in r.destinations for r in rules)

    def test_every_datastore_port(self):
        rules = TopologyPlanner().plan([Role.HISTORY], datastore_ports=[5432, 5433])

        assert _rule("history", DATASTORE, 5432) in rules
        assert _rule("history", DATASTORE, 5433) in rules

    def test_inactive_roles_dropped(self):
        rules = TopologyPlanner().plan([Role.FRONTEND, Role.WEB])

        assert rules == [
            _rule("web", "frontend", 7233),
            _rule("frontend", "frontend", 6933, Direction.INTERNAL),
        ]

    def test_port_overrides(self):
        ports = RolePortTable.from_overrides({"frontend": {"rpc_port": 17233}})

        rules = TopologyPlanner().plan([Role.WORKER, Role.FRONTEND], ports=ports)

        assert _rule("worker", "frontend", 17233) in rules
        assert _rule("frontend", "worker", 7239) in rules

    def test_cross_role_membership(self):
        rules = TopologyPlanner().plan(SERVER_ROLES, cross_role_membership=True)

        internal = [r for r in rules if r.direction is Direction.INTERNAL]
        everyone = frozenset(role.value for role in SERVER_ROLES)
        assert [r.port for r in internal] == [6933, 6934, 6935, 6939]
        assert all(r.sources == everyone and r.destinations == everyone for r in internal)


class TestSingle:

    def test_single_substitutes_every_server_role(self):
        rules = TopologyPlanner().plan([Role.SINGLE, Role.WEB], datastore_ports=[3306])

        endpoints = set()
        for rule in rules:
            endpoints |= rule.sources | rule.destinations
        assert endpoints == {"single", "web", DATASTORE}

    def test_single_rules_deduplicated(self):
        rules = TopologyPlanner().plan([Role.SINGLE], datastore_ports=[3306])

        assert len(rules) == len(set(rules))
        assert rules == [
            _rule("single", "single", 7234),
            _rule("single", "single", 7235),
            _rule("single", "single", 7239),
            _rule("single", DATASTORE, 3306),
            _rule("single", "single", 7233),
            _rule("single", "single", 6933, Direction.INTERNAL),
            _rule("single", "single", 6934, Direction.INTERNAL),
            _rule("single", "single", 6935, Direction.INTERNAL),
            _rule("single", "single", 6939, Direction.INTERNAL),
        ]

    def test_web_reaches_single_on_frontend_port(self):
        rules = TopologyPlanner().plan([Role.SINGLE, Role.WEB])

        assert _rule("web", "single", 7233) in rules


class TestPublicAccess:

    def test_public_cidr_on_frontend_port(self):
        rules = plan_topology(SERVER_ROLES, public_cidr="10.0.0.0/8")

        assert rules[-1] == _rule("10.0.0.0/8", "frontend", 7233)

    def test_public_cidr_reaches_single(self):
        rules = plan_topology([Role.SINGLE], public_cidr="0.0.0.0/0")

        assert _rule("0.0.0.0/0", "single", 7233) in rules

    def test_public_cidr_without_frontend_adds_nothing(self):
        rules = plan_topology([Role.HISTORY], public_cidr="0.0.0.0/0")

        assert all("0.0.0.0/0" not in r.sources for r in rules)


class TestNetworkAuthorization:

    def test_to_dict_sorted(self):
        rule = NetworkAuthorization(frozenset(["b", "a"]), frozenset(["c"]), 1, Direction.INTERNAL)

        assert rule.to_dict() == {
            "sources": ["a", "b"], "destinations": ["c"], "port": 1, "direction": "internal",
        }
        assert str(rule) == "a,b->c:1"

    def test_roles_given_as_strings(self):
        assert plan_topology(["frontend", "worker"]) == plan_topology([Role.FRONTEND, Role.WORKER])

    def test_unknown_role_rejected(self):
        with pytest.raises(ValueError):
            plan_topology(["gateway"])
