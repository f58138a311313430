# ============================================================================
# SHARED TEST FIXTURES
# ============================================================================
# EPOCH: 2 - LIFECYCLE RECONCILIATION
# STATUS: Tests - Fakes for the network, subprocess and cloud boundaries
# PURPOSE: Record side effects in one journal so tests can assert ordering
# CREATED: 17 OCT 2026
# ============================================================================
"""
Shared fixtures.

Every fake appends to a shared journal (a list of tuples) so tests can
assert the order of side effects across collaborators, e.g.

    ("wait", "db.example", 3306)
    ("run", "create-database", [...full command...])
    ("run_task", "orders-frontend")
"""

from typing import Dict, List, Optional, Sequence, Tuple

import pytest

from core.config.defaults import ToolDefaults
from core.errors import CredentialFetchError, UnreachableResourceError
from core.models.datastore import DatastoreCredentials, DatastoreDescriptor
from cluster.collaborators import (
    ContainerScheduler,
    DatastoreProvisioner,
    FileSystemProvisioner,
    NetworkPolicy,
)
from infrastructure.readiness import parse_host_port
from infrastructure.secrets import SecretStore
from infrastructure.shared_storage import SharedFileStore
from infrastructure.tools import ToolResult
from reconcilers.base import ReconcilerDependencies

SUBCOMMANDS = (
    "create-database", "setup-schema", "update-schema", "drop-database", "register",
)


def subcommand_of(command: Sequence[str]) -> str:
    for part in command:
        if part in SUBCOMMANDS:
            return part
    return command[0]


# ============================================================================
# BOUNDARY FAKES
# ============================================================================

class FakeToolRunner:
    """
    Records commands; returns scripted results per subcommand.

    script = {"create-database": [(1, "database exists")]} makes the first
    create-database exit 1; later calls (and unscripted ones) succeed.
    """

    def __init__(self, journal: List[tuple], script: Optional[Dict[str, List[Tuple[int, str]]]] = None):
        self.journal = journal
        self.script = script or {}
        self.commands: List[List[str]] = []
        self.envs: List[Optional[Dict[str, str]]] = []

    def run(self, command, env=None, check=True) -> ToolResult:
        command = [str(part) for part in command]
        self.commands.append(command)
        self.envs.append(dict(env) if env else None)
        name = subcommand_of(command)
        self.journal.append(("run", name, command))

        queue = self.script.get(name) or []
        returncode, stderr = queue.pop(0) if queue else (0, "")
        result = ToolResult(command=command, returncode=returncode, stderr=stderr)
        if check:
            result.raise_for_status()
        return result


class FakeWaiter:
    """Readiness waiter that never sleeps. Hosts in unreachable time out."""

    def __init__(self, journal: List[tuple]):
        self.journal = journal
        self.unreachable = set()

    def wait_until_reachable(self, host, port, timeout=None) -> int:
        self.journal.append(("wait", host, port))
        if host in self.unreachable:
            raise UnreachableResourceError(host, port, timeout or 240.0, attempts=3)
        return 1

    def wait_for_address(self, address, timeout=None) -> int:
        host, port = parse_host_port(address)
        return self.wait_until_reachable(host, port, timeout)


class FakeSecretStore(SecretStore):
    def __init__(self, journal: List[tuple], secrets: Optional[Dict[str, DatastoreCredentials]] = None):
        self.journal = journal
        self.secrets = secrets or {}

    def get_credentials(self, secret_id):
        self.journal.append(("secret", secret_id))
        if secret_id not in self.secrets:
            raise CredentialFetchError(secret_id, "secret not found")
        return self.secrets[secret_id]


# ============================================================================
# CLUSTER COLLABORATOR FAKES
# ============================================================================

class FakeDatastores(DatastoreProvisioner):
    def __init__(self, journal):
        self.journal = journal

    def obtain_or_create(self, cluster_name, options):
        self.journal.append(("obtain_datastore", cluster_name, options.plugin.value))
        return DatastoreDescriptor(
            plugin=options.plugin, host=f"{cluster_name}-db.internal", port=3306,
            secret_id=f"{cluster_name}-db",
        )

    def release(self, cluster_name):
        self.journal.append(("release_datastore", cluster_name))


class FakeScheduler(ContainerScheduler):
    def __init__(self, journal):
        self.journal = journal
        self.tasks = {}
        self.discovery = {}

    def obtain_or_create_cluster(self, cluster_name, existing_cluster=None):
        self.journal.append(("obtain_cluster", cluster_name, existing_cluster))
        return existing_cluster or f"cluster/{cluster_name}"

    def run_task(self, cluster_id, task, discovery=None):
        self.journal.append(("run_task", task.name))
        self.tasks[task.name] = task
        if discovery is not None:
            self.discovery[task.name] = discovery
        return f"{task.name}.tasks.internal"

    def remove_task(self, cluster_id, task_name):
        self.journal.append(("remove_task", task_name))
        self.tasks.pop(task_name, None)


class FakeFileSystems(FileSystemProvisioner):
    def __init__(self, journal):
        self.journal = journal

    def obtain_or_create(self, cluster_name):
        self.journal.append(("obtain_fs", cluster_name))
        return "fs-1234"


class FakeNetwork(NetworkPolicy):
    def __init__(self, journal):
        self.journal = journal
        self.applied = {}

    def apply(self, cluster_name, rules):
        self.journal.append(("apply_rules", cluster_name, len(rules)))
        self.applied[cluster_name] = list(rules)

    def revoke(self, cluster_name):
        self.journal.append(("revoke_rules", cluster_name))
        self.applied.pop(cluster_name, None)


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def journal():
    return []


@pytest.fixture
def tools():
    return ToolDefaults()


@pytest.fixture
def runner(journal):
    return FakeToolRunner(journal)


@pytest.fixture
def waiter(journal):
    return FakeWaiter(journal)


@pytest.fixture
def secrets(journal):
    return FakeSecretStore(journal, {
        "db-secret": DatastoreCredentials(username="temporal", password="s3cret"),
        "orders-db": DatastoreCredentials(username="temporal", password="s3cret"),
    })


@pytest.fixture
def storage(tmp_path):
    return SharedFileStore(tmp_path / "mnt")


@pytest.fixture
def dependencies(waiter, runner, tools, secrets, storage):
    return ReconcilerDependencies(
        waiter=waiter, runner=runner, tools=tools, secrets=secrets, storage=storage,
    )


@pytest.fixture
def schema_properties():
    """Wire properties of the main schema on a MySQL datastore."""
    return {
        "DatastorePlugin": "mysql",
        "DatastoreHost": "db.example",
        "DatastorePort": "3306",
        "DatastoreSecretId": "db-secret",
        "DatabaseName": "temporal",
        "SchemaType": "main",
        "ClusterVersion": "1.16.2",
    }
