# ============================================================================
# CLUSTER COMPOSER
# ============================================================================
# EPOCH: 2 - LIFECYCLE RECONCILIATION
# STATUS: Cluster - Top-level orchestration
# PURPOSE: Compose, update and destroy a cluster from a ClusterSpec
# CREATED: 16 OCT 2026
# ============================================================================
"""
Cluster Composer

compose() runs, in dependency order:

    1. validate the ClusterSpec (ConfigurationError before anything is touched)
    2. resolve machine shapes per active role
    3. obtain-or-create the datastore
    4. reconcile the main and visibility schemas (schema provider)
    5. obtain-or-create the scheduler cluster and the config filesystem
    6. stage dynamic and web config (config-file provider)
    7. run one task per active role, then the web task; the frontend (or
       single) task is also registered for service discovery when asked
    8. plan and apply network authorizations
    9. register namespaces (namespace provider)

update() runs the same sequence with Update events against the identities
recorded by the previous composition. destroy() tears the cluster down and
drops the schemas only under RemovalPolicy.DESTROY.

Schemas are reconciled before any task starts. The cluster-level guarantee
(schema exists before the first healthy task) still relies on the scheduler
retrying unhealthy tasks.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from core.config.defaults import MachineShape, RolePortTable
from core.contracts import LifecycleEvent, RemovalPolicy, Role, SchemaType
from core.errors import ConfigurationError
from core.logging import get_logger, log_context, ComponentType
from core.models.datastore import DatabaseDescriptor, DatastoreDescriptor
from core.models.requests import ConfigFileRequest, NamespaceReconcileRequest
from cluster.collaborators import (
    ContainerScheduler,
    DatastoreProvisioner,
    FileSystemProvisioner,
    NetworkPolicy,
)
from cluster.configuration import ClusterConfiguration, DYNAMIC_CONFIG_PATH, WEB_CONFIG_PATH
from cluster.services import TaskSpec, build_task
from cluster.spec import ClusterSpec, DatastoreOptions
from reconcilers.base import ReconcilerDependencies
from reconcilers.providers import ProviderRegistry, ReconcilerProvider
from topology.planner import DATASTORE, NetworkAuthorization, TopologyPlanner

logger = get_logger(__name__, ComponentType.COMPOSER)

# Source endpoint of rules granted to the reconciler providers
PROVISIONER = "provisioner"


@dataclass
class ComposedCluster:
    """Everything a composition produced, with the identities to update later."""
    name: str
    version: str
    datastore: DatastoreDescriptor
    databases: Dict[SchemaType, DatabaseDescriptor]
    scheduler_cluster_id: str
    file_system_id: str
    machines: Dict[Role, MachineShape] = field(default_factory=dict)
    tasks: Dict[Role, TaskSpec] = field(default_factory=dict)
    endpoints: Dict[Role, str] = field(default_factory=dict)
    rules: List[NetworkAuthorization] = field(default_factory=list)
    schema_ids: Dict[SchemaType, str] = field(default_factory=dict)
    config_file_ids: Dict[str, str] = field(default_factory=dict)
    namespace_ids: Dict[str, str] = field(default_factory=dict)
    datastore_created: bool = False

    @property
    def admin_host(self) -> Optional[str]:
        """host:port of the frontend RPC endpoint."""
        return self.endpoints.get(Role.FRONTEND) or self.endpoints.get(Role.SINGLE)


class ClusterComposer:
    """
    Composes clusters against external collaborators.

    Owns one ProviderRegistry: reconcilers are shared per (kind, cluster).
    """

    def __init__(
        self,
        datastores: DatastoreProvisioner,
        scheduler: ContainerScheduler,
        file_systems: FileSystemProvisioner,
        network: NetworkPolicy,
        dependencies: Optional[ReconcilerDependencies] = None,
        providers: Optional[ProviderRegistry] = None,
        planner: Optional[TopologyPlanner] = None,
        machine_defaults: Optional[MachineShape] = None,
    ):
        self.datastores = datastores
        self.scheduler = scheduler
        self.file_systems = file_systems
        self.network = network
        self.providers = providers or ProviderRegistry(dependencies)
        self.planner = planner or TopologyPlanner()
        self.machine_defaults = machine_defaults or MachineShape()

    # ========================================================================
    # PUBLIC API
    # ========================================================================

    def compose(self, spec: ClusterSpec) -> ComposedCluster:
        """Create the cluster described by spec."""
        return self._converge(spec, previous=None)

    def update(self, spec: ClusterSpec, previous: ComposedCluster) -> ComposedCluster:
        """Converge an existing cluster to spec (e.g. after a version change)."""
        return self._converge(spec, previous=previous)

    def destroy(self, spec: ClusterSpec, composed: ComposedCluster) -> None:
        """
        Tear down a composed cluster.

        Tasks, network rules and staged config files are always removed.
        Schemas are dropped (and a created datastore released) only under
        RemovalPolicy.DESTROY. Namespaces are left alone.
        """
        with log_context(cluster_name=spec.cluster_name):
            logger.info(f"Destroying cluster {spec.cluster_name} (policy={spec.removal_policy.value})")

            for task in reversed(list(composed.tasks.values())):
                self.scheduler.remove_task(composed.scheduler_cluster_id, task.name)
            self.network.revoke(spec.cluster_name)

            namespaces = self._provider("namespace", spec)
            for name, physical_id in composed.namespace_ids.items():
                namespaces.invoke(
                    LifecycleEvent.DELETE,
                    NamespaceReconcileRequest(cluster_admin_host=composed.admin_host, namespace_name=name),
                    physical_id,
                )

            config_files = self._provider("config-file", spec)
            documents = self._config_documents(ClusterConfiguration(ports=spec.port_table))
            for path, physical_id in composed.config_file_ids.items():
                config_files.invoke(
                    LifecycleEvent.DELETE,
                    ConfigFileRequest(
                        file_system_id=composed.file_system_id, path=path, contents=documents[path],
                    ),
                    physical_id,
                )

            if spec.removal_policy is not RemovalPolicy.DESTROY:
                logger.info("Retaining schemas and datastore")
                return

            schemas = self._provider("schema", spec)
            for schema_type, database in composed.databases.items():
                schemas.invoke(
                    LifecycleEvent.DELETE,
                    database.to_request(composed.version),
                    composed.schema_ids.get(schema_type),
                )
            if composed.datastore_created:
                self.datastores.release(spec.cluster_name)

    # ========================================================================
    # CONVERGENCE
    # ========================================================================

    def resolve_machines(self, spec: ClusterSpec) -> Dict[Role, MachineShape]:
        return {role: spec.machine_for(role, self.machine_defaults) for role in spec.active_roles()}

    def _converge(self, spec: ClusterSpec, previous: Optional[ComposedCluster]) -> ComposedCluster:
        spec.validate_composition()
        version = spec.server_version
        ports = spec.port_table

        with log_context(cluster_name=spec.cluster_name):
            action = "Composing" if previous is None else "Updating"
            logger.info(f"{action} cluster {spec.cluster_name} ({version}, {spec.topology})")

            machines = self.resolve_machines(spec)
            datastore, created = self._obtain_datastore(spec)

            configuration = ClusterConfiguration(ports=ports)
            databases = {
                SchemaType.MAIN: DatabaseDescriptor(
                    datastore=datastore, name=spec.main_database_name, schema_type=SchemaType.MAIN,
                ),
                SchemaType.VISIBILITY: DatabaseDescriptor(
                    datastore=datastore, name=spec.visibility_database_name,
                    schema_type=SchemaType.VISIBILITY,
                ),
            }
            for database in databases.values():
                configuration.attach_database(database)

            schema_ids = self._reconcile_schemas(spec, databases, previous)

            cluster_id = self.scheduler.obtain_or_create_cluster(spec.cluster_name, spec.scheduler_cluster)
            file_system_id = self.file_systems.obtain_or_create(spec.cluster_name)

            composed = ComposedCluster(
                name=spec.cluster_name,
                version=version.version,
                datastore=datastore,
                databases=databases,
                scheduler_cluster_id=cluster_id,
                file_system_id=file_system_id,
                machines=machines,
                schema_ids=schema_ids,
                datastore_created=created or (previous is not None and previous.datastore_created),
            )

            composed.config_file_ids = self._stage_config(spec, configuration, file_system_id, previous)

            for role in spec.active_roles():
                task = build_task(role, spec.cluster_name, version, configuration, machines[role], file_system_id)
                discovery = spec.discovery_registration if role in (Role.FRONTEND, Role.SINGLE) else None
                hostname = self.scheduler.run_task(cluster_id, task, discovery)
                composed.tasks[role] = task
                composed.endpoints[role] = f"{hostname}:{self._rpc_port(role, ports)}"
                logger.info(f"Task {task.name} running at {hostname}")

            if spec.namespaces and composed.admin_host:
                host, _, port = composed.admin_host.rpartition(":")
                self._provider("namespace", spec).grant_network_access(host, int(port))

            composed.rules = self._plan_rules(spec, composed)
            self.network.apply(spec.cluster_name, composed.rules)

            composed.namespace_ids = self._register_namespaces(spec, composed, previous)
            logger.info(
                f"Cluster {spec.cluster_name} ready: {len(composed.tasks)} tasks, "
                f"{len(composed.rules)} rules, {len(composed.namespace_ids)} namespaces"
            )
            return composed

    def _obtain_datastore(self, spec: ClusterSpec) -> Tuple[DatastoreDescriptor, bool]:
        if spec.datastore is not None:
            return spec.datastore.to_descriptor(), False
        options = spec.datastore_options or DatastoreOptions()
        datastore = self.datastores.obtain_or_create(spec.cluster_name, options)
        logger.info(f"Datastore {datastore.plugin.value}://{datastore.endpoint}")
        return datastore, True

    def _provider(self, kind: str, spec: ClusterSpec) -> ReconcilerProvider:
        return self.providers.get_or_create(kind, spec.cluster_name)

    @staticmethod
    def _event_for(previous_id: Optional[str]) -> LifecycleEvent:
        return LifecycleEvent.CREATE if previous_id is None else LifecycleEvent.UPDATE

    @staticmethod
    def _rpc_port(role: Role, ports: RolePortTable) -> int:
        """Port a role's endpoint is reached on. The single role serves the frontend port."""
        if role is Role.WEB:
            return ports.web_port
        if role is Role.SINGLE:
            return ports.frontend.rpc_port
        return ports.for_role(role).rpc_port

    def _reconcile_schemas(
        self,
        spec: ClusterSpec,
        databases: Dict[SchemaType, DatabaseDescriptor],
        previous: Optional[ComposedCluster],
    ) -> Dict[SchemaType, str]:
        provider = self._provider("schema", spec)
        ids = {}
        for schema_type, database in databases.items():
            provider.expand_privileges_to_datastore(database.datastore)
            previous_id = previous.schema_ids.get(schema_type) if previous else None
            response = provider.invoke(
                self._event_for(previous_id),
                database.to_request(spec.cluster_version),
                previous_id,
            )
            ids[schema_type] = response.physical_resource_id
        return ids

    @staticmethod
    def _config_documents(configuration: ClusterConfiguration) -> Dict[str, str]:
        return {
            DYNAMIC_CONFIG_PATH: configuration.stringify_dynamic(),
            WEB_CONFIG_PATH: configuration.stringify_web(),
        }

    def _stage_config(
        self,
        spec: ClusterSpec,
        configuration: ClusterConfiguration,
        file_system_id: str,
        previous: Optional[ComposedCluster],
    ) -> Dict[str, str]:
        provider = self._provider("config-file", spec)
        ids = {}
        for path, contents in self._config_documents(configuration).items():
            previous_id = previous.config_file_ids.get(path) if previous else None
            response = provider.invoke(
                self._event_for(previous_id),
                ConfigFileRequest(file_system_id=file_system_id, path=path, contents=contents),
                previous_id,
            )
            ids[path] = response.physical_resource_id
        return ids

    def _plan_rules(self, spec: ClusterSpec, composed: ComposedCluster) -> List[NetworkAuthorization]:
        rules = self.planner.plan(
            active_roles=list(composed.tasks),
            ports=spec.port_table,
            datastore_ports=[composed.datastore.port],
            public_cidr=spec.public_access_cidr,
            cross_role_membership=spec.cross_role_membership,
        )

        # Reconciler providers reach the datastore and the frontend
        named = {composed.datastore.host: DATASTORE}
        for role, endpoint in composed.endpoints.items():
            named[endpoint.rpartition(":")[0]] = role.value
        for provider in self.providers:
            if provider.key.scope != spec.cluster_name:
                continue
            for host, port in provider.network_grants:
                destination = named.get(host)
                if destination is None:
                    logger.warning(f"Provider {provider.key} granted unknown host {host}")
                    continue
                rule = NetworkAuthorization(frozenset([PROVISIONER]), frozenset([destination]), port)
                if rule not in rules:
                    rules.append(rule)
        return rules

    def _register_namespaces(
        self,
        spec: ClusterSpec,
        composed: ComposedCluster,
        previous: Optional[ComposedCluster],
    ) -> Dict[str, str]:
        if not spec.namespaces:
            return {}
        admin_host = composed.admin_host
        if admin_host is None:
            raise ConfigurationError("Namespaces require a frontend or single role")
        provider = self._provider("namespace", spec)

        ids = {}
        for name in spec.namespaces:
            previous_id = previous.namespace_ids.get(name) if previous else None
            response = provider.invoke(
                self._event_for(previous_id),
                NamespaceReconcileRequest(cluster_admin_host=admin_host, namespace_name=name),
                previous_id,
            )
            ids[name] = response.physical_resource_id
        return ids


__all__ = [
    "ClusterComposer",
    "ComposedCluster",
    "PROVISIONER",
]
