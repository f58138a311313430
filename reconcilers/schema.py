# ============================================================================
# SCHEMA RECONCILER
# ============================================================================
# EPOCH: 2 - LIFECYCLE RECONCILIATION
# STATUS: Core - Versioned database schema lifecycle
# PURPOSE: Create, migrate and drop a logical database on a relational datastore
# CREATED: 14 OCT 2026
# ============================================================================
"""
Schema Reconciler

Lifecycle over a SchemaReconcileRequest, keyed by the physical identity
{plugin}://{host}:{port}/{database}.

Order of work for every event:

    validate -> resolve driver (unsupported engines raise here)
             -> fetch credentials -> wait for the datastore -> run tool

Create:  create-database, setup-schema -v 0.0, update-schema -d <dir>
Update:  update-schema -d <dir>
         (full Create sequence when the identity changed: a renamed or
         moved database is a logical creation)
Delete:  drop-database --force, unconditionally

Retention is the caller's concern: a retained schema is one whose Delete
event is never sent. A database orphaned by a rename is likewise never
dropped here.
"""

from typing import Optional

from core.config.defaults import ToolDefaults
from core.contracts import LifecycleEvent
from core.errors import CredentialFetchError
from core.logging import get_logger, ComponentType
from core.models.datastore import DatastoreCredentials
from core.models.requests import SchemaReconcileRequest
from infrastructure.readiness import ReadinessWaiter
from infrastructure.secrets import SecretStore
from infrastructure.tools import ToolRunner
from reconcilers.base import Reconciler, ReconcilerDependencies
from reconcilers.drivers import (
    CREATE_DATABASE,
    DROP_DATABASE,
    UPDATE_SCHEMA,
    SchemaDriver,
    driver_for,
)
from reconcilers.registry import register_reconciler

logger = get_logger(__name__, ComponentType.RECONCILER)


@register_reconciler("schema", aliases=["Custom::TemporalSchema"])
class SchemaReconciler(Reconciler):
    """Reconciles one logical database and its schema."""

    resource_type = "schema"
    request_model = SchemaReconcileRequest

    def __init__(
        self,
        secrets: SecretStore,
        waiter: Optional[ReadinessWaiter] = None,
        runner: Optional[ToolRunner] = None,
        tools: Optional[ToolDefaults] = None,
    ):
        self.secrets = secrets
        self.waiter = waiter or ReadinessWaiter()
        self.runner = runner or ToolRunner()
        self.tools = tools or ToolDefaults()

    @classmethod
    def from_dependencies(cls, deps: ReconcilerDependencies) -> "SchemaReconciler":
        if deps.secrets is None:
            raise ValueError("SchemaReconciler requires a secret store")
        return cls(secrets=deps.secrets, waiter=deps.waiter, runner=deps.runner, tools=deps.tools)

    def driver_for(self, request: SchemaReconcileRequest) -> SchemaDriver:
        return driver_for(request.datastore_plugin, self.runner, self.tools)

    @staticmethod
    def is_logical_creation(
        event: LifecycleEvent,
        request: SchemaReconcileRequest,
        previous_physical_id: Optional[str],
    ) -> bool:
        """Create, or an Update whose identity moved to a new database."""
        if event is LifecycleEvent.CREATE:
            return True
        return (
            event is LifecycleEvent.UPDATE
            and previous_physical_id is not None
            and previous_physical_id != request.physical_id
        )

    def apply(self, event, request: SchemaReconcileRequest, previous_physical_id=None) -> None:
        driver = self.driver_for(request)
        creating = self.is_logical_creation(event, request, previous_physical_id)

        if event is LifecycleEvent.DELETE:
            driver.require(DROP_DATABASE)
        else:
            driver.require(CREATE_DATABASE if creating else UPDATE_SCHEMA)

        credentials = self._fetch_credentials(request)
        self.waiter.wait_until_reachable(request.datastore_host, request.datastore_port)

        if event is LifecycleEvent.DELETE:
            logger.warning(f"Dropping database {request.database_name} on {request.datastore_host}")
            driver.drop_database(request, credentials)
            return

        if creating:
            if event is LifecycleEvent.UPDATE:
                logger.info(f"Identity changed from {previous_physical_id}, creating database")
            driver.create_database(request, credentials)
            driver.setup_schema(request, credentials)

        driver.update_schema(request, credentials)

    def _fetch_credentials(self, request: SchemaReconcileRequest) -> DatastoreCredentials:
        secret_id = request.datastore_secret_id
        try:
            return self.secrets.get_credentials(secret_id)
        except CredentialFetchError:
            raise
        except Exception as e:
            raise CredentialFetchError(secret_id, f"{type(e).__name__}: {e}") from e


__all__ = [
    "SchemaReconciler",
]
