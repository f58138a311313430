# ============================================================================
# SCHEMA DRIVERS
# ============================================================================
# EPOCH: 2 - LIFECYCLE RECONCILIATION
# STATUS: Core - Per-engine schema tool invocation
# PURPOSE: Closed set of drivers: SQL (mysql, postgres) and explicit unsupported
# CREATED: 14 OCT 2026
# ============================================================================
"""
Schema Drivers

One driver per datastore engine. The schema reconciler never branches on the
plugin itself; it resolves a driver with driver_for() and calls the four
schema operations on it.

    SqlSchemaDriver          mysql, postgres (temporal-sql-tool)
    UnsupportedSchemaDriver  cassandra, elasticsearch (every operation raises)

SQL tool contract:

    temporal-sql-tool --plugin <p> --endpoint <host> --port <port>
        --user <username> --database <db>
        [--connect-attributes tx_isolation=READ-COMMITTED]   # mysql only
        <subcommand> ...

The password travels in SQL_PASSWORD, never on the command line.

Migration layout under the tool's schema root:

    mysql/v57/{temporal|visibility}/versioned
    postgresql/v96/{temporal|visibility}/versioned
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Dict, List, Optional

from core.config.defaults import ToolDefaults
from core.contracts import DatastorePlugin
from core.errors import UnsupportedOperationError
from core.logging import get_logger, ComponentType
from core.models.datastore import DatastoreCredentials
from core.models.requests import SchemaReconcileRequest
from infrastructure.tools import ToolResult, ToolRunner

logger = get_logger(__name__, ComponentType.RECONCILER)


# Schema operations, in the order a logical creation runs them
CREATE_DATABASE = "create_database"
SETUP_SCHEMA = "setup_schema"
UPDATE_SCHEMA = "update_schema"
DROP_DATABASE = "drop_database"

BASELINE_SCHEMA_VERSION = "0.0"


def is_already_exists(stderr: str) -> bool:
    """
    Classify a schema tool diagnostic as "object already exists".

    MySQL reports "database exists" (error 1007) or "already exists" (1050),
    PostgreSQL reports 'database "x" already exists'.
    """
    text = (stderr or "").lower()
    return "already exists" in text or "database exists" in text


@dataclass(frozen=True)
class SqlEngine:
    """Engine-specific parts of the SQL tool contract."""
    plugin: DatastorePlugin
    schema_dir: str
    schema_version_dir: str
    connect_attributes: Optional[str] = None


SQL_ENGINES: Dict[DatastorePlugin, SqlEngine] = {
    DatastorePlugin.MYSQL: SqlEngine(
        plugin=DatastorePlugin.MYSQL,
        schema_dir="mysql",
        schema_version_dir="v57",
        connect_attributes="tx_isolation=READ-COMMITTED",
    ),
    DatastorePlugin.POSTGRES: SqlEngine(
        plugin=DatastorePlugin.POSTGRES,
        schema_dir="postgresql",
        schema_version_dir="v96",
    ),
}


# ============================================================================
# DRIVER INTERFACE
# ============================================================================

class SchemaDriver(ABC):
    """Schema operations for one datastore engine."""

    def __init__(self, plugin: DatastorePlugin):
        self.plugin = plugin

    def require(self, operation: str) -> None:
        """
        Check that an operation is implemented, before any external call.

        Raises:
            UnsupportedOperationError: If the engine does not support it
        """

    @abstractmethod
    def create_database(self, request: SchemaReconcileRequest, credentials: DatastoreCredentials) -> None:
        ...

    @abstractmethod
    def setup_schema(self, request: SchemaReconcileRequest, credentials: DatastoreCredentials) -> None:
        ...

    @abstractmethod
    def update_schema(self, request: SchemaReconcileRequest, credentials: DatastoreCredentials) -> None:
        ...

    @abstractmethod
    def drop_database(self, request: SchemaReconcileRequest, credentials: DatastoreCredentials) -> None:
        ...


# ============================================================================
# SQL DRIVER
# ============================================================================

class SqlSchemaDriver(SchemaDriver):
    """Drives temporal-sql-tool for mysql and postgres."""

    def __init__(self, engine: SqlEngine, runner: ToolRunner, tools: ToolDefaults):
        super().__init__(engine.plugin)
        self.engine = engine
        self.runner = runner
        self.tools = tools

    def migration_dir(self, request: SchemaReconcileRequest) -> str:
        """Versioned migration directory for the request's schema type."""
        return str(
            PurePosixPath(self.tools.schema_root)
            / self.engine.schema_dir
            / self.engine.schema_version_dir
            / request.schema_type.schema_dir_name
            / "versioned"
        )

    def base_command(self, request: SchemaReconcileRequest, credentials: DatastoreCredentials) -> List[str]:
        command = [
            self.tools.schema_tool_path,
            "--plugin", self.plugin.value,
            "--endpoint", request.datastore_host,
            "--port", str(request.datastore_port),
            "--user", credentials.username,
            "--database", request.database_name,
        ]
        if self.engine.connect_attributes:
            command += ["--connect-attributes", self.engine.connect_attributes]
        return command

    def _run(
        self,
        request: SchemaReconcileRequest,
        credentials: DatastoreCredentials,
        args: List[str],
        tolerate_existing: bool = False,
    ) -> ToolResult:
        command = self.base_command(request, credentials) + args
        result = self.runner.run(
            command,
            env={"SQL_PASSWORD": credentials.password},
            check=False,
        )
        if not result.ok and tolerate_existing and is_already_exists(result.stderr):
            logger.info(f"{args[0]} on {request.database_name}: already exists, continuing")
            return result
        return result.raise_for_status()

    def create_database(self, request, credentials):
        self._run(
            request, credentials,
            ["create-database", "--database", request.database_name],
            tolerate_existing=True,
        )

    def setup_schema(self, request, credentials):
        self._run(
            request, credentials,
            ["setup-schema", "-v", BASELINE_SCHEMA_VERSION],
            tolerate_existing=True,
        )

    def update_schema(self, request, credentials):
        self._run(request, credentials, ["update-schema", "-d", self.migration_dir(request)])

    def drop_database(self, request, credentials):
        self._run(
            request, credentials,
            ["drop-database", "--database", request.database_name, "--force"],
        )


# ============================================================================
# UNSUPPORTED ENGINES
# ============================================================================

class UnsupportedSchemaDriver(SchemaDriver):
    """Recognized engine with no schema implementation. Every operation raises."""

    def require(self, operation: str) -> None:
        raise UnsupportedOperationError(operation, self.plugin.value)

    def create_database(self, request, credentials):
        self.require(CREATE_DATABASE)

    def setup_schema(self, request, credentials):
        self.require(SETUP_SCHEMA)

    def update_schema(self, request, credentials):
        self.require(UPDATE_SCHEMA)

    def drop_database(self, request, credentials):
        self.require(DROP_DATABASE)


def driver_for(plugin: DatastorePlugin, runner: ToolRunner, tools: ToolDefaults) -> SchemaDriver:
    """Resolve the driver for a datastore engine."""
    engine = SQL_ENGINES.get(DatastorePlugin(plugin))
    if engine is None:
        return UnsupportedSchemaDriver(DatastorePlugin(plugin))
    return SqlSchemaDriver(engine, runner, tools)


__all__ = [
    "SchemaDriver",
    "SqlSchemaDriver",
    "UnsupportedSchemaDriver",
    "SqlEngine",
    "SQL_ENGINES",
    "driver_for",
    "is_already_exists",
    "CREATE_DATABASE",
    "SETUP_SCHEMA",
    "UPDATE_SCHEMA",
    "DROP_DATABASE",
]
