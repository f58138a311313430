# ============================================================================
# RECONCILE REQUEST MODELS
# ============================================================================
# EPOCH: 2 - LIFECYCLE RECONCILIATION
# STATUS: Core model - Resource properties received by each reconciler
# PURPOSE: Validate wire properties and derive physical identities
# EXPORTS: ResourceProperties, SchemaReconcileRequest, NamespaceReconcileRequest,
#          ConfigFileRequest
# DEPENDENCIES: pydantic
# ============================================================================
"""
Reconcile Request Models

Wire properties use PascalCase keys (DatastoreHost, NamespaceName, ...).
Python code may construct the models with snake_case field names.

Validation happens before any side effect. Pydantic errors are converted to
RequestValidationError so the lifecycle runner sees one error family.

Physical identities:
    schema      {plugin}://{host}:{port}/{database}
    namespace   {cluster_admin_host}://{namespace}
    config file efs://{file_system_id}/{path}   path keeps its leading slash
"""

import re
from typing import Any, Dict, List, Mapping, Type, TypeVar

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)

from core.contracts import DatastorePlugin, SchemaType
from core.errors import RequestValidationError

_PORT_PATTERN = re.compile(r"^[1-9][0-9]*$")

P = TypeVar("P", bound="ResourceProperties")


def _format_validation_errors(exc: ValidationError) -> List[str]:
    """Turn pydantic errors into '"Field" message' strings using wire names."""
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        if error.get("type") == "missing":
            messages.append(f'"{location}" is required')
        else:
            messages.append(f'"{location}" {error.get("msg", "is invalid")}')
    return messages


class ResourceProperties(BaseModel):
    """Base for resource property models."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    @classmethod
    def from_properties(cls: Type[P], properties: Mapping[str, Any]) -> P:
        """
        Validate wire properties.

        Raises:
            RequestValidationError: If a field is missing or malformed
        """
        if properties is None:
            raise RequestValidationError("ResourceProperties are required")
        try:
            return cls.model_validate(dict(properties))
        except ValidationError as e:
            errors = _format_validation_errors(e)
            raise RequestValidationError("; ".join(errors), errors=errors) from e

    def to_properties(self) -> Dict[str, Any]:
        """Serialize to wire properties (all values as strings)."""
        return {
            key: (value.value if hasattr(value, "value") else str(value))
            for key, value in self.model_dump(by_alias=True).items()
        }

    @property
    def physical_id(self) -> str:
        raise NotImplementedError


def _required_text(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        raise ValueError("must not be empty")
    return value


# ============================================================================
# SCHEMA
# ============================================================================

class SchemaReconcileRequest(ResourceProperties):
    """
    Properties of a versioned database schema resource.

    cluster_version is not used to pick migrations (schema versions are
    independent of server versions). It is carried so that the resource
    changes, and gets re-reconciled, whenever the server version changes.
    """

    datastore_plugin: DatastorePlugin = Field(..., alias="DatastorePlugin")
    datastore_host: str = Field(..., alias="DatastoreHost")
    datastore_port: int = Field(..., alias="DatastorePort")
    datastore_secret_id: str = Field(..., alias="DatastoreSecretId")
    database_name: str = Field(..., alias="DatabaseName", max_length=64)
    schema_type: SchemaType = Field(..., alias="SchemaType")
    cluster_version: str = Field(
        ...,
        alias="ClusterVersion",
        validation_alias=AliasChoices("ClusterVersion", "TemporalVersion", "cluster_version"),
    )

    @field_validator(
        "datastore_host", "datastore_secret_id", "database_name", "cluster_version",
        mode="before",
    )
    @classmethod
    def non_empty(cls, v):
        return _required_text(v)

    @field_validator("datastore_port", mode="before")
    @classmethod
    def numeric_port(cls, v):
        """Wire ports are numeric strings; Python callers may pass ints."""
        if isinstance(v, bool):
            raise ValueError("must be a number")
        if isinstance(v, str):
            if not _PORT_PATTERN.match(v.strip()):
                raise ValueError("must be a number")
            v = int(v.strip())
        if not isinstance(v, int) or not 1 <= v <= 65535:
            raise ValueError("must be a port number between 1 and 65535")
        return v

    @property
    def physical_id(self) -> str:
        return (
            f"{self.datastore_plugin.value}://{self.datastore_host}:"
            f"{self.datastore_port}/{self.database_name}"
        )


# ============================================================================
# NAMESPACE
# ============================================================================

class NamespaceReconcileRequest(ResourceProperties):
    """Properties of a cluster namespace resource."""

    cluster_admin_host: str = Field(
        ...,
        alias="ClusterAdminHost",
        validation_alias=AliasChoices("ClusterAdminHost", "TemporalHost", "cluster_admin_host"),
    )
    namespace_name: str = Field(..., alias="NamespaceName")

    @field_validator("namespace_name", mode="before")
    @classmethod
    def non_empty(cls, v):
        return _required_text(v)

    @field_validator("cluster_admin_host", mode="before")
    @classmethod
    def host_and_port(cls, v):
        """Admin host must be host:port."""
        _required_text(v)
        if isinstance(v, str):
            host, sep, port = v.strip().rpartition(":")
            if not sep or not host or not _PORT_PATTERN.match(port):
                raise ValueError("must be in host:port form")
            return v.strip()
        return v

    @property
    def physical_id(self) -> str:
        return f"{self.cluster_admin_host}://{self.namespace_name}"


# ============================================================================
# CONFIG FILE
# ============================================================================

class ConfigFileRequest(ResourceProperties):
    """
    Properties of a configuration file staged on shared storage.

    Path is absolute within the file system (e.g. /temporal/dynamic_config/x.yaml).
    """

    file_system_id: str = Field(..., alias="FileSystemId")
    path: str = Field(..., alias="Path")
    contents: str = Field(..., alias="Contents")

    @field_validator("file_system_id", "path", "contents", mode="before")
    @classmethod
    def non_empty(cls, v):
        return _required_text(v)

    @field_validator("path")
    @classmethod
    def no_parent_segments(cls, v: str) -> str:
        if ".." in v.split("/"):
            raise ValueError("must not contain '..' segments")
        return v

    @property
    def physical_id(self) -> str:
        return f"efs://{self.file_system_id}/{self.path}"


__all__ = [
    "ResourceProperties",
    "SchemaReconcileRequest",
    "NamespaceReconcileRequest",
    "ConfigFileRequest",
]
