# ============================================================================
# DATASTORE CREDENTIAL RESOLUTION
# ============================================================================
# EPOCH: 2 - LIFECYCLE RECONCILIATION
# STATUS: Infrastructure - Secret store access
# PURPOSE: Resolve {username, password} secrets by reference id
# ============================================================================
"""
Datastore credential resolution.

Reconcilers never receive passwords in their request properties, only a
secret reference id. Before invoking any admin tool they fetch a structured
secret and parse it:

    {"username": "temporal", "password": "..."}

Backends:
- KeyVaultSecretStore: Azure Key Vault (production)
- EnvironmentSecretStore: JSON in an environment variable (local development)

Any failure (missing secret, auth error, malformed JSON, missing keys) is
raised as CredentialFetchError, before any mutation is attempted.

Environment Variables:
---------------------
SECRET_STORE_BACKEND=keyvault|env
KEY_VAULT_URL=https://<vault>.vault.azure.net
AZURE_CLIENT_ID=<guid>  # User-assigned MI client ID (optional)

For env backend, secret "datastore-secret" is read from
SECRET_DATASTORE_SECRET.
"""

import json
import os
import re
from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional

from core.config.defaults import SecretStoreDefaults
from core.errors import CredentialFetchError
from core.logging import get_logger, ComponentType
from core.models.datastore import DatastoreCredentials

logger = get_logger(__name__, ComponentType.INFRASTRUCTURE)


def parse_credentials(secret_id: str, secret_string: Optional[str]) -> DatastoreCredentials:
    """
    Parse a JSON secret string into credentials.

    Raises:
        CredentialFetchError: If the value is empty, not JSON, or lacks keys
    """
    if not secret_string:
        raise CredentialFetchError(secret_id, "secret has no value")
    try:
        payload = json.loads(secret_string)
    except json.JSONDecodeError as e:
        raise CredentialFetchError(secret_id, f"secret value is not JSON ({e.msg})") from e
    if not isinstance(payload, dict):
        raise CredentialFetchError(secret_id, "secret value is not a JSON object")

    username = payload.get("username")
    password = payload.get("password")
    if not username or password is None:
        raise CredentialFetchError(secret_id, "secret must contain 'username' and 'password'")
    return DatastoreCredentials(username=str(username), password=str(password))


class SecretStore(ABC):
    """Read-only source of datastore credentials."""

    @abstractmethod
    def get_credentials(self, secret_id: str) -> DatastoreCredentials:
        """
        Fetch and parse the secret identified by secret_id.

        Raises:
            CredentialFetchError: On any lookup or parse failure
        """
        ...


# ============================================================================
# AZURE KEY VAULT
# ============================================================================

class KeyVaultSecretStore(SecretStore):
    """
    Azure Key Vault backed secret store.

    Uses ManagedIdentityCredential when AZURE_CLIENT_ID is set, otherwise
    DefaultAzureCredential (system MI or az login). The client is created
    lazily on first use.
    """

    def __init__(self, vault_url: str, client: Any = None):
        if not vault_url and client is None:
            raise ValueError("KeyVaultSecretStore requires a vault_url (set KEY_VAULT_URL)")
        self.vault_url = vault_url
        self._client = client

    def _get_client(self):
        if self._client is None:
            from azure.identity import DefaultAzureCredential, ManagedIdentityCredential
            from azure.keyvault.secrets import SecretClient

            client_id = os.environ.get("AZURE_CLIENT_ID")
            if client_id:
                logger.info(f"Using user-assigned Managed Identity: {client_id[:8]}...")
                credential = ManagedIdentityCredential(client_id=client_id)
            else:
                logger.info("Using DefaultAzureCredential (system MI or az login)")
                credential = DefaultAzureCredential()

            self._client = SecretClient(vault_url=self.vault_url, credential=credential)
        return self._client

    def get_credentials(self, secret_id: str) -> DatastoreCredentials:
        from azure.core.exceptions import AzureError

        try:
            secret = self._get_client().get_secret(secret_id)
        except AzureError as e:
            logger.error(f"Key Vault lookup failed for '{secret_id}': {type(e).__name__}")
            raise CredentialFetchError(secret_id, f"{type(e).__name__}: {e}") from e

        credentials = parse_credentials(secret_id, secret.value)
        logger.info(f"Resolved credentials from secret '{secret_id}' (user={credentials.username})")
        return credentials


# ============================================================================
# ENVIRONMENT (LOCAL DEVELOPMENT)
# ============================================================================

class EnvironmentSecretStore(SecretStore):
    """
    Reads secrets from environment variables.

    Secret id "rds-main" maps to SECRET_RDS_MAIN.
    """

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        self._environ = environ if environ is not None else os.environ

    @staticmethod
    def variable_name(secret_id: str) -> str:
        return "SECRET_" + re.sub(r"[^A-Za-z0-9]", "_", secret_id).upper()

    def get_credentials(self, secret_id: str) -> DatastoreCredentials:
        name = self.variable_name(secret_id)
        value = self._environ.get(name)
        if value is None:
            raise CredentialFetchError(secret_id, f"environment variable {name} is not set")
        return parse_credentials(secret_id, value)


# ============================================================================
# FACTORY
# ============================================================================

def get_secret_store(defaults: Optional[SecretStoreDefaults] = None) -> SecretStore:
    """
    Build the configured secret store.

    Args:
        defaults: Backend selection (from environment if None)
    """
    defaults = defaults or SecretStoreDefaults.from_env()
    if defaults.backend == "env":
        logger.info("Using environment secret store (local development)")
        return EnvironmentSecretStore()
    if defaults.backend == "keyvault":
        return KeyVaultSecretStore(vault_url=defaults.vault_url)
    raise ValueError(f"Unknown secret store backend: {defaults.backend}")


__all__ = [
    "SecretStore",
    "KeyVaultSecretStore",
    "EnvironmentSecretStore",
    "parse_credentials",
    "get_secret_store",
]
