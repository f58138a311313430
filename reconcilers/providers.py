# ============================================================================
# PROVIDER REGISTRY
# ============================================================================
# EPOCH: 2 - LIFECYCLE RECONCILIATION
# STATUS: Core - Shared reconciler handles per (kind, scope)
# PURPOSE: One backing reconciler per capability and scope, with its grants
# CREATED: 15 OCT 2026
# ============================================================================
"""
Provider Registry

Several logical resources share one backing reconciler: both databases of a
cluster go through the same schema provider, every namespace of a cluster
through the same namespace provider. The registry is an explicit map

    (kind, scope) -> ReconcilerProvider

with get-or-create semantics. It is owned by one composer; registries are
never shared across compositions.

A provider also records what its reconciler must be able to reach: the
datastore endpoints it connects to and the secrets it reads. The composer
turns network grants into authorization rules.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Set, Tuple, Union

from core.contracts import LifecycleEvent
from core.logging import get_logger, ComponentType
from core.models.datastore import DatastoreDescriptor
from core.models.lifecycle import LifecycleResponse
from core.models.requests import ResourceProperties
from reconcilers.base import Reconciler, ReconcilerDependencies
from reconcilers.registry import get_reconciler_class_or_raise

logger = get_logger(__name__, ComponentType.RECONCILER)

ReconcilerFactory = Callable[[], Reconciler]


@dataclass(frozen=True)
class ProviderKey:
    """Identity of a shared provider."""
    kind: str
    scope: str

    def __str__(self) -> str:
        return f"{self.kind}@{self.scope}"


@dataclass
class ReconcilerProvider:
    """
    Shared handle to one reconciler instance.

    network_grants and secret_grants only ever grow.
    """
    key: ProviderKey
    reconciler: Reconciler
    network_grants: List[Tuple[str, int]] = field(default_factory=list)
    secret_grants: Set[str] = field(default_factory=set)

    def grant_network_access(self, host: str, port: int) -> None:
        if (host, port) not in self.network_grants:
            self.network_grants.append((host, port))

    def grant_secret_read(self, secret_id: str) -> None:
        self.secret_grants.add(secret_id)

    def expand_privileges_to_datastore(self, datastore: DatastoreDescriptor) -> None:
        """Allow the provider to connect to a datastore and read its secret."""
        self.grant_network_access(datastore.host, datastore.port)
        self.grant_secret_read(datastore.secret_id)

    def invoke(
        self,
        event: LifecycleEvent,
        properties: Union[Mapping[str, Any], ResourceProperties],
        previous_physical_id: Optional[str] = None,
    ) -> LifecycleResponse:
        """Send one lifecycle event through the shared reconciler."""
        logger.debug(f"Provider {self.key} handling {LifecycleEvent(event).value}")
        return self.reconciler.reconcile(event, properties, previous_physical_id)


class ProviderRegistry:
    """
    Explicit (kind, scope) -> provider map.

    Without a factory, get_or_create() builds the reconciler registered for
    kind from the shared dependencies.
    """

    def __init__(self, dependencies: Optional[ReconcilerDependencies] = None):
        self.dependencies = dependencies or ReconcilerDependencies()
        self._providers: Dict[ProviderKey, ReconcilerProvider] = {}

    def get_or_create(
        self,
        kind: str,
        scope: str,
        factory: Optional[ReconcilerFactory] = None,
    ) -> ReconcilerProvider:
        """
        Return the provider for (kind, scope), constructing it on first use.

        Raises:
            ReconcilerNotFoundError: If no factory is given and kind is not registered
        """
        key = ProviderKey(kind=kind, scope=scope)
        provider = self._providers.get(key)
        if provider is not None:
            return provider

        if factory is None:
            reconciler_class = get_reconciler_class_or_raise(kind)
            reconciler = reconciler_class.from_dependencies(self.dependencies)
        else:
            reconciler = factory()

        provider = ReconcilerProvider(key=key, reconciler=reconciler)
        self._providers[key] = provider
        logger.info(f"Created provider {key} ({type(reconciler).__name__})")
        return provider

    def get(self, kind: str, scope: str) -> Optional[ReconcilerProvider]:
        return self._providers.get(ProviderKey(kind=kind, scope=scope))

    def __contains__(self, key: ProviderKey) -> bool:
        return key in self._providers

    def __len__(self) -> int:
        return len(self._providers)

    def __iter__(self) -> Iterator[ReconcilerProvider]:
        return iter(list(self._providers.values()))


__all__ = [
    "ProviderKey",
    "ReconcilerProvider",
    "ProviderRegistry",
]
