# ============================================================================
# RECONCILER REGISTRY & PROVIDER TESTS
# ============================================================================
# EPOCH: 2 - LIFECYCLE RECONCILIATION
# STATUS: Tests - Registration and shared provider handles
# PURPOSE: Verify alias resolution, duplicates and get-or-create semantics
# CREATED: 17 OCT 2026
# ============================================================================
"""
Registry & Provider Tests

Run with:
    pytest tests/test_registry_providers.py -v
"""

import pytest

from core.contracts import DatastorePlugin
from core.models.datastore import DatastoreDescriptor
from reconcilers import (
    ConfigFileReconciler,
    NamespaceReconciler,
    ProviderKey,
    ProviderRegistry,
    SchemaReconciler,
    canonical_name,
    get_reconciler_class,
    get_reconciler_class_or_raise,
    list_reconcilers,
    register_reconciler,
)
from reconcilers.base import Reconciler
from reconcilers.registry import DuplicateReconcilerError, ReconcilerNotFoundError


class TestRegistry:

    @pytest.mark.parametrize("name, cls", [
        ("schema", SchemaReconciler),
        ("Custom::TemporalSchema", SchemaReconciler),
        ("namespace", NamespaceReconciler),
        ("custom::temporalnamespace", NamespaceReconciler),
        ("config-file", ConfigFileReconciler),
        ("Custom::EfsFile", ConfigFileReconciler),
    ])
    def test_lookup_by_name_or_alias(self, name, cls):
        assert get_reconciler_class(name) is cls

    def test_canonical_name(self):
        assert canonical_name("Custom::TemporalSchema") == "schema"
        assert canonical_name("Custom::ConfigFile") == "config-file"

    def test_unknown_type(self):
        assert get_reconciler_class("Custom::Bucket") is None
        with pytest.raises(ReconcilerNotFoundError):
            get_reconciler_class_or_raise("Custom::Bucket")

    def test_listing_has_metadata(self):
        names = {meta["name"]: meta for meta in list_reconcilers()}

        assert {"schema", "namespace", "config-file"} <= set(names)
        assert names["schema"]["aliases"] == ["Custom::TemporalSchema"]
        assert names["namespace"]["description"] == "Registers one namespace on a cluster."

    def test_duplicate_name_rejected(self):
        with pytest.raises(DuplicateReconcilerError):
            @register_reconciler("Custom::TemporalSchema")
            class Impostor(Reconciler):
                pass

    def test_re_registering_same_class_allowed(self):
        register_reconciler("schema", aliases=["Custom::TemporalSchema"])(SchemaReconciler)

        assert get_reconciler_class("schema") is SchemaReconciler


class TestProviders:

    def test_get_or_create_returns_same_provider(self, dependencies):
        registry = ProviderRegistry(dependencies)

        first = registry.get_or_create("schema", "orders")
        second = registry.get_or_create("schema", "orders")

        assert first is second
        assert isinstance(first.reconciler, SchemaReconciler)
        assert len(registry) == 1

    def test_scopes_are_separate(self, dependencies):
        registry = ProviderRegistry(dependencies)

        orders = registry.get_or_create("namespace", "orders")
        billing = registry.get_or_create("namespace", "billing")

        assert orders is not billing
        assert ProviderKey("namespace", "orders") in registry
        assert registry.get("namespace", "billing") is billing

    def test_factory_used_on_first_creation_only(self, dependencies, waiter, runner, tools):
        registry = ProviderRegistry(dependencies)
        built = []

        def factory():
            built.append(1)
            return NamespaceReconciler(waiter=waiter, runner=runner, tools=tools)

        registry.get_or_create("namespace", "orders", factory)
        registry.get_or_create("namespace", "orders", factory)

        assert built == [1]

    def test_unknown_kind_raises(self, dependencies):
        with pytest.raises(ReconcilerNotFoundError):
            ProviderRegistry(dependencies).get_or_create("bucket", "orders")

    def test_privileges_only_grow(self, dependencies):
        provider = ProviderRegistry(dependencies).get_or_create("schema", "orders")
        datastore = DatastoreDescriptor(
            plugin=DatastorePlugin.MYSQL, host="db.internal", port=3306, secret_id="orders-db",
        )

        provider.expand_privileges_to_datastore(datastore)
        provider.expand_privileges_to_datastore(datastore)
        provider.grant_network_access("fe.internal", 7233)

        assert provider.network_grants == [("db.internal", 3306), ("fe.internal", 7233)]
        assert provider.secret_grants == {"orders-db"}

    def test_invoke_delegates_to_reconciler(self, dependencies, journal):
        provider = ProviderRegistry(dependencies).get_or_create("namespace", "orders")

        response = provider.invoke(
            "Create", {"ClusterAdminHost": "fe.internal:7233", "NamespaceName": "default"},
        )

        assert response.physical_resource_id == "fe.internal:7233://default"
        assert journal[0] == ("wait", "fe.internal", 7233)
