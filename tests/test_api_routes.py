# ============================================================================
# API ROUTE TESTS
# ============================================================================
# EPOCH: 2 - LIFECYCLE RECONCILIATION
# STATUS: Tests - HTTP lifecycle and topology endpoints
# PURPOSE: Verify wire responses and error-to-status mapping
# CREATED: 18 OCT 2026
# ============================================================================
"""
API Route Tests

Uses FastAPI TestClient against the router with fake reconciler
collaborators injected through set_dependencies().

Run with:
    pytest tests/test_api_routes.py -v
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from api import router, set_dependencies
from api.routes import status_code_for
from core.errors import (
    ConfigurationError,
    CredentialFetchError,
    ExternalToolError,
    ReconcileError,
    RequestValidationError,
    UnreachableResourceError,
    UnsupportedOperationError,
)

from conftest import FakeToolRunner


@pytest.fixture
def client(dependencies):
    app = FastAPI()
    app.include_router(router, prefix="/api/v1")
    set_dependencies(dependencies)
    yield TestClient(app)
    set_dependencies(None)


def _envelope(request_type, properties, physical_id=None):
    body = {"RequestType": request_type, "ResourceProperties": properties, "RequestId": "req-1"}
    if physical_id is not None:
        body["PhysicalResourceId"] = physical_id
    return body


NAMESPACE = {"ClusterAdminHost": "fe.internal:7233", "NamespaceName": "default"}


# ============================================================================
# RECONCILE
# ============================================================================

class TestReconcileEndpoint:

    def test_schema_create(self, client, schema_properties, journal):
        response = client.post("/api/v1/reconcile/schema", json=_envelope("Create", schema_properties))

        assert response.status_code == 200
        assert response.json() == {"PhysicalResourceId": "mysql://db.example:3306/temporal"}
        assert [entry[1] for entry in journal if entry[0] == "run"] == [
            "create-database", "setup-schema", "update-schema",
        ]

    def test_wire_alias_as_resource_type(self, client):
        response = client.post(
            "/api/v1/reconcile/Custom::TemporalNamespace", json=_envelope("Create", NAMESPACE),
        )

        assert response.status_code == 200
        assert response.json()["PhysicalResourceId"] == "fe.internal:7233://default"

    def test_delete_namespace_is_noop(self, client, journal):
        response = client.post(
            "/api/v1/reconcile/namespace",
            json=_envelope("Delete", NAMESPACE, "fe.internal:7233://default"),
        )

        assert response.status_code == 200
        assert journal == []

    def test_unknown_resource_type(self, client):
        response = client.post("/api/v1/reconcile/bucket", json=_envelope("Create", {}))

        assert response.status_code == 404
        assert response.json()["error"] == "ReconcilerNotFoundError"

    def test_validation_error(self, client, schema_properties):
        schema_properties["DatastorePort"] = "not-a-port"

        response = client.post("/api/v1/reconcile/schema", json=_envelope("Create", schema_properties))

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "RequestValidationError"
        assert body["details"]["errors"]

    def test_bad_envelope_rejected_by_fastapi(self, client):
        response = client.post("/api/v1/reconcile/schema", json={"RequestType": "Replace"})

        assert response.status_code == 422

    def test_unsupported_engine(self, client, schema_properties, journal):
        schema_properties["DatastorePlugin"] = "cassandra"

        response = client.post("/api/v1/reconcile/schema", json=_envelope("Create", schema_properties))

        assert response.status_code == 501
        assert "not yet implemented" in response.json()["message"]
        assert journal == []

    def test_unreachable_datastore(self, client, schema_properties, waiter):
        waiter.unreachable.add("db.example")

        response = client.post("/api/v1/reconcile/schema", json=_envelope("Create", schema_properties))

        assert response.status_code == 503
        assert response.json()["error"] == "UnreachableResourceError"

    def test_tool_failure_reports_stderr(self, client, schema_properties, journal, dependencies):
        dependencies.runner = FakeToolRunner(journal, {"update-schema": [(1, "syntax error\nmigration failed")]})
        set_dependencies(dependencies)

        response = client.post("/api/v1/reconcile/schema", json=_envelope("Create", schema_properties))

        assert response.status_code == 502
        body = response.json()
        assert body["details"]["returncode"] == 1
        assert body["message"].endswith("migration failed")

    def test_missing_secret(self, client, schema_properties):
        schema_properties["DatastoreSecretId"] = "missing"

        response = client.post("/api/v1/reconcile/schema", json=_envelope("Create", schema_properties))

        assert response.status_code == 502
        assert response.json()["error"] == "CredentialFetchError"

    def test_not_initialized(self, dependencies):
        app = FastAPI()
        app.include_router(router, prefix="/api/v1")
        set_dependencies(None)

        response = TestClient(app).post("/api/v1/reconcile/namespace", json=_envelope("Create", NAMESPACE))

        assert response.status_code == 500

    def test_list_reconcilers(self, client):
        response = client.get("/api/v1/reconcilers")

        assert response.status_code == 200
        names = {item["name"] for item in response.json()}
        assert {"schema", "namespace", "config-file"} <= names


class TestStatusCodes:

    @pytest.mark.parametrize("error, code", [
        (RequestValidationError("bad"), 400),
        (ConfigurationError("both"), 400),
        (UnsupportedOperationError("setup_schema", "cassandra"), 501),
        (UnreachableResourceError("db", 3306, 240.0), 503),
        (ExternalToolError(["tctl"], 1, "boom"), 502),
        (CredentialFetchError("s", "gone"), 502),
        (ReconcileError("other"), 500),
    ])
    def test_mapping(self, error, code):
        assert status_code_for(error) == code


# ============================================================================
# TOPOLOGY
# ============================================================================

class TestTopologyEndpoint:

    def test_plan(self, client):
        response = client.post("/api/v1/topology/plan", json={
            "active_roles": ["frontend", "worker"],
            "public_cidr": "10.0.0.0/8",
        })

        assert response.status_code == 200
        body = response.json()
        assert body["count"] == len(body["rules"])
        assert body["rules"][0] == {
            "sources": ["frontend"], "destinations": ["worker"], "port": 7239, "direction": "forward",
        }
        assert body["rules"][-1]["sources"] == ["10.0.0.0/8"]

    def test_port_overrides(self, client):
        response = client.post("/api/v1/topology/plan", json={
            "active_roles": ["worker", "frontend"],
            "ports": {"frontend": {"rpc_port": 17233}},
        })

        ports = {(tuple(r["sources"]), r["port"]) for r in response.json()["rules"]}
        assert (("worker",), 17233) in ports

    def test_bad_port_override(self, client):
        response = client.post("/api/v1/topology/plan", json={
            "active_roles": ["frontend"],
            "ports": {"gateway": {"rpc_port": 1}},
        })

        assert response.status_code == 422

    def test_empty_roles_rejected(self, client):
        response = client.post("/api/v1/topology/plan", json={"active_roles": []})

        assert response.status_code == 422
