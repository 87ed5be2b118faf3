"""
tests/integration/test_api.py - REST API Tests

Tests the cascade endpoint end to end over an in-memory store.
"""

import json
import uuid

import pytest

# Skip all tests if FastAPI not installed
pytest.importorskip("fastapi")

from fastapi.testclient import TestClient

from statecascade.bootstrap.config import StateCascadeConfig, reset_config
from statecascade.cascade.service import CascadeService
from statecascade.deployment.api import create_app, create_fastapi_app

from conftest import ORDER, TASK


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def client(order_graph):
    config = StateCascadeConfig()
    config.cascade.namespace_prefix = "new"
    app = create_fastapi_app(service=CascadeService.from_store(order_graph.store), config=config)
    return TestClient(app)


def payload(graph, **extra):
    body = {
        "recordsGUID": str(graph.order_id),
        "entityLogicalName": ORDER,
        "publisherPrefix": "new",
        "statusLabel": "Inactive",
        "statusReasonLabel": "Cancelled",
    }
    body.update(extra)
    return body


# =============================================================================
# HEALTH
# =============================================================================

class TestHealth:
    """Test health endpoint."""

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["store_configured"] is True

    def test_health_without_store(self):
        response = TestClient(create_fastapi_app()).get("/health")
        assert response.json()["store_configured"] is False


# =============================================================================
# CASCADE
# =============================================================================

class TestCascadeEndpoint:
    """Test POST /api/v1/cascade."""

    def test_literal_cascade(self, client, order_graph):
        response = client.post("/api/v1/cascade", json=payload(order_graph))
        assert response.status_code == 200

        data = response.json()
        assert data["count"] == 3
        assert {row["recordId"] for row in data["response"]} == {str(i) for i in order_graph.task_ids}
        assert all(row["statusCode"] == 1 and row["statusReasonCode"] == 3 for row in data["response"])
        assert all(row["recordType"] == TASK for row in data["response"])

    def test_update_parent_flag(self, client, order_graph):
        response = client.post("/api/v1/cascade", json=payload(order_graph, shouldUpdateParent=True))
        assert response.json()["count"] == 4

    def test_field_names_accepted(self, client, order_graph):
        """Python field names work as well as the host aliases."""
        response = client.post("/api/v1/cascade", json={
            "root_ids": [str(order_graph.order_id)],
            "root_type": ORDER,
            "status_reason_label": "Cancelled",
        })
        assert response.status_code == 200
        assert response.json()["count"] == 3

    def test_exclude_list(self, client, order_graph):
        response = client.post("/api/v1/cascade", json=payload(
            order_graph, entitiesLogicalNamesToExclude=TASK,
        ))
        assert response.json() == {"response": [], "count": 0}

    def test_invalid_request_is_400(self, client, order_graph):
        response = client.post("/api/v1/cascade", json=payload(
            order_graph, entitiesLogicalNamesToExclude="account",
        ))
        assert response.status_code == 400
        assert response.json()["detail"]["errors"][0]["code"] == 1002

    def test_no_valid_ids_is_400(self, client, order_graph):
        response = client.post("/api/v1/cascade", json=payload(order_graph, recordsGUID="nope"))
        assert response.status_code == 400

    def test_unknown_label_is_400(self, client, order_graph):
        response = client.post("/api/v1/cascade", json=payload(order_graph, statusReasonLabel="Closed"))
        assert response.status_code == 400
        assert "Closed" in response.json()["detail"]["message"]

    def test_store_failure_is_502(self, order_graph):
        store = order_graph.store

        def broken(query):
            raise ConnectionError("store unavailable")

        store.retrieve_by_attribute = broken
        client = TestClient(create_fastapi_app(service=CascadeService.from_store(store)))
        response = client.post("/api/v1/cascade", json=payload(order_graph))
        assert response.status_code == 502
        assert response.json()["detail"]["errors"][0]["category"] == "retrieval"
        assert response.json()["detail"]["summary"] == "1 error(s) aborted the cascade"

    def test_no_store_is_503(self, order_graph):
        client = TestClient(create_fastapi_app())
        response = client.post("/api/v1/cascade", json=payload(order_graph))
        assert response.status_code == 503

    def test_store_from_config(self, tmp_path):
        order_id = uuid.uuid4()
        path = tmp_path / "store.json"
        path.write_text(json.dumps({
            "entities": [{"name": "new_order"}, {"name": "new_task"}],
            "one_to_many": [{"parent": "new_order", "child": "new_task"}],
            "records": {
                "new_order": [{"id": str(order_id)}],
                "new_task": [{"new_orderid": str(order_id)}],
            },
        }))
        config = StateCascadeConfig()
        config.store.fixture_path = str(path)

        client = TestClient(create_fastapi_app(config=config))
        response = client.post("/api/v1/cascade", json={
            "recordsGUID": str(order_id),
            "entityLogicalName": "new_order",
            "publisherPrefix": "new",
        })
        assert response.status_code == 200
        row = response.json()["response"][0]
        assert (row["statusCode"], row["statusReasonCode"]) == (1, 2)


# =============================================================================
# APP FACTORY
# =============================================================================

class TestCreateApp:
    """Test the worker app factory."""

    @pytest.fixture(autouse=True)
    def clean_config(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("STATECASCADE_CONFIG", raising=False)
        monkeypatch.delenv("STATECASCADE_API_STORE", raising=False)
        monkeypatch.delenv("STATECASCADE_STORE_FIXTURE", raising=False)
        reset_config()
        yield
        reset_config()

    def test_store_from_environment(self, tmp_path, monkeypatch):
        path = tmp_path / "store.json"
        path.write_text(json.dumps({"entities": [{"name": "new_order"}]}))
        monkeypatch.setenv("STATECASCADE_API_STORE", str(path))

        response = TestClient(create_app()).get("/health")
        assert response.json()["store_configured"] is True

    def test_config_file_from_environment(self, tmp_path, monkeypatch):
        config_path = tmp_path / "settings.json"
        config_path.write_text(json.dumps({"api": {"enable_docs": False}}))
        monkeypatch.setenv("STATECASCADE_CONFIG", str(config_path))

        client = TestClient(create_app())
        assert client.get("/docs").status_code == 404
        assert client.get("/health").json()["store_configured"] is False
