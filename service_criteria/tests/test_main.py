"""
Unit tests for the Criteria main service.
"""

import pytest
from unittest.mock import AsyncMock, patch
from fastapi.testclient import TestClient

from service_criteria.app.main import CriteriaService, create_app
from service_criteria.app.criteria.models import (
    Configuration, Domain, Group, OperationType, Strategy, StrategyType
)
from service_criteria.app.store import InMemoryStore
from shared.config import ServiceConfig


KEY = "TEST_CONFIG_KEY"


class TestCriteriaService:
    """Test cases for CriteriaService."""

    @pytest.fixture
    def store(self):
        """Create populated store."""
        store = InMemoryStore()
        store.add_domain(Domain(domain_id="d1", name="Domain", description="Test Domain"))
        store.add_group(Group(group_id="g1", name="Group Test", domain_id="d1", description="Test Group"))
        store.add_configuration(Configuration(config_id="c1", key=KEY, group_id="g1", description="Test config 1"))
        store.add_configuration(Configuration(
            config_id="c2", key="TEST_CONFIG_KEY_PRD_QA", group_id="g1",
            description="Test config 2", activated={"default": False, "QA": True}
        ))
        store.add_strategy(Strategy(
            strategy_id="s1", config_id="c1",
            strategy=StrategyType.VALUE, operation=OperationType.EXIST,
            values=["USER_1", "USER_2", "USER_3"]
        ))
        store.add_strategy(Strategy(
            strategy_id="s2", config_id="c1",
            strategy=StrategyType.NETWORK, operation=OperationType.EXIST,
            values=["10.0.0.0/24"]
        ))
        store.add_strategy(Strategy(
            strategy_id="s3", config_id="c1",
            strategy=StrategyType.TIME, operation=OperationType.BETWEEN,
            values=["13:00", "14:00"], activated={"default": False}
        ))
        return store

    @pytest.fixture
    def criteria_service(self, store):
        """Create CriteriaService instance."""
        return CriteriaService(store=store, config=ServiceConfig(service_name="criteria", port=8013))

    @pytest.fixture
    def client(self, criteria_service):
        """Create test client."""
        return TestClient(criteria_service.app)

    @pytest.fixture
    def criteria_request(self):
        """Criteria request body."""
        return {
            "entry": [
                {"strategy": "VALUE_VALIDATION", "input": "USER_1"},
                {"strategy": "NETWORK_VALIDATION", "input": "10.0.0.3"}
            ]
        }

    def test_root_endpoint(self, client):
        """Test root endpoint."""
        response = client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "criteria"
        assert data["default_environment"] == "default"
        assert "criteria" in data["capabilities"]

    def test_health_endpoint(self, client):
        """Test health endpoint."""
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "criteria"
        assert data["status"] == "ok"
        assert data["dependencies"]["store"] == "ok"

    def test_health_with_failing_store(self, client, store):
        """Test health endpoint when the store check fails."""
        with patch.object(store, "health_check", AsyncMock(side_effect=RuntimeError("down"))):
            response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["dependencies"]["store"] == "error"

    def test_service_initialization(self, criteria_service):
        """Test service initialization."""
        assert criteria_service.service_name == "criteria"
        assert criteria_service.port == 8013
        assert criteria_service.engine is not None
        assert criteria_service.engine.default_environment == "default"

    def test_create_app(self):
        """Test application factory."""
        app = create_app()
        assert app.title == "Criteria Service"

    def test_criteria_success(self, client, criteria_request):
        """Test successful criteria with reason and strategies."""
        response = client.post(f"/criteria?key={KEY}&showReason=true&showStrategy=true", json=criteria_request)

        assert response.status_code == 200
        data = response.json()
        assert data["result"] is True
        assert data["reason"] == "Success"
        assert len(data["strategies"]) == 3
        assert data["strategies"][0] == {
            "strategy": "VALUE_VALIDATION",
            "operation": "EXIST",
            "values": ["USER_1", "USER_2", "USER_3"],
            "activated": True
        }
        assert data["strategies"][2]["activated"] is False

    def test_criteria_result_only(self, client, criteria_request):
        """Test reason and strategies are omitted unless requested."""
        response = client.post(f"/criteria?key={KEY}", json=criteria_request)

        assert response.status_code == 200
        assert response.json() == {"result": True}

    def test_criteria_does_not_agree(self, client):
        """Test failing strategy."""
        response = client.post(f"/criteria?key={KEY}&showReason=true", json={
            "entry": [
                {"strategy": "VALUE_VALIDATION", "input": "USER_4"},
                {"strategy": "NETWORK_VALIDATION", "input": "10.0.0.3"}
            ]
        })

        assert response.status_code == 200
        data = response.json()
        assert data["result"] is False
        assert data["reason"] == "Strategy 'VALUE_VALIDATION' does not agree"
        assert "strategies" not in data

    def test_criteria_missing_input(self, client):
        """Test missing input."""
        response = client.post(f"/criteria?key={KEY}&showReason=true", json={
            "entry": [{"strategy": "VALUE_VALIDATION", "input": "USER_2"}]
        })

        assert response.json()["reason"] == "Strategy 'NETWORK_VALIDATION' did not receive any input"

    def test_criteria_not_found(self, client, criteria_request):
        """Test unknown key maps to 404."""
        response = client.post("/criteria?key=INVALID_KEY&showReason=true", json=criteria_request)

        assert response.status_code == 404
        data = response.json()
        assert data["code"] == "NOT_FOUND"
        assert data["details"] == {"key": "INVALID_KEY"}

    def test_criteria_requires_key(self, client, criteria_request):
        """Test key is a required query parameter."""
        response = client.post("/criteria", json=criteria_request)

        assert response.status_code == 422

    def test_criteria_environment(self, client, criteria_request):
        """Test environment override through the query string."""
        default = client.post("/criteria?key=TEST_CONFIG_KEY_PRD_QA&showReason=true", json=criteria_request)
        qa = client.post("/criteria?key=TEST_CONFIG_KEY_PRD_QA&environment=QA&showReason=true", json=criteria_request)

        assert default.json() == {"result": False, "reason": "Config disabled"}
        assert qa.json() == {"result": True, "reason": "Success"}

    def test_configuration_by_key(self, client):
        """Test flat view by key."""
        response = client.get(f"/configuration?key={KEY}")

        assert response.status_code == 200
        data = response.json()
        assert data["domain"] == {"name": "Domain", "description": "Test Domain", "activated": True}
        assert data["group"] == [{"name": "Group Test", "description": "Test Group", "activated": True}]
        assert data["config"] == [{"key": KEY, "description": "Test config 1", "activated": True}]
        assert [s["strategy"] for s in data["strategies"]] == [
            "VALUE_VALIDATION", "NETWORK_VALIDATION", "TIME_VALIDATION"
        ]

    def test_configuration_by_group(self, client):
        """Test flat view by group name."""
        response = client.get("/configuration", params={"group": "Group Test"})

        assert response.status_code == 200
        data = response.json()
        assert [c["key"] for c in data["config"]] == [KEY, "TEST_CONFIG_KEY_PRD_QA"]
        assert data["config"][1]["activated"] is False
        assert "strategies" not in data

    def test_configuration_by_group_for_environment(self, client):
        """Test flat view activation resolved per environment."""
        response = client.get("/configuration", params={"group": "Group Test", "environment": "QA"})

        assert response.json()["config"][1]["activated"] is True

    def test_configuration_unknown(self, client):
        """Test unknown group or key."""
        assert client.get("/configuration", params={"group": "UNKNOWN GROUP NAME"}).status_code == 404
        assert client.get("/configuration", params={"key": "UNKNOWN_CONFIG_KEY"}).status_code == 404

    def test_configuration_requires_key_or_group(self, client):
        """Test missing parameters."""
        response = client.get("/configuration")

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_strategy_requirements(self, client):
        """Test strategy requirements endpoint."""
        response = client.get("/strategies/TIME_VALIDATION/requirements")

        assert response.status_code == 200
        data = response.json()
        assert data["strategy"] == "TIME_VALIDATION"
        assert data["operations"] == ["GREATER", "LOWER", "BETWEEN"]
        assert data["values_per_operation"] == {"GREATER": 1, "LOWER": 1, "BETWEEN": 2}

    def test_strategy_requirements_unknown(self, client):
        """Test unknown strategy type."""
        response = client.get("/strategies/COLOR_VALIDATION/requirements")

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"
