"""Tests for the HTTP API.

Tests use FastAPI TestClient against an engine wired to stub adapters.
"""

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from swellstrike.api import ConditionResponse, StrikeResponse, create_app
from swellstrike.cache.models import Domain, StrikeEvent
from swellstrike.config import EngineSettings
from swellstrike.engine import build_engine


@pytest.fixture
def engine(tmp_path, surf_location, ski_location, stub_adapter, epic_surf_metrics):
    settings = EngineSettings(
        refresh_interval=timedelta(minutes=5),
        call_timeout=5.0,
        cycle_deadline=30.0,
        db_path=tmp_path / "api.duckdb",
    )
    adapters = [
        stub_adapter("ndbc", default=epic_surf_metrics),
        stub_adapter("nws", default={"temperature": -5.0}),
    ]
    return build_engine(settings, locations=[surf_location, ski_location], adapters=adapters)


@pytest.fixture
def client(engine):
    app = create_app(engine, start_scheduler=False)
    with TestClient(app) as test_client:
        yield test_client


class TestSchemas:
    def test_condition_from_scored(self, make_scored, surf_location):
        response = ConditionResponse.from_scored(make_scored(score=85), surf_location)

        assert response.name == "Santa Barbara"
        assert response.domain == "surf"
        assert response.is_strike

    def test_strike_without_location(self, t0):
        event = StrikeEvent("46221", Domain.SURF, t0, 90, t0, 90, t0)
        response = StrikeResponse.from_event(event)

        assert response.name is None
        assert response.lat is None
        assert response.peak_score == 90


class TestHealth:
    def test_health_before_refresh(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["state"] == "idle"
        assert data["cached"] == 0
        assert data["last_cycle_completed_at"] is None

    def test_health_after_refresh(self, client, engine):
        engine.run_cycle()

        data = client.get("/api/health").json()

        assert data["state"] == "completed"
        assert data["locations"] == 2
        assert data["cached"] == 2
        assert data["active_strikes"] == 1


class TestConditions:
    def test_empty_before_refresh(self, client):
        data = client.get("/api/conditions/surf").json()

        assert data["count"] == 0
        assert data["conditions"] == {}

    def test_surf_conditions(self, client, engine):
        engine.run_cycle()

        data = client.get("/api/conditions/surf").json()

        assert data["count"] == 1
        entry = data["conditions"]["46221"]
        assert entry["score"] == 100
        assert entry["is_strike"] is True
        assert entry["metrics"]["wave_height"] == 2.0
        assert data["updated"] is not None

    def test_ski_conditions(self, client, engine):
        engine.run_cycle()

        data = client.get("/api/conditions/ski").json()

        assert list(data["conditions"]) == ["alta"]
        assert data["conditions"]["alta"]["score"] == 20

    def test_unknown_domain(self, client):
        assert client.get("/api/conditions/kite").status_code == 422


class TestLocation:
    def test_found(self, client, engine):
        engine.run_cycle()

        data = client.get("/api/locations/46221").json()

        assert data["location_id"] == "46221"
        assert data["name"] == "Santa Barbara"
        assert data["source_id"] == "ndbc"

    def test_not_found_before_refresh(self, client):
        response = client.get("/api/locations/46221")

        assert response.status_code == 404
        data = response.json()
        assert data["error"] == "HTTP_404"
        assert "46221" in data["message"]


class TestStrikes:
    def test_active_strikes(self, client, engine):
        engine.run_cycle()

        data = client.get("/api/strikes").json()

        assert [s["location_id"] for s in data["strikes"]] == ["46221"]
        assert data["strikes"][0]["peak_score"] == 100
        assert data["strikes"][0]["lat"] == pytest.approx(34.274)

    def test_domain_filter(self, client, engine):
        engine.run_cycle()

        assert client.get("/api/strikes", params={"domain": "ski"}).json()["strikes"] == []
        assert len(client.get("/api/strikes", params={"domain": "surf"}).json()["strikes"]) == 1
