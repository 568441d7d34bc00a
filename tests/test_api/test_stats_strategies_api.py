"""Tests for /api/v1/stats and /api/v1/strategies"""
from contextlib import contextmanager
from datetime import date, timedelta
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from keepalive.api.deps import get_db, get_current_user_id
from keepalive.application.strategies import StrategyReadService, ensure_system_strategies
from keepalive.domain.strategy import SYSTEM_STRATEGIES
from keepalive.main import create_app
from keepalive.utils.clock import today_local


@pytest.fixture
def client(db_session, sample_user_id):
    app = create_app(seed_system_strategies=False)

    def _get_db():
        yield db_session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_current_user_id] = lambda: sample_user_id
    return TestClient(app)


class TestStats:
    def test_dashboard(self, client, make_account, make_task):
        a, b = make_account("A"), make_account("B")
        make_task(a, b, today_local(), status="completed")
        make_task(a, b, today_local(), status="skipped")

        data = client.get("/api/v1/stats/dashboard", params={"period": "all"}).json()

        assert data["total_tasks"] == 2
        assert data["completion_rate"] == 0.5
        assert data["total_accounts"] == 2

    def test_dashboard_bad_period(self, client):
        assert client.get("/api/v1/stats/dashboard", params={"period": "eon"}).status_code == 400

    def test_calendar(self, client, make_account, make_task):
        a, b = make_account("A"), make_account("B")
        make_task(a, b, date(2026, 3, 2))

        data = client.get("/api/v1/stats/calendar", params={"start": "2026-03-01", "end": "2026-03-07"}).json()

        assert len(data) == 7
        assert data[1] == {"date": "2026-03-02", "task_count": 1, "has_pending": True}

    def test_calendar_reversed(self, client):
        response = client.get("/api/v1/stats/calendar", params={"start": "2026-03-07", "end": "2026-03-01"})
        assert response.status_code == 400

    def test_next_day_null(self, client):
        response = client.get("/api/v1/stats/next-day")
        assert response.status_code == 200
        assert response.json() is None

    def test_next_day(self, client, make_account, make_task):
        a, b = make_account("A"), make_account("B")
        make_task(a, b, today_local() + timedelta(days=3))
        data = client.get("/api/v1/stats/next-day").json()
        assert data["days_until"] == 3
        assert len(data["tasks"]) == 1

    def test_today(self, client, make_account, make_task):
        a, b = make_account("A"), make_account("B")
        make_task(a, b, today_local())
        data = client.get("/api/v1/stats/today").json()
        assert data["pending_count"] == 1
        assert data["tasks"][0]["to_account_name"] == "B"

    def test_recent_limit_bounds(self, client):
        assert client.get("/api/v1/stats/recent", params={"limit": 0}).status_code == 400
        assert client.get("/api/v1/stats/recent", params={"limit": 5}).json() == []


class TestStrategies:
    def test_list_includes_system(self, client, db_session):
        ensure_system_strategies(db_session)
        data = client.get("/api/v1/strategies").json()
        assert [s["is_system"] for s in data] == [True, True]
        assert data[0]["time_start"] == "09:00"

    def test_create(self, client):
        response = client.post("/api/v1/strategies", json={
            "name": "Редкий", "interval_min": 60, "interval_max": 90,
            "time_start": "10:00", "time_end": "19:30", "amount_min": "5,5", "amount_max": "25",
        })
        assert response.status_code == 201
        data = response.json()
        assert data["amount_min"] == "5.50"
        assert data["time_end"] == "19:30"
        assert data["is_system"] is False

    def test_create_invalid_ranges_is_400(self, client):
        response = client.post("/api/v1/strategies", json={"name": "X", "interval_min": 9, "interval_max": 3})
        assert response.status_code == 400

    def test_create_bad_amount_format_is_422(self, client):
        response = client.post("/api/v1/strategies", json={"name": "X", "amount_min": "1.234"})
        assert response.status_code == 422

    def test_create_huge_amount_is_400(self, client):
        response = client.post("/api/v1/strategies", json={
            "name": "X", "amount_min": "1", "amount_max": "1" + "0" * 30,
        })
        assert response.status_code == 400
        assert response.json()["error"] == "ValidationError"

    def test_update_and_delete(self, client):
        created = client.post("/api/v1/strategies", json={"name": "Мой"}).json()

        updated = client.put(f"/api/v1/strategies/{created['id']}", json={"daily_limit": 5})
        assert updated.json()["daily_limit"] == 5

        assert client.delete(f"/api/v1/strategies/{created['id']}").status_code == 204
        assert client.get(f"/api/v1/strategies/{created['id']}").status_code == 404

    def test_system_strategy_is_403(self, client, db_session):
        ensure_system_strategies(db_session)
        system_id = client.get("/api/v1/strategies").json()[0]["id"]

        assert client.put(f"/api/v1/strategies/{system_id}", json={"name": "Моя"}).status_code == 403
        assert client.delete(f"/api/v1/strategies/{system_id}").status_code == 403


class TestStartup:
    def test_lifespan_seeds_system_strategies(self, db_session, sample_user_id):
        @contextmanager
        def _scope():
            yield db_session
            db_session.commit()

        app = create_app(seed_system_strategies=True)
        with patch("keepalive.main.session_scope", _scope):
            with TestClient(app):
                pass

        rows = StrategyReadService(db_session).list_visible(sample_user_id)
        assert [r.is_system for r in rows] == [True] * len(SYSTEM_STRATEGIES)

    def test_no_seeding_when_disabled(self, db_session, sample_user_id):
        app = create_app(seed_system_strategies=False)
        with patch("keepalive.main.session_scope") as scope:
            with TestClient(app):
                pass
        scope.assert_not_called()
