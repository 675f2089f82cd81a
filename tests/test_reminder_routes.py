"""
SafetyHub — Reminder Trigger Tests
==================================
Tests: manual trigger, secret-protected scheduled trigger, monthly digest
       trigger, failure responses, admin preview modal
"""

import datetime
import pytest

from app.reminders import engine
from app.reminders import routes as reminder_routes
from tests.conftest import add_profile, add_expiring_record, make_session


@pytest.fixture
def routed_provider(fake_provider, monkeypatch):
    """Route handlers send through the fake provider."""
    monkeypatch.setattr(reminder_routes, "build_provider", lambda config: fake_provider)
    return fake_provider


def _seed_expiring():
    today = datetime.date.today()
    add_profile("u1", "Uma Field", "uma@example.com")
    add_expiring_record("u1", "First Aid", 10, today=today)
    add_expiring_record("u1", "Forklift", 20, today=today)
    add_expiring_record("u1", "Confined Space", 40, today=today)


# ============================================================================
# SECTION 1 — MANUAL TRIGGER
# ============================================================================

class TestManualTrigger:

    def test_manual_run(self, client, delivery_env, routed_provider):
        _seed_expiring()
        resp = client.get("/api/training/reminders")
        assert resp.status_code == 200
        data = resp.json()
        assert data["success"] is True
        assert data["notificationsSent"] == 2
        assert data["totalRecords"] == 2
        assert data["totalUsers"] == 1
        assert data["message"] == "Sent 2 training reminder notifications"
        assert "timestamp" not in data
        assert len(routed_provider.sent) == 2

    def test_manual_run_ignores_cron_secret(self, client, delivery_env, routed_provider, monkeypatch):
        monkeypatch.setenv("CRON_SECRET", "s3cret")
        resp = client.get("/api/training/reminders")
        assert resp.status_code == 200
        assert resp.json()["totalRecords"] == 0

    def test_manual_run_empty(self, client, delivery_env, routed_provider):
        data = client.get("/api/training/reminders").json()
        assert data["success"] is True
        assert data["notificationsSent"] == 0
        assert data["totalUsers"] == 0
        assert data["message"] == "No training records expiring in the next 30 days"

    def test_missing_api_key_returns_500(self, client, routed_provider):
        _seed_expiring()
        resp = client.get("/api/training/reminders")
        assert resp.status_code == 500
        data = resp.json()
        assert data["success"] is False
        assert data["error"] == "Failed to process training reminders"
        assert "SENDGRID_API_KEY" in data["details"]
        assert routed_provider.sent == []

    def test_query_failure_returns_500(self, client, delivery_env, routed_provider, monkeypatch):
        import sqlite3

        def broken(after, until):
            raise sqlite3.OperationalError("disk I/O error")

        monkeypatch.setattr(engine, "get_records_expiring_between", broken)
        resp = client.get("/api/training/reminders")
        assert resp.status_code == 500
        assert "disk I/O error" in resp.json()["details"]


# ============================================================================
# SECTION 2 — SCHEDULED TRIGGER
# ============================================================================

class TestScheduledTrigger:

    def test_rejects_missing_secret_without_querying(self, client, delivery_env, routed_provider, monkeypatch):
        monkeypatch.setenv("CRON_SECRET", "s3cret")
        queried = []
        monkeypatch.setattr(
            engine, "get_records_expiring_between", lambda a, b: queried.append(1) or [],
        )

        resp = client.post("/api/training/reminders")

        assert resp.status_code == 401
        assert resp.json() == {"error": "Unauthorized cron request"}
        assert queried == []
        assert routed_provider.sent == []

    def test_rejects_wrong_secret(self, client, delivery_env, routed_provider, monkeypatch):
        monkeypatch.setenv("CRON_SECRET", "s3cret")
        resp = client.post("/api/training/reminders", headers={"Authorization": "Bearer nope"})
        assert resp.status_code == 401

    def test_accepts_secret(self, client, delivery_env, routed_provider, monkeypatch):
        monkeypatch.setenv("CRON_SECRET", "s3cret")
        _seed_expiring()

        resp = client.post("/api/training/reminders", headers={"Authorization": "Bearer s3cret"})

        assert resp.status_code == 200
        data = resp.json()
        assert data["success"] is True
        assert data["notificationsSent"] == 2
        assert datetime.datetime.fromisoformat(data["timestamp"])

    def test_no_secret_configured_allows_call(self, client, delivery_env, routed_provider):
        resp = client.post("/api/training/reminders")
        assert resp.status_code == 200
        assert "timestamp" in resp.json()


# ============================================================================
# SECTION 3 — MONTHLY DIGEST TRIGGER
# ============================================================================

class TestMonthlyTrigger:

    def test_monthly_digest(self, client, delivery_env, routed_provider):
        _seed_expiring()
        add_profile("m1", "Max Manager", "max@example.com", "manager")

        resp = client.post("/api/cron/monthly-training-expiry")

        assert resp.status_code == 200
        data = resp.json()
        assert data["success"] is True
        assert data["userEmailsSent"] == 1
        assert data["managerEmailsSent"] == 1
        assert data["totalRecords"] == 2
        assert "timestamp" in data

    def test_monthly_digest_requires_secret(self, client, delivery_env, routed_provider, monkeypatch):
        monkeypatch.setenv("CRON_SECRET", "s3cret")
        resp = client.post("/api/cron/monthly-training-expiry")
        assert resp.status_code == 401
        assert routed_provider.sent == []


# ============================================================================
# SECTION 4 — ADMIN PREVIEW
# ============================================================================

class TestReminderModal:

    def test_requires_login(self, client):
        assert client.get("/modals/training-reminders").status_code == 401

    def test_requires_admin(self, worker_session):
        assert worker_session.get("/modals/training-reminders").status_code == 403

    def test_lists_expiring_records(self, admin_session):
        _seed_expiring()
        resp = admin_session.get("/modals/training-reminders")
        assert resp.status_code == 200
        assert "First Aid" in resp.text
        assert "Forklift" in resp.text
        assert "Confined Space" not in resp.text

    def test_query_failure_uses_failure_shape(self, admin_session, monkeypatch):
        import sqlite3

        def broken(after, until):
            raise sqlite3.OperationalError("database disk image is malformed")

        monkeypatch.setattr(engine, "get_records_expiring_between", broken)
        resp = admin_session.get("/modals/training-reminders")
        assert resp.status_code == 500
        data = resp.json()
        assert data["success"] is False
        assert data["error"] == "Failed to process training reminders"
        assert "malformed" in data["details"]
