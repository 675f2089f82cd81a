"""
SafetyHub — Test Infrastructure (conftest.py)
=============================================
Provides:
  - Test database (safetyhub_test.db) selected through SAFETYHUB_DB
  - FastAPI TestClient with session login
  - Profile / course / record seeding helpers
  - FakeProvider that records every payload instead of sending email
"""

import os
import sys
import sqlite3
import datetime
import pytest

# Ensure project root is on path
ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, ROOT_DIR)

# ============================================================================
# TEST MODE: Use separate test database (must be set before app modules load)
# ============================================================================
TEST_DB_PATH = os.path.join(ROOT_DIR, "safetyhub_test.db")

os.environ["SAFETYHUB_DB"] = TEST_DB_PATH
os.environ["SAFETYHUB_SCHEDULER"] = "0"

from app.messaging.providers import BaseProvider, MessagePayload, ProviderResult, ProviderStatus  # noqa: E402

TODAY = datetime.date(2026, 3, 1)

_ENV_KEYS = (
    "SENDGRID_API_KEY", "SENDGRID_FROM_EMAIL", "SENDGRID_FROM_NAME",
    "COMPANY_NAME", "APP_URL", "CRON_SECRET",
)


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture(scope="session", autouse=True)
def setup_test_env():
    """Session-wide test environment setup."""
    if os.path.exists(TEST_DB_PATH):
        os.remove(TEST_DB_PATH)

    yield

    # Cleanup (ignore Windows file lock errors)
    try:
        if os.path.exists(TEST_DB_PATH):
            os.remove(TEST_DB_PATH)
    except (PermissionError, OSError):
        pass


@pytest.fixture(scope="session")
def app(setup_test_env):
    """The FastAPI app with a fresh schema in the test DB."""
    import main
    from app.accounts import init_accounts_schema
    from app.training import init_training_schema
    init_accounts_schema()
    init_training_schema()
    return main.app


@pytest.fixture(scope="session")
def client(app):
    """FastAPI TestClient (session-scoped for speed)."""
    from starlette.testclient import TestClient
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c


@pytest.fixture(autouse=True)
def clean_state(app, client, monkeypatch):
    """Empty tables, drop cookies and strip delivery settings before every test."""
    conn = get_test_db()
    for table in ("training_records", "training_courses", "user_profiles"):
        conn.execute(f"DELETE FROM {table}")
    conn.commit()
    conn.close()

    client.cookies.clear()
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    yield


@pytest.fixture
def delivery_env(monkeypatch):
    """Environment with email delivery configured."""
    monkeypatch.setenv("SENDGRID_API_KEY", "SG.test-key")
    monkeypatch.setenv("SENDGRID_FROM_EMAIL", "safety@example.com")
    monkeypatch.setenv("COMPANY_NAME", "Acme Safety")
    monkeypatch.setenv("APP_URL", "https://safety.example.com")


@pytest.fixture
def reminder_config():
    from app.reminders.config import ReminderConfig
    return ReminderConfig(
        sendgrid_api_key="SG.test-key",
        from_email="safety@example.com",
        company_name="Acme Safety",
        app_url="https://safety.example.com",
    )


@pytest.fixture
def fake_provider():
    return FakeProvider()


# ============================================================================
# Fake email provider
# ============================================================================

class FakeProvider(BaseProvider):
    """
    Records payloads. `outcomes` maps a recipient address to a list of
    results handed out in order; anything unlisted is sent.
    """

    channel = "email"
    display_name = "Fake Email"

    def _load_config(self):
        self.sent = []
        self.outcomes = {}

    def is_configured(self) -> bool:
        return True

    async def get_status(self) -> ProviderStatus:
        return ProviderStatus.READY

    async def send(self, payload: MessagePayload) -> ProviderResult:
        self.sent.append(payload)
        queued = self.outcomes.get(payload.to)
        if queued:
            outcome = queued.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome
        return ProviderResult.ok(message_id=f"fake-{len(self.sent)}")

    def subjects(self):
        return [p.subject for p in self.sent]

    def recipients(self):
        return [p.to for p in self.sent]


# ============================================================================
# Session helpers
# ============================================================================

def make_session(client, user_id, role="worker", full_name=None, email=None):
    """Create the profile with the given role, then log in (cookies are stored)."""
    add_profile(user_id, full_name or user_id, email, role)
    return client.post("/api/session/login", json={"user_id": user_id})


@pytest.fixture
def worker_session(client):
    """Client authenticated as a worker."""
    make_session(client, "worker-1", "worker", "Wendy Worker", "wendy@example.com")
    return client


@pytest.fixture
def admin_session(client):
    """Client authenticated as an admin."""
    make_session(client, "admin-1", "admin", "Ada Admin", "ada@example.com")
    return client


@pytest.fixture
def manager_session(client):
    """Client authenticated as a manager."""
    make_session(client, "manager-1", "manager", "Max Manager", "max@example.com")
    return client


# ============================================================================
# DB helpers
# ============================================================================

def get_test_db():
    """Direct connection to test database for assertions."""
    conn = sqlite3.connect(TEST_DB_PATH, timeout=30)
    conn.row_factory = sqlite3.Row
    return conn


def db_query(sql, params=()):
    """Run a query against the test DB and return list of dicts."""
    conn = get_test_db()
    rows = conn.execute(sql, params).fetchall()
    result = [dict(r) for r in rows]
    conn.close()
    return result


def db_count(table, where="1=1", params=()):
    """Count rows in a table."""
    conn = get_test_db()
    row = conn.execute(f"SELECT COUNT(*) AS cnt FROM {table} WHERE {where}", params).fetchone()
    conn.close()
    return row["cnt"]


def add_profile(user_id, full_name=None, email=None, role="worker"):
    from app.accounts.models import ensure_user_profile, set_user_role
    ensure_user_profile(user_id, full_name, email)
    if role != "worker":
        set_user_role(user_id, role)
    return user_id


def add_course(name, validity_months=12):
    from app.training.models import create_course
    return create_course(name, validity_months)


def add_expiring_record(user_id, course, days_from_today, today=TODAY):
    """Record for `course` (name or id) expiring `days_from_today` after `today`."""
    from app.training.models import create_record
    course_id = add_course(course) if isinstance(course, str) else course
    expires_on = today + datetime.timedelta(days=days_from_today)
    completed_on = expires_on - datetime.timedelta(days=365)
    return create_record(user_id, course_id, completed_on, expires_on)
