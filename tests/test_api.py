"""
Warden - API Tests
==================

HTTP-level tests against an engine running on the SQLite adapters.
"""

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from warden.api.app import API_PREFIX, create_app
from warden.api.dependencies import set_engine
from warden.core.config import Config, ModerationSettings
from warden.engine import ModerationEngine


ADDRESS = "0x" + "de" * 20


@pytest.fixture
def engine(test_db, clock):
    """Engine over a seeded database with the bridge disabled."""
    config = Config(
        moderation=ModerationSettings(pattern_denylist_groups=frozenset({"raiders"})),
        db_path=test_db.db_path,
    )
    now = clock.now()
    test_db.save_account("author", now - timedelta(days=1), username="newbie")
    test_db.save_account("veteran", now - timedelta(days=400))
    test_db.save_room("room-1", group_id="raiders", name="general")
    test_db.save_message("m1", "room-1", "author", "hello world", now - timedelta(minutes=5))
    test_db.save_message("m2", "room-1", "author", ADDRESS, now - timedelta(minutes=1))
    test_db.save_message(
        "m3", "room-1", "bridge-bot", "relayed", now - timedelta(minutes=1),
        virtual_provider="matrix", virtual_external_id="@v:example.org",
    )

    eng = ModerationEngine(config=config, db=test_db, clock=clock, telemetry_sinks=[])
    yield eng
    set_engine(None)


@pytest.fixture
def client(engine):
    with TestClient(create_app(engine)) as c:
        yield c


class TestReportsEndpoints:
    """Tests for /reports."""

    def test_submit_report(self, client):
        """Test a new report is created with 201."""
        resp = client.post(f"{API_PREFIX}/reports", json={"reporter_id": "r1", "message_id": "m1"})

        assert resp.status_code == 201
        data = resp.json()["data"]
        assert data["message_id"] == "m1"
        assert data["target_account_id"] == "author"
        assert data["weight"] == 1.0
        assert data["snapshot_text"] == "hello world"

    def test_resubmission_returns_same_report(self, client):
        """Test a repeat submission returns the original id."""
        body = {"reporter_id": "r1", "message_id": "m1"}
        first = client.post(f"{API_PREFIX}/reports", json=body).json()["data"]
        second = client.post(f"{API_PREFIX}/reports", json=body).json()["data"]

        assert second["id"] == first["id"]
        assert second["submitted_at"] == first["submitted_at"]

    def test_self_report_forbidden(self, client):
        """Test reporting your own message is 403."""
        resp = client.post(f"{API_PREFIX}/reports", json={"reporter_id": "author", "message_id": "m1"})

        assert resp.status_code == 403
        assert resp.json()["error_code"] == "REPORT_SELF"

    def test_unknown_message(self, client):
        """Test reporting a missing message is 404."""
        resp = client.post(f"{API_PREFIX}/reports", json={"reporter_id": "r1", "message_id": "nope"})

        assert resp.status_code == 404
        assert resp.json()["error_code"] == "MESSAGE_NOT_FOUND"

    def test_virtual_target_without_bridge(self, client, engine):
        """Test a ban with no bridge configured is 502 but the report is kept."""
        engine.weight_policy.weight = 5.0
        resp = client.post(f"{API_PREFIX}/reports", json={"reporter_id": "r1", "message_id": "m3"})

        assert resp.status_code == 502
        assert resp.json()["error_code"] == "SERVER_UPSTREAM_ERROR"
        assert engine.db.count_reports() == 1

    def test_invalid_body(self, client):
        """Test empty ids are rejected by validation."""
        resp = client.post(f"{API_PREFIX}/reports", json={"reporter_id": "", "message_id": "m1"})
        assert resp.status_code == 422

    def test_list_and_get(self, client):
        """Test listing newest first and fetching by id."""
        client.post(f"{API_PREFIX}/reports", json={"reporter_id": "r1", "message_id": "m1"})
        client.post(f"{API_PREFIX}/reports", json={"reporter_id": "r2", "message_id": "m2"})

        page = client.get(f"{API_PREFIX}/reports", params={"limit": 1}).json()
        assert page["pagination"]["count"] == 1
        newest = page["data"][0]
        assert newest["message_id"] == "m2"

        older = client.get(
            f"{API_PREFIX}/reports",
            params={"limit": 1, "before_id": page["pagination"]["next_before_id"]},
        ).json()
        assert older["data"][0]["message_id"] == "m1"

        single = client.get(f"{API_PREFIX}/reports/{newest['id']}")
        assert single.status_code == 200
        assert single.json()["data"]["id"] == newest["id"]

    def test_get_missing_report(self, client):
        """Test an unknown report id is 404."""
        resp = client.get(f"{API_PREFIX}/reports/12345")

        assert resp.status_code == 404
        assert resp.json()["error_code"] == "REPORT_NOT_FOUND"


class TestScoresEndpoints:
    """Tests for /scores."""

    def test_message_and_account_scores(self, client):
        """Test scores reflect stored reports."""
        client.post(f"{API_PREFIX}/reports", json={"reporter_id": "r1", "message_id": "m1"})

        message = client.get(f"{API_PREFIX}/scores/messages/m1").json()["data"]
        assert message == {"subject": "m1", "score": 1.0, "threshold": 2.0, "over_threshold": False}

        account = client.get(f"{API_PREFIX}/scores/accounts/author").json()["data"]
        assert account["score"] == 1.0
        assert account["threshold"] == 5.0

    def test_virtual_score(self, client):
        """Test virtual identity scores are addressed by provider and external id."""
        resp = client.get(f"{API_PREFIX}/scores/virtual/matrix/@v:example.org")

        assert resp.status_code == 200
        assert resp.json()["data"]["subject"] == "matrix:@v:example.org"


class TestSpamEndpoint:
    """Tests for /spam/classify."""

    def test_new_account_address_is_spam(self, client, engine):
        """Test a bare address from a new account suspends it."""
        resp = client.post(f"{API_PREFIX}/spam/classify", json={
            "room_id": "room-1", "account_id": "author", "message_id": "m2",
        })

        assert resp.status_code == 200
        assert resp.json()["data"]["is_spam"] is True
        assert engine.db.get_account("author")["suspended"] == 1

    def test_established_account_not_spam(self, client, engine):
        """Test an old account is never flagged."""
        resp = client.post(f"{API_PREFIX}/spam/classify", json={
            "room_id": "room-1", "account_id": "veteran", "message_id": "m2",
        })

        assert resp.json()["data"]["is_spam"] is False
        assert engine.db.get_account("veteran")["suspended"] == 0

    def test_unknown_account(self, client):
        """Test a missing account is 404."""
        resp = client.post(f"{API_PREFIX}/spam/classify", json={
            "room_id": "room-1", "account_id": "ghost", "message_id": "m2",
        })

        assert resp.status_code == 404
        assert resp.json()["error_code"] == "ACCOUNT_NOT_FOUND"


class TestHealthAndAuth:
    """Tests for health endpoints and bearer auth."""

    def test_health(self, client):
        """Test the health endpoint reports the database state."""
        data = client.get(f"{API_PREFIX}/health").json()["data"]

        assert data["status"] == "healthy"
        assert data["bridge_enabled"] is False
        assert client.get("/health").json() == {"status": "healthy"}

    def test_detailed_health(self, client):
        """Test process metrics are included."""
        data = client.get(f"{API_PREFIX}/health/detailed").json()["data"]
        assert data["memory_mb"] > 0

    def test_token_required_when_configured(self, engine, monkeypatch):
        """Test protected routes need the bearer token once one is set."""
        monkeypatch.setenv("WARDEN_API_TOKEN", "s3cret")

        with TestClient(create_app(engine)) as client:
            missing = client.get(f"{API_PREFIX}/reports")
            wrong = client.get(f"{API_PREFIX}/reports", headers={"Authorization": "Bearer nope"})
            right = client.get(f"{API_PREFIX}/reports", headers={"Authorization": "Bearer s3cret"})
            health = client.get(f"{API_PREFIX}/health")

        assert missing.status_code == 401
        assert missing.json()["error_code"] == "AUTH_MISSING_TOKEN"
        assert wrong.status_code == 401
        assert right.status_code == 200
        assert health.status_code == 200
