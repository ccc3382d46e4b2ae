"""
Tests for pending automations: anonymous requests stored before sign-in,
claimed by the signed-in user, and removed once expired.
"""

import asyncio
import time
import uuid
from datetime import datetime, timedelta, timezone

from fastapi.testclient import TestClient

from app.config import settings
from app.main import app
from app.modules.pending_automations import cleanup_scheduler
from tests.conftest import USER_TOKEN, ADMIN_TOKEN, auth_header, seed_prompts, seed_tools
from tests.test_generation_pipeline import METADATA, GUIDE

USER_INPUT = "When a form is submitted, add the contact to HubSpot and notify Slack"


def iso_in(hours):
    return (datetime.now(timezone.utc) + timedelta(hours=hours)).isoformat()


def seed_pending(db, expires_in_hours=24, **fields):
    row = {
        "user_input": USER_INPUT,
        "selected_tools": {"1": "HubSpot", "2": "Slack"},
        "validation_result": {"is_valid": True},
        "expires_at": iso_in(expires_in_hours),
    }
    row.update(fields)
    return db.seed("pending_automations", row)[0]


class TestCreatePending:
    def test_anonymous_create(self, client, fake_db):
        response = client.post("/api/v1/automations/pending", json={
            "userInput": USER_INPUT,
            "selectedTools": {"1": "Slack"},
            "validationResult": {"is_valid": True, "confidence": 0.8},
        })

        assert response.status_code == 200
        pending_id = response.json()["pendingAutomationId"]
        row = fake_db.get("pending_automations", pending_id)
        assert row["selected_tools"] == {"1": "Slack"}
        expires_at = datetime.fromisoformat(row["expires_at"])
        expected = datetime.now(timezone.utc) + timedelta(hours=settings.pending_automation_ttl_hours)
        assert abs((expires_at - expected).total_seconds()) < 60

    def test_input_length_is_checked(self, client):
        response = client.post("/api/v1/automations/pending", json={"userInput": "short"})
        assert response.status_code == 422

    def test_storage_failure(self, client, fake_db):
        fake_db.fail_next("pending_automations", "insert", RuntimeError("connection reset"))
        response = client.post("/api/v1/automations/pending", json={"userInput": USER_INPUT})
        assert response.status_code == 500


class TestClaim:
    def test_claim_creates_automation_and_runs_pipeline(self, client, fake_db, fake_llm, users):
        seed_prompts(fake_db)
        seed_tools(fake_db)
        pending = seed_pending(fake_db)
        fake_llm.json_queue = [METADATA, GUIDE]

        response = client.post(
            "/api/v1/automations/claim",
            json={"pendingAutomationId": pending["id"]},
            headers=auth_header(USER_TOKEN),
        )

        assert response.status_code == 200
        body = response.json()
        assert body["slug"].startswith("closed-deal-alerts-")
        automation = fake_db.get("automations", body["automationId"])
        assert automation["user_id"] == users["user"].id
        assert automation["user_input"] == USER_INPUT
        assert automation["status"] == "completed"
        assert len(fake_db.rows("automation_tools")) == 2
        assert fake_db.rows("pending_automations") == []

    def test_claim_requires_authentication(self, client, fake_db):
        pending = seed_pending(fake_db)
        response = client.post("/api/v1/automations/claim", json={"pendingAutomationId": pending["id"]})
        assert response.status_code == 401

    def test_expired_pending_cannot_be_claimed(self, client, fake_db):
        pending = seed_pending(fake_db, expires_in_hours=-1)
        response = client.post(
            "/api/v1/automations/claim",
            json={"pendingAutomationId": pending["id"]},
            headers=auth_header(USER_TOKEN),
        )
        assert response.status_code == 404
        assert response.json()["detail"] == "Pending automation not found or has expired"
        assert fake_db.rows("automations") == []

    def test_unknown_pending(self, client):
        response = client.post(
            "/api/v1/automations/claim",
            json={"pendingAutomationId": str(uuid.uuid4())},
            headers=auth_header(USER_TOKEN),
        )
        assert response.status_code == 404

    def test_malformed_id(self, client):
        response = client.post(
            "/api/v1/automations/claim",
            json={"pendingAutomationId": "not-a-uuid"},
            headers=auth_header(USER_TOKEN),
        )
        assert response.status_code == 422

    def test_metadata_failure_marks_automation_failed(self, client, fake_db):
        pending = seed_pending(fake_db)

        response = client.post(
            "/api/v1/automations/claim",
            json={"pendingAutomationId": pending["id"]},
            headers=auth_header(USER_TOKEN),
        )

        assert response.status_code == 500
        assert response.json()["detail"] == "An unexpected error occurred."
        (automation,) = fake_db.rows("automations")
        assert automation["status"] == "failed"


class TestCleanup:
    def test_admin_cleanup_removes_expired(self, client, fake_db):
        seed_pending(fake_db, expires_in_hours=-2)
        seed_pending(fake_db, expires_in_hours=-1)
        fresh = seed_pending(fake_db, expires_in_hours=5)

        response = client.post("/api/v1/admin/cleanup-pending", headers=auth_header(ADMIN_TOKEN))

        assert response.status_code == 200
        assert response.json() == {"message": "Pending automations cleaned up successfully", "deleted": 2}
        assert [p["id"] for p in fake_db.rows("pending_automations")] == [fresh["id"]]

    def test_cleanup_is_admin_only(self, client, fake_db):
        response = client.post("/api/v1/admin/cleanup-pending", headers=auth_header(USER_TOKEN))
        assert response.status_code == 403

    def test_cleanup_failure(self, client, fake_db):
        fake_db.fail_next("pending_automations", "delete", RuntimeError("timeout"))
        response = client.post("/api/v1/admin/cleanup-pending", headers=auth_header(ADMIN_TOKEN))
        assert response.status_code == 500

    def test_scheduled_cleanup(self, fake_db, monkeypatch):
        seed_pending(fake_db, expires_in_hours=-1)
        monkeypatch.setattr(cleanup_scheduler, "get_service_supabase", lambda: fake_db)

        assert asyncio.run(cleanup_scheduler.cleanup_expired_pending_automations()) == 1
        assert fake_db.rows("pending_automations") == []

    def test_scheduled_cleanup_errors_are_logged(self, fake_db, monkeypatch):
        fake_db.fail_next("pending_automations", "delete", RuntimeError("timeout"))
        monkeypatch.setattr(cleanup_scheduler, "get_service_supabase", lambda: fake_db)

        assert asyncio.run(cleanup_scheduler.cleanup_expired_pending_automations()) == 0

    def test_cleanup_loop_follows_app_lifecycle(self, fake_db, monkeypatch):
        seed_pending(fake_db, expires_in_hours=-1)
        monkeypatch.setattr(settings, "enable_pending_cleanup", True)
        monkeypatch.setattr(cleanup_scheduler, "get_service_supabase", lambda: fake_db)

        with TestClient(app):
            task = app.state.pending_cleanup_task
            assert task is not None
            deadline = time.monotonic() + 2
            while fake_db.rows("pending_automations") and time.monotonic() < deadline:
                time.sleep(0.01)
            assert not task.done()

        assert fake_db.rows("pending_automations") == []
        assert task.cancelled()
