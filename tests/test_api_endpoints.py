# =============================================================================
# tests/test_api_endpoints.py - API Endpoint Tests
# =============================================================================
# This module contains tests for:
# - Root, health and error envelope
# - Service-role guard on internal endpoints
# - Request/response wiring of each router
#
# Service logic is covered in the per-service test modules; these tests
# check routing, auth and serialization.
#
# Run with: pytest tests/test_api_endpoints.py -v
# =============================================================================

import inspect
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock, patch
from urllib.parse import parse_qs, urlparse

import pytest

from app.config import settings
from tests.conftest import SERVICE_HEADERS, TEAM_ID, USER_ID


# =============================================================================
# Root / Health
# =============================================================================

class TestRootAndHealth:
    """Test the unauthenticated informational endpoints."""

    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["name"] == "AI Rocket API"

    def test_health(self, client):
        body = client.get("/api/v1/health").json()

        assert body["status"] == "healthy"
        assert body["environment"] == "development"

    def test_liveness(self, client):
        assert client.get("/api/v1/health/live").json()["status"] == "alive"

    def test_readiness_degraded_without_redis(self, client):
        with patch("app.websocket.broadcast.get_redis_client", side_effect=ConnectionError("refused")):
            body = client.get("/api/v1/health/ready").json()

        assert body["status"] == "degraded"
        assert body["checks"]["database"] == "healthy"
        assert body["checks"]["redis"].startswith("unhealthy")

    def test_unexpected_error_envelope(self, fake_db):
        from fastapi.testclient import TestClient
        from app.main import app

        with patch("app.routers.health.utc_now_iso", side_effect=RuntimeError("clock broke")):
            response = TestClient(app, raise_server_exceptions=False).get("/api/v1/health")

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error", "code": "INTERNAL_ERROR"}


# =============================================================================
# Service Role
# =============================================================================

class TestServiceRole:
    """Internal endpoints only accept the service-role key."""

    def test_missing_header(self, client):
        response = client.post("/api/v1/integrations/health-check")

        assert response.status_code in (401, 403)

    def test_wrong_key(self, client):
        response = client.post(
            "/api/v1/notifications/sms",
            json={"phone_number": "+15551234567", "message": "hi"},
            headers={"Authorization": "Bearer some-user-jwt"},
        )

        assert response.status_code == 401
        assert response.json()["detail"] == "Service role required"

    def test_identity_endpoint_is_internal(self, client):
        response = client.post(
            "/api/v1/insights/identity",
            json={"user_id": USER_ID, "signal_type": "onboarding", "signal_details": "x"},
            headers={"Authorization": "Bearer nope"},
        )

        assert response.status_code == 401

    def test_invalid_user_token(self, client):
        response = client.get("/api/v1/auth/verify", headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == 401


# =============================================================================
# Jobs
# =============================================================================

class TestJobsEndpoint:
    """Test POST /api/v1/jobs/{job_name}."""

    @pytest.fixture
    def job(self):
        job = MagicMock()
        job.delay.return_value = SimpleNamespace(id="celery-task-1")
        with patch.dict("workers.tasks.PERIODIC_JOBS", {"process-scheduled-tasks": job}):
            yield job

    def test_queues_job(self, client, job):
        response = client.post("/api/v1/jobs/process-scheduled-tasks", headers=SERVICE_HEADERS)

        assert response.status_code == 200
        assert response.json() == {
            "task_id": "celery-task-1",
            "job": "process-scheduled-tasks",
            "status": "PENDING",
            "message": "process-scheduled-tasks queued. Use GET /api/v1/tasks/celery-task-1 to check status.",
        }
        job.delay.assert_called_once_with()

    def test_unknown_job(self, client, job):
        response = client.post("/api/v1/jobs/reindex-everything", headers=SERVICE_HEADERS)

        assert response.status_code == 404
        body = response.json()
        assert body["code"] == "NOT_FOUND"
        assert body["error"] == "Job not found: reindex-everything"

    def test_broker_down(self, client, job):
        job.delay.side_effect = ConnectionError("redis unreachable")

        response = client.post("/api/v1/jobs/process-scheduled-tasks", headers=SERVICE_HEADERS)

        assert response.status_code == 503
        assert "Is Redis running?" in response.json()["detail"]


# =============================================================================
# Auth
# =============================================================================

class TestAuthEndpoints:
    """Test /api/v1/auth routes."""

    def test_preflight(self, client, fake_db):
        fake_db.tables["teams"] = [{"id": TEAM_ID, "name": "Acme"}]

        response = client.post("/api/v1/auth/preflight", json={"action": "lookup-team-name", "teamId": TEAM_ID})

        assert response.status_code == 200
        assert response.json() == {"name": "Acme"}

    def test_preflight_unknown_action(self, client):
        response = client.post("/api/v1/auth/preflight", json={"action": "drop-tables"})

        assert response.status_code == 400
        assert response.json()["error"] == "Unknown action"

    def test_me(self, client, fake_db, user_row, auth_user):
        fake_db.tables["users"] = [user_row]

        body = client.get("/api/v1/auth/me").json()

        assert body["name"] == "Jane Doe"
        assert body["team_id"] == TEAM_ID

    def test_me_without_profile(self, client, auth_user):
        body = client.get("/api/v1/auth/me").json()

        assert body["id"] == USER_ID
        assert body["email"] == "jane@example.com"
        assert body["name"] is None


# =============================================================================
# Feature Routers
# =============================================================================

class TestMarketingEndpoint:
    """Test GET /api/v1/marketing/unsubscribe."""

    @pytest.fixture(autouse=True)
    def contact(self, fake_db):
        fake_db.tables["marketing_contacts"] = [{
            "id": "contact-1",
            "email": "jane@example.com",
            "unsubscribed": False,
            "unsubscribe_token": "tok-123",
        }]

    def test_browser_is_redirected(self, client):
        response = client.get(
            "/api/v1/marketing/unsubscribe", params={"token": "tok-123"}, follow_redirects=False
        )

        assert response.status_code == 302
        location = urlparse(response.headers["location"])
        assert f"{location.scheme}://{location.netloc}" == settings.APP_URL.rstrip("/")
        assert location.path == "/unsubscribe-result"
        query = parse_qs(location.query)
        assert query["status"] == ["success"]
        assert query["title"] == ["Successfully Unsubscribed"]

    def test_json_format(self, client):
        response = client.get("/api/v1/marketing/unsubscribe", params={"token": "nope", "format": "json"})

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "error"
        assert body["title"] == "Not Found"

    def test_accept_header(self, client):
        response = client.get(
            "/api/v1/marketing/unsubscribe",
            params={"email": "jane@example.com"},
            headers={"Accept": "application/json"},
        )

        assert response.json()["title"] == "Successfully Unsubscribed"
        assert response.json()["success"] is True

    def test_unexpected_error_always_redirects(self, client):
        with patch(
            "app.routers.marketing.MarketingService.unsubscribe",
            side_effect=RuntimeError("boom"),
        ):
            response = client.get(
                "/api/v1/marketing/unsubscribe",
                params={"token": "tok-123", "format": "json"},
                follow_redirects=False,
            )

        assert response.status_code == 302
        assert "status=error" in response.headers["location"]


class TestFollowUpEndpoint:
    """Test POST /api/v1/chat/follow-up."""

    OPTIONS = "Pick one:\n\n1. Review the quarterly pipeline\n2. Draft the board update"

    def _body(self, message, **extra):
        body = {
            "message": message,
            "last_assistant_message": {
                "id": "msg-1",
                "content": self.OPTIONS,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
        }
        body.update(extra)
        return body

    def test_option_selection(self, client):
        body = client.post("/api/v1/chat/follow-up", json=self._body("option 2")).json()

        assert body["is_follow_up"] is True
        assert body["confidence"] == "high"
        assert body["detection_type"] == "option_selection"
        assert body["selected_option"] == {"option_number": 2, "option_text": "Draft the board update"}
        assert body["show_suggestion"] is False
        assert body["suggestion_text"] is None
        assert body["context"]["recent_context"] == self.OPTIONS

    def test_medium_confidence_shows_suggestion(self, client):
        body = client.post(
            "/api/v1/chat/follow-up",
            json=self._body("what about that option", assistant_name="Nova"),
        ).json()

        assert body["confidence"] == "medium"
        assert body["show_suggestion"] is True
        assert body["suggestion_text"] == "Referring to Nova's last response?"

    def test_without_assistant_message(self, client):
        body = client.post("/api/v1/chat/follow-up", json={"message": "Draft a hiring plan for Q3"}).json()

        assert body["is_follow_up"] is False
        assert body["confidence"] == "none"
        assert body["context"] is None


class TestScheduledTaskEndpoint:
    """Test POST /api/v1/scheduled-tasks."""

    def test_create(self, client, fake_db, user_row, auth_user):
        fake_db.tables["users"] = [user_row]

        response = client.post(
            "/api/v1/scheduled-tasks",
            json={"title": "Daily digest", "ai_prompt": "Summarize yesterday", "frequency": "daily"},
        )

        assert response.status_code == 200
        task = response.json()["task"]
        assert task["user_id"] == USER_ID
        assert task["frequency"] == "daily"
        assert task["next_run_at"].endswith("Z")

    def test_no_team(self, client, fake_db, auth_user):
        response = client.post("/api/v1/scheduled-tasks", json={"title": "T", "ai_prompt": "P"})

        assert response.status_code == 400
        assert response.json() == {"error": "No team found", "code": "INVALID_REQUEST"}

    def test_invalid_hour(self, client, auth_user):
        response = client.post(
            "/api/v1/scheduled-tasks", json={"title": "T", "ai_prompt": "P", "schedule_hour": 24}
        )

        assert response.status_code == 422


class TestAgentModeEndpoints:
    """Test /api/v1/agent-mode."""

    def test_get(self, client, fake_db, auth_user):
        fake_db.tables["feature_flags"] = [{"flag_name": "agent_mode", "user_id": None, "enabled": True}]

        assert client.get("/api/v1/agent-mode").json() == {"is_available": True, "is_enabled": True}

    def test_put_and_toggle(self, client, fake_db, auth_user):
        fake_db.tables["feature_flags"] = [{"flag_name": "agent_mode", "user_id": None, "enabled": True}]

        with patch("core.services.agent_mode_service.publish_event"):
            off = client.put("/api/v1/agent-mode", json={"enabled": False}).json()
            on = client.post("/api/v1/agent-mode/toggle").json()

        assert off["is_enabled"] is False
        assert on["is_enabled"] is True

    def test_requires_user(self, client):
        assert client.get("/api/v1/agent-mode").status_code in (401, 403)


class TestNotificationEndpoints:
    """Test /api/v1/notifications (internal)."""

    def test_send_without_preferences(self, client, fake_db, user_row):
        fake_db.tables["users"] = [user_row]

        response = client.post(
            "/api/v1/notifications/send",
            json={"user_id": USER_ID, "event_type": "custom", "message_body": "Hello"},
            headers=SERVICE_HEADERS,
        )

        assert response.status_code == 200
        assert response.json() == {
            "success": False,
            "message": "User has no notification preferences configured",
            "channels_sent": [],
        }

    def test_send_missing_fields(self, client):
        response = client.post(
            "/api/v1/notifications/send", json={"user_id": USER_ID}, headers=SERVICE_HEADERS
        )

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_REQUEST"


class TestInsightEndpoints:
    """Test /api/v1/insights."""

    def test_feedback(self, client, fake_db, auth_user):
        fake_db.tables["assistant_proactive_insights"] = [{"id": "i-1", "user_id": USER_ID}]

        with patch("core.services.insight_service.InsightService.update_strategic_identity"):
            response = client.post(
                "/api/v1/insights/feedback",
                json={"insight_id": "i-1", "was_helpful": True},
            )

        assert response.status_code == 200
        assert response.json()["updated_insights"] == 1
        # Only sent fields are written
        assert fake_db.writes("assistant_proactive_insights", "update")[0].keys() == {
            "was_helpful", "first_viewed_at"
        }

    def test_feedback_requires_token(self, client, fake_db):
        fake_db.tables["assistant_proactive_insights"] = [{"id": "i-1", "user_id": USER_ID}]

        response = client.post(
            "/api/v1/insights/feedback",
            json={"user_id": USER_ID, "insight_id": "i-1", "was_helpful": False},
        )

        assert response.status_code in (401, 403)
        assert fake_db.writes("assistant_proactive_insights", "update") == []

    def test_feedback_for_another_user_is_rejected(self, client, fake_db, auth_user):
        fake_db.tables["assistant_proactive_insights"] = [{"id": "i-1", "user_id": USER_ID}]

        response = client.post(
            "/api/v1/insights/feedback",
            json={"user_id": "9b2d6f3e-1c4a-4f5e-8d7c-0a1b2c3d4e5f", "insight_id": "i-1", "was_helpful": False},
        )

        assert response.status_code == 403
        assert fake_db.writes("assistant_proactive_insights", "update") == []

    def test_feedback_without_target(self, client, auth_user):
        response = client.post("/api/v1/insights/feedback", json={"user_id": USER_ID})

        assert response.status_code == 400
        assert response.json()["error"] == "Must provide either insight_id or batch_id"


class TestIntegrationEndpoints:
    """Test /api/v1/integrations."""

    @pytest.fixture
    def team_user(self):
        from uuid import UUID

        from app.auth import AuthUser, get_current_user
        from app.main import app

        user = AuthUser(id=UUID(USER_ID), email="jane@example.com", team_id=TEAM_ID)
        app.dependency_overrides[get_current_user] = lambda: user
        yield user
        app.dependency_overrides.pop(get_current_user, None)

    def test_calendar_uses_team_from_token(self, client, team_user):
        events = {"events": [], "timeMin": "a", "timeMax": "b", "calendarEmail": ""}

        with patch(
            "app.routers.integrations.IntegrationService.list_calendar_events", return_value=events
        ) as mock_list:
            response = client.get("/api/v1/integrations/calendar/events?days=3")

        assert response.status_code == 200
        assert mock_list.call_args.kwargs == {"team_id": TEAM_ID, "days": 3, "max_results": 50}

    def test_drive_files_query_params(self, client, team_user):
        listing = {"files": [], "totalCount": 0, "folderId": "root-1"}

        with patch(
            "app.routers.integrations.DriveService.list_google_drive_files", return_value=listing
        ) as mock_list:
            response = client.get(
                "/api/v1/integrations/google-drive/files",
                params={"folderId": "root-1", "includeSubfolders": "false", "maxDepth": 3},
            )

        assert response.json() == {"files": [], "totalCount": 0, "folderId": "root-1"}
        assert mock_list.call_args.args == (USER_ID, "root-1")
        assert mock_list.call_args.kwargs == {
            "team_id": TEAM_ID,
            "include_subfolders": False,
            "max_depth": 3,
        }

    def test_drive_files_missing_folder(self, client, fake_db, team_user):
        response = client.get("/api/v1/integrations/google-drive/files")

        assert response.status_code == 400
        assert response.json()["error"] == "folderId is required"

    def test_microsoft_drives_without_connection(self, client, fake_db, team_user):
        response = client.get("/api/v1/integrations/microsoft/drives")

        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

    def test_requires_token(self, client):
        response = client.get("/api/v1/integrations/microsoft/drives")

        assert response.status_code in (401, 403)


class TestProviderHandlersRunInThreadpool:
    """Handlers that wait on providers or the LLM must not block the event loop."""

    @pytest.mark.parametrize("path", [
        "/api/v1/integrations/health-check",
        "/api/v1/integrations/calendar/events",
        "/api/v1/integrations/google-drive/files",
        "/api/v1/integrations/microsoft/drives",
        "/api/v1/notifications/sms",
        "/api/v1/notifications/telegram",
        "/api/v1/notifications/send",
        "/api/v1/notifications/generate",
        "/api/v1/insights/feedback",
        "/api/v1/insights/identity",
    ])
    def test_handler_is_sync(self, path):
        from app.main import app

        route = next(r for r in app.routes if getattr(r, "path", None) == path)
        assert not inspect.iscoroutinefunction(route.endpoint)


class TestMicrosoftConsentEndpoints:
    """Test /api/v1/microsoft/consent."""

    def test_store_then_check(self, client, fake_db):
        stored = client.post(
            "/api/v1/microsoft/consent/store",
            json={"tenant_id": "tenant-1", "admin_email": "it@example.com"},
        ).json()
        checked = client.post("/api/v1/microsoft/consent/check", json={"tenant_id": "tenant-1"}).json()

        assert stored["message"] == "Tenant consent recorded successfully"
        assert checked["has_consent"] is True

    def test_missing_tenant(self, client):
        response = client.post("/api/v1/microsoft/consent/check", json={})

        assert response.status_code == 400
        assert response.json()["error"] == "Missing tenant_id"
