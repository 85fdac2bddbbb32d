"""HTTP-level tests: routing, auth, error format and status codes."""

from datetime import date, datetime, timezone
from unittest.mock import AsyncMock

import pytest

from leadflow.api import deps
from leadflow.api.v1.endpoints import reminders as reminders_endpoint
from leadflow.core.clock import FixedClock
from leadflow.core.config import settings
from leadflow.main import app
from leadflow.schemas.common import ReminderRunStatus
from leadflow.schemas.reminder import ReminderRunSummary

NOW = datetime(2025, 1, 10, 10, 0, tzinfo=timezone.utc)


def _override(dependency, value):
    async def _provide():
        return value

    app.dependency_overrides[dependency] = _provide


@pytest.fixture
def no_redis():
    _override(deps.get_redis_client, None)


@pytest.fixture
def lead_repo(make_lead) -> AsyncMock:
    repo = AsyncMock()
    repo.list = AsyncMock(
        return_value=[
            make_lead(1, follow_up=date(2025, 1, 9)),
            make_lead(2, follow_up=date(2025, 1, 14), assignee="other@leadflow.io"),
        ]
    )
    repo.get_by_id = AsyncMock(return_value=None)
    _override(deps.get_lead_repo, repo)
    _override(deps.get_activity_repo, AsyncMock())
    _override(deps.get_clock, FixedClock(NOW))
    return repo


def _login_as(session):
    _override(deps.get_current_session, session)
    _override(deps.get_optional_session, session)


class TestHealthAndCors:
    @pytest.mark.asyncio
    async def test_health_returns_ok(self, async_client):
        response = await async_client.get("/api/v1/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    @pytest.mark.asyncio
    async def test_cors_preflight(self, async_client):
        response = await async_client.options(
            "/api/v1/health",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "GET",
            },
        )
        assert response.headers.get("access-control-allow-origin") == "http://localhost:3000"


class TestAuthentication:
    @pytest.mark.asyncio
    async def test_leads_require_a_session(self, async_client, no_redis, lead_repo):
        response = await async_client.get("/api/v1/leads")

        assert response.status_code == 401
        assert response.json()["type"] == "session_invalid"
        assert response.headers["www-authenticate"] == "Bearer"

    @pytest.mark.asyncio
    async def test_unknown_bearer_token_rejected(self, async_client, no_redis, lead_repo):
        response = await async_client.get(
            "/api/v1/leads", headers={"Authorization": "Bearer stale"}
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_me_returns_session(self, async_client, employee_session):
        _login_as(employee_session)

        response = await async_client.get("/api/v1/auth/me")

        assert response.status_code == 200
        body = response.json()
        assert body["email"] == "emp@leadflow.io"
        assert body["role"] == "Employee"
        assert body["session_token"] == "employee-token"

    @pytest.mark.asyncio
    async def test_login_with_empty_token_is_a_validation_error(self, async_client, no_redis):
        response = await async_client.post("/api/v1/auth/login", json={"access_token": ""})

        assert response.status_code == 422
        assert response.json()["type"] == "validation_error"


class TestLeadEndpoints:
    @pytest.mark.asyncio
    async def test_list_includes_classification(self, async_client, admin_session, lead_repo):
        _login_as(admin_session)

        response = await async_client.get("/api/v1/leads")

        assert response.status_code == 200
        body = response.json()
        assert [lead["follow_up_classification"] for lead in body] == ["overdue", "upcoming"]
        assert body[0]["overdue_reminder_sent"] is False

    @pytest.mark.asyncio
    async def test_missing_lead_is_404(self, async_client, admin_session, lead_repo):
        _login_as(admin_session)

        response = await async_client.get("/api/v1/leads/99")

        assert response.status_code == 404
        assert response.json()["type"] == "lead_not_found"

    @pytest.mark.asyncio
    async def test_employee_cannot_patch_foreign_lead(
        self, async_client, employee_session, lead_repo, make_lead
    ):
        lead_repo.get_by_id = AsyncMock(
            return_value=make_lead(5, assignee="other@leadflow.io")
        )
        _login_as(employee_session)

        response = await async_client.patch("/api/v1/leads/5", json={"status": "Won"})

        assert response.status_code == 403
        assert response.json() == {
            "detail": "You don't have access to this lead",
            "type": "permission_denied",
        }

    @pytest.mark.asyncio
    async def test_invalid_status_is_rejected(self, async_client, admin_session, lead_repo):
        _login_as(admin_session)

        response = await async_client.patch("/api/v1/leads/1", json={"status": "Maybe"})

        assert response.status_code == 422
        assert response.json()["type"] == "validation_error"

    @pytest.mark.asyncio
    async def test_bulk_reassign_is_admin_only(
        self, async_client, employee_session, lead_repo
    ):
        _login_as(employee_session)
        _override(deps.get_user_repo, AsyncMock())

        response = await async_client.post(
            "/api/v1/leads/bulk-reassign",
            json={"lead_ids": [1], "assignee": "emp@leadflow.io"},
        )

        assert response.status_code == 403


class TestDashboard:
    @pytest.mark.asyncio
    async def test_dashboard_counts(self, async_client, admin_session, lead_repo):
        lead_repo.count_by = AsyncMock(
            side_effect=[{"New": 3, "Won": 1}, {"Medium": 4}]
        )
        lead_repo.created_per_day = AsyncMock(return_value={date(2025, 1, 10): 2})
        _login_as(admin_session)

        response = await async_client.get("/api/v1/dashboard")

        assert response.status_code == 200
        body = response.json()
        assert body["total_leads"] == 4
        assert body["conversion_rate"] == 25.0
        assert body["overdue_count"] == 1
        assert len(body["created_per_day"]) == 30
        assert body["created_per_day"][-1] == {"day": "2025-01-10", "count": 2}


class TestReminderTrigger:
    @pytest.fixture
    def fake_pass(self, monkeypatch):
        run = AsyncMock(return_value=ReminderRunSummary(reference_time=NOW))
        monkeypatch.setattr(reminders_endpoint, "run_reminder_pass", run)
        monkeypatch.setattr(settings, "REMINDER_CRON_TOKEN", "cron-secret")
        _override(deps.get_session_factory, object())
        _override(deps.get_email_sender, AsyncMock())
        _override(deps.get_optional_session, None)
        return run

    @pytest.mark.asyncio
    async def test_cron_token_runs_the_pass(self, async_client, fake_pass):
        response = await async_client.post(
            "/api/v1/reminders/run", headers={"X-Cron-Token": "cron-secret"}
        )

        assert response.status_code == 200
        assert response.json()["status"] == "success"
        fake_pass.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_wrong_cron_token(self, async_client, fake_pass):
        response = await async_client.post(
            "/api/v1/reminders/run", headers={"X-Cron-Token": "guess"}
        )

        assert response.status_code == 403
        fake_pass.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_anonymous_caller(self, async_client, fake_pass):
        response = await async_client.post("/api/v1/reminders/run")

        assert response.status_code == 401
        fake_pass.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_employee_cannot_trigger(self, async_client, fake_pass, employee_session):
        _override(deps.get_optional_session, employee_session)

        response = await async_client.post("/api/v1/reminders/run")

        assert response.status_code == 403

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status, code",
        [
            (ReminderRunStatus.success, 200),
            (ReminderRunStatus.partial_failure, 207),
            (ReminderRunStatus.failed, 500),
        ],
    )
    async def test_status_codes_follow_the_outcome(
        self, async_client, fake_pass, admin_session, status, code
    ):
        fake_pass.return_value = ReminderRunSummary(reference_time=NOW, status=status)
        _override(deps.get_optional_session, admin_session)

        response = await async_client.post("/api/v1/reminders/run")

        assert response.status_code == code
        assert response.json()["status"] == status.value
