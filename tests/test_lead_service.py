"""Tests for lead CRUD, scoping and bulk reassignment."""

from datetime import date
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from leadflow.core.exceptions import (
    InvalidLeadDataError,
    LeadNotFoundError,
    PermissionDeniedError,
    UserNotFoundError,
)
from leadflow.schemas.common import FollowUpClassification, LeadStatus
from leadflow.schemas.lead import BulkReassignRequest, LeadCreate, LeadFilters, LeadUpdate
from leadflow.services.follow_up_classifier import get_zone
from leadflow.services.lead_service import LeadService


@pytest.fixture
def service(clock) -> LeadService:
    return LeadService(clock=clock, tz=get_zone("UTC"))


def _lead_repo(leads=(), by_id=None) -> AsyncMock:
    repo = AsyncMock()
    repo.list = AsyncMock(return_value=list(leads))
    repo.get_by_id = AsyncMock(return_value=by_id)
    repo.commit = AsyncMock()
    repo.refresh = AsyncMock()

    async def _apply(lead, changes):
        for key, value in changes.items():
            setattr(lead, key, value)

    repo.apply_changes = AsyncMock(side_effect=_apply)
    return repo


class TestListLeads:
    @pytest.mark.asyncio
    async def test_employee_list_is_scoped_to_self(self, service, employee_session, make_lead):
        repo = _lead_repo([make_lead(1)])

        await service.list_leads(employee_session, LeadFilters(), repo)

        assert repo.list.await_args.kwargs["assignee"] == "emp@leadflow.io"

    @pytest.mark.asyncio
    async def test_employee_asking_for_other_assignee_gets_nothing(
        self, service, employee_session
    ):
        repo = _lead_repo()

        result = await service.list_leads(
            employee_session, LeadFilters(assignee="other@leadflow.io"), repo
        )

        assert result == []
        repo.list.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_results_carry_classification(self, service, admin_session, make_lead):
        repo = _lead_repo(
            [
                make_lead(1, follow_up=date(2025, 1, 9)),
                make_lead(2, follow_up=date(2025, 1, 10)),
                make_lead(3, follow_up=date(2025, 1, 9), status="Won"),
            ]
        )

        result = await service.list_leads(admin_session, LeadFilters(), repo)

        assert [lead.follow_up_classification for lead in result] == [
            FollowUpClassification.overdue,
            FollowUpClassification.due_today,
            FollowUpClassification.none,
        ]

    @pytest.mark.asyncio
    async def test_follow_up_filter(self, service, admin_session, make_lead):
        repo = _lead_repo(
            [make_lead(1, follow_up=date(2025, 1, 9)), make_lead(2, follow_up=date(2025, 1, 20))]
        )

        result = await service.list_leads(
            admin_session, LeadFilters(follow_up=FollowUpClassification.overdue), repo
        )

        assert [lead.id for lead in result] == [1]


class TestCreateLead:
    @pytest.mark.asyncio
    async def test_employee_lead_defaults_to_self(self, service, employee_session, make_lead):
        repo = _lead_repo()
        repo.create = AsyncMock(return_value=make_lead(10))

        await service.create_lead(
            employee_session, LeadCreate(lead_name="Jane", company_name="Acme"), repo
        )

        assert repo.create.await_args.kwargs["assignee"] == "emp@leadflow.io"
        assert repo.create.await_args.kwargs["status"] == "New"
        repo.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_employee_cannot_create_for_someone_else(self, service, employee_session):
        repo = _lead_repo()
        repo.create = AsyncMock()

        with pytest.raises(PermissionDeniedError):
            await service.create_lead(
                employee_session,
                LeadCreate(lead_name="Jane", company_name="Acme", assignee="x@leadflow.io"),
                repo,
            )
        repo.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_past_follow_up_rejected(self, service, admin_session):
        repo = _lead_repo()
        repo.create = AsyncMock()

        with pytest.raises(InvalidLeadDataError):
            await service.create_lead(
                admin_session,
                LeadCreate(
                    lead_name="Jane", company_name="Acme", next_follow_up_date=date(2025, 1, 9)
                ),
                repo,
            )


class TestUpdateLead:
    @pytest.mark.asyncio
    async def test_update_records_history(self, service, employee_session, make_lead):
        lead = make_lead(1, follow_up=date(2025, 1, 12))
        repo = _lead_repo(by_id=lead)
        activity = AsyncMock()

        out = await service.update_lead(
            employee_session, 1, LeadUpdate(status=LeadStatus.contacted), repo, activity
        )

        assert out.status is LeadStatus.contacted
        repo.apply_changes.assert_awaited_once_with(lead, {"status": "Contacted"})
        activity.create_follow_up.assert_awaited_once()
        assert activity.create_follow_up.await_args.kwargs["status"] == "Contacted"

    @pytest.mark.asyncio
    async def test_unchanged_past_date_is_allowed(self, service, admin_session, make_lead):
        lead = make_lead(1, follow_up=date(2025, 1, 5))
        repo = _lead_repo(by_id=lead)

        await service.update_lead(
            admin_session,
            1,
            LeadUpdate(next_follow_up_date=date(2025, 1, 5), priority="High"),
            repo,
            AsyncMock(),
        )

        repo.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_new_past_date_rejected(self, service, admin_session, make_lead):
        repo = _lead_repo(by_id=make_lead(1, follow_up=date(2025, 1, 12)))

        with pytest.raises(InvalidLeadDataError):
            await service.update_lead(
                admin_session, 1, LeadUpdate(next_follow_up_date=date(2025, 1, 1)), repo,
                AsyncMock(),
            )

    @pytest.mark.asyncio
    async def test_required_field_cannot_be_nulled(self, service, admin_session, make_lead):
        repo = _lead_repo(by_id=make_lead(1))

        with pytest.raises(InvalidLeadDataError):
            await service.update_lead(
                admin_session, 1, LeadUpdate(lead_name=None), repo, AsyncMock()
            )

    @pytest.mark.asyncio
    async def test_employee_cannot_edit_foreign_lead(self, service, employee_session, make_lead):
        repo = _lead_repo(by_id=make_lead(1, assignee="other@leadflow.io"))

        with pytest.raises(PermissionDeniedError):
            await service.update_lead(
                employee_session, 1, LeadUpdate(status="Won"), repo, AsyncMock()
            )
        repo.apply_changes.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_lead(self, service, admin_session):
        with pytest.raises(LeadNotFoundError):
            await service.update_lead(
                admin_session, 99, LeadUpdate(status="Won"), _lead_repo(), AsyncMock()
            )


class TestDeleteAndReassign:
    @pytest.mark.asyncio
    async def test_only_admin_deletes(self, service, employee_session):
        with pytest.raises(PermissionDeniedError):
            await service.delete_lead(employee_session, 1, _lead_repo())

    @pytest.mark.asyncio
    async def test_bulk_reassign(self, service, admin_session):
        lead_repo = _lead_repo()
        lead_repo.existing_ids = AsyncMock(return_value=[1, 2])
        lead_repo.reassign = AsyncMock(return_value=2)
        user_repo = AsyncMock()
        user_repo.get_by_email = AsyncMock(
            return_value=SimpleNamespace(email="emp@leadflow.io", status="active")
        )

        count = await service.bulk_reassign(
            admin_session,
            BulkReassignRequest(lead_ids=[2, 1, 2], assignee="emp@leadflow.io"),
            lead_repo,
            user_repo,
        )

        assert count == 2
        lead_repo.reassign.assert_awaited_once_with([1, 2], "emp@leadflow.io")

    @pytest.mark.asyncio
    async def test_bulk_reassign_unknown_user(self, service, admin_session):
        user_repo = AsyncMock()
        user_repo.get_by_email = AsyncMock(return_value=None)

        with pytest.raises(UserNotFoundError):
            await service.bulk_reassign(
                admin_session,
                BulkReassignRequest(lead_ids=[1], assignee="ghost@leadflow.io"),
                _lead_repo(),
                user_repo,
            )

    @pytest.mark.asyncio
    async def test_bulk_reassign_missing_leads(self, service, admin_session):
        lead_repo = _lead_repo()
        lead_repo.existing_ids = AsyncMock(return_value=[1])
        user_repo = AsyncMock()
        user_repo.get_by_email = AsyncMock(
            return_value=SimpleNamespace(email="emp@leadflow.io", status="active")
        )

        with pytest.raises(LeadNotFoundError):
            await service.bulk_reassign(
                admin_session,
                BulkReassignRequest(lead_ids=[1, 2], assignee="emp@leadflow.io"),
                lead_repo,
                user_repo,
            )
