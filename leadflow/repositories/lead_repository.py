from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import and_, func, or_, select, update

from leadflow.core.constants import CLOSED_STATUSES
from leadflow.models.lead import Lead
from leadflow.repositories.base import BaseRepository


class LeadRepository(BaseRepository):
    """Encapsulates every SQL query that touches the ``leads`` table."""

    async def get_by_id(self, lead_id: int) -> Optional[Lead]:
        """Return a single lead by primary key, or ``None``."""
        result = await self._db.execute(select(Lead).where(Lead.id == lead_id))
        return result.scalar_one_or_none()

    async def list(
        self,
        assignee: Optional[str] = None,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[Lead]:
        """Return leads matching the given filters, newest first."""
        query = select(Lead)
        if assignee is not None:
            query = query.where(func.lower(Lead.assignee) == assignee.lower())
        if status is not None:
            query = query.where(Lead.status == status)
        if priority is not None:
            query = query.where(Lead.priority == priority)
        if search:
            pattern = f"%{search}%"
            query = query.where(
                or_(
                    Lead.lead_name.ilike(pattern),
                    Lead.company_name.ilike(pattern),
                    Lead.email.ilike(pattern),
                    Lead.contact_person.ilike(pattern),
                )
            )
        query = query.order_by(Lead.created_at.desc(), Lead.id.desc())
        result = await self._db.execute(query)
        return list(result.scalars().all())

    async def create(self, **kwargs: Any) -> Lead:
        """Insert a new lead and return the model instance."""
        lead = Lead(**kwargs)
        self._db.add(lead)
        await self._db.flush()
        return lead

    async def apply_changes(self, lead: Lead, changes: Dict[str, Any]) -> None:
        """Assign *changes* onto a loaded lead instance.

        Going through the ORM instance (rather than a bulk UPDATE) keeps
        the ``before_flush`` listener in the loop, which clears stale
        reminder flags when the follow-up date moves.
        """
        for field, value in changes.items():
            setattr(lead, field, value)

    async def delete(self, lead: Lead) -> None:
        await self._db.delete(lead)

    async def reassign(self, lead_ids: Sequence[int], assignee: str) -> int:
        """Set the assignee on every lead in *lead_ids*; returns rows touched."""
        result = await self._db.execute(
            update(Lead).where(Lead.id.in_(list(lead_ids))).values(assignee=assignee)
        )
        return result.rowcount or 0

    async def existing_ids(self, lead_ids: Sequence[int]) -> List[int]:
        result = await self._db.execute(
            select(Lead.id).where(Lead.id.in_(list(lead_ids)))
        )
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Reminder scans
    # ------------------------------------------------------------------

    async def find_upcoming_reminder_candidates(
        self,
        target_day: date,
        date_field: str = "next_follow_up_date",
        flag_field: str = "upcoming_reminder_sent",
        status_field: str = "status",
    ) -> List[Lead]:
        """Leads dated exactly *target_day* whose upcoming flag is unset."""
        date_col = getattr(Lead, date_field)
        query = select(Lead).where(
            and_(
                getattr(Lead, flag_field).is_(False),
                date_col == target_day,
                getattr(Lead, status_field).notin_(sorted(CLOSED_STATUSES)),
            )
        )
        result = await self._db.execute(query)
        return list(result.scalars().all())

    async def find_overdue_reminder_candidates(
        self,
        today: date,
        date_field: str = "next_follow_up_date",
        flag_field: str = "overdue_reminder_sent",
        status_field: str = "status",
    ) -> List[Lead]:
        """Leads dated strictly before *today* whose overdue flag is unset."""
        date_col = getattr(Lead, date_field)
        query = select(Lead).where(
            and_(
                getattr(Lead, flag_field).is_(False),
                date_col.is_not(None),
                date_col < today,
                getattr(Lead, status_field).notin_(sorted(CLOSED_STATUSES)),
            )
        )
        result = await self._db.execute(query)
        return list(result.scalars().all())

    async def mark_flag(
        self,
        lead_id: int,
        flag_field: str,
        follow_up_date: date,
        date_field: str = "next_follow_up_date",
    ) -> bool:
        """Set one reminder flag to true while the row still holds the
        follow-up date the reminder was sent for.

        Issued as a bulk UPDATE, which bypasses the rescheduling listener.
        Returns ``False`` when no row matched, i.e. the lead was
        rescheduled or deleted after the candidates were read.
        """
        result = await self._db.execute(
            update(Lead)
            .where(
                and_(
                    Lead.id == lead_id,
                    getattr(Lead, date_field) == follow_up_date,
                )
            )
            .values({flag_field: True})
        )
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Dashboard aggregates
    # ------------------------------------------------------------------

    async def count_by(self, column: str, assignee: Optional[str] = None) -> Dict[str, int]:
        col = getattr(Lead, column)
        query = select(col, func.count(Lead.id)).group_by(col)
        if assignee is not None:
            query = query.where(func.lower(Lead.assignee) == assignee.lower())
        rows = await self._db.execute(query)
        return {value: count for value, count in rows.all()}

    async def created_per_day(
        self, since: datetime, assignee: Optional[str] = None
    ) -> Dict[date, int]:
        day = func.date(Lead.created_at)
        query = (
            select(day.label("day"), func.count(Lead.id))
            .where(Lead.created_at >= since)
            .group_by(day)
        )
        if assignee is not None:
            query = query.where(func.lower(Lead.assignee) == assignee.lower())
        rows = await self._db.execute(query)
        return {row[0]: row[1] for row in rows.all()}
