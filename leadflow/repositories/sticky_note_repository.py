from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy import and_, select, update
from sqlalchemy.orm import selectinload

from leadflow.models.sticky_note import StickyNote
from leadflow.repositories.base import BaseRepository


class StickyNoteRepository(BaseRepository):
    """Encapsulates queries against the ``sticky_notes`` table."""

    async def get_by_id(self, note_id: int) -> Optional[StickyNote]:
        result = await self._db.execute(
            select(StickyNote).where(StickyNote.id == note_id)
        )
        return result.scalar_one_or_none()

    async def list_for_user(self, user_id: int) -> List[StickyNote]:
        result = await self._db.execute(
            select(StickyNote)
            .where(StickyNote.user_id == user_id)
            .order_by(StickyNote.created_at.desc())
        )
        return list(result.scalars().all())

    async def create(self, **kwargs: Any) -> StickyNote:
        note = StickyNote(**kwargs)
        self._db.add(note)
        await self._db.flush()
        return note

    async def delete(self, note: StickyNote) -> None:
        await self._db.delete(note)

    async def find_due_reminders(self, now: datetime) -> List[StickyNote]:
        """Unsent notes whose reminder time is at or before *now*."""
        result = await self._db.execute(
            select(StickyNote)
            .options(selectinload(StickyNote.lead), selectinload(StickyNote.owner))
            .where(
                and_(
                    StickyNote.is_reminder_sent.is_(False),
                    StickyNote.reminder_at <= now,
                )
            )
        )
        return list(result.scalars().all())

    async def mark_sent(self, note_id: int) -> None:
        await self._db.execute(
            update(StickyNote)
            .where(StickyNote.id == note_id)
            .values(is_reminder_sent=True)
        )
