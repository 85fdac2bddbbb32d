from datetime import timezone
from typing import List

from leadflow.core.exceptions import LeadNotFoundError, StickyNoteNotFoundError
from leadflow.repositories.lead_repository import LeadRepository
from leadflow.repositories.sticky_note_repository import StickyNoteRepository
from leadflow.schemas.sticky_note import StickyNoteCreate, StickyNoteOut
from leadflow.services import access_policy
from leadflow.services.session_service import UserSession


class StickyNoteService:
    """Personal reminders owned by the acting user."""

    async def list_notes(
        self, session: UserSession, note_repo: StickyNoteRepository
    ) -> List[StickyNoteOut]:
        notes = await note_repo.list_for_user(session.user_id)
        return [StickyNoteOut.model_validate(note) for note in notes]

    async def create_note(
        self,
        session: UserSession,
        data: StickyNoteCreate,
        note_repo: StickyNoteRepository,
        lead_repo: LeadRepository,
    ) -> StickyNoteOut:
        if data.lead_id is not None:
            lead = await lead_repo.get_by_id(data.lead_id)
            if lead is None:
                raise LeadNotFoundError(f"Lead {data.lead_id} not found")
            access_policy.ensure_can_access_lead(session, lead)

        reminder_at = data.reminder_at
        if reminder_at.tzinfo is None:
            reminder_at = reminder_at.replace(tzinfo=timezone.utc)

        note = await note_repo.create(
            content=data.content.strip(),
            reminder_at=reminder_at,
            lead_id=data.lead_id,
            user_id=session.user_id,
            email=session.email,
            color=data.color,
            is_reminder_sent=False,
        )
        await note_repo.commit()
        await note_repo.refresh(note)
        return StickyNoteOut.model_validate(note)

    async def delete_note(
        self, session: UserSession, note_id: int, note_repo: StickyNoteRepository
    ) -> None:
        note = await note_repo.get_by_id(note_id)
        if note is None:
            raise StickyNoteNotFoundError(f"Sticky note {note_id} not found")
        access_policy.ensure_owns_note(session, note)
        await note_repo.delete(note)
        await note_repo.commit()
