from typing import List

from fastapi import APIRouter, Depends, Response

from leadflow.api.deps import (
    get_current_session,
    get_lead_repo,
    get_note_repo,
    get_sticky_note_service,
)
from leadflow.repositories.lead_repository import LeadRepository
from leadflow.repositories.sticky_note_repository import StickyNoteRepository
from leadflow.schemas.sticky_note import StickyNoteCreate, StickyNoteOut
from leadflow.services.session_service import UserSession
from leadflow.services.sticky_note_service import StickyNoteService

router = APIRouter(prefix="/sticky-notes", tags=["Sticky Notes"])


@router.get("", response_model=List[StickyNoteOut])
async def list_notes(
    session: UserSession = Depends(get_current_session),
    service: StickyNoteService = Depends(get_sticky_note_service),
    note_repo: StickyNoteRepository = Depends(get_note_repo),
) -> List[StickyNoteOut]:
    return await service.list_notes(session, note_repo)


@router.post("", response_model=StickyNoteOut, status_code=201)
async def create_note(
    body: StickyNoteCreate,
    session: UserSession = Depends(get_current_session),
    service: StickyNoteService = Depends(get_sticky_note_service),
    note_repo: StickyNoteRepository = Depends(get_note_repo),
    lead_repo: LeadRepository = Depends(get_lead_repo),
) -> StickyNoteOut:
    return await service.create_note(session, body, note_repo, lead_repo)


@router.delete("/{note_id}", status_code=204)
async def delete_note(
    note_id: int,
    session: UserSession = Depends(get_current_session),
    service: StickyNoteService = Depends(get_sticky_note_service),
    note_repo: StickyNoteRepository = Depends(get_note_repo),
) -> Response:
    await service.delete_note(session, note_id, note_repo)
    return Response(status_code=204)
