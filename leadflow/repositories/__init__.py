"""Repository layer – all database access goes through here.

Repositories encapsulate SQLAlchemy queries so that the service layer
only contains business logic.
"""

from leadflow.repositories.lead_repository import LeadRepository
from leadflow.repositories.user_repository import UserRepository
from leadflow.repositories.activity_repository import ActivityRepository
from leadflow.repositories.sticky_note_repository import StickyNoteRepository

__all__ = [
    "LeadRepository",
    "UserRepository",
    "ActivityRepository",
    "StickyNoteRepository",
]
