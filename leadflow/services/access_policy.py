"""Authorization rules applied at the service boundary.

Admins may do anything.  Employees work only on leads assigned to them
and on their own sticky notes.
"""

from typing import Any, Mapping, Optional

from leadflow.core.exceptions import PermissionDeniedError
from leadflow.models.lead import Lead
from leadflow.models.sticky_note import StickyNote
from leadflow.services.session_service import UserSession


def _same_identity(left: Optional[str], right: Optional[str]) -> bool:
    if not left or not right:
        return False
    return left.strip().lower() == right.strip().lower()


def ensure_admin(session: UserSession) -> None:
    if not session.is_admin:
        raise PermissionDeniedError("Only administrators can do this")


def lead_scope(session: UserSession) -> Optional[str]:
    """Assignee filter for list queries: ``None`` means every lead."""
    return None if session.is_admin else session.email


def can_access_lead(session: UserSession, lead: Lead) -> bool:
    return session.is_admin or _same_identity(lead.assignee, session.email)


def ensure_can_access_lead(session: UserSession, lead: Lead) -> None:
    if not can_access_lead(session, lead):
        raise PermissionDeniedError("You don't have access to this lead")


def ensure_can_edit_lead(
    session: UserSession, lead: Lead, changes: Mapping[str, Any]
) -> None:
    """Admin or owning assignee; employees cannot hand a lead to someone else."""
    ensure_can_access_lead(session, lead)
    if "assignee" in changes:
        ensure_can_assign(session, changes["assignee"])


def ensure_can_assign(session: UserSession, assignee: Optional[str]) -> None:
    if session.is_admin or _same_identity(assignee, session.email):
        return
    raise PermissionDeniedError("Only administrators can reassign leads")


def ensure_owns_note(session: UserSession, note: StickyNote) -> None:
    if note.user_id != session.user_id:
        raise PermissionDeniedError("You don't have access to this note")
