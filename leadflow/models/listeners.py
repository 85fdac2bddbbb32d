from datetime import datetime, timezone

from sqlalchemy import event, inspect
from sqlalchemy.orm import Session

from leadflow.models.lead import Lead
from leadflow.models.user import User


# Auto updated_at
@event.listens_for(Lead, "before_update")
@event.listens_for(User, "before_update")
def update_timestamp(mapper, connection, target):
    target.updated_at = datetime.now(timezone.utc)


def reset_reminder_flags_if_rescheduled(lead: Lead) -> bool:
    """Clear both reminder flags when the follow-up date has changed.

    A flag left true from the previous date would otherwise suppress the
    reminders for the new one.  Returns ``True`` if the flags were reset.
    """
    history = inspect(lead).attrs.next_follow_up_date.history
    if not history.has_changes():
        return False
    old = history.deleted[0] if history.deleted else None
    new = history.added[0] if history.added else None
    if old == new:
        return False
    lead.overdue_reminder_sent = False
    lead.upcoming_reminder_sent = False
    return True


@event.listens_for(Session, "before_flush")
def clear_stale_reminder_flags(session: Session, flush_context, instances):
    for obj in session.dirty:
        if isinstance(obj, Lead):
            reset_reminder_flags_if_rescheduled(obj)
