from leadflow.models.base import Base
from leadflow.models.user import User
from leadflow.models.lead import Lead
from leadflow.models.follow_up import FollowUpHistory
from leadflow.models.call_log import CallLog
from leadflow.models.sticky_note import StickyNote

# Import event listeners to register them
from leadflow.models import listeners  # noqa: F401

__all__ = [
    "Base",
    "User",
    "Lead",
    "FollowUpHistory",
    "CallLog",
    "StickyNote",
]
