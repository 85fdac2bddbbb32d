from typing import Dict, FrozenSet, Tuple

LEAD_STATUSES: Tuple[str, ...] = (
    "New",
    "Contacted",
    "Qualified",
    "Proposal",
    "Negotiation",
    "Won",
    "Lost",
)

# Closed leads never count as overdue or due today
CLOSED_STATUSES: FrozenSet[str] = frozenset({"Won", "Lost"})

# Active statuses (not closed)
ACTIVE_STATUSES: FrozenSet[str] = frozenset(LEAD_STATUSES) - CLOSED_STATUSES

LEAD_PRIORITIES: Tuple[str, ...] = ("Low", "Medium", "High", "Urgent")

USER_ROLES: FrozenSet[str] = frozenset({"Admin", "Employee"})
USER_STATUSES: FrozenSet[str] = frozenset({"active", "inactive"})

# Fields an inline (optimistic) edit may touch
INLINE_EDITABLE_FIELDS: FrozenSet[str] = frozenset(
    {"status", "priority", "assignee", "next_follow_up_date"}
)

# Window for the "leads created per day" dashboard chart
DASHBOARD_TREND_DAYS: int = 30

STATUS_CHECK_CLAUSE: str = (
    f"status IN ({', '.join(repr(s) for s in LEAD_STATUSES)})"
)
PRIORITY_CHECK_CLAUSE: str = (
    f"priority IN ({', '.join(repr(p) for p in LEAD_PRIORITIES)})"
)

# User-facing messages for failed inline edits, keyed by failure kind
MUTATION_FAILURE_MESSAGES: Dict[str, str] = {
    "permission_denied": "You don't have access to this lead",
    "session_expired": "Session expired – please log in again",
    "network_unreachable": "Network error – please check your connection",
    "validation_violation": "Invalid data – please check your input",
    "unknown": "Something went wrong. Please try again.",
}
