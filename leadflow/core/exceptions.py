class LeadFlowError(Exception):
    """Base class for all LeadFlow domain exceptions.

    Every custom exception in this module inherits from here so that a
    single ``except LeadFlowError`` clause can catch any domain error.
    """

    def __init__(self, detail: str = "An error occurred"):
        self.detail = detail
        super().__init__(detail)


class LeadNotFoundError(LeadFlowError):
    """Raised when a requested lead does not exist."""

    def __init__(self, detail: str = "Lead not found"):
        super().__init__(detail)


class UserNotFoundError(LeadFlowError):
    """Raised when a requested user account does not exist."""

    def __init__(self, detail: str = "User not found"):
        super().__init__(detail)


class StickyNoteNotFoundError(LeadFlowError):
    """Raised when a requested sticky note does not exist."""

    def __init__(self, detail: str = "Sticky note not found"):
        super().__init__(detail)


class InvalidLeadDataError(LeadFlowError):
    """Raised when lead data is invalid."""

    def __init__(self, detail: str = "Invalid lead data"):
        super().__init__(detail)


class PermissionDeniedError(LeadFlowError):
    """Raised when the acting user may not perform an operation.

    Every service call is checked against the acting session.
    """

    def __init__(self, detail: str = "You don't have access to this resource"):
        super().__init__(detail)


class SessionInvalidError(LeadFlowError):
    """Raised when a session token is missing, unknown or expired."""

    def __init__(self, detail: str = "Session expired – please log in again"):
        super().__init__(detail)


class ReminderQueryError(LeadFlowError):
    """Raised when reminder candidates cannot be read.

    This is the only failure that aborts a whole reminder pass.
    """

    def __init__(self, detail: str = "Reminder candidate query failed"):
        super().__init__(detail)


class MutationInFlightError(LeadFlowError):
    """Raised when an inline edit targets a record that is still saving."""

    def __init__(self, detail: str = "This lead is still being saved"):
        super().__init__(detail)
