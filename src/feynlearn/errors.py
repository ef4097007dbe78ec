"""Error taxonomy shared by the progression core and the HTTP layer."""


class FeynLearnError(Exception):
    """Base class for errors that map to a structured API response."""

    code = "error"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class PreconditionError(FeynLearnError):
    """Input rejected before any state was touched."""

    code = "precondition_failed"
    status_code = 400


class NotFoundError(FeynLearnError):
    """Unknown profile, session or notification for the requesting user."""

    code = "not_found"
    status_code = 404


class InvalidStateTransition(FeynLearnError):
    """Transition attempted from a terminal session state."""

    code = "invalid_state_transition"
    status_code = 409

    def __init__(self, session_id: str, status: str, action: str):
        super().__init__(f"Cannot {action} session {session_id}: status is {status}")
        self.session_id = session_id
        self.status = status
        self.action = action


class UpstreamError(FeynLearnError):
    """The LLM or the document store failed and there is no local fallback."""

    code = "upstream_failure"
    status_code = 502
