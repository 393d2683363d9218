"""Domain errors raised by the pinboard services.

Each error carries the HTTP status the API reports for it; the handlers in
``main`` turn them into ``{"error": message}`` responses.
"""

ACCOUNT_SUSPENDED_MESSAGE = (
    "uh-oh.. looks like you have been suspended, "
    "if you believe this is an error contact us @ support@beavr.net"
)


class PinboardError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500
    default_message = "Unexpected server error."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInput(PinboardError):
    status_code = 400
    default_message = "Invalid input."


class Unauthenticated(PinboardError):
    status_code = 401
    default_message = "Authentication required."


class Forbidden(PinboardError):
    status_code = 403
    default_message = "You are not allowed to do that."


class AccountSuspended(Forbidden):
    default_message = ACCOUNT_SUSPENDED_MESSAGE


class NotFound(PinboardError):
    status_code = 404
    default_message = "Not found."


class PinNotFound(NotFound):
    default_message = "Pin not found."


class Conflict(PinboardError):
    status_code = 409
    default_message = "Conflict."


class SlotOccupied(Conflict):
    default_message = "That slot already has a pin."


class Unavailable(PinboardError):
    """Push provider unreachable. Logged by the dispatcher, never raised to callers."""

    status_code = 503
    default_message = "Push provider unavailable."
