"""Domain errors raised by the booking and payment managers.

Each error carries the HTTP status it maps to; ``app.main`` installs the
handlers that turn them into the JSON envelope.
"""


class BookingError(Exception):
    status_code = 500
    default_message = "Request failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(BookingError):
    status_code = 400
    default_message = "Invalid request"


class InvalidStatusError(ValidationError):
    default_message = "Invalid status"


class NotFoundError(BookingError):
    status_code = 404
    default_message = "Not found"


class ConflictError(BookingError):
    status_code = 409
    default_message = "Conflict"


class InvalidTransitionError(ConflictError):
    default_message = "Status transition not allowed"


class UpstreamError(BookingError):
    status_code = 502
    default_message = "Upstream service failed"


class PersistenceError(BookingError):
    status_code = 500
    default_message = "Database error"
