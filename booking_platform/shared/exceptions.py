"""Domain errors raised by the scheduling services and mapped to HTTP responses in main.py"""


class BookingError(Exception):
    """Base class for errors returned synchronously to the caller"""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(BookingError):
    """Malformed input or a business-rule violation (bad duration, outside hours, ...)"""

    status_code = 400


class ConflictError(BookingError):
    """The requested interval overlaps an active booking"""

    status_code = 409


class NotFoundError(BookingError):
    status_code = 404


class AuthorizationError(BookingError):
    """The actor is not allowed to act on the resource"""

    status_code = 403


class ServiceUnavailableError(BookingError):
    """A required external collaborator is not configured or not reachable"""

    status_code = 503
