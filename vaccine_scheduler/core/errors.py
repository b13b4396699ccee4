"""Error taxonomy shared by the services, the command shell and the HTTP API.

Every business-rule failure is a ``SchedulerError`` subclass carrying a
one-line, user-facing message. The command boundary prints that message and
keeps the session alive; the HTTP layer maps ``status_code`` onto the
response.
"""


class SchedulerError(Exception):
    status_code = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class InvalidArgument(SchedulerError):
    """Malformed command, date or number."""


class NotFound(SchedulerError):
    status_code = 404


class DuplicateKey(SchedulerError):
    status_code = 409


class InsufficientStock(SchedulerError):
    status_code = 409

    def __init__(self, vaccine_name: str, message: str = None):
        self.vaccine_name = vaccine_name
        super().__init__(message or f"Not enough available doses of {vaccine_name}!")


class NoAvailability(SchedulerError):
    status_code = 409

    def __init__(self, date, message: str = None):
        self.date = date
        super().__init__(message or f"No caregiver is available on {date}!")


class AuthFailure(SchedulerError):
    status_code = 401


class PermissionDenied(AuthFailure):
    """A session exists but holds the wrong role for the operation."""
    status_code = 403


class StorageUnavailable(SchedulerError):
    status_code = 503

    def __init__(self, message: str = "Storage unavailable, please try again later."):
        super().__init__(message)


class ReservationFailed(SchedulerError):
    status_code = 409

    def __init__(self, message: str = "Reservation could not be completed, please try again."):
        super().__init__(message)


class OperationUnavailable(SchedulerError):
    status_code = 501
