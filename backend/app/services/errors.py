"""Domain errors raised by the service layer.

Each carries the HTTP status the API maps it to, so routers never need to
translate them one by one.
"""


class ServiceError(Exception):
    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ValidationFailed(ServiceError):
    status_code = 400


class NotAuthenticated(ServiceError):
    status_code = 401


class AccessDenied(ServiceError):
    status_code = 403


class NotFound(ServiceError):
    status_code = 404


class StaleStatus(ServiceError):
    """The order moved on since the caller last read it."""

    status_code = 409


class Conflict(ServiceError):
    status_code = 409


class InvalidTransition(ServiceError):
    status_code = 422
