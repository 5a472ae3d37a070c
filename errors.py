"""
Typed errors raised by the request lifecycle and the session gate.

Each error carries the HTTP status and a short machine-readable code; the
error handler registered in server.py renders them as
``{"error": message, "code": code}``.
"""


class ServiceError(Exception):
    status_code = 400
    code = "error"

    def __init__(self, message, code=None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code

    def to_dict(self):
        return {"error": self.message, "code": self.code}


class ValidationError(ServiceError):
    status_code = 400
    code = "validation_error"


class NotAuthenticated(ServiceError):
    status_code = 401
    code = "not_authenticated"


class Forbidden(ServiceError):
    status_code = 403
    code = "forbidden"


class NotFound(ServiceError):
    status_code = 404
    code = "not_found"


class ProfileNotFound(NotFound):
    """A valid session whose user record no longer exists."""
    code = "profile_not_found"


class Conflict(ServiceError):
    status_code = 409
    code = "conflict"


class InvalidTransition(Conflict):
    code = "invalid_transition"

    def __init__(self, current, requested):
        super().__init__(
            "Cannot move request from '{}' to '{}'".format(current, requested)
        )
        self.current = current
        self.requested = requested
