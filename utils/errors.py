class SocialError(Exception):
    """Base class for per-request failures reported as a structured result."""

    status_code = 400
    kind = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class Unauthenticated(SocialError):
    status_code = 401
    kind = "unauthenticated"


class PermissionDenied(SocialError):
    status_code = 403
    kind = "permission_denied"


class NotFound(SocialError):
    status_code = 404
    kind = "not_found"


class ValidationFailed(SocialError):
    status_code = 422
    kind = "validation_failed"


class Conflict(SocialError):
    status_code = 409
    kind = "conflict"


class Transient(SocialError):
    status_code = 503
    kind = "transient"
