# ecolens/errors.py
"""
Error taxonomy shared by the store, the services and the HTTP layer.

Every error carries the status code it maps to, so the handlers in
ecolens.main can render it as ``{"error": message}`` without a lookup table.
"""


class EcoLensError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInput(EcoLensError):
    status_code = 400
    default_message = "Invalid input"


class Unauthenticated(EcoLensError):
    status_code = 401
    default_message = "Access token required"


class Forbidden(EcoLensError):
    status_code = 403
    default_message = "Invalid token"


class CredentialExpired(Forbidden):
    default_message = "Token expired"


class NotFound(EcoLensError):
    status_code = 404
    default_message = "Not found"


class Conflict(EcoLensError):
    status_code = 409
    default_message = "Already exists"


class Unavailable(EcoLensError):
    status_code = 503
    default_message = "Database unavailable"


class Internal(EcoLensError):
    pass
