"""
Authorization error taxonomy.

Every failure the authorization core raises is an ``AuthzError`` subclass
carrying the HTTP status it maps to. Route handlers never catch these; the
single exception handler registered in ``practice_authz.main`` translates
them into responses.
"""


class AuthzError(Exception):
    """Base class for all authorization-core failures."""

    status_code: int = 500
    default_message: str = "Authorization failure"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthorized(AuthzError):
    status_code = 401
    default_message = "Unauthorized"


class AdminRequired(AuthzError):
    status_code = 403
    default_message = "Admin access required"


class PermissionDenied(AuthzError):
    status_code = 403

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Permission denied: {key}")


class CaseAccessDenied(AuthzError):
    status_code = 403
    default_message = "Access denied"


class SignupDisabled(AuthzError):
    status_code = 403
    default_message = "Signup is disabled. Please contact an administrator."


class NotFound(AuthzError):
    status_code = 404

    def __init__(self, kind: str, identifier: str):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind.capitalize()} {identifier} not found")


class DuplicateName(AuthzError):
    status_code = 409

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Group name already exists: {name}")


class DuplicateEmail(AuthzError):
    status_code = 409

    def __init__(self, email: str):
        self.email = email
        super().__init__("Email already in use")


class SelfDemotion(AuthzError):
    status_code = 400
    default_message = "Cannot change your own admin role"


class SeedFailure(AuthzError):
    """Bootstrap seeding failed; ``cause`` holds the underlying exception."""

    status_code = 500

    def __init__(self, cause: BaseException):
        self.cause = cause
        super().__init__(f"Seeding failed: {type(cause).__name__}: {cause}")
