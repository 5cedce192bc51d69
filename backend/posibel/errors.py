# Overview: Typed failures shared by the data layer, services and routes.

"""
Error taxonomy.

Every failure the core raises on purpose is a PosibelError carrying the
HTTP-equivalent status a route handler should answer with. Errors propagate
unmodified from repositories and services to the Flask error handler
registered in create_app.

A denied permission check is not an error at the decision layer: the matcher
returns False and the request pipeline converts that into NotAuthorizedError.
"""

from __future__ import annotations


class PosibelError(Exception):
    """Base class for expected, status-carrying failures."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.message}


class NotAuthenticatedError(PosibelError):
    """No valid identity could be established for an operation that requires one."""

    status_code = 401
    default_message = "Not authenticated"


class InvalidCredentialsError(PosibelError):
    """Email/password pair did not match a user."""

    status_code = 401
    default_message = "Invalid credentials"


class NotAuthorizedError(PosibelError):
    """Identity is valid but none of its permissions grant the required one."""

    status_code = 403
    default_message = "Permission denied"

    def __init__(self, required_permission: str, message: str | None = None):
        super().__init__(message)
        self.required_permission = required_permission

    def to_dict(self) -> dict:
        return {"error": self.message, "required_permission": self.required_permission}


class MalformedAuthorizationError(PosibelError):
    """
    Identity present but its role/policy linkage is broken.

    Distinct from NotAuthorizedError: this signals a data-integrity problem
    (token without role, role without policies), not a legitimate denial.
    """

    status_code = 409
    default_message = "Token not valid"


class AffectedZeroError(PosibelError):
    """
    A scoped update/delete matched no rows.

    "Does not exist" and "belongs to another tenant" deliberately collapse into
    this single outcome so callers cannot probe other tenants' ids.
    """

    status_code = 409
    default_message = "Could not modify entity"


class CrossTenantWriteError(PosibelError):
    """Insert/update payload points at a tenant other than the caller's."""

    status_code = 409
    default_message = "Cross-tenant write rejected"


class DuplicateEmailError(PosibelError):
    status_code = 409
    default_message = "Email already exists"


class ValidationError(PosibelError):
    """400-level input problem, raised before the repository layer."""

    status_code = 400
    default_message = "Invalid payload"


class NotFoundError(PosibelError):
    status_code = 404
    default_message = "Not found"
