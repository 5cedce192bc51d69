# Overview: Request pipeline for API routes; authentication and policy steps composed per route.

"""
Routes declare their guard chain explicitly:

    @shops_bp.get("")
    @guarded(authenticate, require_policy(Policy.SHOP_GET_MANY))
    def list_shops(identity): ...

Each step is a plain function taking the RequestContext. A step returns
None to continue or a Flask response to stop the chain. The handler runs
last and receives the resolved identity as its first argument.

MULTI-TENANT: The identity placed on the context (and on flask.g) is the
only source of tenant scope for the request. Handlers pass it to every
repository/service call.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import wraps

from flask import current_app, g, jsonify, request

from .errors import NotAuthorizedError
from .extensions import db
from .identity import Identity
from .policies import authorize
from .services import Services
from .services.concurrency import transaction


@dataclass
class RequestContext:
    token: str | None = None
    identity: Identity | None = None


def get_services() -> Services:
    return current_app.extensions["posibel"]


def bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    token = auth_header.split(" ", 1)[1].strip()
    return token or None


def authenticate(ctx: RequestContext):
    """
    Resolve the bearer token to an Identity.

    SECURITY: Returns 401 if the header is missing, or the token is unknown,
    revoked, expired, or idle past its timeout.
    """
    token = bearer_token()
    if token is None:
        return jsonify({"error": "Authentication required"}), 401

    with transaction(db.session):
        identity = get_services().sessions.resolve_identity(token)

    if identity is None:
        return jsonify({"error": "Invalid or expired token"}), 401

    ctx.token = token
    ctx.identity = identity
    g.identity = identity
    return None


def require_policy(policy):
    """
    Step factory: raise NotAuthorizedError (403) unless the identity grants `policy`.

    A missing identity or a malformed one raises from authorize() and is
    answered by the app error handler (401 / 409).
    """
    required = str(policy)

    def step(ctx: RequestContext):
        if authorize(required, ctx.identity):
            return None
        current_app.logger.warning(
            "Permission %s denied for user %s (organization %s) on %s %s",
            required,
            ctx.identity.user_id,
            ctx.identity.organization_id,
            request.method,
            request.path,
        )
        raise NotAuthorizedError(required)

    step.__name__ = f"require_policy_{required}"
    return step


def guarded(*steps):
    def decorator(handler):
        @wraps(handler)
        def decorated_function(*args, **kwargs):
            ctx = RequestContext()
            for step in steps:
                response = step(ctx)
                if response is not None:
                    return response
            return handler(ctx.identity, *args, **kwargs)

        return decorated_function
    return decorator
