# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
Authentication API routes

SECURITY FEATURES:
- Unknown email and wrong password answer the same 401
- Session management with opaque bearer tokens (see session_service.py)
"""

from flask import Blueprint, jsonify, request

from ..errors import ValidationError
from ..extensions import db
from ..pipeline import authenticate, bearer_token, get_services, guarded
from ..services.concurrency import transaction


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    Token must be included in the Authorization header for protected routes.
    """
    data = request.get_json(silent=True) or {}
    email = data.get("email")
    password = data.get("password")
    if not isinstance(email, str) or not isinstance(password, str) or not email or not password:
        raise ValidationError("email and password required")

    with transaction(db.session):
        result = get_services().auth.authenticate(
            email.strip().lower(),
            password,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )

    return jsonify({
        "token": result.token,
        "user_id": result.user_id,
        "organization_id": result.organization_id,
        "role_id": result.role_id,
        "expires_at": result.expires_at,
    }), 200


@auth_bp.post("/logout")
@guarded(authenticate)
def logout_route(identity):
    with transaction(db.session):
        get_services().sessions.revoke_session(bearer_token())
    return jsonify({"message": "Logged out"}), 200


@auth_bp.get("/me")
@guarded(authenticate)
def me_route(identity):
    """The resolved identity, policies included, as seen by the server."""
    return jsonify(identity.to_dict()), 200
