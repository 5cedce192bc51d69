# Overview: Flask API routes for users; scoped listing and registration into the caller's organization.

from flask import Blueprint, jsonify, request

from ..errors import NotFoundError
from ..extensions import db
from ..pipeline import authenticate, get_services, guarded, require_policy
from ..policies import Policy
from ..services.concurrency import run_with_retry
from ..validation import parse_register_user
from .resources import parse_list_args


users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("")
@guarded(authenticate, require_policy(Policy.USERS_GET_MANY))
def list_users_route(identity):
    repo = get_services().repositories.users
    page = repo.get_many_with_count(identity=identity, **parse_list_args(repo))
    return jsonify({
        "items": [user.to_dict() for user in page.entities],
        "count": page.count,
    }), 200


@users_bp.get("/<int:user_id>")
@guarded(authenticate, require_policy(Policy.USERS_GET_BY_ID))
def get_user_route(identity, user_id: int):
    repo = get_services().repositories.users
    joins = repo.parse_joins(request.args.get("join", "").split(","))
    user = repo.get_one(identity=identity, where={"id": user_id}, joins=joins)
    if user is None:
        raise NotFoundError("User not found")
    return jsonify(user.to_dict()), 200


@users_bp.post("")
@guarded(authenticate, require_policy(Policy.USERS_CREATE))
def create_user_route(identity):
    """
    MULTI-TENANT: The new user always lands in the caller's organization,
    whatever organization_id the body names.
    """
    dto = parse_register_user(request.get_json(silent=True))
    user = run_with_retry(lambda: get_services().users.register_user(dto, identity), session=db.session)
    return jsonify(user.to_dict()), 201
