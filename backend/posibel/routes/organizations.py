# Overview: Flask API routes for organizations; public registration and scoped lookup.

from flask import Blueprint, jsonify, request

from ..errors import NotFoundError
from ..extensions import db
from ..pipeline import authenticate, get_services, guarded, require_policy
from ..policies import Policy
from ..services.concurrency import run_with_retry
from ..validation import parse_register_organization


organizations_bp = Blueprint("organizations", __name__, url_prefix="/api/organizations")


@organizations_bp.post("/register")
def register_organization_route():
    """
    Public onboarding: creates the organization, its admin role and the
    first user in one transaction.
    """
    dto = parse_register_organization(request.get_json(silent=True))
    organization = run_with_retry(
        lambda: get_services().organizations.register_organization(dto), session=db.session
    )
    return jsonify(organization.to_dict()), 201


@organizations_bp.get("/<int:organization_id>")
@guarded(authenticate, require_policy(Policy.ORGANIZATION_GET_BY_ID))
def get_organization_route(identity, organization_id: int):
    repo = get_services().repositories.organizations
    joins = repo.parse_joins(request.args.get("join", "").split(","))
    organization = repo.get_one(identity=identity, where={"id": organization_id}, joins=joins)
    if organization is None:
        raise NotFoundError("Organization not found")
    return jsonify(organization.to_dict()), 200
