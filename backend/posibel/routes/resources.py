# Overview: Flask API routes for tenant-owned resources; generic list/get/create/update/delete.

"""
One blueprint per entity, built from the same factory.

Every handler receives the caller's Identity from the pipeline and passes
it to the repository, which scopes the statement to that tenant. A row of
another tenant is indistinguishable from a missing row: reads answer 404,
writes answer 409 (affected zero).

Query parameters for list endpoints:
- limit / offset (limit capped at MAX_PAGE_SIZE)
- join: comma-separated relation names (e.g. ?join=sales,stockLevels)
- order_by / direction (asc|desc)
- any declared filter field; "null" means IS NULL, commas mean IN
"""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import Orderline, Product, ProductGroup, Role, Sale, Shop, StockLevel, Transaction
from ..pipeline import authenticate, get_services, guarded, require_policy
from ..policies import Policy, PolicyGroup
from ..repositories import Direction, EntityRepository, Order
from ..services.concurrency import transaction
from ..validation import validate_resource

_RESERVED_ARGS = frozenset({"limit", "offset", "join", "order_by", "direction", "soft"})


def _int_arg(name: str, default: int | None) -> int | None:
    raw = request.args.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValidationError(f"{name} must be an integer") from None
    if value < 0:
        raise ValidationError(f"{name} must be >= 0")
    return value


def _filter_value(column, raw: str):
    if raw == "null":
        return None
    values = [part.strip() for part in raw.split(",")]
    if column.type.python_type is int:
        try:
            values = [int(value) for value in values]
        except ValueError:
            raise ValidationError(f"{column.key} must be an integer") from None
    return values if len(values) > 1 else values[0]


def parse_list_args(repository: EntityRepository) -> dict:
    """Translate the query string into repository keyword arguments."""
    config = current_app.config
    limit = _int_arg("limit", config["DEFAULT_PAGE_SIZE"])
    limit = min(limit, config["MAX_PAGE_SIZE"])

    where = {}
    columns = repository.model.__table__.columns
    for key, raw in request.args.items():
        if key in _RESERVED_ARGS:
            continue
        if key not in repository.WHERE_FIELDS:
            raise ValidationError(f"Cannot filter by '{key}'")
        where[key] = _filter_value(columns[key], raw)

    order = []
    order_by = request.args.get("order_by")
    if order_by:
        try:
            direction = Direction(request.args.get("direction", "asc").lower())
        except ValueError:
            raise ValidationError("direction must be 'asc' or 'desc'") from None
        order.append(Order(order_by, direction))

    return {
        "where": where,
        "joins": repository.parse_joins(request.args.get("join", "").split(",")),
        "order": order,
        "limit": limit,
        "offset": _int_arg("offset", 0),
    }


def _policy(group: str, action: str) -> Policy:
    return Policy(f"{group}.{action}")


def make_resource_blueprint(name: str, url_prefix: str, model, repository_attr: str, group: str) -> Blueprint:
    bp = Blueprint(name, __name__, url_prefix=url_prefix)

    def repository() -> EntityRepository:
        return getattr(get_services().repositories, repository_attr)

    @bp.get("")
    @guarded(authenticate, require_policy(_policy(group, "getMany")))
    def list_resources(identity):
        repo = repository()
        page = repo.get_many_with_count(identity=identity, **parse_list_args(repo))
        return jsonify({
            "items": [entity.to_dict() for entity in page.entities],
            "count": page.count,
        }), 200

    @bp.get("/<int:entity_id>")
    @guarded(authenticate, require_policy(_policy(group, "getById")))
    def get_resource(identity, entity_id: int):
        repo = repository()
        joins = repo.parse_joins(request.args.get("join", "").split(","))
        entity = repo.get_one(identity=identity, where={"id": entity_id}, joins=joins)
        if entity is None:
            raise NotFoundError(f"{repo.entity_name.capitalize()} not found")
        return jsonify(entity.to_dict()), 200

    @bp.post("")
    @guarded(authenticate, require_policy(_policy(group, "create")))
    def create_resource(identity):
        patch = validate_resource(model, request.get_json(silent=True), partial=False)
        with transaction(db.session):
            entity = repository().insert_one(entity=patch, identity=identity)
            data = entity.to_dict()
        return jsonify(data), 201

    @bp.patch("/<int:entity_id>")
    @guarded(authenticate, require_policy(_policy(group, "update")))
    def update_resource(identity, entity_id: int):
        patch = validate_resource(model, request.get_json(silent=True), partial=True)
        with transaction(db.session):
            entity = repository().update_one(id=entity_id, values=patch, identity=identity)
            data = entity.to_dict()
        return jsonify(data), 200

    @bp.delete("/<int:entity_id>")
    @guarded(authenticate, require_policy(_policy(group, "delete")))
    def delete_resource(identity, entity_id: int):
        soft = request.args.get("soft", "").lower() in ("1", "true", "yes")
        with transaction(db.session):
            repo = repository()
            if soft:
                entity = repo.soft_delete_one(id=entity_id, identity=identity)
            else:
                entity = repo.delete_one(id=entity_id, identity=identity)
            data = entity.to_dict() if entity is not None else {"id": entity_id}
        return jsonify(data), 200

    return bp


RESOURCES = [
    ("shops", "/api/shops", Shop, "shops", PolicyGroup.SHOP),
    ("roles", "/api/roles", Role, "roles", PolicyGroup.ROLE),
    ("product_groups", "/api/product-groups", ProductGroup, "product_groups", PolicyGroup.PRODUCT_GROUP),
    ("products", "/api/products", Product, "products", PolicyGroup.PRODUCT),
    ("stock_levels", "/api/stock-levels", StockLevel, "stock_levels", PolicyGroup.STOCK_LEVEL),
    ("sales", "/api/sales", Sale, "sales", PolicyGroup.SALE),
    ("orderlines", "/api/orderlines", Orderline, "orderlines", PolicyGroup.ORDERLINE),
    ("transactions", "/api/transactions", Transaction, "transactions", PolicyGroup.TRANSACTION),
]


def resource_blueprints() -> list[Blueprint]:
    return [make_resource_blueprint(*resource) for resource in RESOURCES]
