# Overview: Cross-tenant write guard run before every repository insert and update.

from __future__ import annotations

from flask import current_app
from sqlalchemy import inspect, select
from sqlalchemy.orm.interfaces import MANYTOONE

from ..errors import CrossTenantWriteError, MalformedAuthorizationError
from ..identity import Identity


def _label(model) -> str:
    return model.__tablename__.replace("_", " ")


def _reject(message: str, identity: Identity, model) -> None:
    current_app.logger.warning(
        "Rejected cross-tenant write on %s for organization %s: %s",
        model.__tablename__,
        identity.organization_id,
        message,
    )
    raise CrossTenantWriteError(message)


def _check_body_tenant(model, values: dict, identity: Identity, *, is_insert: bool) -> dict:
    if identity.organization_id is None:
        raise MalformedAuthorizationError()

    if model.__tenant_column__ != "organization_id":
        # Tenant root: a scoped caller may edit its own organization (the
        # update filter pins the id) but never create another one.
        if is_insert:
            _reject(f"Cannot create {_label(model)} inside a tenant scope", identity, model)
        return values

    if "organization_id" in values:
        if values["organization_id"] != identity.organization_id:
            _reject("Cannot write to another organization", identity, model)
    elif is_insert:
        values = {**values, "organization_id": identity.organization_id}
    return values


def _check_references(session, model, values: dict, identity: Identity) -> None:
    """
    Every many-to-one reference in the body must point at a live row of the
    caller's organization. Missing and foreign rows are reported the same way.
    """
    for relationship in inspect(model).relationships:
        if relationship.direction is not MANYTOONE:
            continue
        target = relationship.mapper.class_
        if target.__tenant_column__ != "organization_id":
            continue

        for column in relationship.local_columns:
            value = values.get(column.key)
            if value is None:
                continue
            found = session.execute(
                select(target.id).where(
                    target.id == value,
                    target.tenant_column() == identity.organization_id,
                    target.deleted_at.is_(None),
                )
            ).first()
            if found is None:
                _reject(f"Referenced {_label(target)} not found", identity, model)


def guard_insert(session, model, values: dict, identity: Identity | None) -> dict:
    """
    Validate and complete an insert body for the caller's tenant.

    - body organization_id differing from the caller's -> CrossTenantWriteError
    - body without organization_id -> filled with the caller's
    - foreign keys into another tenant -> CrossTenantWriteError

    A None identity (trusted call) passes the body through unchanged.
    """
    if identity is None:
        return values
    values = _check_body_tenant(model, values, identity, is_insert=True)
    _check_references(session, model, values, identity)
    return values


def guard_update(session, model, values: dict, identity: Identity | None) -> dict:
    if identity is None:
        return values
    values = _check_body_tenant(model, values, identity, is_insert=False)
    _check_references(session, model, values, identity)
    return values
