# Overview: Tenant predicate applied to every repository statement and join.

from __future__ import annotations

from enum import Enum

from sqlalchemy import and_

from ..identity import Identity


class QueryKind(str, Enum):
    SELECT = "select"
    UPDATE = "update"
    DELETE = "delete"
    SOFT_DELETE = "soft_delete"


_EXCLUDES_DELETED = frozenset({QueryKind.SELECT, QueryKind.SOFT_DELETE})


def apply_tenant_filter(statement, model, identity: Identity | None, kind: QueryKind, *, with_deleted: bool = False):
    """
    Restrict a select/update/delete statement to the caller's organization.

    MULTI-TENANT: With an identity, ANDs `<tenant column> = identity.organization_id`
    onto the statement. The tenant column is organization_id for owned
    entities and id for Organization. An identity whose organization id is
    missing compares against NULL and therefore matches nothing.

    A None identity is a trusted internal call: the tenant predicate is
    skipped entirely. Callers must only pass None from workflows that run
    before any tenant exists (registration, login lookup, CLI).

    SELECT and SOFT_DELETE also skip rows that are already soft-deleted,
    unless `with_deleted` is set.
    """
    if identity is not None:
        statement = statement.where(model.tenant_column() == identity.organization_id)
    if kind in _EXCLUDES_DELETED and not with_deleted:
        statement = statement.where(model.deleted_at.is_(None))
    return statement


def tenant_join_criteria(model, target, identity: Identity | None, *, with_deleted: bool = False):
    """
    ON-clause criteria for joining `model` through the aliased `target`.

    The predicate lives in the join condition rather than in WHERE so that a
    LEFT join keeps parent rows that have no visible children. Returns None
    when there is nothing to add.
    """
    criteria = []
    if identity is not None:
        criteria.append(model.tenant_column(target) == identity.organization_id)
    if not with_deleted:
        criteria.append(target.deleted_at.is_(None))
    if not criteria:
        return None
    return and_(*criteria)
