# Overview: Generic identity-scoped repository shared by every entity.

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable, NamedTuple

from flask import current_app
from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import aliased, contains_eager

from ..errors import AffectedZeroError, ValidationError
from ..identity import Identity
from ..time_utils import utcnow
from .guard import guard_insert, guard_update
from .tenant_filter import QueryKind, apply_tenant_filter, tenant_join_criteria


class JoinType(str, Enum):
    LEFT = "left"
    INNER = "inner"


class Direction(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class RelationConfig:
    attribute: str
    alias: str


@dataclass(frozen=True)
class Join:
    relation: Enum | str
    type: JoinType = JoinType.LEFT


@dataclass(frozen=True)
class Order:
    order_by: str
    direction: Direction = Direction.ASC


class Page(NamedTuple):
    entities: list
    count: int


Extension = Callable[[Any], Any]

# Owned by the repository; client values are dropped.
PROTECTED_FIELDS = frozenset({"id", "created_at", "updated_at", "deleted_at"})


class EntityRepository:
    """
    CRUD over one model, scoped by the caller's Identity.

    MULTI-TENANT: Every statement built here goes through apply_tenant_filter,
    and every joined relation carries the same predicate in its ON clause.
    Passing identity=None is a trusted internal call and skips the tenant
    predicate (soft-deleted rows stay hidden either way).

    Subclasses declare:
    - model: the mapped class
    - entity_name: used in error messages ("Could not update shop")
    - Relation: str Enum of joinable relation names
    - RELATION_CONFIG: Relation -> RelationConfig(attribute, alias)
    - WHERE_FIELDS: the only keys accepted in `where`

    Reads use two statements: one selecting the matching ids (and, for paged
    reads, a window-function total over the same filtered set), then one
    loading those ids with their joined relations. Paging therefore counts
    parents, never joined child rows.

    Writes are flushed, not committed; callers own the transaction.
    """

    model = None
    entity_name = "entity"
    Relation: type[Enum] | None = None
    RELATION_CONFIG: dict = {}
    WHERE_FIELDS: frozenset = frozenset({"id"})

    def __init__(self, session):
        self.session = session

    # ------------------------------------------------------------------
    # Statement building
    # ------------------------------------------------------------------

    def load_options(self) -> list:
        """Loader options applied whenever entities are materialized."""
        return []

    def _where_clauses(self, where: dict | None) -> list:
        clauses = []
        for key, value in (where or {}).items():
            if key not in self.WHERE_FIELDS:
                raise ValidationError(f"Cannot filter {self.entity_name} by '{key}'")
            column = getattr(self.model, key)
            if value is None:
                clauses.append(column.is_(None))
            elif isinstance(value, (list, tuple, set, frozenset)):
                clauses.append(column.in_(list(value)))
            else:
                clauses.append(column == value)
        return clauses

    def _order_clauses(self, order: Iterable[Order] | None) -> list:
        clauses = []
        for item in order or ():
            if item.order_by not in self.model.__table__.columns:
                raise ValidationError(f"Cannot order {self.entity_name} by '{item.order_by}'")
            column = getattr(self.model, item.order_by)
            clauses.append(column.desc() if item.direction == Direction.DESC else column.asc())
        return clauses

    def _relation(self, name):
        try:
            return self.Relation(name)
        except ValueError:
            raise ValidationError(f"Unknown relation '{name}' for {self.entity_name}") from None

    def _resolve_join(self, join: Join, identity: Identity | None, with_deleted: bool):
        config = self.RELATION_CONFIG[self._relation(join.relation)]

        attribute = getattr(self.model, config.attribute)
        target_model = attribute.property.mapper.class_
        target = aliased(target_model, name=config.alias)
        path = attribute.of_type(target)

        criteria = tenant_join_criteria(target_model, target, identity, with_deleted=with_deleted)
        onclause = path.and_(criteria) if criteria is not None else path
        return onclause, path

    def _apply_joins(self, statement, joins, identity, with_deleted: bool, *, eager: bool):
        # Each relation has one alias; a repeated relation is joined once.
        seen = set()
        for join in joins or ():
            relation = self._relation(join.relation)
            if relation in seen:
                continue
            seen.add(relation)
            onclause, path = self._resolve_join(join, identity, with_deleted)
            statement = statement.join(onclause, isouter=join.type == JoinType.LEFT)
            if eager:
                statement = statement.options(contains_eager(path))
        return statement

    def _id_statement(self, identity, where, joins, order, extensions, with_deleted: bool):
        statement = select(self.model.id)
        statement = self._apply_joins(statement, joins, identity, with_deleted, eager=False)

        clauses = self._where_clauses(where)
        if clauses:
            statement = statement.where(*clauses)
        statement = apply_tenant_filter(
            statement, self.model, identity, QueryKind.SELECT, with_deleted=with_deleted
        )
        for extension in extensions or ():
            statement = extension(statement)

        # Joined children must not multiply parents.
        statement = statement.group_by(self.model.id)
        order_clauses = self._order_clauses(order)
        if order_clauses:
            statement = statement.order_by(*order_clauses)
        return statement

    def _load(self, ids: list, identity, joins, with_deleted: bool) -> list:
        if not ids:
            return []
        statement = (
            select(self.model)
            .where(self.model.id.in_(ids))
            .options(*self.load_options())
            .execution_options(populate_existing=True)
        )
        statement = self._apply_joins(statement, joins, identity, with_deleted, eager=True)
        entities = self.session.execute(statement).unique().scalars().all()

        by_id = {entity.id: entity for entity in entities}
        return [by_id[entity_id] for entity_id in ids if entity_id in by_id]

    def _count(self, id_statement) -> int:
        subquery = id_statement.order_by(None).subquery()
        return self.session.execute(select(func.count()).select_from(subquery)).scalar_one()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_one(
        self,
        *,
        identity: Identity | None,
        where: dict | None = None,
        joins: Iterable[Join] | None = None,
        order: Iterable[Order] | None = None,
        extensions: Iterable[Extension] | None = None,
        with_deleted: bool = False,
    ):
        """First matching entity, or None. Another tenant's row is None too."""
        entities = self.get_many(
            identity=identity,
            where=where,
            joins=joins,
            order=order,
            extensions=extensions,
            limit=1,
            with_deleted=with_deleted,
        )
        return entities[0] if entities else None

    def get_many(
        self,
        *,
        identity: Identity | None,
        where: dict | None = None,
        joins: Iterable[Join] | None = None,
        order: Iterable[Order] | None = None,
        extensions: Iterable[Extension] | None = None,
        limit: int | None = None,
        offset: int | None = None,
        with_deleted: bool = False,
    ) -> list:
        joins = list(joins or ())
        statement = self._id_statement(identity, where, joins, order, extensions, with_deleted)
        if limit is not None:
            statement = statement.limit(limit)
        if offset:
            statement = statement.offset(offset)
        ids = list(self.session.execute(statement).scalars())
        return self._load(ids, identity, joins, with_deleted)

    def get_many_with_count(
        self,
        *,
        identity: Identity | None,
        where: dict | None = None,
        joins: Iterable[Join] | None = None,
        order: Iterable[Order] | None = None,
        extensions: Iterable[Extension] | None = None,
        limit: int | None = None,
        offset: int | None = None,
        with_deleted: bool = False,
    ) -> Page:
        """
        One page of entities plus the total matching count.

        The total rides on the page query as COUNT(*) OVER (), so page and
        count are computed from the same filtered set in one round trip. Only
        a page past the end (no rows to carry the window value) falls back to
        counting the same statement separately.
        """
        joins = list(joins or ())
        base = self._id_statement(identity, where, joins, order, extensions, with_deleted)

        statement = base.add_columns(func.count().over().label("total"))
        if limit is not None:
            statement = statement.limit(limit)
        if offset:
            statement = statement.offset(offset)
        rows = self.session.execute(statement).all()

        ids = [row[0] for row in rows]
        if rows:
            count = rows[0][1]
        elif offset or limit == 0:
            count = self._count(base)
        else:
            count = 0
        return Page(self._load(ids, identity, joins, with_deleted), count)

    def get_count(
        self,
        *,
        identity: Identity | None,
        where: dict | None = None,
        joins: Iterable[Join] | None = None,
        extensions: Iterable[Extension] | None = None,
        with_deleted: bool = False,
    ) -> int:
        return self._count(self._id_statement(identity, where, joins, None, extensions, with_deleted))

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _writable(self, values: dict | None) -> dict:
        columns = self.model.__table__.columns
        clean = {}
        for key, value in (values or {}).items():
            if key in PROTECTED_FIELDS:
                continue
            if key not in columns:
                raise ValidationError(f"Unknown field '{key}' for {self.entity_name}")
            clean[key] = value
        return clean

    def _expect_affected(self, result, verb: str, entity_id, identity: Identity | None) -> None:
        if result.rowcount:
            return
        current_app.logger.info(
            "%s %s id=%s affected no rows (organization %s)",
            verb.capitalize(),
            self.entity_name,
            entity_id,
            identity.organization_id if identity is not None else None,
        )
        # Missing and foreign rows look the same to the caller.
        raise AffectedZeroError(f"Could not {verb} {self.entity_name}")

    def _reload(self, entity_id):
        return self.session.get(
            self.model, entity_id, options=self.load_options(), populate_existing=True
        )

    def insert_one(self, *, entity: dict, identity: Identity | None):
        values = guard_insert(self.session, self.model, self._writable(entity), identity)
        now = utcnow()
        instance = self.model(**values, created_at=now, updated_at=now)
        self.session.add(instance)
        self.session.flush()
        return instance

    def update_one(self, *, id: int, values: dict, identity: Identity | None):
        """
        Update one row and return it re-read from the store.

        The tenant predicate is part of the UPDATE itself; a row of another
        tenant is simply not matched. Concurrent updates are last-write-wins.
        """
        values = guard_update(self.session, self.model, self._writable(values), identity)
        statement = (
            update(self.model)
            .where(self.model.id == id)
            .values(**values, updated_at=utcnow())
        )
        statement = apply_tenant_filter(statement, self.model, identity, QueryKind.UPDATE)
        result = self.session.execute(statement.execution_options(synchronize_session=False))
        self._expect_affected(result, "update", id, identity)
        return self._reload(id)

    def delete_one(self, *, id: int, identity: Identity | None):
        """Hard delete; returns the entity as it was just before deletion."""
        lookup = select(self.model).where(self.model.id == id).options(*self.load_options())
        lookup = apply_tenant_filter(lookup, self.model, identity, QueryKind.DELETE)
        entity = self.session.execute(lookup).scalars().first()

        statement = apply_tenant_filter(
            delete(self.model).where(self.model.id == id), self.model, identity, QueryKind.DELETE
        )
        result = self.session.execute(statement.execution_options(synchronize_session=False))
        self._expect_affected(result, "delete", id, identity)

        if entity is not None:
            self.session.expunge(entity)
        return entity

    def soft_delete_one(self, *, id: int, identity: Identity | None):
        now = utcnow()
        statement = (
            update(self.model)
            .where(self.model.id == id)
            .values(deleted_at=now, updated_at=now)
        )
        statement = apply_tenant_filter(statement, self.model, identity, QueryKind.SOFT_DELETE)
        result = self.session.execute(statement.execution_options(synchronize_session=False))
        self._expect_affected(result, "delete", id, identity)
        return self._reload(id)

    # ------------------------------------------------------------------
    # Request helpers
    # ------------------------------------------------------------------

    def parse_joins(self, names: Iterable[str]) -> list[Join]:
        """Turn relation names from a query string into Join specs."""
        joins = []
        for name in names:
            name = name.strip()
            if not name:
                continue
            join = Join(self._relation(name))
            if join not in joins:
                joins.append(join)
        return joins
