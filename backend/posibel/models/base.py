from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import inspect
from sqlalchemy.types import Numeric, TypeDecorator

from ..extensions import db
from ..time_utils import to_utc_z


class FixedDecimal(TypeDecorator):
    """
    Exact fixed-point column.

    Values are bound and returned as Decimal quantized to the column scale,
    never as binary floats. Floats handed in by callers go through their
    shortest repr first, so 19.995 is stored as Decimal("19.995").
    """

    impl = Numeric
    cache_ok = True

    def __init__(self, precision: int, scale: int):
        super().__init__(precision=precision, scale=scale, asdecimal=True)
        self.precision = precision
        self.scale = scale

    @property
    def quantum(self) -> Decimal:
        return Decimal(1).scaleb(-self.scale)

    def coerce(self, value) -> Decimal | None:
        if value is None:
            return None
        if isinstance(value, Decimal):
            result = value
        elif isinstance(value, float):
            result = Decimal(repr(value))
        else:
            result = Decimal(str(value))
        return result.quantize(self.quantum, rounding=ROUND_HALF_UP)

    def process_bind_param(self, value, dialect):
        return self.coerce(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return Decimal(str(value)).quantize(self.quantum, rounding=ROUND_HALF_UP)


def decimal_to_str(value: Decimal | None) -> str | None:
    return None if value is None else str(value)


class EntityMixin:
    """
    Columns and helpers shared by every persisted entity.

    TENANCY: `__tenant_column__` names the column compared against the
    caller's organization id. Owned entities use organization_id; the
    Organization itself overrides it with its primary key.

    created_at/updated_at are stamped by the repository layer on every
    insert/update; the server defaults only cover rows written by hand.
    """

    __tenant_column__ = "organization_id"

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True)

    @classmethod
    def tenant_column(cls, target=None):
        """Tenant column on `target` (an aliased class) or on the model itself."""
        return getattr(target if target is not None else cls, cls.__tenant_column__)

    @classmethod
    def has_tenant_column(cls) -> bool:
        return hasattr(cls, cls.__tenant_column__)

    def _timestamps(self) -> dict:
        return {
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "deleted_at": to_utc_z(self.deleted_at),
        }

    def _loaded_relations(self, *names: str, nested: bool = True) -> dict:
        """
        Serialize relations that were eagerly loaded by a repository join.

        Unloaded relations are skipped instead of triggering a lazy load, so a
        detached entity never issues a query from to_dict(). Related entities
        are rendered one level deep only.
        """
        if not nested:
            return {}
        state = inspect(self)
        data: dict = {}
        for name in names:
            if name in state.unloaded:
                continue
            value = getattr(self, name)
            if value is None:
                data[name] = None
            elif isinstance(value, list):
                data[name] = [item.to_dict(nested=False) for item in value]
            else:
                data[name] = value.to_dict(nested=False)
        return data
