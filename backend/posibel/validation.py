from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy import JSON, Boolean, Enum, Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .errors import ValidationError
from .models import FixedDecimal, Orderline, Product, ProductGroup, Role, Sale, Shop, StockLevel, Transaction
from .policies import is_known_policy

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 100
ORGANIZATION_NAME_MIN_LENGTH = 3
PASSWORD_MIN_LENGTH = 9


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: frozenset[str]
    required_on_create: frozenset[str] = frozenset()


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_integer(col, value: Any) -> int:
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    # String input - must be plain digits (with optional leading minus)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped or 'e' in stripped.lower() or '.' in stripped:
            raise ValidationError(f"{col.key} must be an integer")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{col.key} must be an integer") from None
    raise ValidationError(f"{col.key} must be an integer")


def _coerce_decimal(col, value: Any) -> Decimal:
    """
    Exact decimal input. Strings are preferred; JSON numbers are accepted via
    their shortest repr so 19.995 stays 19.995. Digits past the column scale
    are rejected rather than rounded; trailing zeros are fine.
    """
    if isinstance(value, bool):
        raise ValidationError(f"{col.key} must be a decimal number")
    if isinstance(value, float):
        value = repr(value)
    try:
        result = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationError(f"{col.key} must be a decimal number") from None
    if not result.is_finite():
        raise ValidationError(f"{col.key} must be a decimal number")

    coltype = col.type
    integer_digits = coltype.precision - coltype.scale
    if abs(result) >= Decimal(10) ** integer_digits:
        raise ValidationError(f"{col.key} exceeds {integer_digits} integer digits")
    if result.quantize(coltype.quantum) != result:
        raise ValidationError(f"{col.key} allows at most {coltype.scale} decimal places")
    return coltype.coerce(result)


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Checked first: FixedDecimal is a TypeDecorator, not a Numeric subclass.
    if isinstance(coltype, FixedDecimal):
        return _coerce_decimal(col, value)

    if isinstance(coltype, Integer):
        return _coerce_integer(col, value)

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        raise ValidationError(f"{col.key} must be a boolean")

    if isinstance(coltype, Enum):
        allowed = coltype.enums
        raw = getattr(value, "value", value)
        if raw not in allowed:
            raise ValidationError(f"{col.key} must be one of: {', '.join(allowed)}")
        return coltype.enum_class(raw) if coltype.enum_class else raw

    if isinstance(coltype, JSON):
        if not isinstance(value, (dict, list, str, int, float, bool)):
            raise ValidationError(f"{col.key} must be JSON")
        return value

    if isinstance(coltype, (String, Text)):
        if isinstance(value, (dict, list)):
            raise ValidationError(f"{col.key} must be a string")
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length, decimal scale)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted(f for f in policy.required_on_create if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


# ---------------------------------------------------------------------------
# Per-entity rules not captured by column metadata
# ---------------------------------------------------------------------------


def enforce_rules_role(patch: dict) -> None:
    if "policies" not in patch:
        return
    policies = patch["policies"]
    if not isinstance(policies, list) or not all(isinstance(p, str) for p in policies):
        raise ValidationError("policies must be a list of strings")
    unknown = [p for p in policies if not is_known_policy(p)]
    if unknown:
        raise ValidationError(f"Unknown policies: {', '.join(unknown)}")
    # Order and duplicates carry no meaning.
    patch["policies"] = sorted(set(policies))


def _non_negative(patch: dict, *fields: str) -> None:
    for field in fields:
        value = patch.get(field)
        if value is not None and value < 0:
            raise ValidationError(f"{field} must be >= 0")


def _percentage(patch: dict, field: str) -> None:
    value = patch.get(field)
    if value is not None and not (0 <= value <= 100):
        raise ValidationError(f"{field} must be between 0 and 100")


def enforce_rules_product(patch: dict) -> None:
    _non_negative(patch, "price")


def enforce_rules_sale(patch: dict) -> None:
    _non_negative(patch, "discount_amount", "total_amount")
    _percentage(patch, "discount_percentage")


def enforce_rules_orderline(patch: dict) -> None:
    _non_negative(patch, "discount_amount")
    _percentage(patch, "discount_percentage")


@dataclass(frozen=True)
class ResourceRules:
    policy: ModelValidationPolicy
    enforce: Any = None


RESOURCE_RULES: dict[type, ResourceRules] = {
    Shop: ResourceRules(
        ModelValidationPolicy(
            writable_fields=frozenset({"name", "meta", "organization_id"}),
            required_on_create=frozenset({"name"}),
        )
    ),
    Role: ResourceRules(
        ModelValidationPolicy(
            writable_fields=frozenset({"name", "policies", "organization_id"}),
            required_on_create=frozenset({"name", "policies"}),
        ),
        enforce_rules_role,
    ),
    ProductGroup: ResourceRules(
        ModelValidationPolicy(
            writable_fields=frozenset({"name", "organization_id"}),
            required_on_create=frozenset({"name"}),
        )
    ),
    Product: ResourceRules(
        ModelValidationPolicy(
            writable_fields=frozenset({"name", "barcode", "price", "product_group_id", "organization_id"}),
            required_on_create=frozenset({"name", "price", "product_group_id"}),
        ),
        enforce_rules_product,
    ),
    StockLevel: ResourceRules(
        ModelValidationPolicy(
            writable_fields=frozenset({"amount", "product_id", "shop_id", "organization_id"}),
            required_on_create=frozenset({"product_id", "shop_id"}),
        )
    ),
    Sale: ResourceRules(
        ModelValidationPolicy(
            writable_fields=frozenset(
                {"shop_id", "discount_percentage", "discount_amount", "total_amount", "organization_id"}
            ),
        ),
        enforce_rules_sale,
    ),
    Orderline: ResourceRules(
        ModelValidationPolicy(
            writable_fields=frozenset(
                {
                    "orderline_type",
                    "amount",
                    "discount_percentage",
                    "discount_amount",
                    "product_id",
                    "sale_id",
                    "organization_id",
                }
            ),
            required_on_create=frozenset({"amount", "product_id", "sale_id"}),
        ),
        enforce_rules_orderline,
    ),
    Transaction: ResourceRules(
        ModelValidationPolicy(writable_fields=frozenset({"organization_id"}))
    ),
}


def validate_resource(model, payload: dict, *, partial: bool) -> dict:
    """validate_payload plus the entity's own rules, keyed by model."""
    rules = RESOURCE_RULES[model]
    patch = validate_payload(model=model, payload=payload, policy=rules.policy, partial=partial)
    if rules.enforce is not None:
        rules.enforce(patch)
    return patch


# ---------------------------------------------------------------------------
# Registration DTOs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RegisterOrganizationDto:
    organization_name: str
    email: str
    password: str
    confirmation_password: str
    first_name: str
    last_name: str


@dataclass(frozen=True)
class RegisterUserDto:
    email: str
    password: str
    confirmation_password: str
    first_name: str
    last_name: str
    organization_id: int | None
    role_id: int


def _pick(payload: dict, snake: str, camel: str):
    if snake in payload:
        return payload[snake]
    return payload.get(camel)


def _required_str(payload: dict, snake: str, camel: str) -> str:
    value = _pick(payload, snake, camel)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{snake} is required")
    return value.strip()


def validate_email(email: str) -> str:
    email = email.strip().lower()
    if len(email) > 255 or not EMAIL_RE.match(email):
        raise ValidationError("email must be a valid email address")
    return email


def validate_name(field: str, value: str, minimum: int = NAME_MIN_LENGTH) -> str:
    if not (minimum <= len(value) <= NAME_MAX_LENGTH):
        raise ValidationError(f"{field} must be between {minimum} and {NAME_MAX_LENGTH} characters")
    return value


def validate_password_strength(password: str) -> None:
    """
    Requirements:
    - Minimum 9 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    """
    if len(password) < PASSWORD_MIN_LENGTH:
        raise ValidationError(f"password must be at least {PASSWORD_MIN_LENGTH} characters long")
    if not re.search(r'[A-Z]', password):
        raise ValidationError("password must contain at least one uppercase letter")
    if not re.search(r'[a-z]', password):
        raise ValidationError("password must contain at least one lowercase letter")
    if not re.search(r'\d', password):
        raise ValidationError("password must contain at least one digit")


def _credentials(payload: dict) -> dict:
    password = _pick(payload, "password", "password")
    confirmation = _pick(payload, "confirmation_password", "confirmationPassword")
    if not isinstance(password, str):
        raise ValidationError("password is required")
    if not isinstance(confirmation, str):
        raise ValidationError("confirmation_password is required")
    validate_password_strength(password)
    if password != confirmation:
        raise ValidationError("Passwords do not match")

    return {
        "email": validate_email(_required_str(payload, "email", "email")),
        "password": password,
        "confirmation_password": confirmation,
        "first_name": validate_name("first_name", _required_str(payload, "first_name", "firstName")),
        "last_name": validate_name("last_name", _required_str(payload, "last_name", "lastName")),
    }


def parse_register_organization(payload: dict | None) -> RegisterOrganizationDto:
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    organization_name = validate_name(
        "organization_name",
        _required_str(payload, "organization_name", "organizationName"),
        minimum=ORGANIZATION_NAME_MIN_LENGTH,
    )
    return RegisterOrganizationDto(organization_name=organization_name, **_credentials(payload))


def _optional_id(payload: dict, snake: str, camel: str) -> int | None:
    value = _pick(payload, snake, camel)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{snake} must be an integer")
    return value


def parse_register_user(payload: dict | None) -> RegisterUserDto:
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    role_id = _optional_id(payload, "role_id", "roleId")
    if role_id is None:
        raise ValidationError("role_id is required")
    return RegisterUserDto(
        organization_id=_optional_id(payload, "organization_id", "organizationId"),
        role_id=role_id,
        **_credentials(payload),
    )
