"""
Pytest fixtures for Posibel backend tests.

Provides an in-memory database per test, two tenants with their shops,
roles, users and catalog, identities for both tenants, and a test client.

Tenant A owns shops A1 and A2; tenant B owns shop B1. Fixtures create rows
in that order, so on a fresh database the shop ids are 1, 2 (A) and 3 (B).
"""

from decimal import Decimal

import pytest

from posibel import create_app
from posibel.config import TestConfig
from posibel.extensions import db
from posibel.identity import Identity
from posibel.models import Organization, Product, ProductGroup, Role, Shop, User
from posibel.policies import Policy
from posibel.services.auth_service import hash_password

PASSWORD = "Password123"


@pytest.fixture(scope='function')
def app():
    """Fresh application and in-memory schema for each test."""
    app = create_app(TestConfig)

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    yield db.session
    db.session.rollback()


@pytest.fixture(scope='function')
def services(app):
    return app.extensions["posibel"]


@pytest.fixture(scope='function')
def repos(services):
    return services.repositories


def _add(db_session, instance):
    db_session.add(instance)
    db_session.commit()
    return instance


# -----------------------------------------------------------------------------
# Tenants
# -----------------------------------------------------------------------------


@pytest.fixture(scope='function')
def org_a(db_session):
    """Create Organization A (first tenant)."""
    return _add(db_session, Organization(name="Org A - Acme Corp"))


@pytest.fixture(scope='function')
def org_b(db_session, org_a):
    """Create Organization B (second tenant)."""
    return _add(db_session, Organization(name="Org B - Beta Inc"))


@pytest.fixture(scope='function')
def shops(db_session, org_a, org_b):
    """Shops A1 and A2 in Organization A, shop B1 in Organization B."""
    shop_a1 = _add(db_session, Shop(name="Shop A1", organization_id=org_a.id))
    shop_a2 = _add(db_session, Shop(name="Shop A2", organization_id=org_a.id))
    shop_b1 = _add(db_session, Shop(name="Shop B1", organization_id=org_b.id))
    return shop_a1, shop_a2, shop_b1


@pytest.fixture(scope='function')
def shop_a(shops):
    return shops[0]


@pytest.fixture(scope='function')
def shop_b(shops):
    return shops[2]


# -----------------------------------------------------------------------------
# Roles and users
# -----------------------------------------------------------------------------


@pytest.fixture(scope='function')
def admin_role_a(db_session, org_a):
    return _add(db_session, Role(name="admin", organization_id=org_a.id, policies=[Policy.ADMIN.value]))


@pytest.fixture(scope='function')
def employee_role_a(db_session, org_a):
    """Read-only on shops, full access to products."""
    return _add(db_session, Role(
        name="employee",
        organization_id=org_a.id,
        policies=[Policy.SHOP_GET_MANY.value, Policy.SHOP_GET_BY_ID.value, Policy.PRODUCT.value],
    ))


@pytest.fixture(scope='function')
def admin_role_b(db_session, org_b):
    return _add(db_session, Role(name="admin", organization_id=org_b.id, policies=[Policy.ADMIN.value]))


def _user(db_session, org, role, email, first_name):
    return _add(db_session, User(
        email=email,
        first_name=first_name,
        last_name="Tester",
        password=hash_password(PASSWORD, rounds=4),
        organization_id=org.id,
        role_id=role.id,
    ))


@pytest.fixture(scope='function')
def user_a(db_session, org_a, admin_role_a):
    """Admin user in Organization A."""
    return _user(db_session, org_a, admin_role_a, "user_a@acme.com", "Alice")


@pytest.fixture(scope='function')
def employee_a(db_session, org_a, employee_role_a):
    """Employee user in Organization A."""
    return _user(db_session, org_a, employee_role_a, "employee_a@acme.com", "Eve")


@pytest.fixture(scope='function')
def user_b(db_session, org_b, admin_role_b):
    """Admin user in Organization B."""
    return _user(db_session, org_b, admin_role_b, "user_b@beta.com", "Bob")


# -----------------------------------------------------------------------------
# Identities
# -----------------------------------------------------------------------------


def identity_for(user: User, role: Role) -> Identity:
    return Identity.build(
        user_id=user.id,
        organization_id=user.organization_id,
        role_id=role.id,
        permissions=role.policies,
    )


@pytest.fixture(scope='function')
def identity_a(user_a, admin_role_a):
    return identity_for(user_a, admin_role_a)


@pytest.fixture(scope='function')
def identity_b(user_b, admin_role_b):
    return identity_for(user_b, admin_role_b)


# -----------------------------------------------------------------------------
# Catalog
# -----------------------------------------------------------------------------


@pytest.fixture(scope='function')
def product_group_a(db_session, org_a):
    return _add(db_session, ProductGroup(name="Drinks A", organization_id=org_a.id))


@pytest.fixture(scope='function')
def product_group_b(db_session, org_b):
    return _add(db_session, ProductGroup(name="Drinks B", organization_id=org_b.id))


@pytest.fixture(scope='function')
def product_a(db_session, org_a, product_group_a):
    return _add(db_session, Product(
        name="Product A",
        barcode="1000",
        price=Decimal("10.000"),
        organization_id=org_a.id,
        product_group_id=product_group_a.id,
    ))


@pytest.fixture(scope='function')
def product_b(db_session, org_b, product_group_b):
    return _add(db_session, Product(
        name="Product B",
        barcode="1000",
        price=Decimal("20.000"),
        organization_id=org_b.id,
        product_group_id=product_group_b.id,
    ))


# -----------------------------------------------------------------------------
# HTTP helpers
# -----------------------------------------------------------------------------


def get_auth_token(client, email: str, password: str = PASSWORD) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'email': email,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def headers_a(client, user_a):
    return auth_headers(get_auth_token(client, user_a.email))


@pytest.fixture(scope='function')
def headers_b(client, user_b):
    return auth_headers(get_auth_token(client, user_b.email))


@pytest.fixture(scope='function')
def headers_employee_a(client, employee_a):
    return auth_headers(get_auth_token(client, employee_a.email))
