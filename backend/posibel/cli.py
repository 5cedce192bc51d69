# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System:
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Organization management (MULTI-TENANT):
# - python -m flask orgs list
#   List all organizations with shop and user counts.
# - python -m flask orgs register --name "Acme Corp" --email admin@acme.test --password "Password123" --first-name Ada --last-name Admin
#   Register a tenant: organization, admin role (*.*) and its first user.
#
# Users:
# - python -m flask users list [--org-id 1]
#   List users with their roles.
# - python -m flask users register --org-id 1 --role-id 2 --email cashier@acme.test --password "Password123" --first-name Cas --last-name Hier
#   Register a user into an existing organization.
#
# Permissions:
# - python -m flask perms check admin@acme.test shop.create
#   Check whether a user's role grants a policy.
#
# Sessions:
# - python -m flask sessions cleanup --older-than-days 30
#   Delete expired or revoked sessions.

from datetime import timedelta

import click
from flask import current_app
from flask.cli import with_appcontext
from sqlalchemy import func, select

from .errors import PosibelError
from .extensions import db
from .identity import Identity
from .models import Shop, User
from .policies import authorize
from .repositories import Join, UserRelation
from .validation import parse_register_organization, parse_register_user


def _services():
    return current_app.extensions["posibel"]


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask orgs register' to add a tenant.")


@click.group('orgs')
def orgs_group():
    """Organization (tenant) management commands."""


@orgs_group.command('list')
@with_appcontext
def list_orgs():
    """List all organizations."""
    orgs = _services().repositories.organizations.get_many(identity=None)

    if not orgs:
        click.echo("No organizations found.")
        return

    click.echo("\n" + "="*70)
    click.echo(f"{'ID':<5} {'Name':<40} {'Shops':<8} {'Users'}")
    click.echo("="*70)

    for org in orgs:
        shop_count = db.session.execute(
            select(func.count(Shop.id)).where(Shop.organization_id == org.id, Shop.deleted_at.is_(None))
        ).scalar_one()
        user_count = db.session.execute(
            select(func.count(User.id)).where(User.organization_id == org.id, User.deleted_at.is_(None))
        ).scalar_one()
        click.echo(f"{org.id:<5} {org.name:<40} {shop_count:<8} {user_count}")

    click.echo("="*70 + "\n")


@orgs_group.command('register')
@click.option('--name', required=True, help='Organization name')
@click.option('--email', prompt=True, help='Email of the first (admin) user')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--first-name', prompt=True, help='First name')
@click.option('--last-name', prompt=True, help='Last name')
@with_appcontext
def register_org_cli(name, email, password, first_name, last_name):
    """Register a new organization (tenant) with its admin role and first user."""
    try:
        dto = parse_register_organization({
            "organization_name": name,
            "email": email,
            "password": password,
            "confirmation_password": password,
            "first_name": first_name,
            "last_name": last_name,
        })
        org = _services().organizations.register_organization(dto)
    except PosibelError as exc:
        click.echo(f"FAIL {exc.message}")
        return

    click.echo(f"PASS Created organization: {org.name} (ID: {org.id})")
    for user in org.users:
        click.echo(f"PASS Created admin user: {user.email} (ID: {user.id})")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('list')
@click.option('--org-id', type=int, help='Filter by organization ID')
@with_appcontext
def list_users(org_id):
    """List all users with their roles."""
    where = {"organization_id": org_id} if org_id else None
    users = _services().repositories.users.get_many(
        identity=None, where=where, joins=[Join(UserRelation.ROLE)]
    )

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'ID':<5} {'Org':<5} {'Email':<35} {'Name':<25} {'Role'}")
    click.echo("="*90)

    for user in users:
        full_name = f"{user.first_name} {user.last_name}"
        role_name = user.role.name if user.role else "none"
        click.echo(f"{user.id:<5} {user.organization_id:<5} {user.email:<35} {full_name:<25} {role_name}")

    click.echo("="*90 + "\n")


@users_group.command('register')
@click.option('--org-id', type=int, required=True, help='Organization ID')
@click.option('--role-id', type=int, required=True, help='Role ID (must belong to the organization)')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--first-name', prompt=True, help='First name')
@click.option('--last-name', prompt=True, help='Last name')
@with_appcontext
def register_user_cli(org_id, role_id, email, password, first_name, last_name):
    """Register a user into an existing organization."""
    services = _services()
    if services.repositories.organizations.get_one(identity=None, where={"id": org_id}) is None:
        click.echo(f"FAIL Organization {org_id} not found")
        return
    role = services.repositories.roles.get_one(identity=None, where={"id": role_id, "organization_id": org_id})
    if role is None:
        click.echo(f"FAIL Role {role_id} not found in organization {org_id}")
        return

    try:
        dto = parse_register_user({
            "organization_id": org_id,
            "role_id": role_id,
            "email": email,
            "password": password,
            "confirmation_password": password,
            "first_name": first_name,
            "last_name": last_name,
        })
        user = services.users.register_user(dto, identity=None)
    except PosibelError as exc:
        click.echo(f"FAIL {exc.message}")
        return

    click.echo(f"PASS Created user: {user.email} (ID: {user.id}, Role: {role.name})")


@click.group('perms')
def perms_group():
    """Permission inspection commands."""


@perms_group.command('check')
@click.argument('email')
@click.argument('policy')
@with_appcontext
def check_permission_cli(email, policy):
    """Check if a user's role grants a specific policy."""
    services = _services()
    user = services.repositories.users.get_one(
        identity=None, where={"email": email.strip().lower()}, joins=[Join(UserRelation.ROLE)]
    )

    if not user:
        click.echo(f"FAIL User '{email}' not found")
        return

    policies = list(user.role.policies or []) if user.role else None
    identity = Identity.build(
        user_id=user.id,
        organization_id=user.organization_id,
        role_id=user.role_id,
        permissions=policies,
    )

    try:
        granted = authorize(policy, identity)
    except PosibelError as exc:
        click.echo(f"FAIL {exc.message}")
        return

    if granted:
        click.echo(f"PASS User '{email}' HAS policy '{policy}'")
    else:
        click.echo(f"FAIL User '{email}' DOES NOT HAVE policy '{policy}'")

    click.echo(f"\nUser role: {user.role.name}")
    click.echo(f"Granted policies: {', '.join(sorted(policies)) or 'none'}")


@click.group('sessions')
def sessions_group():
    """Session maintenance commands."""


@sessions_group.command('cleanup')
@click.option('--older-than-days', type=int, default=30, show_default=True)
@with_appcontext
def cleanup_sessions_cli(older_than_days):
    """Delete expired or revoked sessions created before the retention window."""
    deleted = _services().sessions.cleanup_expired_sessions(older_than=timedelta(days=older_than_days))
    db.session.commit()
    click.echo(f"Deleted {deleted} sessions older than {older_than_days} days.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(orgs_group)  # Multi-tenant organization management
    app.cli.add_command(users_group)
    app.cli.add_command(perms_group)
    app.cli.add_command(sessions_group)
