# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/proxybuy/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--email admin@proxybuy.local --password "Password123"]
#   Idempotent bootstrap: creates tables and the first super admin.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User inspection/bootstrap:
# - python -m flask users list [--role employee]
# - python -m flask users create --email ops@proxybuy.local --first-name Ops --last-name Team --role employee
# - python -m flask users set-role someone@example.com admin
# - python -m flask users verify someone@example.com [--reject]
# - python -m flask users set-active someone@example.com --inactive
#
# Permission inspection:
# - python -m flask perms list [--role employee] [--category ORDERS]
#
# Maintenance:
# - python -m flask maintenance cleanup-sessions
# - python -m flask maintenance cleanup-security-events --retention-days 90

import click
from flask.cli import with_appcontext

from .errors import DomainError
from .extensions import db
from .models import User
from .permissions import (
    PERMISSION_DEFINITIONS,
    ROLE_SUPER_ADMIN,
    VALID_ROLES,
    get_permissions_by_category,
    get_role_permissions,
)
from .services import auth_service, maintenance_service, session_service
from .services.verification import VERIFICATION_REJECTED, VERIFICATION_VERIFIED


def _user_by_email_or_exit(email: str) -> User:
    user = auth_service.get_user_by_email(email)
    if not user:
        raise click.ClickException(f"User '{email}' not found")
    return user


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--email', default='admin@proxybuy.local', show_default=True, help='Super admin email')
@click.option('--password', default='Password123', show_default=True, help='Super admin password')
@click.option('--first-name', default='Super', show_default=True)
@click.option('--last-name', default='Admin', show_default=True)
@with_appcontext
def init_system(email, password, first_name, last_name):
    """
    Create all tables and the first super admin.

    Safe to re-run: an existing super admin is left untouched.

    SECURITY: Change the default password immediately in production!
    """
    click.echo("START Initializing ProxyBuy...")

    db.create_all()
    click.echo("PASS Tables created")

    existing = db.session.query(User).filter_by(role=ROLE_SUPER_ADMIN).first()
    if existing:
        click.echo(f"WARN  Super admin already exists ({existing.email}), skipping...")
        return

    try:
        user = auth_service.register_user(
            email=email,
            password=password,
            first_name=first_name,
            last_name=last_name,
            role=ROLE_SUPER_ADMIN,
        )
    except DomainError as e:
        raise click.ClickException(f"Failed to create super admin: {e.message}")

    user.verification_status = VERIFICATION_VERIFIED
    db.session.commit()

    click.echo(f"PASS Created super admin: {user.email}")
    click.echo("\nSECURITY WARNING: change the default password immediately in production!")


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

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--first-name', prompt=True)
@click.option('--last-name', prompt=True)
@click.option('--role', type=click.Choice(list(VALID_ROLES)), default='employee', show_default=True)
@click.option('--verified/--unverified', default=True, show_default=True,
              help='Mark the account verified (required for customers to order)')
@with_appcontext
def create_user_cli(email, password, first_name, last_name, role, verified):
    """
    Create a user with any role.

    Password requirements: 8+ chars, at least one letter and one digit.
    """
    try:
        user = auth_service.register_user(
            email=email,
            password=password,
            first_name=first_name,
            last_name=last_name,
            role=role,
        )
    except DomainError as e:
        raise click.ClickException(e.message)

    if verified:
        user.verification_status = VERIFICATION_VERIFIED
        db.session.commit()

    click.echo(f"PASS Created user: {user.email} with role '{user.role}' (ID: {user.id})")


@users_group.command('list')
@click.option('--role', type=click.Choice(list(VALID_ROLES)), help='Filter by role')
@with_appcontext
def list_users_cli(role):
    """List all users with role, verification and active status."""
    query = db.session.query(User)
    if role:
        query = query.filter_by(role=role)

    users = query.order_by(User.created_at.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*110)
    click.echo(f"{'ID':<38} {'Email':<32} {'Role':<12} {'Verification':<13} {'Active'}")
    click.echo("="*110)

    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<38} {user.email:<32} {user.role:<12} {user.verification_status:<13} {active_str}")

    click.echo("="*110 + "\n")


@users_group.command('set-role')
@click.argument('email')
@click.argument('role', type=click.Choice(list(VALID_ROLES)))
@with_appcontext
def set_role_cli(email, role):
    """Change a user's role (bypasses the API; use for bootstrap and recovery)."""
    user = _user_by_email_or_exit(email)
    user.role = role
    db.session.commit()
    click.echo(f"PASS {user.email} is now '{role}'")


@users_group.command('verify')
@click.argument('email')
@click.option('--reject', is_flag=True, help='Record a rejection instead')
@with_appcontext
def verify_user_cli(email, reject):
    """Mark a user's identity verified (or rejected)."""
    user = _user_by_email_or_exit(email)
    user.verification_status = VERIFICATION_REJECTED if reject else VERIFICATION_VERIFIED
    db.session.commit()
    click.echo(f"PASS {user.email} verification_status = {user.verification_status}")


@users_group.command('set-active')
@click.argument('email')
@click.option('--active/--inactive', default=True)
@with_appcontext
def set_active_cli(email, active):
    """Activate or deactivate an account. Deactivation also revokes its sessions."""
    user = _user_by_email_or_exit(email)
    auth_service.set_user_active(user.id, active)
    if not active:
        revoked = session_service.revoke_all_user_sessions(user.id, reason="User account deactivated")
        click.echo(f"PASS Revoked {revoked} session(s)")
    click.echo(f"PASS {email} is_active = {active}")


@click.group('perms')
def perms_group():
    """Permission inspection commands."""


@perms_group.command('list')
@click.option('--role', type=click.Choice(list(VALID_ROLES)), help='Filter by role')
@click.option('--category', help='Filter by category')
@with_appcontext
def list_permissions_cli(role, category):
    """List capabilities, optionally filtered by role or category."""
    perms = get_permissions_by_category(category) if category else list(PERMISSION_DEFINITIONS)
    if role:
        granted = get_role_permissions(role)
        perms = [p for p in perms if p[0] in granted]

    title = "All Permissions"
    if role:
        title = f"Permissions for role: {role.upper()}"
    elif category:
        title = f"Permissions in category: {category}"

    click.echo(f"\n{'='*80}")
    click.echo(title)
    click.echo(f"{'='*80}\n")

    current_category = None
    for code, name, _description, perm_category in perms:
        if perm_category != current_category:
            if current_category:
                click.echo("")
            click.echo(f"CATEGORY {perm_category}")
            click.echo("-"*80)
            current_category = perm_category

        click.echo(f"  {code:<28} {name}")

    click.echo(f"\n Total: {len(perms)} permissions\n")


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('cleanup-sessions')
@with_appcontext
def cleanup_sessions_cli():
    """Delete expired or revoked sessions older than the retention window."""
    deleted = session_service.cleanup_expired_sessions()
    click.echo(f"Deleted {deleted} expired or revoked sessions.")


@maintenance_group.command('cleanup-security-events')
@click.option('--retention-days', type=int, default=90, show_default=True)
@with_appcontext
def cleanup_security_events_cli(retention_days):
    """
    Cleanup old security events.

    Default retention: 90 days.
    """
    deleted = maintenance_service.cleanup_security_events(retention_days=retention_days)
    click.echo(f"Deleted {deleted} security events older than {retention_days} days.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(perms_group)
    app.cli.add_command(maintenance_group)
