# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/cherry_pos/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--email admin@cherrydining.local] [--password ...]
#   Idempotent bootstrap: creates tables and the first super_admin account.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Administrator accounts:
# - python -m flask users list
# - python -m flask users create-admin --email a@b.c --password "Password123!" --role manager
#
# Staff accounts:
# - python -m flask staff list [--active]
# - python -m flask staff create --username jdoe --full-name "Jane Doe" --role waitstaff
#
# Maintenance:
# - python -m flask maintenance cleanup-sessions --older-than-days 30

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import AdminUser
from .permissions import ROLE_DEFINITIONS, SUPER_ADMIN
from .services.auth_service import sign_up, set_user_role, AuthError, PasswordValidationError
from .services import session_service, staff_service
from .services.staff_service import StaffAccountError


ROLE_CHOICES = click.Choice([code for code, _name, _description in ROLE_DEFINITIONS])


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--email', default='admin@cherrydining.local', show_default=True, help='Super admin email')
@click.option('--password', default='Password123!', show_default=True, help='Super admin password')
@click.option('--full-name', default='System Administrator', show_default=True)
@with_appcontext
def init_system(email, password, full_name):
    """
    Create all tables and the first super_admin account.

    Existing accounts are left untouched. SECURITY: change the default password
    immediately in production.
    """
    click.echo("START Initializing Cherry POS...")

    db.create_all()
    click.echo("PASS Tables created")

    existing = db.session.query(AdminUser).filter_by(email=email.strip().lower()).first()
    if existing:
        click.echo(f"WARN  Account '{existing.email}' already exists, skipping...")
        if existing.role != SUPER_ADMIN:
            set_user_role(existing.id, SUPER_ADMIN)
            click.echo(f"PASS Promoted '{existing.email}' to {SUPER_ADMIN}")
        return

    try:
        user = sign_up(email, password, full_name=full_name, role=SUPER_ADMIN)
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {str(e)}")
        click.echo("Requirements: 8+ chars, uppercase, lowercase, digit, special char")
        return
    except AuthError as e:
        click.echo(f"FAIL Failed to create super admin: {str(e)}")
        return

    click.echo(f"PASS Created super admin: {user.email} (ID: {user.id})")
    click.echo("\nSECURITY Change the default password immediately in production!")


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
    """Administrator account inspection and bootstrap commands."""


@users_group.command('create-admin')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--full-name', default=None, help='Full name')
@click.option('--role', type=ROLE_CHOICES, default=SUPER_ADMIN, show_default=True, help='Role')
@with_appcontext
def create_admin_cli(email, password, full_name, role):
    """
    Create an administrator account.

    Password must meet strength requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character
    """
    try:
        user = sign_up(email, password, full_name=full_name, role=role)
        click.echo(f"PASS Created account: {user.email} with role '{role}'")
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {str(e)}")
        click.echo("Requirements: 8+ chars, uppercase, lowercase, digit, special char")
    except AuthError as e:
        click.echo(f"FAIL Failed to create account: {str(e)}")


@users_group.command('list')
@with_appcontext
def list_users():
    """List administrator accounts with their roles."""
    users = db.session.query(AdminUser).order_by(AdminUser.id.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'ID':<5} {'Email':<35} {'Name':<25} {'Active':<8} {'Role'}")
    click.echo("="*90)

    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.email:<35} {(user.full_name or '-'):<25} {active_str:<8} {user.role or 'none'}")

    click.echo("="*90 + "\n")


@click.group('staff')
def staff_group():
    """Floor staff account commands."""


@staff_group.command('create')
@click.option('--username', prompt=True, help='Login username')
@click.option('--full-name', prompt=True, help='Full name')
@click.option('--role', type=ROLE_CHOICES, prompt=True, help='Role')
@click.option('--email', default=None, help='Optional email')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@with_appcontext
def create_staff_cli(username, full_name, role, email, password):
    try:
        staff = staff_service.create_staff_user(username, password, full_name, role, email=email)
        click.echo(f"PASS Created staff user: {staff.username} ({staff.full_name}) with role '{staff.role}'")
    except StaffAccountError as e:
        click.echo(f"FAIL Failed to create staff user: {str(e)}")


@staff_group.command('list')
@click.option('--active', 'active_only', is_flag=True, help='Only active accounts')
@with_appcontext
def list_staff_cli(active_only):
    staff_users = staff_service.list_staff_users(active_only=active_only)

    if not staff_users:
        click.echo("No staff users found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'ID':<5} {'Username':<20} {'Name':<30} {'Active':<8} {'Role'}")
    click.echo("="*90)

    for staff in staff_users:
        active_str = "Yes" if staff.is_active else "No"
        click.echo(f"{staff.id:<5} {staff.username:<20} {staff.full_name:<30} {active_str:<8} {staff.role}")

    click.echo("="*90 + "\n")


@click.group('maintenance')
def maintenance_group():
    """Housekeeping commands."""


@maintenance_group.command('cleanup-sessions')
@click.option('--older-than-days', type=int, default=30, show_default=True)
@with_appcontext
def cleanup_sessions_cli(older_than_days):
    """Delete expired or revoked session tokens older than the cutoff."""
    deleted = session_service.cleanup_expired_sessions(older_than_days=older_than_days)
    click.echo(f"PASS Deleted {deleted} session token(s)")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(staff_group)
    app.cli.add_command(maintenance_group)
