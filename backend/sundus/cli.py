# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/sundus/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates tables, the settings row, and default staff users.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system wipe --yes
#   Clear notifications, sales, and customers but keep catalog, settings, and users.
#
# User inspection/bootstrap:
# - python -m flask users list [--role cashier]
#   List all users with role and active status.
# - python -m flask users create --username admin --email admin@sundus.local --password "Password123!" --role admin
#   Create a user (prompts if options are omitted).

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User, USER_ROLES
from .services import maintenance_service, settings_service, user_service
from .validation import ValidationError, ConflictError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Initialize the café backend: schema, settings row, and default staff users.

    Creates:
    - All tables (no-op for tables that already exist)
    - The singleton settings row with default values
    - Users: admin/admin@sundus.local, manager/manager@sundus.local, cashier/cashier@sundus.local
    - All passwords default to: "Password123!"

    SECURITY: Change passwords immediately in production!
    """
    click.echo("START Initializing Sundus backend...")

    db.create_all()
    click.echo("PASS Tables ready")

    settings = settings_service.get_settings()
    click.echo(f"PASS Settings ready (store: {settings.store_name})")

    click.echo("\nUSERS Creating default users...")
    default_password = "Password123!"
    default_users = [
        ("admin", "admin@sundus.local", "admin"),
        ("manager", "manager@sundus.local", "manager"),
        ("cashier", "cashier@sundus.local", "cashier"),
    ]

    for username, email, role in default_users:
        existing = db.session.query(User).filter_by(username=username).first()
        if existing:
            click.echo(f"WARN  User '{username}' already exists, skipping...")
            continue
        try:
            user_service.create_user(username=username, email=email, password=default_password, role=role)
        except (ValidationError, ConflictError) as e:
            click.echo(f"FAIL Failed to create user '{username}': {e}")
            continue
        click.echo(f"PASS Created user: {username} ({email}) with role '{role}'")

    click.echo("\n" + "=" * 60)
    click.echo("DONE Sundus backend initialized")
    click.echo("=" * 60)
    click.echo("\nDefault Credentials (CHANGE IN PRODUCTION!):")
    for username, email, _ in default_users:
        click.echo(f"   {username:<8} -> {email:<22} / {default_password}")
    click.echo("")


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


@system_group.command('wipe')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def wipe_data(yes):
    """Clear notifications, sales, and customers. Catalog, settings, and users stay."""
    if not yes:
        click.confirm("WARN This will delete all orders, sales, and customers. Continue?", abort=True)

    counts = maintenance_service.clear_transactional_data()
    for table, count in counts.items():
        click.echo(f"DELETE  {table}: {count}")
    click.echo("PASS Transactional data cleared")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--username', prompt=True, help='Username')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(USER_ROLES), prompt=True, help='Role')
@click.option('--full-name', default=None, help='Display name')
@with_appcontext
def create_user_cli(username, email, password, role, full_name):
    """
    Create a new user interactively.

    Password must meet strength requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character
    """
    try:
        user = user_service.create_user(
            username=username,
            email=email,
            password=password,
            full_name=full_name,
            role=role,
        )
    except (ValidationError, ConflictError) as e:
        click.echo(f"FAIL Failed to create user: {e}")
        raise SystemExit(1)

    click.echo(f"PASS Created user: {user.username} ({user.email}) with role '{user.role}'")
    click.echo(f"     User ID: {user.id}")


@users_group.command('list')
@click.option('--role', type=click.Choice(USER_ROLES), help='Filter by role')
@with_appcontext
def list_users(role):
    """List all users with their role and status."""
    users = user_service.list_users(role=role)

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "=" * 100)
    click.echo(f"{'ID':<38} {'Username':<20} {'Email':<28} {'Active':<8} {'Role'}")
    click.echo("=" * 100)

    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<38} {user.username:<20} {user.email:<28} {active_str:<8} {user.role}")

    click.echo("=" * 100 + "\n")


def register_commands(app):
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
