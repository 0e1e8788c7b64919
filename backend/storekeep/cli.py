# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/storekeep/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create all tables that do not exist yet (use `flask db upgrade` for migrations).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Tenant bootstrap:
# - python -m flask owners create --username acme --name "Acme Ltd" --password "Password123!"
#   Create an OWNER account (a new tenant).
#
# User inspection:
# - python -m flask users list [--owner-id 1]
#   List live users with role, tenant and active status.
#
# Maintenance:
# - python -m flask maintenance cleanup-sessions
#   Delete expired/revoked session tokens older than 30 days.
# - python -m flask maintenance cleanup-security-events --retention-days 90
#   Delete security events older than the retention window.

import click
from flask.cli import with_appcontext

from .extensions import db
from .errors import ValidationError
from .models import User
from .services.auth_service import register_owner
from .services import maintenance_service


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create missing tables from the model metadata."""
    db.create_all()
    click.echo("PASS Tables created.")


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

    click.echo("PASS Database reset complete. Run 'python -m flask owners create' to add a tenant.")


@click.group('owners')
def owners_group():
    """Tenant (OWNER account) bootstrap."""


@owners_group.command('create')
@click.option('--username', prompt=True, help='Username')
@click.option('--name', prompt=True, help='Display name')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@with_appcontext
def create_owner_cli(username, name, password):
    """Create a new OWNER account, i.e. a new tenant."""
    try:
        owner = register_owner(username=username, name=name, password=password)
    except ValidationError as e:
        raise click.ClickException(e.message)

    click.echo(f"PASS Created owner '{owner.username}' (id={owner.id})")


@click.group('users')
def users_group():
    """User inspection commands."""


@users_group.command('list')
@click.option('--owner-id', type=int, help='Filter by tenant (OWNER user id)')
@with_appcontext
def list_users(owner_id):
    """List live users with their roles."""
    query = User.live()

    if owner_id:
        query = query.filter(db.or_(User.id == owner_id, User.owner_id == owner_id))

    users = query.order_by(User.id.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Tenant':<7} {'Username':<24} {'Role':<9} {'Active':<8} {'Name'}")
    click.echo("="*80)

    for user in users:
        tenant = user.owner_id if user.owner_id is not None else user.id
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {tenant:<7} {user.username:<24} {user.role:<9} {active_str:<8} {user.name}")

    click.echo("="*80 + "\n")


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('cleanup-sessions')
@with_appcontext
def cleanup_sessions_cli():
    """Delete expired and revoked session tokens older than 30 days."""
    deleted = maintenance_service.cleanup_sessions()
    click.echo(f"Deleted {deleted} expired or revoked sessions.")


@maintenance_group.command('cleanup-security-events')
@click.option('--retention-days', type=click.IntRange(min=1), default=90, show_default=True)
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
    app.cli.add_command(owners_group)
    app.cli.add_command(users_group)
    app.cli.add_command(maintenance_group)
