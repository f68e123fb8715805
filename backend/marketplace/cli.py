# Overview: Flask CLI command groups for bootstrap, inspection, and admin accounts.

# backend/marketplace/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Create storage tables (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: delete every stored document.
#
# User inspection/bootstrap:
# - python -m flask users list [--role vendor]
#   List accounts with role and status.
# - python -m flask users create-admin --name "Admin" --email admin@example.com --password "Password123"
#   Create an admin account (prompts if options are omitted).

import click
from flask.cli import with_appcontext

from .errors import MarketplaceError
from .models import User, ROLE_ADMIN, USER_ROLES
from .services import auth_service
from .storage import get_repository


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """Prepare the configured storage backend."""
    repository = get_repository()
    repository.initialize()
    click.echo(f"PASS Storage initialized ({repository.name}).")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Remove every user, vendor, product and order.
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    repository = get_repository()
    click.echo("DELETE  Removing all documents...")
    repository.reset()
    repository.initialize()
    click.echo("PASS Storage reset complete. Run 'python -m flask users create-admin' to add an admin.")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('list')
@click.option('--role', type=click.Choice(USER_ROLES), help='Filter by role')
@with_appcontext
def list_users(role):
    """List all users with their roles."""
    query = {"role": role} if role else {}
    users = User.find(get_repository(), query, sort=[("created_at", 1)])

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*100)
    click.echo(f"{'ID':<26} {'Name':<20} {'Email':<32} {'Role':<8} {'Status'}")
    click.echo("="*100)

    for user in users:
        click.echo(f"{user.id:<26} {user.name[:20]:<20} {user.email[:32]:<32} {user.role:<8} {user.status}")

    click.echo("="*100 + "\n")


@users_group.command('create-admin')
@click.option('--name', prompt=True, help='Display name')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@with_appcontext
def create_admin(name, email, password):
    """Create an admin account. Admins cannot be created through the API."""
    try:
        user = auth_service.create_user(name=name, email=email, password=password, role=ROLE_ADMIN)
    except MarketplaceError as e:
        raise click.ClickException(e.message)

    click.echo(f"PASS Created admin {user.email} (id {user.id})")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
