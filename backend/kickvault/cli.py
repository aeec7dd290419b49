# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/kickvault/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create any missing tables (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Owner accounts:
# - python -m flask accounts list
#   List owners with plan, variant usage and active status.
# - python -m flask accounts create --username alex --email alex@example.com --password "Password123" --plan store
#   Create an owner with the Main avatar and Cash payment type.
# - python -m flask accounts set-plan alex team
#   Move an owner to another plan.
# - python -m flask accounts deactivate alex
#   Disable an owner and revoke their sessions.
#
# Maintenance:
# - python -m flask maintenance cleanup-sessions --retention-days 30
#   Delete expired or revoked sessions older than the retention window.
# - python -m flask maintenance cleanup-security-events --retention-days 90
#   Delete security events older than the retention window.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User, PLAN_CODES
from .services.auth_service import create_user, PasswordValidationError
from .services.plan_service import set_plan, get_variant_quota
from .services import maintenance_service
from .services.session_service import revoke_all_user_sessions


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Database tables created")


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

    click.echo("PASS Database reset complete. Run 'python -m flask accounts create' to add an owner.")


@click.group('accounts')
def accounts_group():
    """Owner account inspection and bootstrap commands."""


@accounts_group.command('create')
@click.option('--username', prompt=True, help='Username')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--plan', type=click.Choice(PLAN_CODES), default='free', show_default=True, help='Plan')
@with_appcontext
def create_account_cli(username, email, password, plan):
    """
    Create a new owner account.

    Password must meet strength requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    """
    try:
        user = create_user(username=username, email=email, password=password, plan=plan)
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {str(e)}")
        click.echo("Requirements: 8+ chars, uppercase, lowercase, digit")
        return
    except ValueError as e:
        click.echo(f"FAIL Failed to create account: {str(e)}")
        return

    click.echo(f"PASS Created owner: {user.username} ({user.email}) on plan '{user.plan}'")
    click.echo(f"     User ID: {user.id}")
    click.echo("SECURITY Password securely hashed with bcrypt")


@accounts_group.command('list')
@with_appcontext
def list_accounts():
    """List all owners with plan usage."""
    users = db.session.query(User).order_by(User.id.asc()).all()
    if not users:
        click.echo("No accounts found.")
        return

    click.echo(f"\n{'ID':<5} {'Username':<20} {'Email':<30} {'Plan':<12} {'Variants':<14} {'Active':<6}")
    click.echo("-" * 92)
    for user in users:
        quota = get_variant_quota(user)
        usage = f"{quota['current']}/{quota['limit']}"
        active = "yes" if user.is_active else "no"
        click.echo(f"{user.id:<5} {user.username:<20} {user.email:<30} {user.plan:<12} {usage:<14} {active:<6}")


@accounts_group.command('set-plan')
@click.argument('username')
@click.argument('plan', type=click.Choice(PLAN_CODES))
@with_appcontext
def set_plan_cli(username, plan):
    """Move an owner to another plan. Existing units are kept even above the new limit."""
    user = db.session.query(User).filter_by(username=username).first()
    if not user:
        click.echo(f"FAIL User '{username}' not found")
        return

    previous = user.plan
    set_plan(user, plan)
    click.echo(f"PASS {username}: {previous} -> {plan}")


@accounts_group.command('deactivate')
@click.argument('username')
@with_appcontext
def deactivate_account_cli(username):
    """Disable an owner and revoke every open session. Their data is kept."""
    user = db.session.query(User).filter_by(username=username).first()
    if not user:
        click.echo(f"FAIL User '{username}' not found")
        return

    user.is_active = False
    db.session.commit()
    revoked = revoke_all_user_sessions(user.id, reason="Account deactivated")
    click.echo(f"PASS {username} deactivated; {revoked} sessions revoked")


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('cleanup-sessions')
@click.option('--retention-days', type=int, default=30, show_default=True)
@with_appcontext
def cleanup_sessions_cli(retention_days):
    """Delete expired or revoked sessions older than the retention window."""
    deleted = maintenance_service.cleanup_sessions(retention_days=retention_days)
    click.echo(f"Deleted {deleted} sessions older than {retention_days} days.")


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
    app.cli.add_command(accounts_group)
    app.cli.add_command(maintenance_group)
