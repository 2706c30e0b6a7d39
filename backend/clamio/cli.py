# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/clamio/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init
#   Idempotent: creates tables, the default superadmin, and session tokens.
#
# Users:
# - python -m flask users list [--role vendor]
# - python -m flask users create --name "Ravi Kumar" --email ravi@clamio.local --password "Password123" --role vendor --warehouse-id 67311
#
# Stores:
# - python -m flask stores create --account-code STORE1 --name "Main Store"
#
# Vendor sessions:
# - python -m flask sessions ensure
#   Give every user a session token and normalize active_session flags.
#
# Maintenance:
# - python -m flask maintenance cleanup-notifications [--retention-days 90]
#   Delete resolved/dismissed notifications older than the retention window.

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .models import User
from .services import maintenance_service, store_service, user_service, vendor_session_service
from .services.auth_service import PasswordValidationError
from .services.store_service import StoreValidationError
from .services.user_service import UserValidationError


@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('init')
@with_appcontext
def init_command():
    """Create tables, the default superadmin and session tokens."""
    db.create_all()

    email = current_app.config["DEFAULT_SUPERADMIN_EMAIL"]
    existing = db.session.query(User).filter(User.email == email).first()
    if existing:
        click.echo(f"Superadmin {email} already exists")
    else:
        user_service.create_user(
            name="Super Admin",
            email=email,
            password=current_app.config["DEFAULT_SUPERADMIN_PASSWORD"],
            role="superadmin",
        )
        click.echo(f"Created superadmin {email}")

    changed = vendor_session_service.ensure_tokens_and_sessions()
    click.echo(f"Session columns normalized for {changed} users")


@click.group('users')
def users_group():
    """User inspection and bootstrap."""


@users_group.command('list')
@click.option('--role', type=click.Choice(['superadmin', 'admin', 'vendor']), default=None)
@with_appcontext
def list_users_command(role):
    query = db.session.query(User)
    if role:
        query = query.filter(User.role == role)
    for user in query.order_by(User.id).all():
        extra = user.warehouse_id or user.contact_number or ""
        click.echo(f"{user.id:>4}  {user.role:<10} {user.status:<8} {user.email:<35} {extra}")


@users_group.command('create')
@click.option('--name', prompt=True)
@click.option('--email', prompt=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@click.option('--role', type=click.Choice(['superadmin', 'admin', 'vendor']), prompt=True)
@click.option('--warehouse-id', default=None)
@click.option('--contact-number', default=None)
@click.option('--phone', default=None)
@with_appcontext
def create_user_command(name, email, password, role, warehouse_id, contact_number, phone):
    try:
        user = user_service.create_user(
            name=name,
            email=email,
            password=password,
            role=role,
            phone=phone,
            warehouse_id=warehouse_id,
            contact_number=contact_number,
        )
    except (UserValidationError, PasswordValidationError) as e:
        raise click.ClickException(str(e))
    click.echo(f"Created {user.role} {user.email} (id={user.id})")


@click.group('stores')
def stores_group():
    """Store management."""


@stores_group.command('create')
@click.option('--account-code', required=True)
@click.option('--name', 'store_name', required=True)
@with_appcontext
def create_store_command(account_code, store_name):
    try:
        store = store_service.create_store(account_code=account_code, store_name=store_name)
    except StoreValidationError as e:
        raise click.ClickException(str(e))
    click.echo(f"Created store {store.account_code} ({store.store_name})")


@click.group('sessions')
def sessions_group():
    """Vendor session tokens."""


@sessions_group.command('ensure')
@with_appcontext
def ensure_sessions_command():
    changed = vendor_session_service.ensure_tokens_and_sessions()
    click.echo(f"Session columns normalized for {changed} users")


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('cleanup-notifications')
@click.option('--retention-days', type=int, default=None)
@with_appcontext
def cleanup_notifications_command(retention_days):
    days = retention_days if retention_days is not None else current_app.config["NOTIFICATION_RETENTION_DAYS"]
    deleted = maintenance_service.cleanup_notifications(retention_days=days)
    click.echo(f"Deleted {deleted} notifications older than {days} days")


def register_commands(app):
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(stores_group)
    app.cli.add_command(sessions_group)
    app.cli.add_command(maintenance_group)
