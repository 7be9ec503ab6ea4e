# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/stockroom/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create any missing tables (prefer 'flask db upgrade' for real deployments).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system cleanup-sessions --older-than-days 30
#   Delete expired or revoked session tokens.
#
# Company management:
# - python -m flask companies list
#   List all registered companies.
# - python -m flask companies register --name "Acme" --gst 22AAAAA0000A1Z5 --email owner@acme.test
#   Register a company and its super_admin user (prompts for the password).

import click
from flask.cli import with_appcontext

from .errors import AppError
from .extensions import db
from .models import User
from .services import company_service, session_service


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Database tables created.")


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

    click.echo("PASS Database reset complete. Run 'python -m flask companies register' to add a tenant.")


@system_group.command('cleanup-sessions')
@click.option('--older-than-days', type=int, default=30, show_default=True)
@with_appcontext
def cleanup_sessions_cli(older_than_days):
    """Delete expired or revoked sessions created before the retention window."""
    deleted = session_service.cleanup_expired_sessions(older_than_days=older_than_days)
    click.echo(f"Deleted {deleted} sessions older than {older_than_days} days.")


@click.group('companies')
def companies_group():
    """Company (tenant) management commands."""


@companies_group.command('list')
@with_appcontext
def list_companies():
    """List all companies."""
    companies = company_service.list_companies()

    if not companies:
        click.echo("No companies found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'Code':<8} {'Name':<30} {'GST':<17} {'Active':<8} {'Users'}")
    click.echo("="*80)

    for company in companies:
        user_count = db.session.query(User).filter_by(company_id=company.company_id).count()
        active_str = "Yes" if company.is_active else "No"
        click.echo(f"{company.company_id:<8} {company.name[:30]:<30} {company.gst_number:<17} {active_str:<8} {user_count}")

    click.echo("="*80 + "\n")


@companies_group.command('register')
@click.option('--name', required=True, help='Company name')
@click.option('--gst', 'gst_number', required=True, help='15-character GST number')
@click.option('--email', required=True, help='Admin login email')
@click.option('--full-name', default=None, help='Admin full name')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@with_appcontext
def register_company_cli(name, gst_number, email, full_name, password):
    """Register a company and its super_admin user."""
    try:
        company, user = company_service.register_company(
            company_name=name,
            gst_number=gst_number,
            email=email,
            password=password,
            full_name=full_name,
        )
    except AppError as exc:
        db.session.rollback()
        click.echo(f"FAIL {exc.message}")
        raise SystemExit(1)

    click.echo(f"PASS Registered {company.name} (Company ID: {company.company_id}, admin: {user.email})")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(companies_group)
