"""
Flask CLI commands for setup and maintenance.

Commands:
- flask init-db: Create all tables
- flask create-api-key: Issue an API key for a user
- flask reconcile-invoice-flags: Recompute invoice flags from findings
"""

import click
from app.database import db_session, create_all
from app.decorators.permissions import PERMISSIONS
from app.models import ApiKey, ALL_PERMISSIONS
from app.services.validation_service import reconcile_invoice_flags


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('init-db')
    def init_db_command():
        """Create database tables."""
        create_all()
        click.echo(click.style('✅ Database tables created', fg='green'))

    @app.cli.command('create-api-key')
    @click.option('--user-id', required=True, help='Owner user id')
    @click.option('--name', required=True, help='Label for the key')
    @click.option('--permission', 'permissions', multiple=True,
                  type=click.Choice(list(PERMISSIONS) + [ALL_PERMISSIONS]),
                  help='Permission to grant (repeatable, default: all)')
    def create_api_key(user_id, name, permissions):
        """Issue an API key. The plain key is printed once and never stored."""
        api_key, plain_key = ApiKey.generate(user_id, name, list(permissions) or None)

        try:
            db_session.add(api_key)
            db_session.commit()
        except Exception as e:
            db_session.rollback()
            click.echo(click.style(f'❌ Error creating API key: {e}', fg='red'))
            raise SystemExit(1)

        click.echo(click.style('\n✅ API key created', fg='green', bold=True))
        click.echo(f'   ID: {api_key.id}')
        click.echo(f'   Permissions: {", ".join(api_key.permissions)}')
        click.echo(f'   Key: {plain_key}')
        click.echo('\n💡 Send it in the X-API-Key header. It cannot be shown again.')

    @app.cli.command('reconcile-invoice-flags')
    @click.option('--business-id', type=int, default=None, help='Limit to one business')
    def reconcile_invoice_flags_command(business_id):
        """Recompute has_validation_issues / is_duplicate from stored findings."""
        repaired = reconcile_invoice_flags(db_session, business_id=business_id)
        click.echo(f'Repaired {repaired} invoice(s)')
