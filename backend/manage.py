#!/usr/bin/env python
"""
Management commands

Usage:
    flask --app manage.py generate-key
    flask --app manage.py list-integrations
    flask --app manage.py sync-account <account_id>
    flask --app manage.py sync-all
    flask --app manage.py db upgrade      # Flask-Migrate
"""
import json

import click
from flask.cli import with_appcontext

from dashboard import create_app
from dashboard.security.validation import validate_account_id
from dashboard.utils.crypto import CredentialCrypto

app = create_app()


def _engine():
    app.extensions['integration_registry'].load_all()
    return app.extensions['sync_engine']


def _echo_result(result: dict) -> None:
    click.echo(json.dumps(result, indent=2, default=str))


@app.cli.command('generate-key')
def generate_key():
    """Print a new CREDENTIAL_ENCRYPTION_KEY."""
    click.echo(CredentialCrypto.generate_key())


@app.cli.command('list-integrations')
def list_integrations():
    """List available integrations."""
    registry = app.extensions['integration_registry']
    registry.load_all()
    for integration in registry.all():
        click.echo(f'{integration.id:<12} {integration.name}')


@app.cli.command('sync-account')
@click.argument('account_id')
@with_appcontext
def sync_account(account_id):
    """Sync one account now (ignores the HTTP cooldown)."""
    error = validate_account_id(account_id)
    if error:
        raise click.BadParameter(error.message, param_hint='account_id')
    _echo_result(_engine().sync_account(account_id))


@app.cli.command('sync-all')
@with_appcontext
def sync_all():
    """Sync every active account now (ignores the HTTP cooldown)."""
    _echo_result(_engine().sync_all_accounts())


if __name__ == '__main__':
    app.cli()
