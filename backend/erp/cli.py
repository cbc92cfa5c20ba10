# Overview: Flask CLI command groups for bootstrap and bulk data loading.

# backend/erp/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create the documents table if it does not exist (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Products:
# - python -m flask products import products.csv
#   Create one product per CSV row (columns: name, code, fabricType, size, color,
#   purchaseCost, minSalePrice, maxSalePrice, currentPrice, stock, minStock,
#   supplier, batchInfo).

import click
from flask.cli import with_appcontext

from .extensions import db
from .services.registry import get_services
from .validation import ValidationError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create missing tables without touching existing data."""
    db.create_all()
    click.echo("OK  Database tables ready")


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

    click.echo("OK  Database reset complete")


@click.group('products')
def products_group():
    """Product catalogue commands."""


@products_group.command('import')
@click.argument('csv_file', type=click.File('r', encoding='utf-8-sig'))
@with_appcontext
def import_products(csv_file):
    """Bulk-create products from a CSV file."""
    try:
        created = get_services().products.import_csv(csv_file.read())
    except ValidationError as e:
        raise click.ClickException(str(e))

    click.echo(f"OK  Imported {len(created)} product(s)")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(products_group)
