# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/shopledger/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to shopledger (PowerShell: $env:FLASK_APP="shopledger").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates tables if missing, seeds SHOP/WAREHOUSE/SERVICE
#   locations and CASH/BANK/BKASH/NAGAD ledger accounts.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Stock inspection:
# - python -m flask stock check
#   Verify product totals equal the sum of their location rows; exits 1 on drift.
# - python -m flask stock show 12
#   Print total and per-location stock for product 12.
#
# Ledger inspection:
# - python -m flask ledger balances
#   Print the derived balance of every ledger account.

import click
from flask.cli import with_appcontext

from .errors import DomainError
from .extensions import db
from .models import LedgerAccount
from .services import report_service
from .services.setup_service import seed_reference_data


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """Create tables (if missing) and seed default locations and ledger accounts."""
    click.echo("START Initializing shopledger...")
    db.create_all()

    created = seed_reference_data(db.session)
    if created["locations"]:
        click.echo(f"PASS Created locations: {', '.join(created['locations'])}")
    else:
        click.echo("PASS Locations already present")
    if created["accounts"]:
        click.echo(f"PASS Created ledger accounts: {', '.join(created['accounts'])}")
    else:
        click.echo("PASS Ledger accounts already present")


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


@click.group('stock')
def stock_group():
    """Stock inspection commands."""


@stock_group.command('check')
@with_appcontext
def check_stock():
    """Report products whose total stock differs from the sum of their locations."""
    drift = report_service.stock_drift(db.session)
    if not drift:
        click.echo("PASS All product totals match their location stock")
        return
    for row in drift:
        click.echo(
            f"FAIL product {row['product_id']} ({row['title']}): "
            f"stock={row['stock']} locations={row['location_total']}"
        )
    raise SystemExit(1)


@stock_group.command('show')
@click.argument('product_id', type=int)
@with_appcontext
def show_stock(product_id):
    """Show total and per-location stock for a product."""
    try:
        summary = report_service.stock_summary(db.session, product_id)
    except DomainError as e:
        raise click.ClickException(e.message)
    click.echo(f"{summary['title']} (ID: {summary['product_id']}) total={summary['stock']}")
    for row in summary["locations"]:
        click.echo(f"  {row['location_code']:<12} {row['quantity']}")


@click.group('ledger')
def ledger_group():
    """Ledger inspection commands."""


@ledger_group.command('balances')
@with_appcontext
def ledger_balances():
    """Print the derived balance of every account."""
    accounts = db.session.query(LedgerAccount).order_by(LedgerAccount.id).all()
    if not accounts:
        click.echo("No ledger accounts. Run 'python -m flask system init'.")
        return
    for account in accounts:
        info = report_service.account_balance(db.session, account.id)
        state = "" if account.is_active else " (inactive)"
        click.echo(f"{account.name:<12} {account.kind:<6} {info['balance_cents']:>12}{state}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(stock_group)
    app.cli.add_command(ledger_group)
