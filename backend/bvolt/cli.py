# Overview: Flask CLI command groups for bootstrap, seeding and ledger checks.

# backend/bvolt/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates tables and the default admin, manager and seller users.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User inspection/bootstrap:
# - python -m flask users list
# - python -m flask users create --name "Ana" --email ana@bvolt.local --password "Password123!" --role seller
#
# Catalog seeding:
# - python -m flask products create --code P-001 --name "Cabo 2,5mm" --price 10.00
# - python -m flask clients create --name "Construtora Alfa" --document 12345678000199
#
# Stock ledger:
# - python -m flask stock verify [--product-id 1]
#   Replays the movement ledger and reports products whose stored quantity differs.

import click
from flask.cli import with_appcontext

from .errors import ApiError
from .extensions import db
from .models import User, ROLES
from .services.auth_service import create_user
from .services.catalog_service import create_client, create_product
from .services.stock_service import find_ledger_mismatches


DEFAULT_PASSWORD = "Password123!"

DEFAULT_USERS = [
    ("Administrator", "admin@bvolt.local", "admin"),
    ("Manager", "manager@bvolt.local", "manager"),
    ("Seller", "seller@bvolt.local", "seller"),
]


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Initialize BVOLT: schema plus one user per role.

    All default passwords are "Password123!".
    SECURITY: Change passwords immediately in production!
    """
    click.echo("START Initializing BVOLT...")
    db.create_all()
    click.echo("PASS Tables ready")

    click.echo("\nUSERS Creating default users...")
    for name, email, role in DEFAULT_USERS:
        if db.session.query(User).filter_by(email=email).first():
            click.echo(f"WARN  User '{email}' already exists, skipping...")
            continue
        try:
            create_user(db.session, name=name, email=email, password=DEFAULT_PASSWORD, role=role)
        except ApiError as e:
            click.echo(f"FAIL Failed to create user '{email}': {e.message}")
            continue
        click.echo(f"PASS Created user: {email} with role '{role}'")

    click.echo("\nDefault Credentials (CHANGE IN PRODUCTION!):")
    for _, email, role in DEFAULT_USERS:
        click.echo(f"   {role:<8} -> {email:<22} / {DEFAULT_PASSWORD}")
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


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--name', prompt=True, help='Display name')
@click.option('--email', prompt=True, help='Email address (login)')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(list(ROLES)), prompt=True, help='Role')
@with_appcontext
def create_user_cli(name, email, password, role):
    """
    Create a new user.

    Password must meet strength requirements: 8+ chars, uppercase,
    lowercase, digit and special character.
    """
    try:
        user = create_user(db.session, name=name, email=email, password=password, role=role)
    except ApiError as e:
        raise click.ClickException(e.message)

    click.echo(f"PASS Created user: {user.email} with role '{user.role}' (ID: {user.id})")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their role and active status."""
    users = db.session.query(User).order_by(User.id).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Name':<20} {'Email':<30} {'Role':<10} {'Active'}")
    click.echo("="*80)
    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.name:<20} {user.email:<30} {user.role:<10} {active_str}")
    click.echo("="*80 + "\n")


@click.group('products')
def products_group():
    """Product seeding commands."""


@products_group.command('create')
@click.option('--code', required=True, help='Unique product code')
@click.option('--name', required=True, help='Product name')
@click.option('--price', required=True, help='Sale price, e.g. 10.00')
@click.option('--description', default=None, help='Optional description')
@click.option('--inactive', is_flag=True, help='Create the product as inactive')
@with_appcontext
def create_product_cli(code, name, price, description, inactive):
    try:
        product = create_product(
            db.session,
            code=code,
            name=name,
            sale_price=price,
            description=description,
            is_active=not inactive,
        )
    except ApiError as e:
        raise click.ClickException(e.message)

    click.echo(f"PASS Created product {product.code} (ID: {product.id}) at {product.sale_price}")


@click.group('clients')
def clients_group():
    """Client seeding commands."""


@clients_group.command('create')
@click.option('--name', required=True, help='Client name')
@click.option('--document', default=None, help='CPF/CNPJ')
@click.option('--email', default=None, help='Contact email')
@with_appcontext
def create_client_cli(name, document, email):
    try:
        client = create_client(db.session, name=name, document=document, email=email)
    except ApiError as e:
        raise click.ClickException(e.message)

    click.echo(f"PASS Created client {client.name} (ID: {client.id})")


@click.group('stock')
def stock_group():
    """Stock ledger inspection commands."""


@stock_group.command('verify')
@click.option('--product-id', type=int, default=None, help='Check a single product')
@with_appcontext
def verify_stock(product_id):
    """Replay the movement ledger and compare with stored quantities."""
    mismatches = find_ledger_mismatches(db.session, product_id=product_id)

    if not mismatches:
        click.echo("PASS Stored quantities match the movement ledger")
        return

    for row in mismatches:
        click.echo(
            f"FAIL Product {row['product_id']}: stored={row['stored']} ledger={row['ledger']}"
        )
    raise click.ClickException(f"{len(mismatches)} product(s) out of sync with the ledger")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(products_group)
    app.cli.add_command(clients_group)
    app.cli.add_command(stock_group)
