# Overview: Flask CLI command groups for bootstrap and inspection.

# backend/pdv/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to "pdv:create_app".
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init-db
#   Create missing tables on the configured database.
# - python -m flask system seed-demo [--business "Sistema de Gestão"] [--password "Vitana2024!"]
#   Idempotent demo data: one business, an admin and an operator credential, sample products.
#
# Business inspection:
# - python -m flask businesses list
#   List all businesses with product and sale counts.

import click
from flask.cli import with_appcontext
from sqlalchemy.exc import SQLAlchemyError

from .errors import PDVError
from .extensions import db
from .models import Business, Product, Sale
from .services import auth_service, business_service, products_service
from .storage import get_storage


DEMO_PRODUCTS = [
    {"name": "Coca-Cola 2L", "barcode": "7894900011517", "category": "Refrigerante",
     "brand": "Coca-Cola", "price": "8.50", "cost": "5.20", "stock": 48, "minStock": 10},
    {"name": "Cerveja Skol Lata 350ml", "barcode": "7891991010924", "category": "Cerveja",
     "brand": "Skol", "price": "3.20", "cost": "2.10", "stock": 120, "minStock": 24},
    {"name": "Água Crystal 500ml", "barcode": "7891910000147", "category": "Água",
     "brand": "Crystal", "price": "2.00", "cost": "1.20", "stock": 8, "minStock": 12},
    {"name": "Guaraná Antarctica 2L", "barcode": "7891991010931", "category": "Refrigerante",
     "brand": "Antarctica", "price": "7.80", "cost": "4.90", "stock": 32, "minStock": 8},
    {"name": "Cerveja Brahma Long Neck", "barcode": "7891991010948", "category": "Cerveja",
     "brand": "Brahma", "price": "4.50", "cost": "2.80", "stock": 96, "minStock": 24},
]


@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet. Existing data is untouched."""
    try:
        db.create_all()
    except SQLAlchemyError as e:
        raise click.ClickException(f"Could not create tables: {e}")
    click.echo("PASS Database tables created")


def _find_or_approve(storage, business_id, email, name, business_name, role, password):
    user = storage.run(lambda backend: backend.find_user_by_email(email))
    if user is None:
        user = auth_service.register_user(storage, {
            "name": name,
            "email": email,
            "businessName": business_name,
        })
        click.echo(f"PASS Registered {email}")

    if storage.run(lambda backend: backend.get_credential(user.id, role)) is not None:
        click.echo(f"PASS {email} already has a {role} credential")
        return

    auth_service.approve_user(storage, user.id, {
        "password": password,
        "role": role,
        "businessId": business_id,
    })
    click.echo(f"PASS Approved {email} as {role}")


@system_group.command('seed-demo')
@click.option('--business', 'business_name', default='Sistema de Gestão', help='Business name')
@click.option('--admin-email', default='gerente@vitana.com', help='Admin login email')
@click.option('--operator-email', default='caixa@vitana.com', help='Operator login email')
@click.option('--password', default='Vitana2024!', help='Password for both demo credentials')
@with_appcontext
def seed_demo(business_name, admin_email, operator_email, password):
    """
    Seed a demo business with one admin, one operator and sample products.

    Safe to run repeatedly: existing business, users, credentials and
    barcodes are reused.

    SECURITY: Change passwords immediately outside development!
    """
    storage = get_storage()
    click.echo("START Seeding demo data...")

    try:
        existing = [
            b for b in storage.run(lambda backend: backend.list_businesses())
            if b.name == business_name
        ]
        if existing:
            business = existing[0]
            click.echo(f"PASS Using existing business: {business.name} (ID: {business.id})")
        else:
            business = business_service.create_business(storage, {
                "name": business_name,
                "subtitle": "Depósito de Bebidas",
                "plan": "free",
            })
            click.echo(f"PASS Created business: {business.name} (ID: {business.id})")

        _find_or_approve(storage, business.id, admin_email, "Gerente", business_name, "admin", password)
        _find_or_approve(storage, business.id, operator_email, "Caixa", business_name, "operator", password)

        created = 0
        for product in DEMO_PRODUCTS:
            barcode = product["barcode"]
            if storage.run(lambda backend: backend.find_product_by_barcode(business.id, barcode)):
                continue
            products_service.create_product(storage, business.id, product)
            created += 1
        click.echo(f"PASS Created {created} products")

    except PDVError as e:
        raise click.ClickException(e.message)

    click.echo("DONE Demo data ready")


@click.group('businesses')
def businesses_group():
    """Business (tenant) inspection commands."""


@businesses_group.command('list')
@with_appcontext
def list_businesses():
    """List all businesses."""
    businesses = db.session.query(Business).order_by(Business.name).all()

    if not businesses:
        click.echo("No businesses found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'ID':<38} {'Name':<30} {'Plan':<8} {'Products':<9} {'Sales'}")
    click.echo("="*90)

    for business in businesses:
        product_count = db.session.query(Product).filter_by(business_id=business.id).count()
        sale_count = db.session.query(Sale).filter_by(business_id=business.id).count()
        click.echo(f"{business.id:<38} {business.name:<30} {business.plan:<8} {product_count:<9} {sale_count}")

    click.echo("="*90 + "\n")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(businesses_group)
