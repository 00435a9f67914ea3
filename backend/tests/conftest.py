"""
Pytest fixtures for PDV backend tests.

Provides the app on in-memory SQLite, a clean database and fallback store per
test, two tenants with products, and bearer tokens for each role.
"""

import pytest

from pdv import create_app
from pdv.config import TestingConfig
from pdv.extensions import db
from pdv.services import business_service, products_service
from pdv.services.auth_service import issue_token
from pdv.services.permission_service import Principal, SUPER_ADMIN, ADMIN, OPERATOR
from pdv.storage import get_storage


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TestingConfig)

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def storage(app):
    return get_storage()


@pytest.fixture(scope='function', autouse=True)
def db_session(app, storage):
    """Empty database and in-memory store for each test; database reachable."""
    meta = db.metadata
    for table in reversed(meta.sorted_tables):
        db.session.execute(table.delete())
    db.session.commit()
    storage.memory.reset()
    storage.persistent.enabled = True

    yield db.session

    db.session.rollback()
    storage.persistent.enabled = True


@pytest.fixture(scope='function')
def business_a(storage):
    """Business A (first tenant)."""
    return business_service.create_business(storage, {"name": "Depósito A", "plan": "free"})


@pytest.fixture(scope='function')
def business_b(storage):
    """Business B (second tenant)."""
    return business_service.create_business(storage, {"name": "Mercado B", "plan": "premium"})


@pytest.fixture(scope='function')
def coca(storage, business_a):
    """Coca-Cola 2L at 8.50 in Business A."""
    return products_service.create_product(storage, business_a.id, {
        "name": "Coca-Cola 2L",
        "barcode": "7894900011517",
        "category": "Refrigerante",
        "price": "8.50",
        "cost": "5.20",
        "stock": 10,
        "minStock": 2,
    })


@pytest.fixture(scope='function')
def skol(storage, business_a):
    """Skol can at 3.20 in Business A."""
    return products_service.create_product(storage, business_a.id, {
        "name": "Cerveja Skol Lata 350ml",
        "barcode": "7891991010924",
        "category": "Cerveja",
        "price": "3.20",
        "stock": 10,
    })


@pytest.fixture(scope='function')
def product_b(storage, business_b):
    """Product in Business B."""
    return products_service.create_product(storage, business_b.id, {
        "name": "Produto B",
        "barcode": "7890000000001",
        "price": "20.00",
        "stock": 5,
    })


def make_token(role: str, business_id=None, user_id=None) -> str:
    """Sign a token directly, skipping the registration/approval flow."""
    return issue_token(Principal(
        user_id=user_id or f"{role}-user",
        email=f"{role}@example.com",
        role=role,
        business_id=business_id,
        name=role.title(),
    ))


@pytest.fixture(scope='function')
def admin_token(business_a):
    return make_token(ADMIN, business_a.id)


@pytest.fixture(scope='function')
def operator_token(business_a):
    return make_token(OPERATOR, business_a.id)


@pytest.fixture(scope='function')
def admin_b_token(business_b):
    return make_token(ADMIN, business_b.id)


@pytest.fixture(scope='function')
def super_admin_token(app):
    return make_token(SUPER_ADMIN, user_id="super-admin")


def get_auth_token(client, email: str, password: str, role: str) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'email': email,
        'password': password,
        'role': role,
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str, business_id: str = None) -> dict:
    """Helper to create Authorization (and X-Business-ID) headers."""
    headers = {'Authorization': f'Bearer {token}'}
    if business_id:
        headers['X-Business-ID'] = business_id
    return headers
