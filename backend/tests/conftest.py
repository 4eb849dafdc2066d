"""
Pytest fixtures for BVOLT backend tests.

Provides an in-memory SQLite app, a cleaned session per test, per-role
users, catalog factories and bearer-token helpers.
"""

import pytest
from decimal import Decimal

from bvolt import create_app
from bvolt.extensions import db
from bvolt.services.auth_service import create_user
from bvolt.services.catalog_service import create_client, create_product


DEFAULT_PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        for table in reversed(db.metadata.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        db.session.rollback()


def _make_user(session, role: str, email: str):
    return create_user(
        session,
        name=f"{role.title()} User",
        email=email,
        password=DEFAULT_PASSWORD,
        role=role,
    )


@pytest.fixture(scope='function')
def admin_user(db_session):
    return _make_user(db_session, "admin", "admin@bvolt.test")


@pytest.fixture(scope='function')
def manager_user(db_session):
    return _make_user(db_session, "manager", "manager@bvolt.test")


@pytest.fixture(scope='function')
def seller_user(db_session):
    return _make_user(db_session, "seller", "seller@bvolt.test")


@pytest.fixture(scope='function')
def other_seller(db_session):
    return _make_user(db_session, "seller", "seller2@bvolt.test")


@pytest.fixture(scope='function')
def make_product(db_session):
    """Factory: make_product(code, price, is_active=True, name=None)."""
    def _make(code="P-001", price="10.00", is_active=True, name=None):
        return create_product(
            db_session,
            code=code,
            name=name or f"Product {code}",
            sale_price=Decimal(price),
            is_active=is_active,
        )
    return _make


@pytest.fixture(scope='function')
def customer(db_session):
    return create_client(db_session, name="Construtora Alfa", document="12345678000199")


def get_auth_token(client, email: str, password: str = DEFAULT_PASSWORD) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'email': email,
        'password': password,
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def admin_headers(client, admin_user):
    return auth_headers(get_auth_token(client, admin_user.email))


@pytest.fixture(scope='function')
def manager_headers(client, manager_user):
    return auth_headers(get_auth_token(client, manager_user.email))


@pytest.fixture(scope='function')
def seller_headers(client, seller_user):
    return auth_headers(get_auth_token(client, seller_user.email))


@pytest.fixture(scope='function')
def other_seller_headers(client, other_seller):
    return auth_headers(get_auth_token(client, other_seller.email))
