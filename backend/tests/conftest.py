"""
Pytest fixtures for the ERP backend tests.

Provides the app against in-memory SQLite, a fresh database per test,
the service bundle, and an authenticated test client.
"""

import pytest
from erp import create_app
from erp.extensions import db
from erp.services.registry import get_services


AUTH_EMAIL = "owner@shop.test"
AUTH_PASSWORD = "Secret123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'STORE_ENABLED': True,
        'AUTH_EMAIL': AUTH_EMAIL,
        'AUTH_PASSWORD': AUTH_PASSWORD,
        'AUTH_DISPLAY_NAME': 'Shop Owner',
        'BCRYPT_ROUNDS': 4,
        'SHOP_NAME': 'Test Fabrics',
        'CURRENCY_SYMBOL': 'Rs',
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
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def services(db_session):
    return get_services()


@pytest.fixture(scope='function')
def product(services):
    """Cotton kurta with 10 in stock."""
    return services.products.create_product({
        "name": "Cotton Kurta",
        "code": "CK-001",
        "fabricType": "Cotton",
        "purchaseCost": 600,
        "minSalePrice": 800,
        "maxSalePrice": 1200,
        "currentPrice": 1000,
        "stock": 10,
        "minStock": 3,
    })


@pytest.fixture(scope='function')
def second_product(services):
    """Silk dupatta with 4 in stock."""
    return services.products.create_product({
        "name": "Silk Dupatta",
        "code": "SD-002",
        "fabricType": "Silk",
        "purchaseCost": 300,
        "currentPrice": 500,
        "stock": 4,
    })


@pytest.fixture(scope='function')
def employee(services):
    """Salesperson at score 75, 40000 of a 50000 monthly target."""
    return services.employees.create_employee({
        "name": "Ahmed Ali",
        "position": "Sales Associate",
        "commission": 2.5,
        "monthlyTarget": 50000,
        "monthlySales": 40000,
        "performanceScore": 75,
    })


def get_auth_token(client, email: str = AUTH_EMAIL, password: str = AUTH_PASSWORD) -> str:
    """Helper to get auth token for the configured account."""
    response = client.post('/api/auth/login', json={
        'email': email,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def headers(client, db_session):
    token = get_auth_token(client)
    assert token, "login with the configured account failed"
    return auth_headers(token)
