"""
Pytest fixtures for KickVault backend tests.

Provides test database setup, two independent owners (tenants), session
tokens and small helpers for building inventory through the API.
"""

import pytest
from kickvault import create_app
from kickvault.extensions import db
from kickvault.services.auth_service import create_user
from kickvault.services.session_service import create_session

PASSWORD = "Password123"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'SERIAL_ALLOCATION_BACKOFF_SECONDS': 0,
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
def owner_a(db_session):
    """Owner A on the free plan (Main avatar + Cash payment type provisioned)."""
    return create_user("owner_a", "owner_a@example.com", PASSWORD)


@pytest.fixture(scope='function')
def owner_b(db_session):
    """Owner B, a second independent tenant."""
    return create_user("owner_b", "owner_b@example.com", PASSWORD)


@pytest.fixture(scope='function')
def headers_a(owner_a):
    _session, token = create_session(owner_a.id)
    return auth_headers(token)


@pytest.fixture(scope='function')
def headers_b(owner_b):
    _session, token = create_session(owner_b.id)
    return auth_headers(token)


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


def get_auth_token(client, username: str, password: str = PASSWORD) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'username': username,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def inventory_payload(sku="DD1391-100", name="Dunk Low Panda", rows=None, **row):
    """Build an add-inventory body; keyword args become a single variantsToAdd row."""
    if rows is None:
        base = {"size": "10", "quantity": 1, "costPrice": "80.00", "salePrice": "120.00"}
        base.update(row)
        rows = [base]
    return {
        "productForm": {
            "sku": sku,
            "name": name,
            "brand": "Nike",
            "originalPrice": "80.00",
            "salePrice": "120.00",
        },
        "variantsToAdd": rows,
    }


def add_units(client, headers, **kwargs):
    """POST /api/inventory and return the response."""
    return client.post('/api/inventory', json=inventory_payload(**kwargs), headers=headers)
