"""
Pytest fixtures for Sundus backend tests.

Provides an in-memory database, a test client, staff users and a small
catalog.
"""

import os
from decimal import Decimal

import pytest
from sundus import create_app
from sundus.extensions import db
from sundus.models import Category, Product, User
from sundus.services.auth_service import hash_password

PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def upload_root(tmp_path_factory):
    return str(tmp_path_factory.mktemp("uploads"))


@pytest.fixture(scope='session')
def app(upload_root):
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'UPLOAD_DIR': upload_root,
        'BCRYPT_ROUNDS': 4,
        'CLOUDINARY_CLOUD_NAME': None,
        'CLOUDINARY_API_KEY': None,
        'CLOUDINARY_API_SECRET': None,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function', autouse=True)
def db_session(app, upload_root):
    """Fresh tables and an empty upload directory for each test."""
    meta = db.metadata
    for table in reversed(meta.sorted_tables):
        db.session.execute(table.delete())
    db.session.commit()
    for name in os.listdir(upload_root):
        os.remove(os.path.join(upload_root, name))

    yield db.session

    db.session.rollback()


def _make_user(session, username: str, role: str, **extra) -> User:
    user = User(
        username=username,
        email=f"{username}@sundus.test",
        password_hash=hash_password(PASSWORD),
        role=role,
        **extra,
    )
    session.add(user)
    session.commit()
    return user


@pytest.fixture(scope='function')
def admin_user(db_session):
    return _make_user(db_session, "admin", "admin", full_name="Admin")


@pytest.fixture(scope='function')
def cashier_user(db_session):
    return _make_user(db_session, "cashier", "cashier", full_name="Cashier")


@pytest.fixture(scope='function')
def plain_user(db_session):
    return _make_user(db_session, "visitor", "user")


@pytest.fixture(scope='function')
def category(db_session):
    cat = Category(name="Coffee", display_order=1)
    db_session.add(cat)
    db_session.commit()
    return cat


@pytest.fixture(scope='function')
def product(db_session, category):
    """Latte, id 7, priced at 3.00."""
    latte = Product(id=7, name="Latte", price=Decimal("3.00"), sku="LAT-001", category_id=category.id)
    db_session.add(latte)
    db_session.commit()
    return latte


@pytest.fixture(scope='function')
def second_product(db_session, category):
    cake = Product(id=8, name="Honey Cake", price=Decimal("4.50"), sku="CAK-001", category_id=category.id)
    db_session.add(cake)
    db_session.commit()
    return cake


def get_auth_token(client, username: str, password: str = PASSWORD) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/v1/auth/login', json={
        'username': username,
        'password': password
    })
    if response.status_code == 200:
        return response.json["data"]["token"]
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def admin_headers(client, admin_user):
    return auth_headers(get_auth_token(client, admin_user.username))


@pytest.fixture(scope='function')
def cashier_headers(client, cashier_user):
    return auth_headers(get_auth_token(client, cashier_user.username))


@pytest.fixture(scope='function')
def user_headers(client, plain_user):
    return auth_headers(get_auth_token(client, plain_user.username))
