"""
Pytest fixtures for ProxyBuy backend tests.

Provides an in-memory application, per-test table wipe, one account per
role, principals for service-level tests and bearer headers for HTTP tests.
"""

import bcrypt
import pytest
from flask import g

from proxybuy import create_app
from proxybuy.extensions import db
from proxybuy.models import User
from proxybuy.services import order_service, session_service
from proxybuy.services.permission_service import Principal


PASSWORD = "Password123"

# Low bcrypt cost keeps fixture setup fast; verify_password accepts any cost
_FIXTURE_HASH = bcrypt.hashpw(PASSWORD.encode("utf-8"), bcrypt.gensalt(rounds=4)).decode("utf-8")

VALID_ORDER = {
    "product_link": "https://item.taobao.com/item.htm?id=1234567890",
    "product_name": "Wireless earbuds",
    "quantity": 2,
    "variation": "Black",
    "shipping_address": "KG 11 Ave, Kigali",
}


@pytest.fixture(scope='session')
def app(tmp_path_factory):
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'UPLOAD_FOLDER': str(tmp_path_factory.mktemp("uploads")),
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
def db_session(app):
    """Fresh data for each test (schema is kept)."""
    for attr in ("current_user", "principal", "session_context"):
        g.pop(attr, None)

    meta = db.metadata
    for table in reversed(meta.sorted_tables):
        db.session.execute(table.delete())
    db.session.commit()

    yield db.session

    db.session.rollback()


@pytest.fixture
def make_user(db_session):
    """Factory: make_user(role="user", verification_status="verified", email=None)."""
    counter = {"n": 0}

    def _make(role="user", verification_status="verified", email=None, is_active=True):
        counter["n"] += 1
        user = User(
            email=email or f"{role}{counter['n']}@proxybuy.test",
            password_hash=_FIXTURE_HASH,
            first_name=role.title(),
            last_name=f"Tester{counter['n']}",
            role=role,
            verification_status=verification_status,
            is_active=is_active,
        )
        db_session.add(user)
        db_session.commit()
        return user

    return _make


@pytest.fixture
def customer(make_user):
    return make_user("user")


@pytest.fixture
def other_customer(make_user):
    return make_user("user")


@pytest.fixture
def unverified_customer(make_user):
    return make_user("user", verification_status="pending")


@pytest.fixture
def employee(make_user):
    return make_user("employee")


@pytest.fixture
def other_employee(make_user):
    return make_user("employee")


@pytest.fixture
def admin(make_user):
    return make_user("admin")


@pytest.fixture
def super_admin(make_user):
    return make_user("super_admin")


def principal_for(user) -> Principal:
    return Principal.from_user(user)


def create_test_order(user, **overrides):
    """Submit a valid order as user through the service layer."""
    payload = dict(VALID_ORDER)
    payload.update(overrides)
    return order_service.create_order(principal_for(user), payload)


def token_for(user) -> str:
    """Issue a session directly (skips the login round-trip)."""
    _session, token = session_service.create_session(user.id)
    return token


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


def headers_for(user) -> dict:
    return auth_headers(token_for(user))
