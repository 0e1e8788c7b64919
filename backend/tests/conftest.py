"""
Pytest fixtures for storekeep backend tests.

Provides test database setup, two isolated tenants (A and B) with staff at
every role, stores, products and test client helpers.
"""

import pytest
from storekeep import create_app
from storekeep.extensions import db
from storekeep.access import Principal, Role
from storekeep.models import User, Store, Product
from storekeep.services.auth_service import hash_password
from storekeep.services.session_service import create_session


PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'LOG_LEVEL': 'WARNING',
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='session')
def password_hash():
    """bcrypt at cost 12 is slow; hash once and share across users."""
    return hash_password(PASSWORD)


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


def _make_user(db_session, password_hash, username, role, owner=None):
    user = User(
        username=username,
        name=username.replace("_", " ").title(),
        password_hash=password_hash,
        role=role.value,
        owner_id=owner.id if owner is not None else None,
        is_active=True,
    )
    db_session.add(user)
    db_session.commit()
    return user


# -- Tenant A --

@pytest.fixture(scope='function')
def owner_a(db_session, password_hash):
    return _make_user(db_session, password_hash, "owner_a", Role.OWNER)


@pytest.fixture(scope='function')
def admin_a(db_session, password_hash, owner_a):
    return _make_user(db_session, password_hash, "admin_a", Role.ADMIN, owner_a)


@pytest.fixture(scope='function')
def staff_a(db_session, password_hash, owner_a):
    return _make_user(db_session, password_hash, "staff_a", Role.STAFF, owner_a)


@pytest.fixture(scope='function')
def cashier_a(db_session, password_hash, owner_a):
    return _make_user(db_session, password_hash, "cashier_a", Role.CASHIER, owner_a)


# -- Tenant B --

@pytest.fixture(scope='function')
def owner_b(db_session, password_hash):
    return _make_user(db_session, password_hash, "owner_b", Role.OWNER)


@pytest.fixture(scope='function')
def admin_b(db_session, password_hash, owner_b):
    return _make_user(db_session, password_hash, "admin_b", Role.ADMIN, owner_b)


def _make_store(db_session, owner, code):
    store = Store(owner_id=owner.id, created_by=owner.id, name=f"Store {code}", code=code)
    db_session.add(store)
    db_session.commit()
    return store


@pytest.fixture(scope='function')
def store_a1(db_session, owner_a):
    """Create Store A1 in tenant A."""
    return _make_store(db_session, owner_a, "A1")


@pytest.fixture(scope='function')
def store_a2(db_session, owner_a):
    """Create Store A2 in tenant A."""
    return _make_store(db_session, owner_a, "A2")


@pytest.fixture(scope='function')
def store_b1(db_session, owner_b):
    """Create Store B1 in tenant B."""
    return _make_store(db_session, owner_b, "B1")


@pytest.fixture(scope='function')
def product_a1(db_session, store_a1):
    """Ten units of SKU-1 in Store A1."""
    product = Product(
        store_id=store_a1.id,
        sku="SKU-1",
        name="Widget",
        quantity=10,
        sale_price_cents=500,
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def product_b1(db_session, store_b1):
    """Product in Store B1 (tenant B)."""
    product = Product(
        store_id=store_b1.id,
        sku="SKU-B",
        name="Gadget",
        quantity=3,
        sale_price_cents=2000,
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def headers_for(db_session):
    """
    Factory: Authorization headers for a user.

    Issues the session directly so tests skip bcrypt verification.
    """
    def _headers(user) -> dict:
        _, token = create_session(user_id=user.id)
        return {'Authorization': f'Bearer {token}'}
    return _headers


@pytest.fixture(scope='function')
def as_principal():
    """Factory: Principal exactly as session verification would build it."""
    return Principal.for_user
