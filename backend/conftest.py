"""Shared fixtures: a throwaway SQLite database per test and an API client bound to it.

Each helper writes through its own short-lived session and returns plain ids,
so no test session sits on the SQLite write lock while the API is called.
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ALLOWED_HOSTS"] = "testserver,localhost"
os.environ["RATE_LIMIT_REQUESTS"] = "100000"
os.environ["ENVIRONMENT"] = "test"
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")

from datetime import date, timedelta  # noqa: E402
from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from app.api.deps import get_db  # noqa: E402
from app.core.security import create_access_token, get_password_hash  # noqa: E402
from app.db.base import Base  # noqa: E402
from app.db.session import build_engine  # noqa: E402
from app.main import app  # noqa: E402
from app.models import Customer, Franchise, Product, User  # noqa: E402
from app.services import inventory_service  # noqa: E402

TEST_PASSWORD = "Secret123"
_PASSWORD_HASH = get_password_hash(TEST_PASSWORD)


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'pharmacy_test.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_franchise(session_factory):
    counter = {"n": 0}

    def _make(name=None, is_active=True) -> int:
        counter["n"] += 1
        with session_factory() as s:
            franchise = Franchise(
                name=name or f"Branch {counter['n']}",
                address=f"{counter['n']} Market Road, Pune",
                contact_number="020-2400-0000",
                email=f"branch{counter['n']}@demo-pharmacy.in",
                is_active=is_active,
            )
            s.add(franchise)
            s.commit()
            return franchise.id

    return _make


@pytest.fixture
def make_customer(session_factory):
    def _make(franchise_id: int, first_name="Asha", last_name="Rao", email="asha@demo-pharmacy.in") -> int:
        with session_factory() as s:
            customer = Customer(
                franchise_id=franchise_id,
                first_name=first_name,
                last_name=last_name,
                address="7 Lake View, Pune",
                contact_number="98200-00000",
                email=email,
            )
            s.add(customer)
            s.commit()
            return customer.id

    return _make


@pytest.fixture
def make_product(session_factory):
    def _make(
        franchise_id=None,
        stock=0,
        name="Paracetamol 500mg",
        mrp="25.00",
        gst="12",
        low_stock_threshold=10,
    ) -> int:
        with session_factory() as s:
            product = Product(
                category="Analgesic",
                manufacturer="Micro Labs",
                name=name,
                packing="10 tablets",
                mrp=Decimal(mrp),
                gst=Decimal(gst),
                low_stock_threshold=low_stock_threshold,
                expiry_date=date.today() + timedelta(days=365),
                supplier="Micro Labs",
            )
            s.add(product)
            s.flush()
            if franchise_id is not None:
                inventory_service.set_stock(s, franchise_id, product.pr_code, stock)
            s.commit()
            return product.pr_code

    return _make


@pytest.fixture
def make_user(session_factory):
    counter = {"n": 0}

    def _make(franchise_id=None, role="staff"):
        """Returns (user_id, auth headers)."""
        counter["n"] += 1
        with session_factory() as s:
            user = User(
                first_name="Staff",
                last_name=str(counter["n"]),
                username=f"staff{counter['n']}",
                email=f"staff{counter['n']}@demo-pharmacy.in",
                hashed_password=_PASSWORD_HASH,
                role=role,
                franchise_id=franchise_id,
            )
            s.add(user)
            s.commit()
            user_id = user.id
        token = create_access_token(subject=str(user_id))
        return user_id, {"Authorization": f"Bearer {token}"}

    return _make
