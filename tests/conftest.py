import os

# Settings are read at import time; configure before importing the app.
os.environ.setdefault("SESSION_SECRET", "sopopped-test-secret")
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from sopopped.core.rate_limit import FileRateLimiter, get_rate_limiter
from sopopped.core.security import hash_password
from sopopped.database import get_session
from sopopped.main import app
from sopopped.models.product import Product
from sopopped.models.user import User

PASSWORD = "Secret#123"


@pytest.fixture
def session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def limiter(tmp_path):
    return FileRateLimiter(str(tmp_path / "rate"), limit=15, window=60)


@pytest.fixture
def make_client(session, limiter):
    """
    Build TestClients that share the test database.

    Each client keeps its own cookie jar, i.e. is its own browser.
    """
    app.dependency_overrides[get_session] = lambda: session
    app.dependency_overrides[get_rate_limiter] = lambda: limiter

    def _make() -> TestClient:
        return TestClient(app)

    yield _make
    app.dependency_overrides.clear()


@pytest.fixture
def client(make_client):
    return make_client()


@pytest.fixture
def make_user(session):
    def _make(
        email: str = "ana.cruz@sopopped.ph",
        password: str = PASSWORD,
        role: str = "customer",
        archived: bool = False,
        first_name: str = "Ana",
        last_name: str = "Cruz",
    ) -> User:
        user = User(
            email=email,
            password_hash=hash_password(password),
            first_name=first_name,
            last_name=last_name,
            phone="09171234567",
            role=role,
            is_archived=archived,
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    return _make


@pytest.fixture
def make_product(session):
    def _make(name: str = "Caramel Popcorn", price: float = 120.0, quantity: int = 10) -> Product:
        product = Product(name=name, price=price, quantity=quantity)
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    return _make


@pytest.fixture
def login():
    def _login(client: TestClient, email: str, password: str = PASSWORD):
        return client.post("/api/auth/login", json={"email": email, "password": password})

    return _login
