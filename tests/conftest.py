import os
import tempfile
from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

os.environ["ENVIRONMENT"] = "development"

import cakeland.db.base  # noqa: F401
from cakeland.core.cache import query_cache
from cakeland.core.security import hash_password
from cakeland.db.base_class import Base
from cakeland.db.session import get_db
from cakeland.main import app
from cakeland.models.user import User, UserRole

PASSWORD = "StrongPass1"


@pytest.fixture(autouse=True)
def fresh_query_cache() -> Generator[None, None, None]:
    query_cache.clear()
    yield
    query_cache.clear()


@pytest.fixture()
def db_session() -> Generator[Session, None, None]:
    db_file = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
    db_file.close()

    engine = create_engine(
        f"sqlite:///{db_file.name}",
        connect_args={"check_same_thread": False},
    )
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()
        os.unlink(db_file.name)


@pytest.fixture()
def client(db_session: Session) -> Generator[TestClient, None, None]:
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.state.limiter.reset()
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _create_user(db: Session, email: str, role: UserRole = UserRole.CUSTOMER, phone: str | None = None) -> User:
    user = User(
        email=email,
        full_name="Test User",
        phone=phone,
        password_hash=hash_password(PASSWORD),
        role=role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def _login(client: TestClient, email: str, password: str = PASSWORD) -> dict:
    """Log in and return the response payload. The session cookies stay on the client."""
    response = client.post("/api/v1/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200
    return response.json()["data"]


@pytest.fixture()
def admin_client(client: TestClient, db_session: Session) -> TestClient:
    _create_user(db_session, "admin@example.com", role=UserRole.ADMIN)
    _login(client, "admin@example.com")
    return client


@pytest.fixture()
def customer_client(client: TestClient, db_session: Session) -> TestClient:
    _create_user(db_session, "customer@example.com")
    _login(client, "customer@example.com")
    return client
