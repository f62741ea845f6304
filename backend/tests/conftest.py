import os

# Avant tout import backend : la session globale ne doit pas viser Postgres
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from backend.app.api.deps import get_db  # noqa: E402
from backend.app.db.base import Base  # noqa: E402
from backend.app.db.models.models_v1 import User  # noqa: E402
from backend.app.main import app  # noqa: E402
from backend.services.auth import issue_token  # noqa: E402


@pytest.fixture(scope="function")
def engine():
    """
    Base SQLite en mémoire, neuve pour chaque test.
    StaticPool : une seule connexion partagée avec le thread du TestClient.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture(scope="function")
def db_session(session_factory) -> Session:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.clear()


def _make_user(db_session, name):
    user = User(name=name, active=True)
    db_session.add(user)
    db_session.flush()
    token = issue_token(db_session, user)
    user_id = user.id
    db_session.commit()
    return user_id, token


@pytest.fixture
def alice(db_session):
    user_id, token = _make_user(db_session, "alice")
    return {"id": user_id, "token": token, "headers": {"Authorization": f"Bearer {token}"}}


@pytest.fixture
def bob(db_session):
    user_id, token = _make_user(db_session, "bob")
    return {"id": user_id, "token": token, "headers": {"Authorization": f"Bearer {token}"}}


@pytest.fixture
def stock_payload():
    return {
        "itemName": "Riz Parfumé",
        "quantityReceived": 100,
        "unitPrice": 2.5,
        "sellingPrice": 3.75,
        "week": 11,
        "year": 2024,
        "createdAt": "2024-03-15T10:00:00Z",
        "updatedAt": "2024-03-15T10:00:00Z",
    }
