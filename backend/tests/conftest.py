import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from main import app
from database import Base, get_db

# Setup in-memory SQLite database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database session for each test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)

@pytest.fixture(scope="function")
def client(db_session):
    """Create a FastAPI TestClient with overridden database dependency."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.pop(get_db, None)

def member_headers(member_id):
    """Headers identifying the calling member."""
    return {"X-Member-Id": member_id}

@pytest.fixture
def group(client):
    """
    Create a group of three: Alice (50%), Bob (30%) and Carol (20%).
    Returns the group ID and member IDs by first name.
    """
    resp = client.post("/groups", json={
        "name": "Flatshare",
        "currency": "EUR",
        "creator_name": "Alice",
        "creator_income": 500000
    })
    assert resp.status_code == 201
    data = resp.json()
    group_id = data["id"]
    alice_id = data["members"][0]["id"]

    ids = {"group_id": group_id, "alice": alice_id}
    for name, income in [("Bob", 300000), ("Carol", 200000)]:
        member_resp = client.post(
            f"/groups/{group_id}/members",
            headers=member_headers(alice_id),
            json={"name": name, "income": income}
        )
        assert member_resp.status_code == 201
        ids[name.lower()] = member_resp.json()["id"]
    return ids
