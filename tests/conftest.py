"""
Shared test fixtures: SQLite test database, test client, auth helpers, small catalog.
"""

import os
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Set env before importing app modules
os.environ["JWT_SECRET"] = "test-secret-key-for-testing-only"
os.environ["DATABASE_URL"] = "sqlite:///./test.db"
os.environ["ANALYSIS_DELAY_SECONDS"] = "0"

from renoquote.aggregator import QuoteAggregator
from renoquote.catalog import MaterialSpec, PricingCatalog, PricingProfile, QualityTier, RoomTemplate
from renoquote.database import Base, get_db
from renoquote.main import app


TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def setup_database():
    """Create all tables before each test, drop after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client():
    """FastAPI test client."""
    return TestClient(app)


@pytest.fixture
def db():
    """Direct database session for test setup/assertions."""
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def session_factory():
    """Opens extra sessions, one per simulated concurrent request."""
    return TestingSessionLocal


@pytest.fixture
def agg(db):
    """Aggregator over the direct session."""
    return QuoteAggregator(db)


@pytest.fixture
def auth_headers(client):
    """Register a test user and return auth headers."""
    response = client.post("/api/auth/register", json={
        "email": "test@homeowner.com",
        "password": "strongpassword123",
    })
    assert response.status_code == 200
    token = response.json()["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def other_headers(client):
    """A second user, for ownership checks."""
    response = client.post("/api/auth/register", json={
        "email": "other@contractor.com",
        "password": "strongpassword123",
        "role": "contractor",
    })
    assert response.status_code == 200
    token = response.json()["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def small_catalog():
    """Two categories, two rooms, two tiers. Round numbers."""
    return PricingCatalog(
        work_categories=[
            PricingProfile(
                id="painting",
                display_name="Painting",
                labor_rate_per_hour=50,
                hours_per_square_meter=0.4,
                materials=(
                    MaterialSpec("Paint", "liter", 10, 4),
                    MaterialSpec("Drop cloth", "sqm", 2, 1),
                ),
            ),
            PricingProfile(
                id="plumbing",
                display_name="Plumbing",
                labor_rate_per_hour=65,
                hours_per_square_meter=1.0,
                materials=(MaterialSpec("Pipe", "meter", 4, 10),),
            ),
        ],
        room_templates=[
            RoomTemplate("bathroom", "Bathroom", ("plumbing", "painting", "roofing"), 10, 1.5),
            RoomTemplate("other", "Other", ("painting",), 20, 1.0),
        ],
        quality_tiers=[
            QualityTier("standard", "Standard", materials_multiplier=1.0, labor_multiplier=1.0),
            QualityTier("premium", "Premium", materials_multiplier=1.5, labor_multiplier=1.25),
        ],
    )
