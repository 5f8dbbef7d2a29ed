"""
Shared test fixtures: SQLite database, test client, in-memory catalog builders.
"""

import os
from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Set DATABASE_URL before importing app modules
os.environ["DATABASE_URL"] = "sqlite:///./test.db"

from printdesk.database import Base, get_db
from printdesk.main import app
from printdesk.pricing.catalog import (
    CatalogSnapshot, MaterialRule, OperationNorm, PaperStock, Service, VolumeTier,
)


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
def seeded(client):
    """Default services, paper stock and norms loaded through the API."""
    response = client.get("/api/pricing/seed")
    assert response.status_code == 200
    return response.json()["seeded"]


# --- In-memory catalog for engine tests ---

T0 = datetime(2024, 1, 1, 12, 0, 0)

DIGITAL_PRINT = 1
CUTTING = 2


@pytest.fixture
def flyer_catalog():
    """
    Flyers on SRA3: A6 pinned at 8-up, semi-matte 150 at 0.50/sheet,
    digital print at 2.0 (no tiers below 1000), cutting at 0.10/sheet.
    """
    return CatalogSnapshot(
        services=[
            Service(id=DIGITAL_PRINT, name="Digital print", unit="sheet", base_rate=2.0),
            Service(id=CUTTING, name="Cutting", unit="sheet", base_rate=0.10),
        ],
        volume_tiers=[
            VolumeTier(id=1, service_id=DIGITAL_PRINT, min_quantity=1000, rate=1.5, created_at=T0),
        ],
        operation_norms=[
            OperationNorm(id=1, product_type="flyers", operation="digital_print",
                          service_id=DIGITAL_PRINT, formula="ceil(quantity / 4)"),
        ],
        paper_stocks=[
            PaperStock(id=1, paper_type="semi-matte", density=150,
                       name="Semi-matte 150", price_per_sheet=0.50),
        ],
        material_rules=[
            MaterialRule(product_type="flyers", waste_ratio=0.02,
                         up_by_format=(("A4", 2), ("A5", 4), ("A6", 8))),
        ],
        loaded_at=T0,
    )
