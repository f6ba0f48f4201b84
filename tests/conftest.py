"""
pytest configuration and fixtures for the back-office tests.

Every test gets a fresh in-memory SQLite database. The API client shares the
test's session, so rows added through a fixture are visible to requests.
"""
import os

# Settings are read once, before the app modules are imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["AUTH_JWT_SECRET"] = "test-secret"
os.environ["AUTH_JWT_AUDIENCE"] = ""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from backoffice.core.database_client import get_db
from backoffice.core.view_cache import ListViewCache
from backoffice.dependencies import get_list_cache
from backoffice.main import app
from backoffice.models.base import Base
from backoffice.models.sql_property import SQLInventory, SQLRequirement
from backoffice.models.user import User
from backoffice.models import sql_deal  # noqa: F401  (registers the deal tables)

JWT_SECRET = "test-secret"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)()
    yield session
    session.close()


@pytest.fixture
def cache():
    return ListViewCache(ttl_seconds=60)


@pytest.fixture
def make_user(db):
    def factory(user_id, role="broker", email=None, name=None, **fields):
        user = User(
            user_id=user_id,
            email=email or f"{user_id}@example.com",
            name=name or user_id.title(),
            role=role,
            **fields,
        )
        db.add(user)
        db.commit()
        return user
    return factory


@pytest.fixture
def broker(make_user):
    return make_user("broker-1", role="broker", name="Bea Broker")


@pytest.fixture
def admin(make_user):
    return make_user("admin-1", role="admin", name="Ada Admin")


@pytest.fixture
def guest(make_user):
    return make_user("guest-1", role="guest", name="Gus Guest")


@pytest.fixture
def add_inventory(db, broker):
    """Insert an inventory row directly; money values may be given as numbers."""
    def factory(**fields):
        fields.setdefault("project_name", "Marina Heights")
        fields.setdefault("property_type", "Apartment")
        fields.setdefault("location", "Dubai Marina")
        for key, value in list(fields.items()):
            if isinstance(value, (int, float)) and key not in ("bed_rooms", "maids_room", "study_room", "car_park"):
                fields[key] = Decimal(str(value))
        row = SQLInventory(broker_id=broker.user_id, **fields)
        db.add(row)
        db.commit()
        return row
    return factory


@pytest.fixture
def add_requirement(db, broker):
    def factory(**fields):
        fields.setdefault("demand", "Walk-in client")
        fields.setdefault("preferred_type", "Villa")
        fields.setdefault("preferred_location", "Palm Jumeirah")
        fields.setdefault("budget", "1000000 - 2000000")
        row = SQLRequirement(user_id=broker.user_id, **fields)
        db.add(row)
        db.commit()
        return row
    return factory


@pytest.fixture
def ranked_requirements(add_requirement):
    """25 requirements created one day apart; index 0 is the newest."""
    start = datetime(2024, 1, 1)
    rows = [add_requirement(demand=f"Client {n:02d}", date_created=start + timedelta(days=n)) for n in range(25)]
    return list(reversed(rows))


def bearer(user_id, **claims):
    token = jwt.encode({"sub": user_id, **claims}, JWT_SECRET, algorithm="HS256")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def client(db, cache):
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_list_cache] = lambda: cache
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    return bearer
