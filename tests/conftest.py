import os

# Settings are read at import time
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["PASSWORD_HASH_ROUNDS"] = "4"
os.environ["SECRET_KEY"] = "test-secret-key-not-for-production"
os.environ.pop("DATABASE_URL", None)

import pytest
from fastapi.testclient import TestClient

from eventbooking.database import Database, transaction
from eventbooking.domain.users.repository import UserRepository
from eventbooking.main import create_app
from eventbooking.rate_limiter import RateLimiter
from eventbooking.security_utils import create_jwt_token, hash_password

PASSWORD = "correct-horse-battery"


@pytest.fixture
def database():
    database = Database("sqlite://")
    database.init()
    database.create_schema()
    yield database
    database.dispose()


@pytest.fixture
def db_session(database):
    session = database.session()
    yield session
    session.close()


@pytest.fixture
def app(database):
    return create_app(database=database, rate_limiter=RateLimiter(enabled=False))


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def users(db_session):
    """One user per role, all with PASSWORD"""
    created = {}
    with transaction(db_session, "seed_test_users"):
        for role in ("admin", "staff", "viewer"):
            created[role] = UserRepository.create_user(
                db_session,
                username=role,
                email=f"{role}@example.com",
                role=role,
                password_hash=hash_password(PASSWORD),
            )
    return created


def bearer(user) -> dict:
    return {"Authorization": f"Bearer {create_jwt_token({'sub': user.id})}"}


@pytest.fixture
def admin_headers(users):
    return bearer(users["admin"])


@pytest.fixture
def staff_headers(users):
    return bearer(users["staff"])


@pytest.fixture
def viewer_headers(users):
    return bearer(users["viewer"])


def booking_payload(**overrides) -> dict:
    payload = {
        "customerName": "Maria Santos",
        "contactNumber": "0917 123 4567",
        "email": "Maria.Santos@Example.com",
        "eventDate": "2025-12-25",
        "eventType": "Wedding",
        "venue": "Grand Ballroom, Makati",
        "ceremonyVenue": "San Agustin Church",
        "guestCount": 150,
        "services": ["Lights", "Sounds", "LED Wall"],
        "serviceLights": True,
        "serviceSounds": True,
        "serviceLedWall": True,
        "hasBand": False,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def create_booking(client):
    """Submit a booking through the public endpoint and return its JSON"""

    def _create(**overrides):
        response = client.post("/bookings", json=booking_payload(**overrides))
        assert response.status_code == 201, response.text
        return response.json()

    return _create
