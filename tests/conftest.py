import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_dummy")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test_secret")
os.environ.setdefault("DB_LOG_SLOW_QUERIES", "false")

from unittest.mock import patch  # noqa: E402

import pytest  # noqa: E402
import redis  # noqa: E402
from fastapi import Depends, HTTPException, Request  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from coworking_api import cache, rate_limiter  # noqa: E402
from coworking_api.auth import get_current_user, get_optional_user  # noqa: E402
from coworking_api.database import Base, SessionLocal, engine, get_db  # noqa: E402
from coworking_api.main import app  # noqa: E402
from coworking_api.models import Space, User  # noqa: E402

MEETING_ROOM_PRICING = {
    "hourly": 30,
    "daily": 180,
    "tiers": [
        {"min_people": 1, "max_people": 6, "hourly_rate": 30, "daily_rate": 180},
        {
            "min_people": 7,
            "max_people": 12,
            "hourly_rate": 50,
            "daily_rate": 300,
            "extra_person_hourly": 5,
            "extra_person_daily": 25,
        },
    ],
}

CLIENT_HEADER = "X-Test-Client"

OPEN_SPACE_PRICING = {"hourly": 5, "daily": 25, "weekly": 100, "monthly": 300, "per_person": True}


@pytest.fixture(autouse=True)
def database():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def no_redis():
    """Every Redis lookup fails; caches miss and make_client overrides the rate limiters"""
    error = redis.ConnectionError("Redis disabled in tests")
    cache.cache.redis_client = None
    rate_limiter.pin_attempts.clear()
    with patch("coworking_api.cache.get_redis_client", side_effect=error), patch(
        "coworking_api.rate_limiter.get_redis_client", side_effect=error
    ):
        yield
    rate_limiter.pin_attempts.clear()


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def _make_user(db, role: str, email: str) -> User:
    user = User(firebase_uid=f"uid-{email}", email=email, full_name=email.split("@")[0].title(), role=role)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def admin_user(db):
    return _make_user(db, "admin", "admin@coworkingcafe.fr")


@pytest.fixture
def staff_user(db):
    return _make_user(db, "staff", "staff@coworkingcafe.fr")


@pytest.fixture
def client_user(db):
    return _make_user(db, "client", "alice@example.com")


@pytest.fixture
def make_client():
    """Build a TestClient authenticated as `user` (None for a guest)"""
    limiters = (
        rate_limiter.booking_rate_limiter,
        rate_limiter.contact_rate_limiter,
        rate_limiter.clocking_rate_limiter,
    )

    # each client sends its own key so several clients can be used in one test
    users = {}

    def _load(request: Request, db: Session):
        user_id = users.get(request.headers.get(CLIENT_HEADER))
        return None if user_id is None else db.get(User, user_id)

    async def current_user(request: Request, db: Session = Depends(get_db)):
        user = _load(request, db)
        if user is None:
            raise HTTPException(status_code=401, detail="Not authenticated")
        return user

    async def optional_user(request: Request, db: Session = Depends(get_db)):
        return _load(request, db)

    async def no_limit():
        return None

    app.dependency_overrides[get_current_user] = current_user
    app.dependency_overrides[get_optional_user] = optional_user
    for limiter in limiters:
        app.dependency_overrides[limiter] = no_limit

    def _build(user=None) -> TestClient:
        key = str(len(users))
        users[key] = None if user is None else user.id
        return TestClient(app, headers={CLIENT_HEADER: key})

    yield _build
    app.dependency_overrides.clear()


@pytest.fixture
def admin_client(make_client, admin_user):
    return make_client(admin_user)


@pytest.fixture
def staff_client(make_client, staff_user):
    return make_client(staff_user)


@pytest.fixture
def user_client(make_client, client_user):
    return make_client(client_user)


@pytest.fixture
def guest_client(make_client):
    return make_client(None)


@pytest.fixture
def make_space(db):
    def _make(**overrides) -> Space:
        fields = {
            "name": "Salle Verrière",
            "slug": "salle-verriere",
            "space_type": "meeting-room",
            "min_capacity": 1,
            "max_capacity": 12,
            "pricing": MEETING_ROOM_PRICING,
            "deposit_policy": {"enabled": True, "percentage": 50},
            "is_active": True,
        }
        fields.update(overrides)
        space = Space(**fields)
        db.add(space)
        db.commit()
        db.refresh(space)
        return space

    return _make
