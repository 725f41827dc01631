"""
pytest configuration for the food distribution portal.
Settings come from the environment, so they are set before any app import.
Every test gets a fresh in-memory MongoDB (mongomock-motor) with Beanie bound to it.
"""

import itertools
import os

os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("FIREBASE_CREDENTIALS_PATH", "")

import httpx
import pytest
from mongomock_motor import AsyncMongoMockClient

from food_portal.db import init_models
from food_portal.models.beneficiary import BeneficiaryCreate
from food_portal.models.center import CenterCreate
from food_portal.models.schedule import ScheduleCreate
from food_portal.models.user import User, UserRole
from food_portal.services import beneficiaries, centers, schedules, workflow
from food_portal.services.events import EventBus
from food_portal.services.identity import IdentityProvider
from food_portal.services.inflight import InFlightRegistry
from food_portal.services.session import Session

PASSWORD = "secret123"


@pytest.fixture(autouse=True)
async def db():
    client = AsyncMongoMockClient()
    database = client["food_portal_test"]
    await init_models(database)
    yield database


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def inflight():
    return InFlightRegistry()


@pytest.fixture
def published(bus):
    """Every (topic, payload) pair published on the test bus."""
    seen = []
    bus.subscribe("*", lambda topic, payload: seen.append((topic, payload)))
    return seen


@pytest.fixture
def make_user():
    counter = itertools.count(1)

    async def _make(role=UserRole.STAFF, password=PASSWORD, **kwargs):
        n = next(counter)
        email = kwargs.pop("email", f"{role.value}{n}@foodportal.org")
        name = kwargs.pop("name", f"Test {role.value} {n}")
        async with IdentityProvider().isolated() as scoped:
            credential = await scoped.create_credential(email, password)
        user = User(uid=credential.uid, email=email, name=name, role=role, **kwargs)
        await user.insert()
        return user

    return _make


@pytest.fixture
def make_session(make_user, bus, inflight):
    async def _make(role=UserRole.STAFF, **kwargs):
        user = await make_user(role, **kwargs)
        session = Session(events=bus, inflight=inflight)
        await session.sign_in(user.email, PASSWORD)
        return session

    return _make


@pytest.fixture
async def staff(make_session):
    return await make_session(UserRole.STAFF)


@pytest.fixture
async def admin(make_session):
    return await make_session(UserRole.ADMIN)


@pytest.fixture
async def super_admin(make_session):
    return await make_session(UserRole.SUPER_ADMIN)


@pytest.fixture
def make_beneficiary(admin):
    counter = itertools.count(1)

    async def _make(approved=False, **kwargs):
        n = next(counter)
        data = {
            "cnic": f"35202{n:08d}",
            "name": f"Household {n}",
            "phone": "03001234567",
            "address": "Street 1, Lahore",
            "family_members": 5,
            "income_level": "Very Low",
        }
        data.update(kwargs)
        b = await beneficiaries.create_beneficiary(admin, BeneficiaryCreate(**data))
        if approved:
            b = await workflow.approve(admin, b.cnic)
        return b

    return _make


@pytest.fixture
async def center(admin):
    return await centers.create_center(admin, CenterCreate(name="Gulberg Center", address="Main Blvd"))


@pytest.fixture
def make_schedule(admin, make_beneficiary, center):
    async def _make(**kwargs):
        b = await make_beneficiary(approved=True)
        data = {
            "cnic": b.cnic,
            "pickup_date": "2026-10-18",
            "pickup_time": "10:30",
            "distribution_center": center.name,
        }
        data.update(kwargs)
        return await schedules.create_schedule(admin, ScheduleCreate(**data))

    return _make


@pytest.fixture
async def api_client():
    from food_portal.main import app

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@pytest.fixture
def bearer():
    def _headers(session):
        return {"Authorization": f"Bearer {session.credential.access_token}"}

    return _headers
