import os

# Must be in place before the app (and config) is imported
os.environ["JWT_SECRET_KEY"] = "test-jwt-secret-key-with-enough-length-for-hs256"
os.environ["INTERNAL_SECRET"] = "test-internal-secret"
os.environ.pop("DATABASE_URL", None)

import pytest
import uuid
import jwt
from datetime import datetime, timedelta, timezone
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from config import get_db, JWT_ALGORITHM
from models import Base
from main import app

TEST_DATABASE_URL = "sqlite+aiosqlite://"


def make_token(user_id, email=None, expires_in=3600):
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "email": email or f"{user_id}@example.com",
        "iat": now,
        "exp": now + timedelta(seconds=expires_in),
    }
    return jwt.encode(payload, os.environ["JWT_SECRET_KEY"], algorithm=JWT_ALGORITHM)


@pytest.fixture
async def engine():
    """Fresh in-memory database per test."""
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    """Test client with get_db pointed at the in-memory database."""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def token_factory():
    return make_token


@pytest.fixture
def auth_headers():
    def _auth_headers(user_id, email=None):
        return {"Authorization": f"Bearer {make_token(user_id, email)}"}
    return _auth_headers


@pytest.fixture
def vendor_id():
    return uuid.uuid4()


@pytest.fixture
def second_vendor_id():
    return uuid.uuid4()


@pytest.fixture
def supplier_id():
    return uuid.uuid4()


@pytest.fixture
def sample_vendor_profile():
    return {
        "role": "vendor",
        "business_name": "Raju Chaat Corner",
        "contact_phone": "9876543210",
        "address": "12 MG Road",
        "city": "Pune",
    }


@pytest.fixture
def sample_supplier_profile():
    return {
        "role": "supplier",
        "business_name": "Fresh Farms Wholesale",
        "contact_phone": "9123456780",
        "address": "APMC Market Yard",
        "city": "Pune",
    }


@pytest.fixture
def sample_product_data():
    return {
        "name": "Tomatoes",
        "category": "Vegetables",
        "description": "Farm fresh red tomatoes",
        "price": 50.0,
        "unit": "kg",
        "quantity": 500,
        "min_order_quantity": 1,
        "max_order_quantity": 200,
    }


@pytest.fixture
def create_profile(client, auth_headers):
    """Onboard an identity through the API and return its auth headers."""
    async def _create_profile(user_id, profile_data):
        headers = auth_headers(user_id)
        response = await client.post("/users/profile", json=profile_data, headers=headers)
        assert response.status_code == 201, response.text
        return headers
    return _create_profile


@pytest.fixture
async def vendor_headers(create_profile, vendor_id, sample_vendor_profile):
    return await create_profile(vendor_id, sample_vendor_profile)


@pytest.fixture
async def second_vendor_headers(create_profile, second_vendor_id, sample_vendor_profile):
    return await create_profile(second_vendor_id, {**sample_vendor_profile, "business_name": "Sharma Pav Bhaji"})


@pytest.fixture
async def supplier_headers(create_profile, supplier_id, sample_supplier_profile):
    return await create_profile(supplier_id, sample_supplier_profile)


@pytest.fixture
async def product(client, supplier_headers, sample_product_data):
    """A supplier-owned 'Tomatoes' listing at 50/kg."""
    response = await client.post("/products/", json=sample_product_data, headers=supplier_headers)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def group_buy_payload(product):
    def _group_buy_payload(**overrides):
        payload = {
            "product_id": product["id"],
            "title": "Bulk tomatoes for the week",
            "description": "Pooling orders for a better rate",
            "target_quantity": 100,
            "discount_percentage": 10,
            "min_participants": 2,
            "max_participants": 5,
            "deadline": (datetime.now(timezone.utc) + timedelta(days=3)).isoformat(),
        }
        payload.update(overrides)
        return payload
    return _group_buy_payload
