import itertools
import os

# Must be set before app modules build the engine
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.database import Base, get_db
from app.api.deps import create_access_token, get_notification_dispatcher
from app.models import Account, Inspection, Inspector, InspectorTimeslot
from app.security.passwords import get_password_hash
from app.services.email_service import MockEmailService, set_email_service
from tests.factories import PricingConfigFactory

# In-memory SQLite shared by every session of a test
TEST_DATABASE_URL = "sqlite+aiosqlite://"

# 2024-01-01 is a Monday
MONDAY = "20240101"


@pytest_asyncio.fixture
async def test_engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def test_db(session_factory):
    """Create test database session."""
    async with session_factory() as session:
        yield session


@pytest.fixture(autouse=True)
def mock_email():
    """Every test gets a fresh MockEmailService as the process-wide email service."""
    service = MockEmailService()
    set_email_service(service)
    yield service
    set_email_service(None)


@pytest_asyncio.fixture
async def test_account(test_db: AsyncSession):
    """Create a test account with tiered pricing."""
    account = Account(
        name="Acme Home Inspections",
        email="office@acme.test",
        inspection_counter=0,
        pricing=PricingConfigFactory(),
    )
    test_db.add(account)
    await test_db.commit()
    return account


@pytest_asyncio.fixture
async def test_inspector(test_db: AsyncSession, test_account: Account):
    """Create an inspector available Mondays at 9:00 and 13:00."""
    inspector = Inspector(
        account_id=test_account.id,
        first_name="Ada",
        last_name="Lovelace",
        email="ada@acme.test",
        hashed_password=get_password_hash("Password123"),
        is_owner=True,
        is_active=True,
        timeslots=[
            InspectorTimeslot(weekday="monday", minute=540),
            InspectorTimeslot(weekday="monday", minute=780),
        ],
        timeoff=[],
    )
    test_db.add(inspector)
    await test_db.commit()
    return inspector


@pytest.fixture
def inspector_token(test_inspector: Inspector) -> str:
    return create_access_token({"sub": test_inspector.id, "affiliation": "inspector"})


@pytest.fixture
def auth_headers(inspector_token: str) -> dict:
    return {"Authorization": f"Bearer {inspector_token}"}


@pytest_asyncio.fixture
async def client(test_db: AsyncSession):
    """Create test client with overridden database and no outbox dispatch."""

    async def override_get_db():
        yield test_db

    async def no_dispatch():
        return None

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notification_dispatcher] = lambda: no_dispatch

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def create_inspection(test_db: AsyncSession, test_account: Account, test_inspector: Inspector):
    """Factory fixture inserting inspections directly, bypassing booking validation."""
    numbers = itertools.count(1000)

    async def _create(date: str = MONDAY, time: int = 540, **overrides) -> Inspection:
        fields = {
            "account_id": test_account.id,
            "number": next(numbers),
            "inspector": test_inspector,
            "client1": None,
            "client2": None,
            "realtor": None,
            "address1": "100 Congress Ave",
            "city": "Austin",
            "state": "TX",
            "zip": "78701",
            "sqft": 1800,
            "year_built": 1990,
            "foundation": "slab",
            "main_service": "full",
            "additional_services": [],
            "date": date,
            "time": time,
            "details_locked": False,
            "invoice_sent": False,
            "invoiced": 0,
            "balance": 0,
            "payments": [],
        }
        fields.update(overrides)
        inspection = Inspection(**fields)
        test_db.add(inspection)
        await test_db.commit()
        return inspection

    return _create
