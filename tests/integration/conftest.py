import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

import src.domain  # noqa: F401  registers every table on SQLModel.metadata
from src.adapter.services.billing_history_logger import SqlAlchemyBillingHistoryLogger
from src.app.services.price_cache import PriceCache
from src.depends import get_history_logger, get_payment_gateway, get_price_cache, get_pricing, get_session
from src.domain.company import AccountStatus, Company
from src.domain.pricing import PricingPolicy
from src.domain.user import User, UserRole
from tests.fixtures.fake_gateway import FakePaymentGateway


@pytest_asyncio.fixture(scope="function")
async def engine(tmp_path):
    """Create a fresh SQLite database file for each test"""
    test_db_url = f"sqlite+aiosqlite:///{tmp_path / 'billing_test.db'}"

    engine = create_async_engine(test_db_url, echo=False, future=True)

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    """Create a new database session for each test"""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def gateway():
    return FakePaymentGateway()


@pytest_asyncio.fixture
async def history(session_factory):
    return SqlAlchemyBillingHistoryLogger(session_factory)


@pytest_asyncio.fixture
async def pricing():
    return PricingPolicy()


@pytest_asyncio.fixture
async def company(db_session):
    """Company acme01 with an admin and nine more active users"""
    company = Company(
        id="acme01",
        name="Acme Inc",
        billing_email="billing@acme.test",
        account_status=AccountStatus.TRIAL,
    )
    db_session.add(company)
    db_session.add(User(id="admin-1", company_id="acme01", name="Admin", role=UserRole.COMPANY_ADMIN))
    for index in range(9):
        db_session.add(User(id=f"user-{index}", company_id="acme01", name=f"User {index}"))
    db_session.add(User(id="root", name="Operator", role=UserRole.SUPER_ADMIN))
    await db_session.commit()
    return company


@pytest_asyncio.fixture
async def client(db_session, gateway, history, pricing):
    """Create test client with database, gateway and history overrides"""
    from src.api.app import create_app
    from config import ApplicationConfig

    app = create_app(ApplicationConfig)

    # Override the session dependency to use test session
    async def override_get_session():
        yield db_session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    app.dependency_overrides[get_history_logger] = lambda: history
    app.dependency_overrides[get_pricing] = lambda: pricing
    app.dependency_overrides[get_price_cache] = PriceCache

    # Use ASGITransport for httpx AsyncClient
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
