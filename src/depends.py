from functools import lru_cache
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.adapter.services.billing_history_logger import SqlAlchemyBillingHistoryLogger
from src.adapter.services.stripe_gateway import StripePaymentGateway
from src.app.services.billing_history_logger import BillingHistoryLogger
from src.app.services.payment_gateway import PaymentGateway
from src.app.services.price_cache import PriceCache
from src.domain.pricing import PricingPolicy

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)

price_cache = PriceCache()


async def get_session() -> AsyncSession:
    async with AsyncSessionLocal() as session:
        yield session


async def get_unit_of_work():
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


@lru_cache
def get_payment_gateway() -> PaymentGateway:
    return StripePaymentGateway.from_config(ApplicationConfig)


@lru_cache
def get_pricing() -> PricingPolicy:
    return PricingPolicy.from_config(ApplicationConfig)


def get_price_cache() -> PriceCache:
    return price_cache


def get_history_logger() -> BillingHistoryLogger:
    return SqlAlchemyBillingHistoryLogger(AsyncSessionLocal)
