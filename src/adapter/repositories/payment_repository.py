"""SQLAlchemy Payment Repository Implementation"""

from datetime import datetime
from typing import Optional, List
from sqlmodel import select
from src.adapter.repositories.base import SqlAlchemyRepository
from src.app.repositories.payment_repository import PaymentRepository
from src.domain.payment import Payment, PaymentStatus


class SqlAlchemyPaymentRepository(SqlAlchemyRepository, PaymentRepository):
    """
    SQLAlchemy implementation of PaymentRepository

    Uses async session for database operations.
    """

    async def create(self, payment: Payment) -> Payment:
        return await self._add(payment)

    async def get_by_id(self, payment_id: str) -> Optional[Payment]:
        statement = select(Payment).where(Payment.id == payment_id)
        result = await self._execute(statement)
        return result.scalar_one_or_none()

    async def get_by_payment_intent_id(self, payment_intent_id: str) -> Optional[Payment]:
        statement = (
            select(Payment)
            .where(Payment.stripe_payment_intent_id == payment_intent_id)
            .order_by(Payment.created_at.desc())
            .limit(1)
        )
        result = await self._execute(statement)
        return result.scalars().first()

    async def get_due_for_retry(self, now: datetime, limit: int = 500) -> List[Payment]:
        statement = (
            select(Payment)
            .where(Payment.status == PaymentStatus.FAILED)
            .where(Payment.next_retry_date <= now)
            .where(Payment.attempt_number < Payment.max_attempts)
            .order_by(Payment.next_retry_date)
            .limit(limit)
        )
        result = await self._execute(statement)
        return list(result.scalars().all())

    async def get_by_company_id(self, company_id: str, limit: int = 50) -> List[Payment]:
        statement = (
            select(Payment)
            .where(Payment.company_id == company_id)
            .order_by(Payment.attempted_at.desc())
            .limit(limit)
        )
        result = await self._execute(statement)
        return list(result.scalars().all())

    async def update(self, payment: Payment) -> Payment:
        return await self._compare_and_swap(payment)
