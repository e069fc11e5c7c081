"""SQLAlchemy Payment Method Repository Implementation"""

from typing import Optional, List
from sqlalchemy import update
from sqlmodel import select
from src.adapter.repositories.base import SqlAlchemyRepository
from src.app.repositories.payment_method_repository import PaymentMethodRepository
from src.domain.billing_clock import utc_now
from src.domain.payment_method import PaymentMethod


class SqlAlchemyPaymentMethodRepository(SqlAlchemyRepository, PaymentMethodRepository):

    async def create(self, payment_method: PaymentMethod) -> PaymentMethod:
        return await self._add(payment_method)

    async def get_by_id(self, payment_method_id: str) -> Optional[PaymentMethod]:
        statement = select(PaymentMethod).where(PaymentMethod.id == payment_method_id)
        result = await self._execute(statement)
        return result.scalar_one_or_none()

    async def get_active_by_company_id(self, company_id: str) -> List[PaymentMethod]:
        statement = (
            select(PaymentMethod)
            .where(PaymentMethod.company_id == company_id)
            .where(PaymentMethod.is_active == True)  # noqa: E712
            .order_by(PaymentMethod.created_at.desc())
        )
        result = await self._execute(statement)
        return list(result.scalars().all())

    async def clear_default(self, company_id: str) -> int:
        statement = (
            update(PaymentMethod)
            .where(PaymentMethod.company_id == company_id)
            .where(PaymentMethod.is_active == True)  # noqa: E712
            .where(PaymentMethod.is_default == True)  # noqa: E712
            .values(is_default=False, updated_at=utc_now())
            .execution_options(synchronize_session="fetch")
        )
        result = await self._execute(statement)
        return result.rowcount

    async def update(self, payment_method: PaymentMethod) -> PaymentMethod:
        return await self._save(payment_method)
