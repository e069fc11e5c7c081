"""SQLAlchemy Company Repository Implementation"""

from datetime import datetime
from typing import Optional, List, Dict
from sqlmodel import select
from src.adapter.repositories.base import SqlAlchemyRepository
from src.app.repositories.company_repository import CompanyRepository
from src.domain.company import Company, AccountStatus


class SqlAlchemyCompanyRepository(SqlAlchemyRepository, CompanyRepository):

    async def get_by_id(self, company_id: str) -> Optional[Company]:
        statement = select(Company).where(Company.id == company_id)
        result = await self._execute(statement)
        return result.scalar_one_or_none()

    async def get_names(self, company_ids: List[str]) -> Dict[str, str]:
        if not company_ids:
            return {}
        statement = select(Company.id, Company.name).where(Company.id.in_(company_ids))
        result = await self._execute(statement)
        return {row[0]: row[1] for row in result.all()}

    async def get_trials_ending_before(self, cutoff: datetime, limit: int = 500) -> List[Company]:
        statement = (
            select(Company)
            .where(Company.account_status == AccountStatus.TRIAL)
            .where(Company.trial_ends_at <= cutoff)
            .order_by(Company.trial_ends_at)
            .limit(limit)
        )
        result = await self._execute(statement)
        return list(result.scalars().all())

    async def update(self, company: Company) -> Company:
        return await self._save(company)
