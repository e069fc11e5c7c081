"""SQLAlchemy User Repository Implementation"""

from typing import Optional
from sqlmodel import select, func
from src.adapter.repositories.base import SqlAlchemyRepository
from src.app.repositories.user_repository import UserRepository
from src.domain.user import User, UserStatus


class SqlAlchemyUserRepository(SqlAlchemyRepository, UserRepository):

    async def get_by_id(self, user_id: str) -> Optional[User]:
        statement = select(User).where(User.id == user_id)
        result = await self._execute(statement)
        return result.scalar_one_or_none()

    async def count_active(self, company_id: str) -> int:
        statement = (
            select(func.count())
            .select_from(User)
            .where(User.company_id == company_id)
            .where(User.status == UserStatus.ACTIVE)
        )
        result = await self._execute(statement)
        return result.scalar_one()

    async def update(self, user: User) -> User:
        return await self._save(user)
