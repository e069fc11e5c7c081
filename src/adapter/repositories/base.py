"""Shared SQLAlchemy repository plumbing

Translates driver errors to StoreUnavailableError and implements the
version-guarded update used by Subscription, Invoice and Payment.
"""

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel.ext.asyncio.session import AsyncSession
from src.domain.billing_clock import utc_now
from src.domain.exceptions import (
    ConcurrentModificationError,
    DuplicateEntityError,
    StoreUnavailableError,
)

IMMUTABLE_COLUMNS = ("id", "version", "created_at")


class SqlAlchemyRepository:
    """Base class for async SQLAlchemy repositories"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _execute(self, statement):
        try:
            return await self.session.execute(statement)
        except SQLAlchemyError as e:
            raise StoreUnavailableError(str(e)) from e

    async def _add(self, entity):
        try:
            self.session.add(entity)
            await self.session.flush()
            await self.session.refresh(entity)
        except IntegrityError as e:
            raise DuplicateEntityError(str(e.orig or e)) from e
        except SQLAlchemyError as e:
            raise StoreUnavailableError(str(e)) from e
        return entity

    async def _save(self, entity):
        """Plain update for unversioned entities"""
        entity.updated_at = utc_now()
        return await self._add(entity)

    async def _compare_and_swap(self, entity):
        """
        Write every mutable column if the stored version still matches

        UPDATE ... WHERE id = :id AND version = :expected, bumping version.
        The entity is refreshed from the store afterwards, so the session
        holds no pending changes for it.

        Raises:
            ConcurrentModificationError: No row matched the expected version
        """
        model = type(entity)
        expected_version = entity.version
        entity.updated_at = utc_now()

        values = {
            column.name: getattr(entity, column.name)
            for column in model.__table__.columns
            if column.name not in IMMUTABLE_COLUMNS
        }
        values["version"] = expected_version + 1

        statement = (
            update(model)
            .where(model.id == entity.id)
            .where(model.version == expected_version)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await self._execute(statement)

        if result.rowcount != 1:
            raise ConcurrentModificationError(model.__name__, entity.id, expected_version)

        try:
            await self.session.refresh(entity)
        except SQLAlchemyError as e:
            raise StoreUnavailableError(str(e)) from e
        return entity
