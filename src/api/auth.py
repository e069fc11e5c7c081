"""Caller identification and role checks for billing routes

The upstream authenticator sets X-User-Id; roles are read from the users table.
"""

from typing import Optional
from fastapi import Depends, Header
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from libs.result import Error
from src.adapter.repositories.user_repository import SqlAlchemyUserRepository
from src.adapter.services.authorization_service import UserRoleAuthorizationService
from src.api.error import ClientError
from src.app.use_cases.errors import ErrorCode
from src.depends import get_session

ANONYMOUS_USER = "anonymous"


async def get_current_user_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    if x_user_id:
        return x_user_id
    if ApplicationConfig.AUTH_DISABLED:
        return ANONYMOUS_USER
    raise ClientError(
        Error(code=ErrorCode.UNAUTHENTICATED.value, message="Missing X-User-Id header")
    )


async def require_company_admin(
    company_id: str,
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
) -> str:
    """Allow company admins of company_id and super admins"""
    if ApplicationConfig.AUTH_DISABLED:
        return user_id

    authz = UserRoleAuthorizationService(SqlAlchemyUserRepository(session))
    if not await authz.is_company_admin(user_id, company_id):
        raise ClientError(
            Error(
                code=ErrorCode.PERMISSION_DENIED.value,
                message=f"User {user_id} may not manage billing for company {company_id}",
            )
        )
    return user_id


async def require_super_admin(
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
) -> str:
    if ApplicationConfig.AUTH_DISABLED:
        return user_id

    authz = UserRoleAuthorizationService(SqlAlchemyUserRepository(session))
    if not await authz.is_super_admin(user_id):
        raise ClientError(
            Error(code=ErrorCode.PERMISSION_DENIED.value, message="Super admin role required")
        )
    return user_id
