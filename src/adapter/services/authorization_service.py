"""Store-backed Authorization Service"""

from src.app.repositories.user_repository import UserRepository
from src.app.services.authorization_service import AuthorizationService
from src.domain.user import UserRole, UserStatus


class UserRoleAuthorizationService(AuthorizationService):
    """Authorizes callers from their role and company on the users table"""

    def __init__(self, user_repo: UserRepository):
        self.user_repo = user_repo

    async def is_company_admin(self, user_id: str, company_id: str) -> bool:
        user = await self.user_repo.get_by_id(user_id)
        if user is None or user.status != UserStatus.ACTIVE:
            return False
        if user.role == UserRole.SUPER_ADMIN:
            return True
        return user.role == UserRole.COMPANY_ADMIN and user.company_id == company_id

    async def is_super_admin(self, user_id: str) -> bool:
        user = await self.user_repo.get_by_id(user_id)
        return (
            user is not None
            and user.status == UserStatus.ACTIVE
            and user.role == UserRole.SUPER_ADMIN
        )
