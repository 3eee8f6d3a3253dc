"""User query service."""

from src.modules.users.domain.entities import User
from src.modules.users.domain.exceptions import UserNotFoundError
from src.modules.users.domain.repository import UserRepository


class UserQueryService:
    """Query service for user views."""

    def __init__(self, user_repository: UserRepository) -> None:
        self.user_repo = user_repository

    async def get_current_user(self, user_id: str) -> User:
        user = await self.user_repo.get_by_id(user_id)
        if not user:
            raise UserNotFoundError(user_id=user_id)
        return user

    async def require_issue(self, user_id: str) -> bool:
        """工时录入是否必须关联 Issue；用户不存在时按默认值处理。"""
        user = await self.user_repo.get_by_id(user_id)
        return user.require_issue if user else False
