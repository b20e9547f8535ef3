from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import decode_token
from app.models.user import User


class AuthService:
    """Resolves provider-issued access tokens to local users"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user_by_id(self, user_id: UUID) -> User | None:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_current_user(self, access_token: str) -> User:
        """Current user from an access token"""
        payload = decode_token(access_token)
        if not payload or payload.get("type") != "access":
            raise ValueError("INVALID_TOKEN")

        try:
            user_id = UUID(str(payload.get("sub")))
        except ValueError:
            raise ValueError("INVALID_TOKEN")

        user = await self.get_user_by_id(user_id)
        if not user:
            raise ValueError("USER_NOT_FOUND")

        return user
