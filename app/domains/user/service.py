# app/domains/user/service.py
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from models import User


class UserService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user_by_auth_id(self, auth_user_id: str) -> User | None:
        """Get a user by the auth provider's subject id."""
        result = await self.db.execute(select(User).where(User.auth_user_id == auth_user_id))
        return result.scalar_one_or_none()

    async def get_user_by_id(self, user_id: UUID) -> User | None:
        """Get a user by ID."""
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def create_user(self, auth_user_id: str, email: str | None = None, full_name: str | None = None) -> User:
        """Create a new user."""
        user = User(auth_user_id=auth_user_id, email=email, full_name=full_name, is_active=True)

        try:
            self.db.add(user)
            await self.db.commit()
            await self.db.refresh(user)
            return user
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise e

    async def get_or_create_user(self, auth_user_id: str, claims: dict[str, Any]) -> User:
        """Get existing user or create one from the token claims."""
        user = await self.get_user_by_auth_id(auth_user_id)
        if not user:
            metadata = claims.get("user_metadata") or {}
            user = await self.create_user(
                auth_user_id=auth_user_id,
                email=claims.get("email"),
                full_name=metadata.get("full_name") or claims.get("name"),
            )
        return user
