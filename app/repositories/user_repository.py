"""Repository for user data access operations."""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database.models import User
from app.repositories.base_repository import BaseRepository
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)


class UserRepository(BaseRepository[User]):
    """Repository for User entity operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, User)

    async def get_by_supabase_id(self, supabase_user_id: str) -> Optional[User]:
        """Get user by Supabase user ID.

        Args:
            supabase_user_id: Supabase user ID (the JWT subject)

        Returns:
            User instance or None if not found
        """
        stmt = select(User).where(User.supabase_user_id == supabase_user_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_or_create_from_supabase(
        self,
        supabase_user_id: str,
        email: str,
        full_name: Optional[str] = None,
        role: str = "user",
    ) -> tuple[User, bool]:
        """Get existing user or create a new one from Supabase claims.

        Email and name are refreshed when they changed upstream.

        Args:
            supabase_user_id: Supabase user ID
            email: User email
            full_name: User full name (optional)
            role: User role (defaults to "user")

        Returns:
            The user and whether the row was created or modified
        """
        user = await self.get_by_supabase_id(supabase_user_id)
        if user:
            needs_update = (
                user.email != email or
                (full_name is not None and user.full_name != full_name)
            )
            if needs_update:
                changes = {"email": email}
                if full_name is not None:
                    changes["full_name"] = full_name
                user = await self.update(user, **changes)
                LOGGER.info(f"Updated existing user from Supabase: {user.id}")
            return user, needs_update

        user = await self.create(
            supabase_user_id=supabase_user_id,
            email=email,
            full_name=full_name,
            role=role,
        )
        LOGGER.info(f"Created new user from Supabase: {user.id}")
        return user, True
