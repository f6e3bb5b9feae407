"""User service for business logic operations."""

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import DatabaseError
from app.database.models import User
from app.repositories.user_repository import UserRepository
from app.schemas.auth import CurrentUser
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)


class UserService:
    """Service for user business logic operations."""

    def __init__(self, db_session: AsyncSession):
        """Initialize service with database session.

        Args:
            db_session: SQLAlchemy async session
        """
        self.session = db_session
        self.repository = UserRepository(db_session)

    async def get_or_create_user_from_jwt(self, current_user: CurrentUser) -> User:
        """Get or create the local user for the authenticated principal.

        Args:
            current_user: Current user from JWT claims

        Returns:
            User database instance (existing or newly created)

        Raises:
            DatabaseError: If the user row cannot be written
        """
        try:
            user, changed = await self.repository.get_or_create_from_supabase(
                supabase_user_id=current_user.id,
                email=current_user.email,
                full_name=current_user.full_name,
                role=current_user.role,
            )
            if changed:
                await self.session.commit()
            return user
        except SQLAlchemyError as e:
            await self.session.rollback()
            LOGGER.error(f"Failed to sync user {current_user.id}: {e}", exc_info=True)
            raise DatabaseError("Failed to sync authenticated user", original_error=e) from e
