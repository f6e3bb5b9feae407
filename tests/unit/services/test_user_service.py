from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import SQLAlchemyError

from app.core.exceptions import DatabaseError
from app.schemas.auth import CurrentUser
from app.services.user_service import UserService


@pytest.fixture
def mock_session():
    return AsyncMock()


@pytest.fixture
def current_user():
    return CurrentUser(id="supabase-123", email="owner@acme.com", full_name="Jordan Lee")


@pytest.fixture
def service(mock_session):
    service = UserService(mock_session)
    service.repository = AsyncMock()
    return service


@pytest.mark.asyncio
async def test_existing_user_is_not_committed(service, mock_session, current_user):
    user = MagicMock()
    service.repository.get_or_create_from_supabase.return_value = (user, False)

    result = await service.get_or_create_user_from_jwt(current_user)

    assert result is user
    mock_session.commit.assert_not_called()


@pytest.mark.asyncio
async def test_new_user_is_committed(service, mock_session, current_user):
    service.repository.get_or_create_from_supabase.return_value = (MagicMock(), True)

    await service.get_or_create_user_from_jwt(current_user)

    service.repository.get_or_create_from_supabase.assert_awaited_once_with(
        supabase_user_id="supabase-123",
        email="owner@acme.com",
        full_name="Jordan Lee",
        role="user",
    )
    mock_session.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_database_failure(service, mock_session, current_user):
    service.repository.get_or_create_from_supabase.side_effect = SQLAlchemyError("down")

    with pytest.raises(DatabaseError):
        await service.get_or_create_user_from_jwt(current_user)

    mock_session.rollback.assert_awaited_once()
