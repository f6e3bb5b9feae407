from unittest.mock import AsyncMock

import pytest

from app.core.jwks import JWKSService


@pytest.fixture
def service():
    service = JWKSService(supabase_url="https://test.supabase.co/", cache_ttl=3600)
    service._fetch_keys = AsyncMock(return_value={"key-1": {"kid": "key-1", "kty": "RSA"}})
    return service


def test_jwks_url(service):
    assert service.jwks_url == "https://test.supabase.co/auth/v1/.well-known/jwks.json"


@pytest.mark.asyncio
async def test_keys_are_cached(service):
    await service.get_keys()
    await service.get_keys()

    service._fetch_keys.assert_awaited_once()


@pytest.mark.asyncio
async def test_expired_cache_refetches(service):
    service.cache_ttl = 0

    await service.get_keys()
    await service.get_keys()

    assert service._fetch_keys.await_count == 2


@pytest.mark.asyncio
async def test_unknown_kid_forces_refresh(service):
    key = await service.get_key("key-2")

    assert key is None
    assert service._fetch_keys.await_count == 2


@pytest.mark.asyncio
async def test_known_kid(service):
    key = await service.get_key("key-1")

    assert key["kty"] == "RSA"
    service._fetch_keys.assert_awaited_once()
