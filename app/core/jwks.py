"""JWKS (JSON Web Key Set) service for Supabase JWT verification.

Fetches the project's public signing keys and caches them in memory.
"""

import asyncio
import time
from typing import Any, Dict, Optional

import httpx

from app.core.config import settings
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)


class JWKSService:
    """Service for fetching and caching Supabase JWKS keys."""

    def __init__(
        self,
        supabase_url: str,
        cache_ttl: int = 3600,
        timeout: int = 30
    ):
        """Initialize JWKS service.

        Args:
            supabase_url: Supabase project URL
            cache_ttl: Cache time-to-live in seconds
            timeout: HTTP request timeout in seconds
        """
        self.supabase_url = supabase_url.rstrip("/")
        self.jwks_url = f"{self.supabase_url}/auth/v1/.well-known/jwks.json"
        self.cache_ttl = cache_ttl
        self.timeout = timeout

        self._keys_cache: Optional[Dict[str, Dict[str, Any]]] = None
        self._cache_timestamp: Optional[float] = None
        self._lock = asyncio.Lock()

    async def get_keys(self, force_refresh: bool = False) -> Dict[str, Dict[str, Any]]:
        """Get JWKS keys keyed by kid, using the cache while it is fresh.

        Raises:
            RuntimeError: If keys cannot be fetched
        """
        async with self._lock:
            if not force_refresh and self._is_cache_valid():
                return dict(self._keys_cache)

            LOGGER.info("Fetching fresh JWKS keys from Supabase")
            keys = await self._fetch_keys()
            self._keys_cache = keys
            self._cache_timestamp = time.time()
            return dict(keys)

    async def get_key(self, kid: str) -> Optional[Dict[str, Any]]:
        """Get a key by ID, refetching once in case the keys were rotated."""
        keys = await self.get_keys()
        if kid not in keys:
            keys = await self.get_keys(force_refresh=True)
        return keys.get(kid)

    def _is_cache_valid(self) -> bool:
        if self._keys_cache is None or self._cache_timestamp is None:
            return False
        return time.time() - self._cache_timestamp < self.cache_ttl

    async def _fetch_keys(self) -> Dict[str, Dict[str, Any]]:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(self.jwks_url)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as e:
            LOGGER.error(f"Network error fetching JWKS: {e}")
            raise RuntimeError(f"Failed to fetch JWKS keys: {e}") from e
        except ValueError as e:
            LOGGER.error(f"Error parsing JWKS response: {e}")
            raise RuntimeError(f"Invalid JWKS response: {e}") from e

        keys = {key["kid"]: key for key in data.get("keys", []) if "kid" in key}
        LOGGER.info(f"Successfully fetched {len(keys)} JWKS keys")
        return keys


jwks_service = JWKSService(
    supabase_url=settings.supabase_url,
    cache_ttl=settings.supabase_jwks_cache_ttl,
    timeout=settings.supabase.jwks_timeout,
)
