import time
from unittest.mock import AsyncMock, patch

import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric import rsa
from jwt.algorithms import RSAAlgorithm

from app.core.jwt import JWTVerifier

SUPABASE_URL = "https://test.supabase.co"
SECRET = "super-secret-jwt-token-with-at-least-32-characters"


def _claims(**overrides):
    now = int(time.time())
    claims = {
        "sub": "6f1f8a0e-1111-4a8b-9c1d-000000000001",
        "email": "owner@acme.com",
        "role": "authenticated",
        "aud": "authenticated",
        "iss": f"{SUPABASE_URL}/auth/v1",
        "iat": now,
        "exp": now + 3600,
        "user_metadata": {"full_name": "Jordan Lee"},
    }
    claims.update(overrides)
    return claims


@pytest.fixture
def verifier():
    return JWTVerifier(supabase_url=SUPABASE_URL, jwt_secret=SECRET)


@pytest.mark.asyncio
async def test_hs256_token(verifier):
    token = jwt.encode(_claims(), SECRET, algorithm="HS256")

    claims = await verifier.verify_token(token)

    assert claims.email == "owner@acme.com"
    assert claims.user_metadata == {"full_name": "Jordan Lee"}


@pytest.mark.asyncio
async def test_expired_token(verifier):
    token = jwt.encode(_claims(exp=int(time.time()) - 60), SECRET, algorithm="HS256")

    with pytest.raises(jwt.InvalidTokenError, match="expired"):
        await verifier.verify_token(token)


@pytest.mark.asyncio
async def test_wrong_issuer(verifier):
    token = jwt.encode(_claims(iss="https://other.supabase.co/auth/v1"), SECRET, algorithm="HS256")

    with pytest.raises(jwt.InvalidTokenError, match="issuer"):
        await verifier.verify_token(token)


@pytest.mark.asyncio
async def test_wrong_audience(verifier):
    token = jwt.encode(_claims(aud="anon"), SECRET, algorithm="HS256")

    with pytest.raises(jwt.InvalidTokenError):
        await verifier.verify_token(token)


@pytest.mark.asyncio
async def test_hs256_without_secret():
    verifier = JWTVerifier(supabase_url=SUPABASE_URL)
    token = jwt.encode(_claims(), SECRET, algorithm="HS256")

    with pytest.raises(jwt.InvalidTokenError, match="SUPABASE_JWT_SECRET"):
        await verifier.verify_token(token)


@pytest.mark.asyncio
async def test_unsupported_algorithm(verifier):
    token = jwt.encode(_claims(), SECRET, algorithm="HS512")

    with pytest.raises(jwt.InvalidTokenError, match="Unsupported algorithm"):
        await verifier.verify_token(token)


@pytest.mark.asyncio
async def test_rs256_token_uses_jwks(verifier):
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    jwk = RSAAlgorithm.to_jwk(private_key.public_key(), as_dict=True)
    jwk["kid"] = "key-1"
    token = jwt.encode(_claims(), private_key, algorithm="RS256", headers={"kid": "key-1"})

    with patch("app.core.jwt.jwks_service.get_key", new_callable=AsyncMock) as mock_get_key:
        mock_get_key.return_value = jwk
        claims = await verifier.verify_token(token)

    mock_get_key.assert_awaited_once_with("key-1")
    assert claims.sub == "6f1f8a0e-1111-4a8b-9c1d-000000000001"


@pytest.mark.asyncio
async def test_rs256_unknown_kid(verifier):
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    token = jwt.encode(_claims(), private_key, algorithm="RS256", headers={"kid": "gone"})

    with patch("app.core.jwt.jwks_service.get_key", new_callable=AsyncMock, return_value=None):
        with pytest.raises(jwt.InvalidTokenError, match="No matching key"):
            await verifier.verify_token(token)
