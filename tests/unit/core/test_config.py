import pytest

from app.core.config import DatabaseSettings


@pytest.mark.parametrize(
    "raw,expected",
    [
        (
            "postgres://user:pw@db:5432/intake",
            "postgresql+asyncpg://user:pw@db:5432/intake",
        ),
        (
            "postgresql://user:pw@db:5432/intake?sslmode=require",
            "postgresql+asyncpg://user:pw@db:5432/intake?ssl=require",
        ),
        (
            "postgresql+asyncpg://user:pw@db:5432/intake",
            "postgresql+asyncpg://user:pw@db:5432/intake",
        ),
    ],
)
def test_connection_url_uses_asyncpg(monkeypatch, raw, expected):
    monkeypatch.setenv("DATABASE_URL", raw)

    assert DatabaseSettings().connection_url == expected
