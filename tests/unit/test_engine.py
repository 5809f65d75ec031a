"""Unit tests for database URL handling and engine construction."""

import pytest

from behaviorlog.config import Settings
from behaviorlog.db.engine import (
    async_database_url,
    create_async_engine_from_settings,
    sync_database_url,
)


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("postgresql://u:p@db/app", "postgresql+asyncpg://u:p@db/app"),
        ("postgresql+asyncpg://u:p@db/app", "postgresql+asyncpg://u:p@db/app"),
        ("sqlite:///tmp/app.db", "sqlite+aiosqlite:///tmp/app.db"),
    ],
)
def test_async_database_url(url: str, expected: str) -> None:
    assert async_database_url(url) == expected


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("postgresql+asyncpg://u:p@db/app", "postgresql://u:p@db/app"),
        ("sqlite+aiosqlite:///tmp/app.db", "sqlite:///tmp/app.db"),
        ("postgresql://u:p@db/app", "postgresql://u:p@db/app"),
    ],
)
def test_sync_database_url(url: str, expected: str) -> None:
    assert sync_database_url(url) == expected


def test_engine_requires_database_url() -> None:
    settings = Settings(_env_file=None, database_url=None)  # type: ignore[call-arg]

    with pytest.raises(ValueError, match="DATABASE_URL"):
        create_async_engine_from_settings(settings)


def test_postgres_pool_is_bounded() -> None:
    settings = Settings(
        _env_file=None,  # type: ignore[call-arg]
        database_url="postgresql://u:p@localhost/app",
        db_pool_size=7,
        db_acquire_timeout_s=1.5,
    )

    engine = create_async_engine_from_settings(settings)

    pool = engine.sync_engine.pool
    assert pool.size() == 7  # type: ignore[attr-defined]
    assert pool._max_overflow == 0  # type: ignore[attr-defined]
    assert pool._timeout == 1.5  # type: ignore[attr-defined]
