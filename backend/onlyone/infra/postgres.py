"""asyncpg pool for the post store and the SQL migration runner."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import asyncpg

from onlyone.settings import settings

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parents[2] / "migrations"

_pool: Optional[asyncpg.pool.Pool] = None


async def init_pool() -> asyncpg.pool.Pool:
	global _pool
	if _pool is None:
		# command_timeout bounds every store call
		_pool = await asyncpg.create_pool(
			dsn=settings.postgres_url,
			min_size=settings.postgres_min_pool_size,
			max_size=settings.postgres_max_pool_size,
			ssl="require" if settings.postgres_ssl else "disable",
			command_timeout=settings.store_timeout_seconds,
			server_settings={"application_name": settings.service_name},
		)
		if settings.postgres_auto_migrate:
			await apply_migrations(_pool)
	return _pool


def set_pool(pool: Optional[asyncpg.pool.Pool]) -> None:
	global _pool
	_pool = pool


async def get_pool() -> asyncpg.pool.Pool:
	if _pool is None:
		await init_pool()
	assert _pool is not None
	return _pool


async def close_pool() -> None:
	global _pool
	if _pool is not None:
		await _pool.close()
		_pool = None


def migration_version(path: Path) -> str:
	"""``0001_posts.sql`` -> ``0001``."""
	return path.name.split("_", 1)[0]


async def apply_migrations(pool: asyncpg.pool.Pool, directory: Path = MIGRATIONS_DIR) -> list[str]:
	"""Run every ``*.sql`` file whose version is not yet recorded, in name order."""
	applied_now: list[str] = []
	async with pool.acquire() as conn:
		await conn.execute(
			"""
			CREATE TABLE IF NOT EXISTS schema_migrations (
				version TEXT PRIMARY KEY,
				applied_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
			)
			"""
		)
		applied = {row["version"] for row in await conn.fetch("SELECT version FROM schema_migrations")}
		for path in sorted(directory.glob("*.sql")):
			version = migration_version(path)
			if version in applied:
				continue
			async with conn.transaction():
				await conn.execute(path.read_text(encoding="utf-8"))
				await conn.execute(
					"INSERT INTO schema_migrations (version) VALUES ($1) ON CONFLICT (version) DO NOTHING",
					version,
				)
			logger.info("migration_applied", extra={"migration": path.name})
			applied_now.append(version)
	return applied_now
