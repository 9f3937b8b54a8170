"""Process-wide asyncpg pool."""

from __future__ import annotations

import asyncio
from typing import Optional

import asyncpg

from media_platform.settings import settings

_pool: Optional[asyncpg.pool.Pool] = None
_pool_lock = asyncio.Lock()


async def _create() -> asyncpg.pool.Pool:
	return await asyncpg.create_pool(
		dsn=settings.postgres_url,
		min_size=settings.postgres_min_pool_size,
		max_size=settings.postgres_max_pool_size,
		ssl="require" if settings.postgres_ssl else "disable",
		server_settings={"application_name": settings.service_name},
	)


async def init_pool() -> asyncpg.pool.Pool:
	global _pool
	async with _pool_lock:
		if _pool is None:
			_pool = await _create()
	return _pool


def set_pool(pool: Optional[asyncpg.pool.Pool]) -> None:
	global _pool
	_pool = pool


async def get_pool() -> asyncpg.pool.Pool:
	pool = _pool
	if pool is None:
		pool = await init_pool()
	return pool


async def close_pool() -> None:
	global _pool
	pool, _pool = _pool, None
	if pool is not None:
		await pool.close()
