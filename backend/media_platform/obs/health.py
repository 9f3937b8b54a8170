"""Checks behind /health/live, /health/ready and /health/startup."""

from __future__ import annotations

import asyncio
import logging
from time import perf_counter
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

from media_platform.infra import postgres
from media_platform.infra.redis import redis_client
from media_platform.obs import metrics
from media_platform.settings import settings

LOGGER = logging.getLogger(__name__)

SEARCH_BACKENDS = ("postgres", "memory")


def search_backend_error() -> Optional[str]:
	"""Why the configured discovery backend cannot serve this environment, if it cannot."""
	backend = settings.search_backend.lower()
	if backend not in SEARCH_BACKENDS:
		return "unknown_search_backend"
	# content and category writes always go to Postgres, so in-process discovery is dev only
	if backend == "memory" and not settings.is_dev():
		return "memory_backend_dev_only"
	return None


async def _check(
	name: str,
	check: Callable[[], Awaitable[Any]],
	mark: Callable[..., None],
	*,
	timeout: float,
) -> Dict[str, Any]:
	start = perf_counter()
	try:
		await asyncio.wait_for(check(), timeout=timeout)
	except Exception as exc:  # pragma: no cover - depends on runtime
		mark(False)
		LOGGER.warning("health.%s.unavailable", name, exc_info=True)
		return {"ok": False, "error": str(exc) or type(exc).__name__}
	latency = perf_counter() - start
	mark(True, latency_seconds=latency)
	return {"ok": True, "latency_ms": round(latency * 1000, 2)}


async def _select_one() -> None:
	pool = await postgres.get_pool()
	async with pool.acquire() as conn:
		await conn.execute("SELECT 1")


async def _latest_migration() -> Optional[str]:
	pool = await postgres.get_pool()
	async with pool.acquire() as conn:
		version = await conn.fetchval("SELECT version FROM schema_migrations ORDER BY version DESC LIMIT 1")
	return None if version is None else str(version)


async def _migration_state(required: str) -> Dict[str, Any]:
	try:
		current = await _latest_migration()
	except Exception as exc:  # pragma: no cover - table may not exist yet
		return {"ok": False, "error": str(exc) or type(exc).__name__}
	if current is None:
		return {"ok": False, "error": "no_migrations"}
	return {"ok": current >= required, "version": current, "required": required}


async def liveness() -> Dict[str, Any]:
	return {"status": "ok"}


async def readiness() -> Tuple[int, Dict[str, Any]]:
	checks: Dict[str, Any] = {
		"redis": await _check("redis", redis_client.ping, metrics.mark_redis, timeout=0.2),
	}
	checks["postgres"] = await _check("postgres", _select_one, metrics.mark_postgres, timeout=0.3)
	if checks["postgres"]["ok"]:
		checks["migrations"] = await _migration_state(settings.health_min_migration)
	else:
		checks["migrations"] = {"ok": False, "error": "pool_unavailable"}
	ok = all(state.get("ok") for state in checks.values())
	return (200 if ok else 503), {"status": "ok" if ok else "degraded", "checks": checks}


async def startup() -> Tuple[int, Dict[str, Any]]:
	error = search_backend_error()
	if error is not None:
		return 503, {"status": "error", "error": error}
	return 200, {"status": "ok", "search_backend": settings.search_backend.lower()}
