"""Fixed-window request counters kept in Redis."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Optional

from media_platform.infra.redis import redis_client


@dataclass(slots=True, frozen=True)
class WindowState:
	count: int
	limit: int
	reset_in: int

	@property
	def allowed(self) -> bool:
		return 0 < self.limit and self.count <= self.limit


def _window_key(kind: str, actor_id: str, window: int, now: float) -> tuple[str, int]:
	slot, elapsed = divmod(int(now), window)
	return f"rl:{kind}:{actor_id}:{window}:{slot}", window - elapsed


async def hit(
	kind: str,
	actor_id: str,
	*,
	limit: int,
	window_seconds: int = 60,
	now: Optional[float] = None,
) -> WindowState:
	"""Count one request against the current window for (kind, actor)."""
	window = max(1, int(window_seconds))
	key, reset_in = _window_key(kind, actor_id, window, time.time() if now is None else now)
	async with redis_client.pipeline(transaction=True) as pipe:
		pipe.incr(key)
		pipe.expire(key, window)
		count, _ = await pipe.execute()
	return WindowState(count=int(count), limit=limit, reset_in=reset_in)
