"""Request guards for public discovery endpoints."""

from __future__ import annotations

import logging
from typing import Optional

from redis.exceptions import RedisError

from media_platform.domain.common.exceptions import RateLimitError
from media_platform.infra.rate_limit import hit
from media_platform.settings import settings

_LOG = logging.getLogger(__name__)
SEARCH_KIND = "discovery:search"


async def enforce_rate_limit(actor_key: str, *, kind: str = SEARCH_KIND, limit: Optional[int] = None) -> None:
	"""Apply the Redis fixed-window budget for `actor_key`.

	If Redis itself is unreachable the request is let through.
	"""

	budget = limit if limit is not None else settings.search_rate_limit_per_minute
	if budget <= 0:
		raise RateLimitError()
	try:
		state = await hit(kind, actor_key, limit=budget)
	except RedisError:
		_LOG.warning("discovery.rate_limit.unavailable", exc_info=True, extra={"kind": kind})
		return
	if not state.allowed:
		_LOG.info("discovery.rate_limit.exceeded", extra={"kind": kind, "count": state.count, "limit": budget})
		raise RateLimitError(retry_after=state.reset_in)
