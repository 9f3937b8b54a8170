"""Keyword search strategies tried in order by the discovery service.

Each strategy reports whether its answer should be accepted. A strategy that
hits a backend failure reports `ok=False` instead of raising.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Protocol

from media_platform.domain.content.models import Content
from media_platform.domain.discovery import compiler, scoring
from media_platform.domain.discovery.exceptions import SearchBackendError
from media_platform.domain.discovery.stores import DiscoveryStore

logger = logging.getLogger(__name__)

OUTCOME_HIT = "hit"
OUTCOME_EMPTY = "empty"
OUTCOME_ERROR = "error"


@dataclass(slots=True)
class StrategyResult:
	items: list[Content] = field(default_factory=list)
	ok: bool = True
	outcome: str = OUTCOME_HIT
	detail: Optional[str] = None


class SearchStrategy(Protocol):
	name: str

	async def attempt(self, keyword: str, *, limit: int, offset: int) -> StrategyResult:
		...


class RankedSearchStrategy:
	"""Full-text ranking. An empty result is not accepted."""

	name = "ranked"

	def __init__(self, store: DiscoveryStore) -> None:
		self._store = store

	async def attempt(self, keyword: str, *, limit: int, offset: int) -> StrategyResult:
		try:
			candidates = await self._store.ranked_search(keyword, limit=limit, offset=offset)
		except SearchBackendError as exc:
			return StrategyResult(ok=False, outcome=OUTCOME_ERROR, detail=exc.detail)
		except Exception as exc:
			logger.exception("discovery.search.ranked_exception")
			return StrategyResult(ok=False, outcome=OUTCOME_ERROR, detail=exc.__class__.__name__)
		if not candidates:
			return StrategyResult(ok=False, outcome=OUTCOME_EMPTY)
		return StrategyResult(items=scoring.order_candidates(candidates))


class ScoredFallbackStrategy:
	"""Substring match with heuristic scoring. An empty result is a valid answer."""

	name = "scored_fallback"

	def __init__(self, store: DiscoveryStore) -> None:
		self._store = store

	async def attempt(self, keyword: str, *, limit: int, offset: int) -> StrategyResult:
		try:
			candidates = await self._store.scored_search(keyword, limit=limit, offset=offset)
		except SearchBackendError as exc:
			return StrategyResult(ok=False, outcome=OUTCOME_ERROR, detail=exc.detail)
		except Exception as exc:
			logger.exception("discovery.search.scored_exception")
			return StrategyResult(ok=False, outcome=OUTCOME_ERROR, detail=exc.__class__.__name__)
		if not candidates:
			return StrategyResult(outcome=OUTCOME_EMPTY)
		return StrategyResult(items=scoring.order_candidates(candidates))


class PublishedListing:
	"""Newest visible content, used when no keyword applies or every strategy failed.

	Errors are not caught here; a failing listing means storage is down.
	"""

	name = "published_listing"

	def __init__(self, store: DiscoveryStore) -> None:
		self._store = store

	async def fetch(self, *, limit: int, offset: int) -> list[Content]:
		return await self._store.fetch(compiler.published_listing(), limit=limit, offset=offset)


def default_chain(store: DiscoveryStore) -> tuple[SearchStrategy, ...]:
	return (RankedSearchStrategy(store), ScoredFallbackStrategy(store))
