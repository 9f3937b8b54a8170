"""Service layer for content discovery: listing, keyword search and trending."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from media_platform.domain.content.models import Content
from media_platform.domain.discovery import compiler, query as query_module, stores, strategies
from media_platform.domain.discovery.query import DiscoveryQuery
from media_platform.obs import metrics as obs_metrics

_LOG = logging.getLogger(__name__)
_LIST_KIND = "list"
_SEARCH_KIND = "search"
_TRENDING_KIND = "trending"


@dataclass(slots=True)
class ContentPage:
	items: list[Content]
	total: int
	limit: int
	offset: int


@dataclass(slots=True)
class SearchPage:
	items: list[Content]
	keyword: Optional[str]
	limit: int
	offset: int
	strategy: str


class DiscoveryService:
	"""Answer discovery reads against a store.

	Keyword search walks the strategy chain in order and accepts the first
	result a strategy reports as ok. When the chain is exhausted the newest
	published content is returned instead.
	"""

	def __init__(
		self,
		*,
		store: Optional[stores.DiscoveryStore] = None,
		chain: Optional[Sequence[strategies.SearchStrategy]] = None,
	) -> None:
		self._store = store
		self._chain = tuple(chain) if chain is not None else None

	def _resolve_store(self) -> stores.DiscoveryStore:
		return self._store or stores.resolve_store()

	async def list(self, query: DiscoveryQuery) -> ContentPage:
		obs_metrics.inc_discovery_query(_LIST_KIND)
		started = time.perf_counter()
		store = self._resolve_store()
		compiled = compiler.compile_query(query)
		items = await store.fetch(compiled, limit=query.limit, offset=query.offset)
		total = await store.count(compiled)
		obs_metrics.observe_discovery_latency(_LIST_KIND, time.perf_counter() - started)
		return ContentPage(items=items, total=total, limit=query.limit, offset=query.offset)

	async def search(self, keyword: Any, *, limit: Any = None, offset: Any = None) -> SearchPage:
		normalized = query_module.normalize_query(keyword=keyword, limit=limit, offset=offset)
		obs_metrics.inc_discovery_query(_SEARCH_KIND)
		started = time.perf_counter()
		store = self._resolve_store()
		listing = strategies.PublishedListing(store)

		if not normalized.keyword:
			items = await listing.fetch(limit=normalized.limit, offset=normalized.offset)
			return self._search_page(normalized, items, listing.name, started)

		chain = self._chain if self._chain is not None else strategies.default_chain(store)
		for strategy in chain:
			result = await strategy.attempt(
				normalized.keyword,
				limit=normalized.limit,
				offset=normalized.offset,
			)
			obs_metrics.inc_strategy_outcome(strategy.name, result.outcome)
			if result.ok:
				_LOG.info(
					"discovery.search.served",
					extra={"strategy": strategy.name, "results": len(result.items)},
				)
				return self._search_page(normalized, result.items, strategy.name, started)
			if result.outcome == strategies.OUTCOME_ERROR:
				_LOG.warning(
					"discovery.search.strategy_failed",
					extra={"strategy": strategy.name, "detail": result.detail},
				)
			else:
				_LOG.info("discovery.search.strategy_empty", extra={"strategy": strategy.name})

		_LOG.warning("discovery.search.exhausted", extra={"strategies": [s.name for s in chain]})
		items = await listing.fetch(limit=normalized.limit, offset=normalized.offset)
		return self._search_page(normalized, items, listing.name, started)

	def _search_page(
		self,
		normalized: DiscoveryQuery,
		items: list[Content],
		strategy: str,
		started: float,
	) -> SearchPage:
		obs_metrics.observe_discovery_latency(_SEARCH_KIND, time.perf_counter() - started)
		return SearchPage(
			items=items,
			keyword=normalized.keyword,
			limit=normalized.limit,
			offset=normalized.offset,
			strategy=strategy,
		)

	async def trending(self, limit: Any = None) -> list[Content]:
		obs_metrics.inc_discovery_query(_TRENDING_KIND)
		started = time.perf_counter()
		items = await self._resolve_store().fetch(
			compiler.trending_listing(),
			limit=query_module.trending_limit(limit),
			offset=0,
		)
		obs_metrics.observe_discovery_latency(_TRENDING_KIND, time.perf_counter() - started)
		return items


__all__ = ["ContentPage", "DiscoveryService", "SearchPage"]
