"""Persistence backends for discovery reads.

`PostgresDiscoveryStore` is the production path. `MemoryDiscoveryStore` keeps
rows in process for local development and tests; it has no full-text ranking
unless a ranker is injected.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Iterable, Optional, Protocol

import asyncpg

from media_platform.domain.content.models import Content, ContentStatus, utcnow
from media_platform.domain.discovery import compiler, scoring
from media_platform.domain.discovery.exceptions import SearchBackendError
from media_platform.domain.discovery.scoring import RankedCandidate
from media_platform.infra.postgres import get_pool
from media_platform.settings import settings

logger = logging.getLogger(__name__)

CONTENT_COLUMNS = (
	"id, title, body, type, author_id, category_id, status, view_count, "
	"published_at, created_at, updated_at"
)

# Must match the configuration the search_vector trigger indexes with.
SEARCH_TEXT_CONFIG = "simple"


def _tier_case(condition: str, tiers: Iterable[tuple[Any, int]]) -> str:
	"""Render first-match bonus tiers as a CASE expression."""
	branches = " ".join(f"WHEN {condition.format(bound)} THEN {bonus}" for bound, bonus in tiers)
	return f"CASE {branches} ELSE 0 END"


_POPULARITY_CASE = _tier_case("view_count > {}", scoring.POPULARITY_TIERS)
_FRESHNESS_CASE = _tier_case(
	"published_at > NOW() - INTERVAL '{} days'",
	((window.days, bonus) for window, bonus in scoring.FRESHNESS_TIERS),
)

_RANKED_SQL = f"""
SELECT {CONTENT_COLUMNS},
	ts_rank(search_vector, plainto_tsquery($4::regconfig, $1)) AS relevance_score
FROM contents
WHERE status = 'published'
	AND published_at <= NOW()
	AND search_vector @@ plainto_tsquery($4::regconfig, $1)
ORDER BY relevance_score DESC, view_count DESC, published_at DESC, id DESC
LIMIT $2 OFFSET $3
"""

_SCORED_SQL = f"""
SELECT {CONTENT_COLUMNS},
	(
		CASE
			WHEN LOWER(title) = LOWER($1) THEN {scoring.EXACT_TITLE_BONUS}
			WHEN title ILIKE $4 THEN {scoring.TITLE_MATCH_BONUS}
			ELSE 0
		END
		+ CASE WHEN body ILIKE $4 THEN {scoring.BODY_MATCH_BONUS} ELSE 0 END
		+ {_POPULARITY_CASE}
		+ {_FRESHNESS_CASE}
	) AS relevance_score
FROM contents
WHERE (title ILIKE $4 OR body ILIKE $4)
	AND status = 'published'
	AND published_at <= NOW()
ORDER BY relevance_score DESC, view_count DESC, published_at DESC, id DESC
LIMIT $2 OFFSET $3
"""


class DiscoveryStore(Protocol):
	async def fetch(self, compiled: compiler.CompiledQuery, *, limit: int, offset: int) -> list[Content]:
		...

	async def count(self, compiled: compiler.CompiledQuery) -> int:
		...

	async def ranked_search(self, keyword: str, *, limit: int, offset: int) -> list[RankedCandidate]:
		...

	async def scored_search(self, keyword: str, *, limit: int, offset: int) -> list[RankedCandidate]:
		...


def _candidates(rows: Iterable[Any]) -> list[RankedCandidate]:
	return [
		RankedCandidate(content=Content.from_record(row), score=float(row["relevance_score"] or 0.0))
		for row in rows
	]


class PostgresDiscoveryStore:
	async def fetch(self, compiled: compiler.CompiledQuery, *, limit: int, offset: int) -> list[Content]:
		where_sql, params = compiler.render_where(compiled.predicates)
		index = len(params)
		sql = (
			f"SELECT {CONTENT_COLUMNS} FROM contents {where_sql} "
			f"{compiler.render_order(compiled.order)} LIMIT ${index + 1} OFFSET ${index + 2}"
		)
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(sql, *params, limit, offset)
		return [Content.from_record(row) for row in rows]

	async def count(self, compiled: compiler.CompiledQuery) -> int:
		where_sql, params = compiler.render_where(compiled.predicates)
		pool = await get_pool()
		async with pool.acquire() as conn:
			total = await conn.fetchval(f"SELECT COUNT(*) FROM contents {where_sql}", *params)
		return int(total or 0)

	async def ranked_search(self, keyword: str, *, limit: int, offset: int) -> list[RankedCandidate]:
		pool = await get_pool()
		try:
			async with pool.acquire() as conn:
				rows = await conn.fetch(_RANKED_SQL, keyword, limit, offset, SEARCH_TEXT_CONFIG)
		except asyncpg.PostgresError as exc:
			raise SearchBackendError(f"ranked_search_failed:{exc.__class__.__name__}") from exc
		return _candidates(rows)

	async def scored_search(self, keyword: str, *, limit: int, offset: int) -> list[RankedCandidate]:
		pattern = f"%{compiler.escape_like(keyword)}%"
		pool = await get_pool()
		try:
			async with pool.acquire() as conn:
				rows = await conn.fetch(_SCORED_SQL, keyword, limit, offset, pattern)
		except asyncpg.PostgresError as exc:
			raise SearchBackendError(f"scored_search_failed:{exc.__class__.__name__}") from exc
		return _candidates(rows)


# --- in-memory store ------------------------------------------------------

Ranker = Callable[[Content, str], Optional[float]]


def _field_value(item: Content, field: str) -> Any:
	value = getattr(item, field)
	if isinstance(value, ContentStatus):
		return value.value
	return value


def _matches(item: Content, predicate: compiler.Predicate, now: datetime) -> bool:
	if predicate.op == compiler.OP_EQ:
		return _field_value(item, predicate.field) == predicate.value
	if predicate.op == compiler.OP_CONTAINS:
		return scoring.matches_keyword(item, str(predicate.value))
	if predicate.op == compiler.OP_VISIBLE:
		return item.is_visible(now=now)
	raise ValueError(f"unknown predicate op: {predicate.op}")


def _sort(items: list[Content], order: tuple[compiler.OrderKey, ...]) -> list[Content]:
	ordered = list(items)
	# NULLs rank above every value, as they do in Postgres
	for key in reversed(order):
		ordered.sort(
			key=lambda item, f=key.field: (
				_field_value(item, f) is None,
				_field_value(item, f) if _field_value(item, f) is not None else 0,
			),
			reverse=key.descending,
		)
	return ordered


class MemoryDiscoveryStore:
	def __init__(
		self,
		items: Iterable[Content] = (),
		*,
		ranker: Optional[Ranker] = None,
		clock: Callable[[], datetime] = utcnow,
	) -> None:
		self._items: dict[int, Content] = {item.id: item for item in items}
		self._ranker = ranker
		self._clock = clock

	def seed(self, items: Iterable[Content]) -> None:
		for item in items:
			self._items[item.id] = item

	def reset(self) -> None:
		self._items.clear()

	def set_ranker(self, ranker: Optional[Ranker]) -> None:
		self._ranker = ranker

	def _filter(self, compiled: compiler.CompiledQuery) -> list[Content]:
		now = self._clock()
		return [
			item
			for item in self._items.values()
			if all(_matches(item, predicate, now) for predicate in compiled.predicates)
		]

	async def fetch(self, compiled: compiler.CompiledQuery, *, limit: int, offset: int) -> list[Content]:
		ordered = _sort(self._filter(compiled), compiled.order)
		return ordered[offset : offset + limit]

	async def count(self, compiled: compiler.CompiledQuery) -> int:
		return len(self._filter(compiled))

	def _visible(self) -> list[Content]:
		now = self._clock()
		return [item for item in self._items.values() if item.is_visible(now=now)]

	async def ranked_search(self, keyword: str, *, limit: int, offset: int) -> list[RankedCandidate]:
		if self._ranker is None:
			raise SearchBackendError("ranked_search_unavailable")
		candidates = []
		for item in self._visible():
			score = self._ranker(item, keyword)
			if score is not None:
				candidates.append(RankedCandidate(content=item, score=score))
		ordered = scoring.order_candidates(candidates)
		scores = {candidate.content_id: candidate.score for candidate in candidates}
		return [RankedCandidate(content=item, score=scores[item.id]) for item in ordered[offset : offset + limit]]

	async def scored_search(self, keyword: str, *, limit: int, offset: int) -> list[RankedCandidate]:
		now = self._clock()
		candidates = [
			RankedCandidate(
				content=item,
				score=scoring.fallback_relevance(
					item.title,
					item.body,
					keyword,
					item.view_count,
					item.published_at,
					now=now,
				),
			)
			for item in self._visible()
			if scoring.matches_keyword(item, keyword)
		]
		ordered = scoring.order_candidates(candidates)
		scores = {candidate.content_id: candidate.score for candidate in candidates}
		return [RankedCandidate(content=item, score=scores[item.id]) for item in ordered[offset : offset + limit]]


_MEMORY_STORE = MemoryDiscoveryStore()


def memory_store() -> MemoryDiscoveryStore:
	return _MEMORY_STORE


def reset_memory_store() -> None:
	_MEMORY_STORE.reset()
	_MEMORY_STORE.set_ranker(None)


def resolve_store(backend: Optional[str] = None) -> DiscoveryStore:
	backend = (backend or settings.search_backend).lower()
	if backend == "memory":
		return _MEMORY_STORE
	return PostgresDiscoveryStore()
