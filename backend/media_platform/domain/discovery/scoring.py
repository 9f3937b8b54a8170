"""Relevance scoring used when full-text ranking is unavailable.

The same weights are expressed in SQL by the Postgres store; this module is the
reference used by the in-memory store and by tests.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Optional

from media_platform.domain.content.models import Content

EXACT_TITLE_BONUS = 100
TITLE_MATCH_BONUS = 50
BODY_MATCH_BONUS = 20
POPULARITY_TIERS = ((1000, 10), (100, 5), (10, 2))
FRESHNESS_TIERS = ((timedelta(days=7), 3), (timedelta(days=30), 2))


@dataclass(slots=True)
class RankedCandidate:
	content: Content
	score: float

	@property
	def content_id(self) -> int:
		return self.content.id


def text_match_score(title: str, body: str, keyword: str) -> int:
	needle = keyword.lower()
	score = 0
	if title.lower() == needle:
		score += EXACT_TITLE_BONUS
	elif needle in title.lower():
		score += TITLE_MATCH_BONUS
	if needle in body.lower():
		score += BODY_MATCH_BONUS
	return score


def popularity_bonus(view_count: int) -> int:
	for threshold, bonus in POPULARITY_TIERS:
		if view_count > threshold:
			return bonus
	return 0


def freshness_bonus(published_at: Optional[datetime], now: datetime) -> int:
	if published_at is None:
		return 0
	for window, bonus in FRESHNESS_TIERS:
		if published_at > now - window:
			return bonus
	return 0


def fallback_relevance(
	title: str,
	body: str,
	keyword: str,
	view_count: int,
	published_at: Optional[datetime],
	*,
	now: datetime,
) -> int:
	return (
		text_match_score(title, body, keyword)
		+ popularity_bonus(view_count)
		+ freshness_bonus(published_at, now)
	)


def matches_keyword(content: Content, keyword: str) -> bool:
	needle = keyword.lower()
	return needle in content.title.lower() or needle in content.body.lower()


def _rank_key(candidate: RankedCandidate) -> tuple:
	published = candidate.content.published_at
	return (
		-candidate.score,
		-candidate.content.view_count,
		-(published.timestamp() if published else 0.0),
		-candidate.content.id,
	)


def order_candidates(candidates: Iterable[RankedCandidate]) -> list[Content]:
	"""Order by score, then popularity, then recency; identifiers break any tie."""

	return [candidate.content for candidate in sorted(candidates, key=_rank_key)]
