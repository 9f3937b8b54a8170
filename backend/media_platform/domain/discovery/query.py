"""Normalisation of raw discovery requests into a canonical query value.

Every input here is correctable: out-of-range pagination is clamped, malformed
identifiers are dropped, and blank keywords become "no keyword". Nothing raises.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from media_platform.settings import settings

# Identifiers and offsets are bound as Postgres BIGINT.
BIGINT_MAX = 2**63 - 1


@dataclass(slots=True, frozen=True)
class DiscoveryQuery:
	author_id: Optional[int] = None
	category_id: Optional[int] = None
	status: Optional[str] = None
	keyword: Optional[str] = None
	sort_by: Optional[str] = None
	sort_order: Optional[str] = None
	limit: int = 10
	offset: int = 0
	# published with a publish time not in the future
	visible_only: bool = False


def _coerce_int(value: Any) -> Optional[int]:
	if value is None or isinstance(value, bool):
		return None
	if isinstance(value, int):
		return value
	try:
		return int(str(value).strip())
	except ValueError:
		return None


def _coerce_id(value: Any) -> Optional[int]:
	parsed = _coerce_int(value)
	if parsed is None or parsed <= 0 or parsed > BIGINT_MAX:
		return None
	return parsed


def _clean_text(value: Any) -> Optional[str]:
	if value is None:
		return None
	text = str(value).strip()
	return text or None


def clamp_limit(value: Any, *, maximum: Optional[int] = None, default: Optional[int] = None) -> int:
	"""Absent or non-positive sizes fall back to the default; large ones are capped."""

	default = default if default is not None else settings.discovery_default_limit
	maximum = maximum if maximum is not None else settings.discovery_max_limit
	parsed = _coerce_int(value)
	if parsed is None or parsed <= 0:
		parsed = default
	return min(parsed, maximum)


def clamp_offset(value: Any, *, limit: int = 0) -> int:
	"""Negative or malformed offsets become 0; offset plus limit stays within BIGINT."""

	parsed = _coerce_int(value)
	if parsed is None or parsed < 0:
		return 0
	return min(parsed, BIGINT_MAX - max(limit, 0))


def normalize_keyword(value: Any) -> Optional[str]:
	return _clean_text(value)


def normalize_query(
	*,
	author_id: Any = None,
	category_id: Any = None,
	status: Any = None,
	keyword: Any = None,
	sort_by: Any = None,
	sort_order: Any = None,
	limit: Any = None,
	offset: Any = None,
	max_limit: Optional[int] = None,
	visible_only: bool = False,
) -> DiscoveryQuery:
	status_text = _clean_text(status)
	page_size = clamp_limit(limit, maximum=max_limit)
	return DiscoveryQuery(
		author_id=_coerce_id(author_id),
		category_id=_coerce_id(category_id),
		status=status_text.lower() if status_text else None,
		keyword=normalize_keyword(keyword),
		sort_by=_clean_text(sort_by),
		sort_order=_clean_text(sort_order),
		limit=page_size,
		offset=clamp_offset(offset, limit=page_size),
		visible_only=visible_only,
	)


def trending_limit(value: Any) -> int:
	return clamp_limit(value, maximum=settings.trending_max_limit)
