"""Compile a DiscoveryQuery into predicates plus order keys.

Only allow-listed column names ever reach generated SQL. User supplied values
travel exclusively as bind parameters.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from media_platform.domain.content.models import ContentStatus
from media_platform.domain.discovery.query import DiscoveryQuery

SORTABLE_FIELDS = frozenset(
	{
		"id",
		"title",
		"author_id",
		"category_id",
		"status",
		"view_count",
		"published_at",
		"created_at",
		"updated_at",
	}
)
FILTERABLE_FIELDS = frozenset({"author_id", "category_id", "status"})
DEFAULT_SORT_FIELD = "created_at"

OP_EQ = "eq"
OP_CONTAINS = "contains"
OP_VISIBLE = "visible"


@dataclass(slots=True, frozen=True)
class Predicate:
	op: str
	field: Optional[str] = None
	value: Any = None


@dataclass(slots=True, frozen=True)
class OrderKey:
	field: str
	descending: bool = True


@dataclass(slots=True, frozen=True)
class CompiledQuery:
	predicates: tuple[Predicate, ...]
	order: tuple[OrderKey, ...]


def equals(field: str, value: Any) -> Predicate:
	if field not in FILTERABLE_FIELDS:
		raise ValueError(f"unfilterable field: {field}")
	return Predicate(op=OP_EQ, field=field, value=value)


def keyword_match(keyword: str) -> Predicate:
	return Predicate(op=OP_CONTAINS, value=keyword)


def visible() -> Predicate:
	"""Published and with a publish time that is not in the future."""
	return Predicate(op=OP_VISIBLE)


def resolve_sort_field(value: Optional[str]) -> str:
	if value and value in SORTABLE_FIELDS:
		return value
	return DEFAULT_SORT_FIELD


def resolve_descending(value: Optional[str]) -> bool:
	return not (value and value.strip().lower() == "asc")


def _ordered(field: str, descending: bool, *rest: OrderKey) -> tuple[OrderKey, ...]:
	keys = [OrderKey(field, descending), *rest]
	if not any(key.field == "id" for key in keys):
		# id keeps offset paging stable across equal sort values
		keys.append(OrderKey("id", descending))
	return tuple(keys)


def compile_query(query: DiscoveryQuery) -> CompiledQuery:
	predicates: list[Predicate] = []
	if query.author_id is not None:
		predicates.append(equals("author_id", query.author_id))
	if query.category_id is not None:
		predicates.append(equals("category_id", query.category_id))
	if query.status is not None:
		predicates.append(equals("status", query.status))
	if query.visible_only:
		predicates.append(visible())
	if query.keyword:
		predicates.append(keyword_match(query.keyword))
		if query.status is None and not query.visible_only:
			# keyword discovery is public and must not surface unpublished rows
			predicates.append(equals("status", ContentStatus.PUBLISHED.value))
	order = _ordered(resolve_sort_field(query.sort_by), resolve_descending(query.sort_order))
	return CompiledQuery(predicates=tuple(predicates), order=order)


def published_listing() -> CompiledQuery:
	return CompiledQuery(predicates=(visible(),), order=_ordered("published_at", True))


def trending_listing() -> CompiledQuery:
	return CompiledQuery(
		predicates=(visible(),),
		order=_ordered("view_count", True, OrderKey("published_at", True)),
	)


# --- SQL rendering --------------------------------------------------------


def escape_like(value: str) -> str:
	return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def render_where(predicates: tuple[Predicate, ...], *, start: int = 1) -> tuple[str, list[Any]]:
	"""Return a `WHERE ...` clause (or "") and its positional parameters."""

	conditions: list[str] = []
	params: list[Any] = []
	index = start
	for predicate in predicates:
		if predicate.op == OP_EQ:
			if predicate.field not in FILTERABLE_FIELDS:
				raise ValueError(f"unfilterable field: {predicate.field}")
			conditions.append(f"{predicate.field} = ${index}")
			params.append(predicate.value)
			index += 1
		elif predicate.op == OP_CONTAINS:
			conditions.append(f"(title ILIKE ${index} OR body ILIKE ${index})")
			params.append(f"%{escape_like(str(predicate.value))}%")
			index += 1
		elif predicate.op == OP_VISIBLE:
			conditions.append("status = 'published' AND published_at <= NOW()")
		else:
			raise ValueError(f"unknown predicate op: {predicate.op}")
	if not conditions:
		return "", params
	return "WHERE " + " AND ".join(conditions), params


def render_order(order: tuple[OrderKey, ...]) -> str:
	parts = []
	for key in order:
		if key.field not in SORTABLE_FIELDS:
			raise ValueError(f"unsortable field: {key.field}")
		parts.append(f"{key.field} {'DESC' if key.descending else 'ASC'}")
	return "ORDER BY " + ", ".join(parts)
