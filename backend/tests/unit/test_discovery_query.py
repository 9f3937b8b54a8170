import pytest

from media_platform.domain.discovery import compiler
from media_platform.domain.discovery.query import (
	BIGINT_MAX,
	DiscoveryQuery,
	clamp_limit,
	clamp_offset,
	normalize_keyword,
	normalize_query,
	trending_limit,
)


@pytest.mark.parametrize(
	"raw, expected",
	[(None, 10), (0, 10), (-5, 10), ("abc", 10), (25, 25), ("40", 40), (100, 100), (101, 100), (5000, 100)],
)
def test_clamp_limit(raw, expected):
	assert clamp_limit(raw) == expected


@pytest.mark.parametrize("raw, expected", [(None, 10), (-1, 10), (30, 30), (51, 50), (1000, 50)])
def test_trending_limit_caps_at_fifty(raw, expected):
	assert trending_limit(raw) == expected


@pytest.mark.parametrize("raw, expected", [(None, 0), (-3, 0), ("x", 0), (0, 0), (20, 20)])
def test_clamp_offset(raw, expected):
	assert clamp_offset(raw) == expected


def test_clamp_offset_keeps_offset_plus_limit_within_bigint():
	assert clamp_offset("99999999999999999999") == BIGINT_MAX
	assert clamp_offset(2**70, limit=25) == BIGINT_MAX - 25
	assert clamp_offset(BIGINT_MAX - 100, limit=25) == BIGINT_MAX - 100


def test_normalize_query_bounds_out_of_range_values():
	query = normalize_query(
		author_id="99999999999999999999",
		category_id=BIGINT_MAX + 1,
		limit="20",
		offset="99999999999999999999",
	)
	assert query.author_id is None
	assert query.category_id is None
	assert query.limit == 20
	assert query.offset == BIGINT_MAX - 20
	assert query.offset + query.limit <= BIGINT_MAX


def test_normalize_query_keeps_largest_bigint_id():
	assert normalize_query(author_id=str(BIGINT_MAX)).author_id == BIGINT_MAX


def test_normalize_keyword_trims_and_blanks_to_none():
	assert normalize_keyword("  go  ") == "go"
	assert normalize_keyword("   ") is None
	assert normalize_keyword("") is None
	assert normalize_keyword(None) is None


def test_normalize_query_drops_malformed_identifiers():
	query = normalize_query(author_id="abc", category_id="-2", status=" Published ", limit="500", offset="-1")
	assert query.author_id is None
	assert query.category_id is None
	assert query.status == "published"
	assert query.limit == 100
	assert query.offset == 0


def test_compile_defaults_to_created_at_desc():
	compiled = compiler.compile_query(DiscoveryQuery())
	assert compiled.predicates == ()
	assert compiled.order[0] == compiler.OrderKey("created_at", True)
	assert compiled.order[-1].field == "id"


def test_compile_rejects_unknown_sort_field():
	compiled = compiler.compile_query(DiscoveryQuery(sort_by="title; DROP TABLE contents", sort_order="asc"))
	assert compiled.order[0] == compiler.OrderKey("created_at", False)


@pytest.mark.parametrize("direction, descending", [("asc", False), ("ASC", False), ("desc", True), ("sideways", True), (None, True)])
def test_compile_sort_direction(direction, descending):
	compiled = compiler.compile_query(DiscoveryQuery(sort_by="view_count", sort_order=direction))
	assert compiled.order[0] == compiler.OrderKey("view_count", descending)


def test_keyword_without_status_adds_published_filter():
	compiled = compiler.compile_query(DiscoveryQuery(keyword="go"))
	ops = [(p.op, p.field, p.value) for p in compiled.predicates]
	assert (compiler.OP_CONTAINS, None, "go") in ops
	assert (compiler.OP_EQ, "status", "published") in ops


def test_keyword_with_explicit_status_keeps_it():
	compiled = compiler.compile_query(DiscoveryQuery(keyword="go", status="draft"))
	statuses = [p.value for p in compiled.predicates if p.field == "status"]
	assert statuses == ["draft"]


def test_render_where_uses_positional_parameters():
	compiled = compiler.compile_query(DiscoveryQuery(author_id=7, category_id=3, keyword="50%_off"))
	where_sql, params = compiler.render_where(compiled.predicates)
	assert where_sql == (
		"WHERE author_id = $1 AND category_id = $2 AND (title ILIKE $3 OR body ILIKE $3) AND status = $4"
	)
	assert params == [7, 3, "%50\\%\\_off%", "published"]


def test_render_where_empty():
	assert compiler.render_where(()) == ("", [])


def test_render_order_for_trending():
	assert compiler.render_order(compiler.trending_listing().order) == (
		"ORDER BY view_count DESC, published_at DESC, id DESC"
	)


def test_unfilterable_field_is_rejected():
	with pytest.raises(ValueError):
		compiler.equals("body", "x")


def test_visible_only_compiles_to_visibility_predicate():
	compiled = compiler.compile_query(normalize_query(author_id=4, keyword="go", visible_only=True))
	ops = [p.op for p in compiled.predicates]
	assert ops.count(compiler.OP_VISIBLE) == 1
	assert all(p.field != "status" for p in compiled.predicates)
	where_sql, params = compiler.render_where(compiled.predicates)
	assert "status = 'published' AND published_at <= NOW()" in where_sql
	assert params == [4, "%go%"]
