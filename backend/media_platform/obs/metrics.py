"""Central registry for Prometheus metrics used across the backend."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram


REQUEST_COUNTER = Counter(
	"media_http_requests_total",
	"Total HTTP requests processed",
	["route", "method", "status"],
)

REQUEST_LATENCY = Histogram(
	"media_http_request_duration_seconds",
	"HTTP request latency in seconds",
	["route", "method"],
	buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0),
)

DISCOVERY_QUERIES = Counter(
	"media_discovery_queries_total",
	"Discovery queries executed",
	["kind"],
)

DISCOVERY_LATENCY = Histogram(
	"media_discovery_latency_seconds",
	"Discovery latency in seconds",
	["kind"],
	buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0),
)

SEARCH_STRATEGY_OUTCOMES = Counter(
	"media_search_strategy_outcomes_total",
	"Keyword search strategy attempts by outcome",
	["strategy", "outcome"],
)

CATEGORY_CYCLE_REJECTS = Counter(
	"media_category_cycle_rejects_total",
	"Category parent assignments rejected because they would form a cycle",
)

REDIS_UP = Gauge("media_redis_up", "Redis availability (1=up)")
REDIS_LATENCY = Histogram(
	"media_redis_ping_seconds",
	"Redis ping latency",
	buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.25),
)
POSTGRES_UP = Gauge("media_postgres_up", "Postgres availability (1=up)")
POSTGRES_LATENCY = Histogram(
	"media_postgres_ping_seconds",
	"Postgres readiness query latency",
	buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.25),
)


def observe_request(route: str, method: str, status: int, latency_seconds: float) -> None:
	REQUEST_COUNTER.labels(route=route, method=method, status=str(status)).inc()
	REQUEST_LATENCY.labels(route=route, method=method).observe(latency_seconds)


def inc_discovery_query(kind: str) -> None:
	DISCOVERY_QUERIES.labels(kind=kind).inc()


def observe_discovery_latency(kind: str, latency_seconds: float) -> None:
	DISCOVERY_LATENCY.labels(kind=kind).observe(latency_seconds)


def inc_strategy_outcome(strategy: str, outcome: str) -> None:
	SEARCH_STRATEGY_OUTCOMES.labels(strategy=strategy, outcome=outcome).inc()


def inc_category_cycle_reject() -> None:
	CATEGORY_CYCLE_REJECTS.inc()


def mark_redis(ok: bool, *, latency_seconds: float | None = None) -> None:
	REDIS_UP.set(1 if ok else 0)
	if latency_seconds is not None:
		REDIS_LATENCY.observe(latency_seconds)


def mark_postgres(ok: bool, *, latency_seconds: float | None = None) -> None:
	POSTGRES_UP.set(1 if ok else 0)
	if latency_seconds is not None:
		POSTGRES_LATENCY.observe(latency_seconds)
