import sys
from contextlib import asynccontextmanager
from datetime import timedelta
from itertools import count
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from fakeredis.aioredis import FakeRedis

# Ensure backend package is importable when tests run from repo root
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
	sys.path.insert(0, str(BACKEND_ROOT))

from media_platform.domain.content.models import Content, ContentStatus, ContentType, utcnow
from media_platform.domain.discovery import stores
from media_platform.infra import postgres
from media_platform.main import app
from media_platform.settings import settings


@pytest_asyncio.fixture(autouse=True)
async def fake_redis():
	from media_platform.infra.redis import redis_client, set_redis_client

	original = redis_client._client
	client = FakeRedis(decode_responses=True)
	set_redis_client(client)
	try:
		yield client
	finally:
		set_redis_client(original)
		await client.flushall()


@pytest.fixture(autouse=True)
def patch_postgres(monkeypatch):
	async def _noop():
		return None

	monkeypatch.setattr(postgres, "init_pool", _noop)
	monkeypatch.setattr(postgres, "close_pool", _noop)


@pytest.fixture(autouse=True)
def force_test_settings():
	"""Dev mode for header auth and the in-memory discovery backend."""
	original_env = settings.environment
	original_backend = settings.search_backend
	original_rate = settings.search_rate_limit_per_minute
	settings.environment = "dev"
	settings.search_backend = "memory"
	try:
		yield
	finally:
		settings.environment = original_env
		settings.search_backend = original_backend
		settings.search_rate_limit_per_minute = original_rate


class RecordingConnection:
	"""asyncpg connection double that records (sql, args) and replays canned results."""

	def __init__(self) -> None:
		self.calls: list[tuple[str, tuple]] = []
		self.rows: list[dict] = []
		self.value = None
		self.status = "DELETE 1"
		self.error: Exception | None = None

	def _record(self, sql: str, args: tuple) -> None:
		self.calls.append((sql, args))
		if self.error is not None:
			raise self.error

	async def fetch(self, sql, *args):
		self._record(sql, args)
		return list(self.rows)

	async def fetchrow(self, sql, *args):
		self._record(sql, args)
		return self.rows[0] if self.rows else None

	async def fetchval(self, sql, *args):
		self._record(sql, args)
		return self.value

	async def execute(self, sql, *args):
		self._record(sql, args)
		return self.status

	@asynccontextmanager
	async def transaction(self):
		yield


class RecordingPool:
	def __init__(self, conn: RecordingConnection) -> None:
		self.conn = conn

	@asynccontextmanager
	async def acquire(self):
		yield self.conn


@pytest.fixture
def recording_conn():
	conn = RecordingConnection()
	postgres.set_pool(RecordingPool(conn))
	try:
		yield conn
	finally:
		postgres.set_pool(None)


@pytest.fixture
def memory_store():
	stores.reset_memory_store()
	try:
		yield stores.memory_store()
	finally:
		stores.reset_memory_store()


@pytest.fixture
def make_content():
	ids = count(1)

	def _make(
		*,
		title: str = "Untitled",
		body: str = "",
		author_id: int = 1,
		category_id: int = 1,
		status: ContentStatus = ContentStatus.PUBLISHED,
		view_count: int = 0,
		age_days: float | None = 1,
		content_type: ContentType = ContentType.ARTICLE,
		content_id: int | None = None,
	) -> Content:
		now = utcnow()
		published_at = None if age_days is None else now - timedelta(days=age_days)
		created_at = published_at or now
		return Content(
			id=content_id if content_id is not None else next(ids),
			title=title,
			body=body,
			type=content_type,
			author_id=author_id,
			category_id=category_id,
			status=status,
			view_count=view_count,
			published_at=published_at,
			created_at=created_at,
			updated_at=created_at,
		)

	return _make


@pytest_asyncio.fixture
async def api_client():
	transport = ASGITransport(app=app)
	async with AsyncClient(transport=transport, base_url="http://testserver") as client:
		yield client
