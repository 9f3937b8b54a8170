"""Async repository for categories."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import asyncpg

from media_platform.domain.categories import models
from media_platform.domain.common.exceptions import CategoryInUseError, ConflictError, IntegrityViolation, NotFoundError
from media_platform.infra.postgres import get_pool

_COLUMNS = "id, name, description, parent_id, created_at, updated_at"


class CategoryRepository:
	"""Thin data-access layer around asyncpg.

	Methods that take part in check-then-write sequences accept an explicit
	connection so the caller can run them inside one transaction.
	"""

	@asynccontextmanager
	async def transaction(self) -> AsyncIterator[asyncpg.Connection]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			async with conn.transaction():
				yield conn

	async def list_all(self) -> list[models.Category]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(f"SELECT {_COLUMNS} FROM categories ORDER BY name ASC, id ASC")
		return [models.Category.from_record(row) for row in rows]

	async def children(self, category_id: int) -> list[models.Category]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				f"SELECT {_COLUMNS} FROM categories WHERE parent_id = $1 ORDER BY name ASC, id ASC",
				category_id,
			)
		return [models.Category.from_record(row) for row in rows]

	async def get(
		self,
		category_id: int,
		*,
		conn: asyncpg.Connection | None = None,
		for_update: bool = False,
	) -> models.Category | None:
		query = f"SELECT {_COLUMNS} FROM categories WHERE id = $1"
		if for_update:
			query += " FOR UPDATE"

		async def _fetch(connection: asyncpg.Connection) -> models.Category | None:
			record = await connection.fetchrow(query, category_id)
			return models.Category.from_record(record) if record else None

		if conn is not None:
			return await _fetch(conn)
		pool = await get_pool()
		async with pool.acquire() as pooled_conn:
			return await _fetch(pooled_conn)

	async def get_by_name(self, name: str, *, conn: asyncpg.Connection | None = None) -> models.Category | None:
		query = f"SELECT {_COLUMNS} FROM categories WHERE name = $1"
		if conn is not None:
			record = await conn.fetchrow(query, name)
		else:
			pool = await get_pool()
			async with pool.acquire() as pooled_conn:
				record = await pooled_conn.fetchrow(query, name)
		return models.Category.from_record(record) if record else None

	async def parent_of(self, category_id: int, *, conn: asyncpg.Connection | None = None) -> Optional[int]:
		query = "SELECT parent_id FROM categories WHERE id = $1"
		if conn is not None:
			value = await conn.fetchval(query, category_id)
		else:
			pool = await get_pool()
			async with pool.acquire() as pooled_conn:
				value = await pooled_conn.fetchval(query, category_id)
		return int(value) if value is not None else None

	async def count(self, *, conn: asyncpg.Connection | None = None) -> int:
		if conn is not None:
			value = await conn.fetchval("SELECT COUNT(*) FROM categories")
		else:
			pool = await get_pool()
			async with pool.acquire() as pooled_conn:
				value = await pooled_conn.fetchval("SELECT COUNT(*) FROM categories")
		return int(value or 0)

	async def has_contents(self, category_id: int, *, conn: asyncpg.Connection) -> bool:
		return bool(
			await conn.fetchval("SELECT EXISTS (SELECT 1 FROM contents WHERE category_id = $1)", category_id)
		)

	async def has_children(self, category_id: int, *, conn: asyncpg.Connection) -> bool:
		return bool(
			await conn.fetchval("SELECT EXISTS (SELECT 1 FROM categories WHERE parent_id = $1)", category_id)
		)

	async def create(
		self,
		*,
		name: str,
		description: Optional[str],
		parent_id: Optional[int],
	) -> models.Category:
		pool = await get_pool()
		async with pool.acquire() as conn:
			try:
				record = await conn.fetchrow(
					f"""
					INSERT INTO categories (name, description, parent_id)
					VALUES ($1, $2, $3)
					RETURNING {_COLUMNS}
					""",
					name,
					description,
					parent_id,
				)
			except asyncpg.UniqueViolationError as exc:  # type: ignore[attr-defined]
				raise ConflictError("category_name_exists") from exc
			except asyncpg.ForeignKeyViolationError as exc:  # type: ignore[attr-defined]
				raise IntegrityViolation("parent_category_not_found") from exc
		return models.Category.from_record(record)

	async def update(
		self,
		category_id: int,
		*,
		conn: asyncpg.Connection,
		name: Optional[str] = None,
		description: Optional[str] = None,
		parent_id: Optional[int] = None,
		detach_parent: bool = False,
	) -> models.Category:
		fields: list[str] = []
		values: list[object] = []
		if name is not None:
			fields.append("name=$%d" % (len(values) + 2))
			values.append(name)
		if description is not None:
			fields.append("description=$%d" % (len(values) + 2))
			values.append(description)
		if detach_parent:
			fields.append("parent_id=NULL")
		elif parent_id is not None:
			fields.append("parent_id=$%d" % (len(values) + 2))
			values.append(parent_id)
		fields.append("updated_at=NOW()")
		query = f"UPDATE categories SET {', '.join(fields)} WHERE id=$1 RETURNING {_COLUMNS}"
		try:
			record = await conn.fetchrow(query, category_id, *values)
		except asyncpg.UniqueViolationError as exc:  # type: ignore[attr-defined]
			raise ConflictError("category_name_exists") from exc
		except asyncpg.ForeignKeyViolationError as exc:  # type: ignore[attr-defined]
			raise IntegrityViolation("parent_category_not_found") from exc
		if record is None:
			raise NotFoundError("category_not_found")
		return models.Category.from_record(record)

	async def delete(self, category_id: int, *, conn: asyncpg.Connection) -> None:
		try:
			result = await conn.execute("DELETE FROM categories WHERE id=$1", category_id)
		except asyncpg.ForeignKeyViolationError as exc:  # type: ignore[attr-defined]
			raise CategoryInUseError() from exc
		if result.split()[-1] == "0":
			raise NotFoundError("category_not_found")
