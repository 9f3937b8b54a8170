"""Async repository for content rows."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

import asyncpg

from media_platform.domain.common.exceptions import NotFoundError, ValidationError
from media_platform.domain.content import models
from media_platform.infra.postgres import get_pool

_COLUMNS = (
	"id, title, body, type, author_id, category_id, status, view_count, "
	"published_at, created_at, updated_at"
)


class ContentRepository:
	"""Thin data-access layer around asyncpg."""

	async def get(self, content_id: int) -> models.Content | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(f"SELECT {_COLUMNS} FROM contents WHERE id=$1", content_id)
		return models.Content.from_record(record) if record else None

	async def create(
		self,
		*,
		title: str,
		body: str,
		type: models.ContentType,
		author_id: int,
		category_id: int,
		status: models.ContentStatus,
		published_at: Optional[datetime],
	) -> models.Content:
		pool = await get_pool()
		async with pool.acquire() as conn:
			try:
				record = await conn.fetchrow(
					f"""
					INSERT INTO contents (title, body, type, author_id, category_id, status, published_at)
					VALUES ($1, $2, $3, $4, $5, $6, $7)
					RETURNING {_COLUMNS}
					""",
					title,
					body,
					type.value,
					author_id,
					category_id,
					status.value,
					published_at,
				)
			except asyncpg.ForeignKeyViolationError as exc:  # type: ignore[attr-defined]
				raise ValidationError("category_not_found") from exc
		return models.Content.from_record(record)

	async def save(self, content: models.Content) -> models.Content:
		"""Persist every mutable column of `content`."""

		pool = await get_pool()
		async with pool.acquire() as conn:
			try:
				record = await conn.fetchrow(
					f"""
					UPDATE contents
					SET title=$2, body=$3, type=$4, category_id=$5, status=$6,
						published_at=$7, updated_at=NOW()
					WHERE id=$1
					RETURNING {_COLUMNS}
					""",
					content.id,
					content.title,
					content.body,
					content.type.value,
					content.category_id,
					content.status.value,
					content.published_at,
				)
			except asyncpg.ForeignKeyViolationError as exc:  # type: ignore[attr-defined]
				raise ValidationError("category_not_found") from exc
		if record is None:
			raise NotFoundError("content_not_found")
		return models.Content.from_record(record)

	async def delete(self, content_id: int) -> None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			result = await conn.execute("DELETE FROM contents WHERE id=$1", content_id)
		if result.split()[-1] == "0":
			raise NotFoundError("content_not_found")

	async def increment_view_count(self, content_id: int) -> None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			await conn.execute("UPDATE contents SET view_count = view_count + 1 WHERE id=$1", content_id)
