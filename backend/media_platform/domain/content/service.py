"""Service layer for content authoring and per-item reads."""

from __future__ import annotations

import logging
from typing import Any, Optional

from media_platform.domain.categories.repo import CategoryRepository
from media_platform.domain.common.exceptions import ForbiddenError, NotFoundError, ValidationError
from media_platform.domain.content import models, schemas
from media_platform.domain.content.repo import ContentRepository
from media_platform.domain.discovery import query as query_module
from media_platform.domain.discovery.service import ContentPage, DiscoveryService
from media_platform.infra.auth import AuthenticatedUser

_LOG = logging.getLogger(__name__)

# archived is reachable only through a status change
_CREATABLE_STATUSES = frozenset(
	{models.ContentStatus.DRAFT, models.ContentStatus.PENDING, models.ContentStatus.PUBLISHED}
)


class ContentService:
	def __init__(
		self,
		*,
		repository: ContentRepository | None = None,
		categories: CategoryRepository | None = None,
		discovery: DiscoveryService | None = None,
	) -> None:
		self._repo = repository or ContentRepository()
		self._categories = categories or CategoryRepository()
		self._discovery = discovery or DiscoveryService()

	async def _require_category(self, category_id: int) -> None:
		if await self._categories.get(category_id) is None:
			raise ValidationError("category_not_found")

	async def _require_content(self, content_id: int) -> models.Content:
		content = await self._repo.get(content_id)
		if content is None:
			raise NotFoundError("content_not_found")
		return content

	def _ensure_can_edit(self, content: models.Content, actor: AuthenticatedUser) -> None:
		if not content.can_edit(actor.id, is_admin=actor.is_admin):
			raise ForbiddenError("not_content_owner")

	async def get(self, content_id: int, *, viewer: Optional[AuthenticatedUser] = None) -> models.Content:
		"""Return a content item and count the view.

		Items that are not publicly visible are reported as missing to anyone
		but their author or an admin.
		"""

		content = await self._require_content(content_id)
		if not content.is_visible():
			if viewer is None or not content.can_edit(viewer.id, is_admin=viewer.is_admin):
				raise NotFoundError("content_not_found")
		try:
			await self._repo.increment_view_count(content_id)
		except Exception:
			_LOG.warning("content.view_count.increment_failed", exc_info=True, extra={"content_id": content_id})
		else:
			content.view_count += 1
		return content

	async def create(self, author: AuthenticatedUser, payload: schemas.ContentCreateRequest) -> models.Content:
		status = payload.status or models.ContentStatus.DRAFT
		if status not in _CREATABLE_STATUSES:
			status = models.ContentStatus.DRAFT
		await self._require_category(payload.category_id)
		published_at = models.utcnow() if status is models.ContentStatus.PUBLISHED else None
		content = await self._repo.create(
			title=payload.title,
			body=payload.body,
			type=payload.type,
			author_id=author.id,
			category_id=payload.category_id,
			status=status,
			published_at=published_at,
		)
		_LOG.info("content.created", extra={"content_id": content.id, "status": content.status.value})
		return content

	async def update(
		self,
		actor: AuthenticatedUser,
		content_id: int,
		payload: schemas.ContentUpdateRequest,
	) -> models.Content:
		content = await self._require_content(content_id)
		self._ensure_can_edit(content, actor)
		if payload.title is not None:
			content.title = payload.title
		if payload.body is not None:
			content.body = payload.body
		if payload.type is not None:
			content.type = payload.type
		if payload.category_id is not None and payload.category_id != content.category_id:
			await self._require_category(payload.category_id)
			content.category_id = payload.category_id
		return await self._repo.save(content)

	async def change_status(
		self,
		actor: AuthenticatedUser,
		content_id: int,
		status: models.ContentStatus,
	) -> models.Content:
		content = await self._require_content(content_id)
		self._ensure_can_edit(content, actor)
		previous = content.status
		content.transition_to(status)
		saved = await self._repo.save(content)
		_LOG.info(
			"content.status_changed",
			extra={"content_id": content_id, "from": previous.value, "to": status.value},
		)
		return saved

	async def delete(self, actor: AuthenticatedUser, content_id: int) -> None:
		content = await self._require_content(content_id)
		self._ensure_can_edit(content, actor)
		await self._repo.delete(content_id)
		_LOG.info("content.deleted", extra={"content_id": content_id})

	async def list_by_author(self, author_id: int, *, limit: Any = None, offset: Any = None) -> ContentPage:
		query = query_module.normalize_query(
			author_id=author_id,
			visible_only=True,
			sort_by="published_at",
			limit=limit,
			offset=offset,
		)
		return await self._discovery.list(query)

	async def list_by_category(self, category_id: int, *, limit: Any = None, offset: Any = None) -> ContentPage:
		if await self._categories.get(category_id) is None:
			raise NotFoundError("category_not_found")
		query = query_module.normalize_query(
			category_id=category_id,
			visible_only=True,
			sort_by="published_at",
			limit=limit,
			offset=offset,
		)
		return await self._discovery.list(query)

	async def drafts(self, author: AuthenticatedUser, *, limit: Any = None, offset: Any = None) -> ContentPage:
		query = query_module.normalize_query(
			author_id=author.id,
			status=models.ContentStatus.DRAFT.value,
			sort_by="updated_at",
			limit=limit,
			offset=offset,
		)
		return await self._discovery.list(query)


__all__ = ["ContentService"]
