"""Service layer for category management."""

from __future__ import annotations

import logging

from media_platform.domain.categories import guard, models, schemas
from media_platform.domain.categories.repo import CategoryRepository
from media_platform.domain.common.exceptions import (
	CategoryCycleError,
	CategoryInUseError,
	ConflictError,
	IntegrityViolation,
	NotFoundError,
	ValidationError,
)
from media_platform.obs import metrics as obs_metrics

_LOG = logging.getLogger(__name__)


def _clean_name(value: str) -> str:
	name = value.strip()
	if not name:
		raise ValidationError("category_name_required")
	if len(name) > models.NAME_MAX_LENGTH:
		raise ValidationError("category_name_too_long")
	return name


class CategoryService:
	"""Category reads plus the admin writes that keep the tree acyclic."""

	def __init__(self, *, repository: CategoryRepository | None = None) -> None:
		self._repo = repository or CategoryRepository()

	async def list_all(self) -> list[models.Category]:
		return await self._repo.list_all()

	async def get(self, category_id: int) -> models.Category:
		category = await self._repo.get(category_id)
		if category is None:
			raise NotFoundError("category_not_found")
		return category

	async def children(self, category_id: int) -> list[models.Category]:
		await self.get(category_id)
		return await self._repo.children(category_id)

	async def would_create_cycle(self, category_id: int, candidate_parent_id: int, *, conn=None) -> bool:
		max_steps = await self._repo.count(conn=conn)
		return await guard.would_create_cycle(
			category_id,
			candidate_parent_id,
			parent_of=lambda current: self._repo.parent_of(current, conn=conn),
			max_steps=max_steps,
		)

	async def create(self, payload: schemas.CategoryCreateRequest) -> models.Category:
		name = _clean_name(payload.name)
		if await self._repo.get_by_name(name) is not None:
			raise ConflictError("category_name_exists")
		if payload.parent_id is not None and await self._repo.get(payload.parent_id) is None:
			raise IntegrityViolation("parent_category_not_found")
		category = await self._repo.create(
			name=name,
			description=payload.description,
			parent_id=payload.parent_id,
		)
		_LOG.info("category.created", extra={"category_id": category.id})
		return category

	async def update(self, category_id: int, payload: schemas.CategoryUpdateRequest) -> models.Category:
		async with self._repo.transaction() as conn:
			current = await self._repo.get(category_id, conn=conn, for_update=True)
			if current is None:
				raise NotFoundError("category_not_found")

			name = None
			if payload.name is not None:
				name = _clean_name(payload.name)
				if name != current.name:
					existing = await self._repo.get_by_name(name, conn=conn)
					if existing is not None and existing.id != category_id:
						raise ConflictError("category_name_exists")

			parent_id = None
			if not payload.detach_parent and payload.parent_id is not None:
				parent_id = payload.parent_id
				if parent_id != category_id and await self._repo.get(parent_id, conn=conn) is None:
					raise IntegrityViolation("parent_category_not_found")
				if await self.would_create_cycle(category_id, parent_id, conn=conn):
					obs_metrics.inc_category_cycle_reject()
					_LOG.warning(
						"category.cycle_rejected",
						extra={"category_id": category_id, "parent_id": parent_id},
					)
					raise CategoryCycleError()

			return await self._repo.update(
				category_id,
				conn=conn,
				name=name,
				description=payload.description,
				parent_id=parent_id,
				detach_parent=payload.detach_parent,
			)

	async def delete(self, category_id: int) -> None:
		async with self._repo.transaction() as conn:
			if await self._repo.get(category_id, conn=conn, for_update=True) is None:
				raise NotFoundError("category_not_found")
			if await self._repo.has_contents(category_id, conn=conn):
				raise CategoryInUseError()
			if await self._repo.has_children(category_id, conn=conn):
				raise CategoryInUseError()
			await self._repo.delete(category_id, conn=conn)
		_LOG.info("category.deleted", extra={"category_id": category_id})


__all__ = ["CategoryService"]
