from contextlib import asynccontextmanager
from dataclasses import replace

import pytest

from media_platform.domain.categories import guard
from media_platform.domain.categories.models import Category
from media_platform.domain.categories.schemas import CategoryCreateRequest, CategoryUpdateRequest
from media_platform.domain.categories.service import CategoryService
from media_platform.domain.common.exceptions import (
	CategoryCycleError,
	CategoryInUseError,
	ConflictError,
	IntegrityViolation,
	NotFoundError,
)
from media_platform.domain.content.models import utcnow


def _category(category_id, name, parent_id=None):
	now = utcnow()
	return Category(
		id=category_id,
		name=name,
		description=None,
		parent_id=parent_id,
		created_at=now,
		updated_at=now,
	)


class _StubRepo:
	def __init__(self, categories=(), content_counts=None):
		self.rows = {c.id: c for c in categories}
		self.content_counts = content_counts or {}
		self.transactions = 0
		self.locked = []
		self.updated = []
		self.deleted = []

	@asynccontextmanager
	async def transaction(self):
		self.transactions += 1
		yield "conn"

	async def list_all(self):
		return sorted(self.rows.values(), key=lambda c: c.name)

	async def children(self, category_id):
		return [c for c in self.rows.values() if c.parent_id == category_id]

	async def get(self, category_id, *, conn=None, for_update=False):
		if for_update:
			self.locked.append(category_id)
		return self.rows.get(category_id)

	async def get_by_name(self, name, *, conn=None):
		return next((c for c in self.rows.values() if c.name == name), None)

	async def parent_of(self, category_id, *, conn=None):
		row = self.rows.get(category_id)
		return row.parent_id if row else None

	async def count(self, *, conn=None):
		return len(self.rows)

	async def has_contents(self, category_id, *, conn):
		return self.content_counts.get(category_id, 0) > 0

	async def has_children(self, category_id, *, conn):
		return any(c.parent_id == category_id for c in self.rows.values())

	async def create(self, *, name, description, parent_id):
		category = _category(max(self.rows, default=0) + 1, name, parent_id)
		self.rows[category.id] = category
		return category

	async def update(self, category_id, *, conn, name=None, description=None, parent_id=None, detach_parent=False):
		current = self.rows[category_id]
		updated = replace(
			current,
			name=name if name is not None else current.name,
			description=description if description is not None else current.description,
			parent_id=None if detach_parent else (parent_id if parent_id is not None else current.parent_id),
		)
		self.rows[category_id] = updated
		self.updated.append(category_id)
		return updated

	async def delete(self, category_id, *, conn):
		self.deleted.append(category_id)
		self.rows.pop(category_id)


def _tree_repo(**kwargs):
	# A -> B -> C, plus an unrelated root D
	return _StubRepo(
		[
			_category(1, "A"),
			_category(2, "B", parent_id=1),
			_category(3, "C", parent_id=2),
			_category(4, "D"),
		],
		**kwargs,
	)


@pytest.mark.asyncio
async def test_guard_detects_ancestor_cycle():
	repo = _tree_repo()
	service = CategoryService(repository=repo)
	assert await service.would_create_cycle(1, 3) is True
	assert await service.would_create_cycle(1, 4) is False
	assert await service.would_create_cycle(2, 2) is True
	assert await service.would_create_cycle(3, 1) is False


@pytest.mark.asyncio
async def test_guard_terminates_on_corrupt_chain():
	parents = {10: 11, 11: 12, 12: 10}
	calls = []

	async def _parent_of(category_id):
		calls.append(category_id)
		return parents.get(category_id)

	assert await guard.would_create_cycle(99, 10, parent_of=_parent_of, max_steps=4) is True
	assert len(calls) <= 4


@pytest.mark.asyncio
async def test_reparent_into_descendant_is_rejected():
	repo = _tree_repo()
	service = CategoryService(repository=repo)
	with pytest.raises(CategoryCycleError) as excinfo:
		await service.update(1, CategoryUpdateRequest(parent_id=3))
	assert excinfo.value.status_code == 409
	assert excinfo.value.detail == "category_cycle"
	assert repo.updated == []
	assert repo.locked == [1]


@pytest.mark.asyncio
async def test_self_parent_is_a_cycle():
	repo = _tree_repo()
	with pytest.raises(CategoryCycleError):
		await CategoryService(repository=repo).update(4, CategoryUpdateRequest(parent_id=4))


@pytest.mark.asyncio
async def test_reparent_under_unrelated_root():
	repo = _tree_repo()
	updated = await CategoryService(repository=repo).update(1, CategoryUpdateRequest(parent_id=4))
	assert updated.parent_id == 4
	assert repo.transactions == 1


@pytest.mark.asyncio
async def test_missing_parent_is_integrity_violation():
	repo = _tree_repo()
	with pytest.raises(IntegrityViolation) as excinfo:
		await CategoryService(repository=repo).update(1, CategoryUpdateRequest(parent_id=77))
	assert excinfo.value.detail == "parent_category_not_found"


@pytest.mark.asyncio
async def test_detach_parent_clears_link():
	repo = _tree_repo()
	updated = await CategoryService(repository=repo).update(3, CategoryUpdateRequest(detach_parent=True))
	assert updated.parent_id is None


@pytest.mark.asyncio
async def test_null_parent_leaves_link_unchanged():
	repo = _tree_repo()
	updated = await CategoryService(repository=repo).update(3, CategoryUpdateRequest(name="C2"))
	assert updated.parent_id == 2
	assert updated.name == "C2"


@pytest.mark.asyncio
async def test_rename_to_existing_name_conflicts():
	repo = _tree_repo()
	with pytest.raises(ConflictError):
		await CategoryService(repository=repo).update(3, CategoryUpdateRequest(name="A"))


@pytest.mark.asyncio
async def test_create_checks_name_and_parent():
	repo = _tree_repo()
	service = CategoryService(repository=repo)
	with pytest.raises(ConflictError):
		await service.create(CategoryCreateRequest(name=" B "))
	with pytest.raises(IntegrityViolation):
		await service.create(CategoryCreateRequest(name="E", parent_id=42))
	created = await service.create(CategoryCreateRequest(name="E", parent_id=4))
	assert created.parent_id == 4


@pytest.mark.asyncio
async def test_delete_blocked_while_in_use():
	repo = _tree_repo(content_counts={4: 2})
	service = CategoryService(repository=repo)
	with pytest.raises(CategoryInUseError):
		await service.delete(2)
	with pytest.raises(CategoryInUseError):
		await service.delete(4)
	await service.delete(3)
	assert repo.deleted == [3]


@pytest.mark.asyncio
async def test_get_missing_category():
	with pytest.raises(NotFoundError):
		await CategoryService(repository=_StubRepo()).get(1)
