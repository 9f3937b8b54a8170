from dataclasses import replace
from datetime import timedelta

import pytest

from media_platform.domain.common.exceptions import ForbiddenError, NotFoundError, ValidationError
from media_platform.domain.content.models import Content, ContentStatus, ContentType, utcnow
from media_platform.domain.content.schemas import ContentCreateRequest, ContentUpdateRequest
from media_platform.domain.content.service import ContentService
from media_platform.domain.discovery.service import DiscoveryService
from media_platform.domain.discovery.stores import MemoryDiscoveryStore
from media_platform.infra.auth import AuthenticatedUser

AUTHOR = AuthenticatedUser(id=1, roles=())
STRANGER = AuthenticatedUser(id=2, roles=())
ADMIN = AuthenticatedUser(id=3, roles=("admin",))


class _StubContentRepo:
	def __init__(self, items=(), fail_increment=False):
		self.items = {item.id: item for item in items}
		self.fail_increment = fail_increment
		self.increments = 0
		self.saved = []
		self.deleted = []
		self.created = []

	async def get(self, content_id):
		item = self.items.get(content_id)
		return replace(item) if item else None

	async def create(self, **fields):
		self.created.append(fields)
		now = utcnow()
		item = Content(id=100 + len(self.created), view_count=0, created_at=now, updated_at=now, **fields)
		self.items[item.id] = item
		return item

	async def save(self, content):
		self.saved.append(content)
		self.items[content.id] = content
		return content

	async def delete(self, content_id):
		self.deleted.append(content_id)
		self.items.pop(content_id)

	async def increment_view_count(self, content_id):
		if self.fail_increment:
			raise RuntimeError("connection lost")
		self.increments += 1


class _StubCategories:
	def __init__(self, known=(1,)):
		self.known = set(known)

	async def get(self, category_id, **kwargs):
		return object() if category_id in self.known else None


def _service(repo, *, categories=None, items=()):
	discovery = DiscoveryService(store=MemoryDiscoveryStore(items))
	return ContentService(repository=repo, categories=categories or _StubCategories(), discovery=discovery)


@pytest.mark.asyncio
async def test_create_defaults_to_draft():
	repo = _StubContentRepo()
	created = await _service(repo).create(AUTHOR, ContentCreateRequest(title=" Hello ", body="World", category_id=1))
	assert created.status is ContentStatus.DRAFT
	assert created.published_at is None
	assert created.title == "Hello"
	assert created.author_id == AUTHOR.id
	assert repo.created[0]["type"] is ContentType.ARTICLE


@pytest.mark.asyncio
async def test_create_published_stamps_publish_time():
	repo = _StubContentRepo()
	payload = ContentCreateRequest(title="Hi", body="There", category_id=1, status=ContentStatus.PUBLISHED)
	created = await _service(repo).create(AUTHOR, payload)
	assert created.status is ContentStatus.PUBLISHED
	assert created.published_at is not None


@pytest.mark.asyncio
async def test_create_archived_falls_back_to_draft():
	repo = _StubContentRepo()
	payload = ContentCreateRequest(title="Hi", body="There", category_id=1, status=ContentStatus.ARCHIVED)
	created = await _service(repo).create(AUTHOR, payload)
	assert created.status is ContentStatus.DRAFT


@pytest.mark.asyncio
async def test_create_requires_existing_category():
	with pytest.raises(ValidationError) as excinfo:
		await _service(_StubContentRepo()).create(AUTHOR, ContentCreateRequest(title="a", body="b", category_id=9))
	assert excinfo.value.detail == "category_not_found"


@pytest.mark.asyncio
async def test_get_counts_views(make_content):
	item = make_content(title="Read me", view_count=4)
	repo = _StubContentRepo([item])
	fetched = await _service(repo).get(item.id)
	assert repo.increments == 1
	assert fetched.view_count == 5


@pytest.mark.asyncio
async def test_get_survives_increment_failure(make_content):
	item = make_content(title="Read me", view_count=4)
	repo = _StubContentRepo([item], fail_increment=True)
	fetched = await _service(repo).get(item.id)
	assert fetched.view_count == 4


@pytest.mark.asyncio
async def test_get_hides_drafts_from_strangers(make_content):
	draft = make_content(title="Secret", status=ContentStatus.DRAFT, age_days=None, author_id=AUTHOR.id)
	repo = _StubContentRepo([draft])
	service = _service(repo)
	with pytest.raises(NotFoundError):
		await service.get(draft.id)
	with pytest.raises(NotFoundError):
		await service.get(draft.id, viewer=STRANGER)
	assert (await service.get(draft.id, viewer=AUTHOR)).id == draft.id
	assert (await service.get(draft.id, viewer=ADMIN)).id == draft.id


@pytest.mark.asyncio
async def test_update_requires_owner_or_admin(make_content):
	item = make_content(title="Mine", author_id=AUTHOR.id)
	repo = _StubContentRepo([item])
	service = _service(repo)
	with pytest.raises(ForbiddenError):
		await service.update(STRANGER, item.id, ContentUpdateRequest(title="Theirs"))
	updated = await service.update(ADMIN, item.id, ContentUpdateRequest(title="Edited", type=ContentType.NEWS))
	assert updated.title == "Edited"
	assert updated.type is ContentType.NEWS


@pytest.mark.asyncio
async def test_update_rejects_unknown_category(make_content):
	item = make_content(title="Mine", author_id=AUTHOR.id)
	with pytest.raises(ValidationError):
		await _service(_StubContentRepo([item])).update(AUTHOR, item.id, ContentUpdateRequest(category_id=5))


@pytest.mark.asyncio
async def test_publish_time_is_set_once(make_content):
	item = make_content(title="Draft", status=ContentStatus.DRAFT, age_days=None, author_id=AUTHOR.id)
	repo = _StubContentRepo([item])
	service = _service(repo)

	published = await service.change_status(AUTHOR, item.id, ContentStatus.PUBLISHED)
	first_published_at = published.published_at
	assert first_published_at is not None

	archived = await service.change_status(AUTHOR, item.id, ContentStatus.ARCHIVED)
	assert archived.published_at == first_published_at

	republished = await service.change_status(AUTHOR, item.id, ContentStatus.PUBLISHED)
	assert republished.published_at == first_published_at


@pytest.mark.asyncio
async def test_delete_by_stranger_is_forbidden(make_content):
	item = make_content(title="Mine", author_id=AUTHOR.id)
	repo = _StubContentRepo([item])
	service = _service(repo)
	with pytest.raises(ForbiddenError):
		await service.delete(STRANGER, item.id)
	await service.delete(AUTHOR, item.id)
	assert repo.deleted == [item.id]


@pytest.mark.asyncio
async def test_delete_missing_content():
	with pytest.raises(NotFoundError):
		await _service(_StubContentRepo()).delete(AUTHOR, 404)


@pytest.mark.asyncio
async def test_listings_filter_by_author_category_and_drafts(make_content):
	items = [
		make_content(title="a1", author_id=1, category_id=1),
		make_content(title="a2", author_id=1, category_id=2),
		make_content(title="b1", author_id=2, category_id=1),
		make_content(title="a-draft", author_id=1, category_id=1, status=ContentStatus.DRAFT, age_days=None),
	]
	service = _service(_StubContentRepo(), categories=_StubCategories(known=(1, 2)), items=items)

	by_author = await service.list_by_author(1)
	assert sorted(c.title for c in by_author.items) == ["a1", "a2"]
	assert by_author.total == 2

	by_category = await service.list_by_category(1)
	assert sorted(c.title for c in by_category.items) == ["a1", "b1"]

	drafts = await service.drafts(AUTHOR)
	assert [c.title for c in drafts.items] == ["a-draft"]

	with pytest.raises(NotFoundError):
		await service.list_by_category(42)


@pytest.mark.asyncio
async def test_public_listings_hide_scheduled_content(make_content):
	items = [
		make_content(title="live", author_id=1, category_id=1),
		make_content(title="scheduled", author_id=1, category_id=1, age_days=-2),
	]
	service = _service(_StubContentRepo(), categories=_StubCategories(known=(1,)), items=items)

	by_author = await service.list_by_author(1)
	assert [c.title for c in by_author.items] == ["live"]
	assert by_author.total == 1

	by_category = await service.list_by_category(1)
	assert [c.title for c in by_category.items] == ["live"]
	assert by_category.total == 1


def test_publish_transition_keeps_existing_timestamp(make_content):
	item = make_content(title="x", age_days=10)
	original = item.published_at
	item.transition_to(ContentStatus.PUBLISHED, now=utcnow() + timedelta(days=1))
	assert item.published_at == original
