"""Content discovery and authoring endpoints."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, Request, Response, status

from media_platform.domain.content import schemas
from media_platform.domain.content.service import ContentService
from media_platform.domain.discovery import guards
from media_platform.domain.discovery import query as query_module
from media_platform.domain.discovery.service import DiscoveryService
from media_platform.infra.auth import AuthenticatedUser, get_current_user, get_optional_user

router = APIRouter(tags=["contents"])
_discovery = DiscoveryService()
_service = ContentService(discovery=_discovery)


def _actor_key(request: Request, user: Optional[AuthenticatedUser]) -> str:
	if user is not None:
		return f"user:{user.id}"
	client = request.client.host if request.client else "unknown"
	return f"ip:{client}"


@router.get("/contents", response_model=schemas.ContentListResponse)
async def list_contents_endpoint(
	author_id: Optional[str] = Query(default=None),
	category_id: Optional[str] = Query(default=None),
	status_filter: Optional[str] = Query(default=None, alias="status"),
	q: Optional[str] = Query(default=None),
	sort_by: Optional[str] = Query(default=None),
	sort_order: Optional[str] = Query(default=None),
	limit: Optional[str] = Query(default=None),
	offset: Optional[str] = Query(default=None),
) -> schemas.ContentListResponse:
	query = query_module.normalize_query(
		author_id=author_id,
		category_id=category_id,
		status=status_filter,
		keyword=q,
		sort_by=sort_by,
		sort_order=sort_order,
		limit=limit,
		offset=offset,
	)
	return schemas.ContentListResponse.from_page(await _discovery.list(query))


@router.get("/contents/search", response_model=schemas.ContentSearchResponse)
async def search_contents_endpoint(
	request: Request,
	q: Optional[str] = Query(default=None),
	limit: Optional[str] = Query(default=None),
	offset: Optional[str] = Query(default=None),
	viewer: Optional[AuthenticatedUser] = Depends(get_optional_user),
) -> schemas.ContentSearchResponse:
	await guards.enforce_rate_limit(_actor_key(request, viewer))
	page = await _discovery.search(q, limit=limit, offset=offset)
	return schemas.ContentSearchResponse(
		items=[schemas.ContentResponse.from_model(item) for item in page.items],
		q=page.keyword,
		limit=page.limit,
		offset=page.offset,
	)


@router.get("/contents/trending", response_model=schemas.TrendingResponse)
async def trending_contents_endpoint(limit: Optional[str] = Query(default=None)) -> schemas.TrendingResponse:
	resolved = query_module.trending_limit(limit)
	items = await _discovery.trending(resolved)
	return schemas.TrendingResponse(
		items=[schemas.ContentResponse.from_model(item) for item in items],
		limit=resolved,
	)


@router.get("/contents/{content_id}", response_model=schemas.ContentResponse)
async def get_content_endpoint(
	content_id: int = Path(..., gt=0, le=query_module.BIGINT_MAX),
	viewer: Optional[AuthenticatedUser] = Depends(get_optional_user),
) -> schemas.ContentResponse:
	return schemas.ContentResponse.from_model(await _service.get(content_id, viewer=viewer))


@router.post("/contents", response_model=schemas.ContentResponse, status_code=status.HTTP_201_CREATED)
async def create_content_endpoint(
	payload: schemas.ContentCreateRequest,
	user: AuthenticatedUser = Depends(get_current_user),
) -> schemas.ContentResponse:
	return schemas.ContentResponse.from_model(await _service.create(user, payload))


@router.put("/contents/{content_id}", response_model=schemas.ContentResponse)
async def update_content_endpoint(
	payload: schemas.ContentUpdateRequest,
	content_id: int = Path(..., gt=0, le=query_module.BIGINT_MAX),
	user: AuthenticatedUser = Depends(get_current_user),
) -> schemas.ContentResponse:
	return schemas.ContentResponse.from_model(await _service.update(user, content_id, payload))


@router.patch("/contents/{content_id}/status", response_model=schemas.ContentResponse)
async def change_content_status_endpoint(
	payload: schemas.ContentStatusUpdate,
	content_id: int = Path(..., gt=0, le=query_module.BIGINT_MAX),
	user: AuthenticatedUser = Depends(get_current_user),
) -> schemas.ContentResponse:
	return schemas.ContentResponse.from_model(await _service.change_status(user, content_id, payload.status))


@router.delete("/contents/{content_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_content_endpoint(
	content_id: int = Path(..., gt=0, le=query_module.BIGINT_MAX),
	user: AuthenticatedUser = Depends(get_current_user),
) -> Response:
	await _service.delete(user, content_id)
	return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/users/{author_id}/contents", response_model=schemas.ContentListResponse)
async def author_contents_endpoint(
	author_id: int = Path(..., gt=0, le=query_module.BIGINT_MAX),
	limit: Optional[str] = Query(default=None),
	offset: Optional[str] = Query(default=None),
) -> schemas.ContentListResponse:
	page = await _service.list_by_author(author_id, limit=limit, offset=offset)
	return schemas.ContentListResponse.from_page(page)


@router.get("/me/drafts", response_model=schemas.ContentListResponse)
async def my_drafts_endpoint(
	limit: Optional[str] = Query(default=None),
	offset: Optional[str] = Query(default=None),
	user: AuthenticatedUser = Depends(get_current_user),
) -> schemas.ContentListResponse:
	return schemas.ContentListResponse.from_page(await _service.drafts(user, limit=limit, offset=offset))
