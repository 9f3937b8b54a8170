"""Category endpoints."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, Response, status

from media_platform.domain.categories import schemas
from media_platform.domain.categories.service import CategoryService
from media_platform.domain.content.schemas import ContentListResponse
from media_platform.domain.content.service import ContentService
from media_platform.domain.discovery.query import BIGINT_MAX
from media_platform.infra.auth import AuthenticatedUser, get_admin_user

router = APIRouter(tags=["categories"])
_service = CategoryService()
_contents = ContentService()


@router.get("/categories", response_model=List[schemas.CategoryResponse])
async def list_categories_endpoint() -> List[schemas.CategoryResponse]:
	return [schemas.CategoryResponse.from_model(item) for item in await _service.list_all()]


@router.get("/categories/{category_id}", response_model=schemas.CategoryResponse)
async def get_category_endpoint(
	category_id: int = Path(..., gt=0, le=BIGINT_MAX),
) -> schemas.CategoryResponse:
	return schemas.CategoryResponse.from_model(await _service.get(category_id))


@router.get("/categories/{category_id}/children", response_model=List[schemas.CategoryResponse])
async def category_children_endpoint(
	category_id: int = Path(..., gt=0, le=BIGINT_MAX),
) -> List[schemas.CategoryResponse]:
	return [schemas.CategoryResponse.from_model(item) for item in await _service.children(category_id)]


@router.get("/categories/{category_id}/contents", response_model=ContentListResponse)
async def category_contents_endpoint(
	category_id: int = Path(..., gt=0, le=BIGINT_MAX),
	limit: Optional[str] = Query(default=None),
	offset: Optional[str] = Query(default=None),
) -> ContentListResponse:
	page = await _contents.list_by_category(category_id, limit=limit, offset=offset)
	return ContentListResponse.from_page(page)


@router.post("/categories", response_model=schemas.CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category_endpoint(
	payload: schemas.CategoryCreateRequest,
	_: AuthenticatedUser = Depends(get_admin_user),
) -> schemas.CategoryResponse:
	return schemas.CategoryResponse.from_model(await _service.create(payload))


@router.put("/categories/{category_id}", response_model=schemas.CategoryResponse)
async def update_category_endpoint(
	payload: schemas.CategoryUpdateRequest,
	category_id: int = Path(..., gt=0, le=BIGINT_MAX),
	_: AuthenticatedUser = Depends(get_admin_user),
) -> schemas.CategoryResponse:
	return schemas.CategoryResponse.from_model(await _service.update(category_id, payload))


@router.delete("/categories/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category_endpoint(
	category_id: int = Path(..., gt=0, le=BIGINT_MAX),
	_: AuthenticatedUser = Depends(get_admin_user),
) -> Response:
	await _service.delete(category_id)
	return Response(status_code=status.HTTP_204_NO_CONTENT)
