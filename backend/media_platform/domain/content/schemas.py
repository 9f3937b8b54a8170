"""Pydantic schemas for content endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from media_platform.domain.content.models import TITLE_MAX_LENGTH, Content, ContentStatus, ContentType
from media_platform.domain.discovery.query import BIGINT_MAX


def _strip_required(value: str) -> str:
	text = value.strip()
	if not text:
		raise ValueError("must not be blank")
	return text


class ContentCreateRequest(BaseModel):
	title: str = Field(..., max_length=TITLE_MAX_LENGTH)
	body: str
	type: ContentType = ContentType.ARTICLE
	category_id: int = Field(..., gt=0, le=BIGINT_MAX)
	status: Optional[ContentStatus] = None

	@field_validator("title", "body")
	@classmethod
	def _not_blank(cls, value: str) -> str:
		return _strip_required(value)


class ContentUpdateRequest(BaseModel):
	title: Optional[str] = Field(default=None, max_length=TITLE_MAX_LENGTH)
	body: Optional[str] = None
	type: Optional[ContentType] = None
	category_id: Optional[int] = Field(default=None, gt=0, le=BIGINT_MAX)

	@field_validator("title", "body")
	@classmethod
	def _not_blank(cls, value: Optional[str]) -> Optional[str]:
		if value is None:
			return None
		return _strip_required(value)


class ContentStatusUpdate(BaseModel):
	status: ContentStatus


class ContentResponse(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: int
	title: str
	body: str
	type: ContentType
	author_id: int
	category_id: int
	status: ContentStatus
	view_count: int
	published_at: Optional[datetime] = None
	created_at: datetime
	updated_at: datetime

	@classmethod
	def from_model(cls, content: Content) -> "ContentResponse":
		return cls.model_validate(content)


class ContentListResponse(BaseModel):
	items: List[ContentResponse]
	total: int
	limit: int
	offset: int

	@classmethod
	def from_page(cls, page: Any) -> "ContentListResponse":
		"""Build from a discovery `ContentPage`."""
		return cls(
			items=[ContentResponse.from_model(item) for item in page.items],
			total=page.total,
			limit=page.limit,
			offset=page.offset,
		)


class ContentSearchResponse(BaseModel):
	items: List[ContentResponse]
	q: Optional[str] = None
	limit: int
	offset: int


class TrendingResponse(BaseModel):
	items: List[ContentResponse]
	limit: int
