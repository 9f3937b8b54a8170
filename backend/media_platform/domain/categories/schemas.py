"""Pydantic schemas for category endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from media_platform.domain.categories.models import NAME_MAX_LENGTH, Category
from media_platform.domain.discovery.query import BIGINT_MAX


class CategoryCreateRequest(BaseModel):
	name: str = Field(..., min_length=1, max_length=NAME_MAX_LENGTH)
	description: Optional[str] = None
	parent_id: Optional[int] = Field(default=None, gt=0, le=BIGINT_MAX)


class CategoryUpdateRequest(BaseModel):
	name: Optional[str] = Field(default=None, min_length=1, max_length=NAME_MAX_LENGTH)
	description: Optional[str] = None
	parent_id: Optional[int] = Field(default=None, gt=0, le=BIGINT_MAX)
	detach_parent: bool = False


class CategoryResponse(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: int
	name: str
	description: Optional[str] = None
	parent_id: Optional[int] = None
	created_at: datetime
	updated_at: datetime

	@classmethod
	def from_model(cls, category: Category) -> "CategoryResponse":
		return cls.model_validate(category)
