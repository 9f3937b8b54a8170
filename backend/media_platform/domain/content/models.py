"""Domain models for posted content."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping, Optional

TITLE_MAX_LENGTH = 255


class ContentStatus(str, Enum):
	"""Lifecycle states of a content item."""

	DRAFT = "draft"
	PENDING = "pending"
	PUBLISHED = "published"
	ARCHIVED = "archived"


class ContentType(str, Enum):
	ARTICLE = "article"
	TUTORIAL = "tutorial"
	NEWS = "news"
	REVIEW = "review"
	VIDEO = "video"
	IMAGE = "image"
	AUDIO = "audio"


def utcnow() -> datetime:
	return datetime.now(timezone.utc)


@dataclass(slots=True)
class Content:
	"""A published or draft item owned by its author."""

	id: int
	title: str
	body: str
	type: ContentType
	author_id: int
	category_id: int
	status: ContentStatus
	view_count: int
	published_at: Optional[datetime]
	created_at: datetime
	updated_at: datetime

	@classmethod
	def from_record(cls, record: Mapping[str, Any]) -> "Content":
		return cls(
			id=int(record["id"]),
			title=record["title"],
			body=record["body"],
			type=ContentType(record["type"]),
			author_id=int(record["author_id"]),
			category_id=int(record["category_id"]),
			status=ContentStatus(record["status"]),
			view_count=int(record["view_count"] or 0),
			published_at=record.get("published_at"),
			created_at=record["created_at"],
			updated_at=record["updated_at"],
		)

	def transition_to(self, status: ContentStatus, *, now: Optional[datetime] = None) -> None:
		"""Move to `status`, stamping published_at the first time content is published.

		published_at is never cleared once set, even when the item later leaves
		the published state.
		"""
		now = now or utcnow()
		self.status = status
		self.updated_at = now
		if status is ContentStatus.PUBLISHED and self.published_at is None:
			self.published_at = now

	def is_visible(self, *, now: Optional[datetime] = None) -> bool:
		"""Published and not scheduled for the future."""
		now = now or utcnow()
		return (
			self.status is ContentStatus.PUBLISHED
			and self.published_at is not None
			and self.published_at <= now
		)

	def can_edit(self, user_id: int, *, is_admin: bool = False) -> bool:
		return is_admin or self.author_id == user_id
