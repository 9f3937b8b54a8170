"""Domain models for content categories."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional

NAME_MAX_LENGTH = 100


@dataclass(slots=True)
class Category:
	id: int
	name: str
	description: Optional[str]
	parent_id: Optional[int]
	created_at: datetime
	updated_at: datetime

	@classmethod
	def from_record(cls, record: Mapping[str, Any]) -> "Category":
		parent_id = record.get("parent_id")
		return cls(
			id=int(record["id"]),
			name=record["name"],
			description=record.get("description"),
			parent_id=int(parent_id) if parent_id is not None else None,
			created_at=record["created_at"],
			updated_at=record["updated_at"],
		)
