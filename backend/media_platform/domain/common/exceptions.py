"""Domain exceptions shared by content, category and discovery services."""

from __future__ import annotations

from fastapi import status

if hasattr(status, "HTTP_422_UNPROCESSABLE_CONTENT"):
	_HTTP_422 = status.HTTP_422_UNPROCESSABLE_CONTENT
else:  # pragma: no cover - older Starlette builds
	_HTTP_422 = status.HTTP_422_UNPROCESSABLE_ENTITY


class MediaPlatformError(Exception):
	"""Base class for errors surfaced to API callers."""

	status_code: int = status.HTTP_400_BAD_REQUEST
	detail: str = "media_platform_error"
	headers: dict[str, str] | None = None

	def __init__(self, detail: str | None = None) -> None:
		super().__init__(detail or self.detail)
		if detail:
			self.detail = detail


class NotFoundError(MediaPlatformError):
	"""Raised when a resource is missing."""

	status_code = status.HTTP_404_NOT_FOUND
	detail = "not_found"


class ForbiddenError(MediaPlatformError):
	"""Raised when the caller may not act on a resource."""

	status_code = status.HTTP_403_FORBIDDEN
	detail = "forbidden"


class ConflictError(MediaPlatformError):
	"""Raised for conflicting writes (e.g., duplicate category name)."""

	status_code = status.HTTP_409_CONFLICT
	detail = "conflict"


class ValidationError(MediaPlatformError):
	"""Raised for domain validation errors not covered by schema validation."""

	status_code = _HTTP_422
	detail = "validation_error"


class IntegrityViolation(ConflictError):
	"""A write was rejected because it would break an entity-graph invariant."""

	detail = "integrity_violation"


class CategoryCycleError(IntegrityViolation):
	detail = "category_cycle"


class CategoryInUseError(IntegrityViolation):
	"""Category still has content or child categories."""

	detail = "category_in_use"


class RateLimitError(MediaPlatformError):
	"""Raised when the caller exceeds a request budget."""

	status_code = status.HTTP_429_TOO_MANY_REQUESTS
	detail = "rate_limit"

	def __init__(self, detail: str | None = None, *, retry_after: int | None = None) -> None:
		super().__init__(detail)
		if retry_after is not None:
			self.headers = {"Retry-After": str(max(retry_after, 1))}
