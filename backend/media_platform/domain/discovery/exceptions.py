"""Exceptions raised by discovery stores."""

from __future__ import annotations


class SearchBackendError(Exception):
	"""A search capability failed or is unavailable on this store."""

	def __init__(self, detail: str = "search_backend_error") -> None:
		super().__init__(detail)
		self.detail = detail
