"""Run the API with uvicorn."""

from __future__ import annotations

import os

import uvicorn

from media_platform.settings import settings


def main() -> None:
	uvicorn.run(
		"media_platform.main:app",
		host=os.environ.get("HOST", "0.0.0.0"),
		port=int(os.environ.get("PORT", "8000")),
		reload=settings.is_dev(),
		log_config=None,
	)


if __name__ == "__main__":
	main()
