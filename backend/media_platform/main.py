"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from media_platform.api import categories, contents, ops
from media_platform.api.errors import install_error_handlers
from media_platform.api.middleware_request_id import RequestIdMiddleware
from media_platform.infra import postgres
from media_platform.obs import health
from media_platform.obs import init as obs_init
from media_platform.settings import settings

logger = logging.getLogger(__name__)

DEV_ORIGINS = [
	"http://localhost:3000",
	"http://127.0.0.1:3000",
	"http://localhost:5173",
	"http://127.0.0.1:5173",
]


@asynccontextmanager
async def lifespan(app: FastAPI):
	backend_error = health.search_backend_error()
	if backend_error is not None:
		logger.error("media_platform.startup.rejected", extra={"error": backend_error})
		raise RuntimeError(f"search backend {settings.search_backend!r} rejected: {backend_error}")
	if settings.search_backend.lower() == "postgres":
		await postgres.init_pool()
	logger.info(
		"media_platform.startup",
		extra={"environment": settings.environment, "search_backend": settings.search_backend},
	)
	try:
		yield
	finally:
		await postgres.close_pool()


app = FastAPI(title="Media Platform API", lifespan=lifespan)
install_error_handlers(app)

allow_origins = list(settings.cors_allow_origins)
if not allow_origins and settings.is_dev():
	allow_origins = list(DEV_ORIGINS)
# Starlette disallows wildcard '*' with allow_credentials=True.
if "*" in allow_origins:
	allow_origins = list(DEV_ORIGINS) if settings.is_dev() else [o for o in allow_origins if o != "*"]

app.add_middleware(
	CORSMiddleware,
	allow_origins=allow_origins,
	allow_credentials=True,
	allow_methods=["*"],
	allow_headers=["*"],
)

obs_init(app)
app.add_middleware(RequestIdMiddleware)

app.include_router(contents.router)
app.include_router(categories.router)
app.include_router(ops.router)


@app.get("/")
async def root() -> dict[str, str]:
	return {"service": settings.service_name, "status": "ok"}
