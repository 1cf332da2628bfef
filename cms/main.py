from __future__ import annotations

import logging
from functools import partial
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .config import Settings, load_settings
from .errors import CMSError
from .routers import og, posts, site
from .services.categories import CategoryMap
from .services.og_cache import OgCache, fetch_og_data


logger = logging.getLogger(__name__)

API_PREFIX = "/api/cms"


def _validation_message(exc: RequestValidationError) -> str:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part not in ("body", "query"))
        message = str(error.get("msg", "Invalid value"))
        messages.append(f"{location}: {message}" if location else message)
    return ", ".join(messages) or "Invalid request"


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(CMSError)
    async def handle_cms_error(request: Request, exc: CMSError) -> JSONResponse:
        return JSONResponse({"error": exc.message}, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse({"error": _validation_message(exc)}, status_code=400)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse({"error": "Internal server error"}, status_code=500)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or load_settings()

    app = FastAPI(title="Blog CMS")
    app.state.settings = settings
    app.state.category_map = CategoryMap.load(settings.config_path)
    app.state.og_cache = OgCache(settings.cache_path, fetcher=partial(fetch_og_data, timeout=settings.og_timeout))

    app.include_router(posts.router, prefix=API_PREFIX)
    app.include_router(og.router, prefix=API_PREFIX)
    app.include_router(site.router, prefix=API_PREFIX)
    register_error_handlers(app)

    @app.get("/health")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    logger.info("CMS serving %s", settings.content_dir)
    return app


app = create_app()
