"""
FastAPI application entry point for the post backend.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from postboard.config import get_settings
from postboard.errors import PostboardError
from postboard.routes import router

logger = logging.getLogger(__name__)


async def postboard_error_handler(request: Request, exc: PostboardError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())
    app = FastAPI(title="Postboard Backend (FastAPI)", version="0.1.0")
    app.add_exception_handler(PostboardError, postboard_error_handler)
    app.include_router(router, prefix=settings.api_prefix)
    return app


app = create_app()
