"""FastAPI application setup for Thought Weaver."""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from thought_weaver.api.dependencies import (
    get_app_settings,
    get_content_store,
    get_insight_service,
    get_sync_engine,
)
from thought_weaver.api.routes_admin import router as admin_router
from thought_weaver.api.routes_insights import router as insights_router
from thought_weaver.api.routes_records import router as records_router
from thought_weaver.core.errors import ThoughtWeaverError
from thought_weaver.core.logging import configure_logging, get_logger

configure_logging()
logger = get_logger(__name__)

app = FastAPI(
    title="Thought Weaver",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(insights_router, prefix="", tags=["insights"])
app.include_router(records_router, prefix="", tags=["records"])
app.include_router(admin_router, prefix="", tags=["admin"])


@app.exception_handler(ThoughtWeaverError)
async def handle_app_error(request: Request, exc: ThoughtWeaverError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Error in %s: %s", request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(RequestValidationError)
async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request", "details": str(exc.errors())},
    )


@app.on_event("startup")
async def startup() -> None:
    """Warm up core singletons on startup."""
    get_app_settings()
    get_content_store()
    get_sync_engine()
    get_insight_service()
