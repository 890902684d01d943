"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.config import settings
from api.routes import cache, comments, meta, oauth
from wikicomment_core.errors import CommentServiceError, ErrorCode, ValidationError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    yield


app = FastAPI(
    title="Wiki Comment API",
    description="Offset-anchored comments for a statically built wiki",
    version="0.1.0",
    debug=settings.debug,
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH"],
    allow_headers=["Authorization", "Content-Type"],
    max_age=86400,
)


@app.exception_handler(CommentServiceError)
async def comment_service_error_handler(request: Request, exc: CommentServiceError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    err = ValidationError("Invalid request body", code=ErrorCode.INVALID_BODY)
    return JSONResponse(status_code=err.status_code, content=err.to_dict())


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    err = CommentServiceError()
    return JSONResponse(status_code=err.status_code, content=err.to_dict())


# Include routers
app.include_router(comments.router, prefix="/comment", tags=["comments"])
app.include_router(meta.router, prefix="/meta", tags=["meta"])
app.include_router(cache.router, prefix="/cache", tags=["cache"])
app.include_router(oauth.router, prefix="/oauth", tags=["oauth"])


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


def run() -> None:
    uvicorn.run("api.main:app", host="0.0.0.0", port=8000)
