"""FastAPI application factory."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config.config import Config
from orchestrator.errors import BackendCallError, QueryValidationError
from server.routes import ai_search, health, pipeline, search, translate
from server.schemas.responses import ErrorDTO, ErrorResponseDTO
from utils.logger import get_logger

logger = get_logger(__name__)

STEP_ERROR_MESSAGES = {
    "translation": "Translation failed",
    "ai_search": "AI search failed",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup/shutdown logic."""
    config = Config.from_env()
    logger.info(
        "FastAPI server starting up",
        extra={"extra_fields": {"credentials": config.credential_summary()}},
    )
    if not config.has_custom_search:
        logger.warning("Google Custom Search not configured; site searches return direct links")

    yield

    logger.info("FastAPI server shutting down")


def _error_response(status_code: int, error: str, details=None) -> JSONResponse:
    body = ErrorResponseDTO(error=error, details=details)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body.model_dump(by_alias=True)))


async def query_validation_handler(request: Request, exc: QueryValidationError):
    return _error_response(
        status.HTTP_400_BAD_REQUEST,
        "Query is required" if exc.field == "query" else exc.message,
        {"field": exc.field},
    )


async def request_validation_handler(request: Request, exc: RequestValidationError):
    return _error_response(
        status.HTTP_400_BAD_REQUEST,
        "Invalid request",
        jsonable_encoder([{k: v for k, v in e.items() if k not in ("ctx", "url")} for e in exc.errors()]),
    )


async def backend_call_handler(request: Request, exc: BackendCallError):
    logger.error(
        f"{exc.step} failed for {request.url.path}",
        extra={"extra_fields": {"code": exc.error.code, "provider": exc.error.provider}},
    )
    return _error_response(
        status.HTTP_502_BAD_GATEWAY,
        STEP_ERROR_MESSAGES.get(exc.step, "Backend call failed"),
        ErrorDTO.from_normalized_error(exc.error).model_dump(by_alias=True),
    )


def create_app() -> FastAPI:
    """Factory function to create FastAPI application."""
    app = FastAPI(
        title="Symptom Search API",
        description="Symptom translation, grounded answers and multi-source medical search",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(QueryValidationError, query_validation_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(BackendCallError, backend_call_handler)

    app.include_router(health.router)
    app.include_router(translate.router)
    app.include_router(ai_search.router)
    app.include_router(search.router)
    app.include_router(pipeline.router)

    return app
