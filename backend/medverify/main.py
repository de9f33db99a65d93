"""FastAPI application entry point."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from rich.logging import RichHandler

from medverify.config import settings
from medverify.database import engine
from medverify.models.schemas import ErrorDetail
from medverify.routers.clinicians import router as clinicians_router
from medverify.routers.queries import router as queries_router

logging.basicConfig(
    level=logging.INFO,
    format="%(name)s - %(message)s",
    datefmt="%H:%M:%S",
    handlers=[RichHandler(rich_tracebacks=True, markup=False)],
    force=True,
)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("anthropic").setLevel(logging.WARNING)
# Our app loggers: show DEBUG when debug=True, keep third-party libs at INFO
if settings.debug:
    for name in ("medverify.services", "medverify.routers"):
        logging.getLogger(name).setLevel(logging.DEBUG)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    if not settings.anthropic_api_key:
        logging.getLogger(__name__).warning(
            "ANTHROPIC_API_KEY is not set; query submission will fail"
        )
    yield
    await engine.dispose()


app = FastAPI(
    title="MedVerify",
    description="Clinician-verified answers to patient medical questions",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_credentials=True,
    allow_headers=["*"],
)

app.include_router(queries_router)
app.include_router(clinicians_router)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report body/path validation failures in the ErrorDetail shape."""
    return JSONResponse(
        status_code=422,
        content={
            "detail": ErrorDetail(
                code="INVALID_INPUT",
                message="Request validation failed",
                details={"errors": jsonable_encoder(exc.errors())},
            ).model_dump()
        },
    )


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {
        "status": "healthy",
        "generation": "configured" if settings.anthropic_api_key else "missing_api_key",
    }
