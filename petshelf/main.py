import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import version as pkg_version

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from petshelf.api import catalog_router, collection_router, health_router
from petshelf.config import settings
from petshelf.models.failure import KnownError
from petshelf.services.catalog_loader import catalog_available

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    # Warm the catalog cache; /ready reports if this failed
    if not catalog_available():
        logger.warning(
            "catalog_unavailable_at_startup",
            extra={"catalog_dir": str(settings.catalog_dir)},
        )
    yield


app = FastAPI(
    title=settings.app_name,
    version=pkg_version("petshelf"),
    debug=settings.debug,
    lifespan=lifespan,
)

app.include_router(catalog_router)
app.include_router(collection_router)
app.include_router(health_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Share links are opened from anywhere
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(KnownError)
async def known_error_handler(_request: Request, exc: KnownError) -> JSONResponse:
    """Render known failures as a FailureDetail body."""
    logger.info(
        "known_error",
        extra={"kind": exc.kind.value, "status_code": exc.status_code, "detail": exc.detail},
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_detail().model_dump(mode="json"),
    )
