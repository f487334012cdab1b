"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from droplite.config import Settings, settings as default_settings
from droplite.database import create_engine, create_session_factory
from droplite.exceptions import FileServiceError, StorageFault
from droplite.logging_config import setup_logging
from droplite.models import Base
from droplite.routes.files import router as files_router
from droplite.schemas.common import HealthResponse
from droplite.services.blob_store import BlobStore
from droplite.services.file_service import FileService
from droplite.services.metadata_store import SqlAlchemyMetadataStore
from droplite.services.validator import FileValidator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and the upload directory on startup, wire the file service."""
    settings: Settings = app.state.settings
    setup_logging("droplite", settings.LOG_LEVEL)

    engine = create_engine(settings.DATABASE_URL)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    app.state.engine = engine
    app.state.file_service = FileService(
        validator=FileValidator(settings.allowed_extensions, settings.MAX_FILE_SIZE_BYTES),
        blob_store=BlobStore(settings.FILE_STORAGE_PATH, settings.BLOB_CHUNK_SIZE),
        metadata_store=SqlAlchemyMetadataStore(create_session_factory(engine)),
    )
    logger.info("Droplite started (max upload %d bytes)", settings.MAX_FILE_SIZE_BYTES)

    yield

    # Cleanup
    await engine.dispose()


async def file_service_error_handler(request: Request, exc: FileServiceError):
    if isinstance(exc, StorageFault):
        logger.error(f"{exc.kind.value}: {exc} path={request.url.path}", exc_info=exc)
    else:
        logger.warning(f"{exc.kind.value}: {exc} path={request.url.path}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.kind.value},
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or default_settings

    app = FastAPI(
        title="Droplite API",
        version="1.0.0",
        description="Minimal file upload and download service.",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(FileServiceError, file_service_error_handler)

    @app.get(f"{settings.API_PREFIX}/health", response_model=HealthResponse)
    async def health_check(request: Request):
        """Verify API and database connectivity."""
        try:
            async with request.app.state.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return {"status": "ok", "database": "connected"}
        except SQLAlchemyError as e:
            return {"status": "error", "database": str(e)}

    app.include_router(files_router, prefix=settings.API_PREFIX)
    return app


app = create_app()


def main() -> None:
    """
    Start the API server with uvicorn.
    """
    uvicorn.run(
        "droplite.main:app",
        host=default_settings.API_HOST,
        port=default_settings.API_PORT,
    )


if __name__ == "__main__":
    main()
