"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from klutterbox.config import settings
from klutterbox.database import Base, SessionLocal, engine, transaction
from klutterbox.errors import InventoryError
from klutterbox.logging_config import configure_logging
from klutterbox import models  # noqa: F401  (registers tables on Base)
from klutterbox.routes import boxes, items, search, uploads
from klutterbox.services import inventory, search_index

logger = logging.getLogger(__name__)


def init_db(db) -> None:
    """Create tables, the default box, and index entries for unindexed items."""
    Base.metadata.create_all(bind=db.get_bind())
    inventory.ensure_default_box(db)
    with transaction(db, failure="Failed to backfill search index"):
        search_index.backfill_missing(db)


@asynccontextmanager
async def lifespan(app: FastAPI):
    db = SessionLocal()
    try:
        init_db(db)
    finally:
        db.close()
    logger.info("%s %s ready (database %s)", settings.APP_NAME, settings.APP_VERSION, engine.url)
    yield


async def inventory_error_handler(request: Request, exc: InventoryError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed requests are client errors like any other validation failure."""
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Unhandled database error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


class SinglePageStaticFiles(StaticFiles):
    """Static UI files; unknown non-API paths get index.html so client routes work."""

    async def get_response(self, path: str, scope):
        try:
            response = await super().get_response(path, scope)
        except StarletteHTTPException as exc:
            if exc.status_code != 404:
                raise
            response = None
        if response is not None and response.status_code != 404:
            return response
        if path.split("/", 1)[0] in ("api", "uploads"):
            return JSONResponse(status_code=404, content={"detail": "Not Found"})
        return await super().get_response("index.html", scope)


def create_app() -> FastAPI:
    """Build the application from the current settings."""
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Track household items stored in labeled boxes",
        debug=settings.DEBUG,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(InventoryError, inventory_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)

    @app.get("/health")
    @app.get("/api/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "ok"}

    # Include routers
    app.include_router(boxes.router, prefix="/api")
    app.include_router(items.router, prefix="/api")
    app.include_router(search.router, prefix="/api")
    app.include_router(uploads.router, prefix="/api")

    # Uploaded images are served as they were stored
    upload_path = Path(settings.UPLOAD_DIR)
    upload_path.mkdir(parents=True, exist_ok=True)
    app.mount("/uploads", StaticFiles(directory=upload_path), name="uploads")

    # Mounted last so it never shadows the API
    if settings.STATIC_DIR and Path(settings.STATIC_DIR).is_dir():
        app.mount("/", SinglePageStaticFiles(directory=settings.STATIC_DIR, html=True), name="static")

    return app


app = create_app()
