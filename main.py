import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.routes.enrichment import router as enrichment_router
from api.routes.feed import router as feed_router
from api.routes.papers import router as papers_router
from api.routes.search import router as search_router
from scrollxiv.config import Settings, get_settings, setup_logging
from scrollxiv.database.db.models import Base
from scrollxiv.database.db.session import create_db_engine, create_session_factory

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, configure_logging: bool = True) -> FastAPI:
    """
    Build the API around one Settings object.

    The engine and session factory are created here and shared through
    app.state; every collaborator is constructed from them per request.
    """
    settings = settings or get_settings()
    engine = create_db_engine(settings.database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if configure_logging:
            setup_logging(settings.log_level, log_dir=settings.log_dir)
        # Create any missing tables on startup
        Base.metadata.create_all(bind=engine)
        logger.info(f"🚀 ScrollXiv API started (provider={settings.ai_provider})")
        yield
        engine.dispose()
        logger.info("👋 ScrollXiv API stopped")

    app = FastAPI(title="ScrollXiv API", lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)

    # CORS: any origin in development, localhost UI otherwise
    is_dev = os.getenv("ENV", "development") == "development"
    cors_origins = (
        ["*"]
        if is_dev
        else [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ]
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True if not is_dev else False,  # "*" cannot be combined with credentials
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request, exc: StarletteHTTPException):
        return JSONResponse({"error": exc.detail}, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_error(request, exc: RequestValidationError):
        return JSONResponse({"error": "Invalid request"}, status_code=400)

    app.include_router(feed_router)
    app.include_router(search_router)
    app.include_router(enrichment_router)
    app.include_router(papers_router)

    @app.get("/api/health")
    async def health_check():
        return {"status": "ok"}

    return app


app = create_app()
