"""KEAM Prep - FastAPI Application."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from examprep.config import settings
from examprep.db import init_db
from examprep.db.database import async_session
from examprep.db.models import QuestionDB
from examprep.logging_config import configure_logging
from examprep.routers import (
    dashboard_router,
    leaderboard_router,
    mock_test_router,
    progress_router,
    questions_router,
    realtime_router,
    seed_router,
    users_router,
)
from examprep.services.mock_test_runtime import mock_test_runtime
from examprep.services.question_catalog import QuestionCatalogService, load_local_catalog
from examprep.services.realtime import realtime_hub

configure_logging()
logger = logging.getLogger(__name__)


async def seed_questions():
    """Seed the store from the bundled JSON catalog if it is empty."""
    if not settings.seed_on_startup:
        logger.info("seed_on_startup is off. Skipping database seed.")
        return

    async with async_session() as session:
        count = await session.scalar(select(func.count()).select_from(QuestionDB))
        if count and count > 0:
            logger.info(f"Database already has {count} questions. Skipping seed.")
            return

        logger.info("Seeding database with questions...")
        report = await QuestionCatalogService(session).seed(load_local_catalog())
        await session.commit()
        logger.info(report.message)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    settings.data_dir.mkdir(parents=True, exist_ok=True)

    logger.info("Initializing database...")
    await init_db()
    logger.info("Database initialized.")

    await seed_questions()

    logger.info("Startup complete.")
    yield

    # Shutdown
    logger.info("Shutting down...")
    await mock_test_runtime.shutdown()
    realtime_hub.clear()


app = FastAPI(
    title=settings.app_name,
    description="KEAM exam preparation: chapter practice, mock tests, progress and leaderboard",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SQLAlchemyError)
async def store_unavailable_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"Store error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=503, content={"success": False, "error": "Data store unavailable"})


# Include routers
app.include_router(questions_router)
app.include_router(mock_test_router)
app.include_router(progress_router)
app.include_router(leaderboard_router)
app.include_router(dashboard_router)
app.include_router(users_router)
app.include_router(seed_router)
app.include_router(realtime_router)


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": settings.app_name,
        "version": "0.1.0",
        "description": "KEAM exam preparation",
        "exam": settings.default_exam,
        "subjects": ["Physics", "Chemistry", "Mathematics"],
        "docs": "/docs",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "activeMockTests": mock_test_runtime.active_count}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
