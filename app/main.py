"""Main FastAPI application."""

import logging
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.article_routes import router as article_router
from app.api.goal_routes import router as goal_router
from app.api.profile_routes import router as profile_router
from app.api.recommendation_routes import router as recommendation_router
from app.api.routes import router as books_router
from app.api.shelf_routes import router as shelf_router
from app.api.task_routes import router as task_router
from app.core.config import settings
from app.infrastructure.database.connection import close_db, init_db

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info("Starting Shelfwise (recommendations: %s)", settings.recommendation_provider)
    await init_db()
    logger.info("Database initialized")
    yield
    await close_db()
    logger.info("Shutting down Shelfwise")


app = FastAPI(
    title="Shelfwise",
    description="Personal library tracker: books, reviews, shelves, goals and reading stats",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Task-ID"],
)

api = APIRouter(prefix="/api")
api.include_router(books_router)
api.include_router(shelf_router)
api.include_router(goal_router)
api.include_router(profile_router)
api.include_router(recommendation_router)
api.include_router(article_router)
api.include_router(task_router)


@api.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


app.include_router(api)
