import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from answer_engine import __version__
from answer_engine.api.answer import router as answer_router
from answer_engine.api.errors import register_exception_handlers
from answer_engine.api.query import router as query_router
from answer_engine.core.config import settings
from answer_engine.core.deps import get_llm_client
from answer_engine.core.middleware import RequestTimingMiddleware

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.app_name} with {settings.llm_provider} backend")
    yield
    # Shutdown - release provider HTTP clients
    await get_llm_client().aclose()


app = FastAPI(
    title=settings.app_name,
    description="Answers questions from caller-supplied web sources",
    version=__version__,
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestTimingMiddleware)

register_exception_handlers(app)

# Include routers
app.include_router(answer_router, prefix="/api")
app.include_router(query_router, prefix="/api")


@app.get("/health")
async def health_check() -> dict[str, Any]:
    return {
        "status": "healthy",
        "version": __version__,
        "environment": settings.environment,
    }
