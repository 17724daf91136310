"""
Smarty - notes, categories and an AI assistant
FastAPI Application Entry Point
"""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from smarty import __version__
from smarty.config import settings
from smarty.storage import open_storage
from smarty.api import notes, categories, chat
from smarty.api.errors import register_exception_handlers

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
for logger_name in ("httpx", "httpcore", "anthropic"):
    logging.getLogger(logger_name).setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    app.state.storage = await open_storage(settings.database_url, echo=settings.debug)
    yield
    # Shutdown
    await app.state.storage.close()


app = FastAPI(
    title="Smarty API",
    description="Notes, categories and a chat assistant over your notes",
    version=__version__,
    lifespan=lifespan,
)

# Any origin may call the API; credentials travel in the Authorization header
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

register_exception_handlers(app)

# Include routers
app.include_router(notes.router, prefix="/api/notes", tags=["Notes"])
app.include_router(categories.router, prefix="/api/categories", tags=["Categories"])
app.include_router(chat.router, prefix="/api", tags=["Chat"])


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "healthy", "service": "Smarty API", "version": __version__}


@app.get("/health")
@app.get("/api/health")
async def health_check():
    """Detailed health check."""
    return {
        "status": "healthy",
        "database": "sql" if settings.database_url else "memory",
        "anthropic_configured": bool(settings.anthropic_api_key),
    }


def run() -> None:
    """Console entry point."""
    import uvicorn

    uvicorn.run("smarty.main:app", host=settings.host, port=settings.port, reload=settings.debug)
