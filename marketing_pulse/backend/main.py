"""
Marketing Pulse API

FastAPI backend for the marketing dashboard. Serves each platform's data
reshaped for the dashboard, plus AI insight generation.
"""

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from marketing_pulse import __version__
from marketing_pulse.backend.routers import insights, sources

load_dotenv()

logger = logging.getLogger(__name__)


def get_allowed_origins():
    """Get CORS allowed origins from environment or defaults."""
    custom_origins = os.environ.get("CORS_ORIGINS", "")

    # Default origins for development (Streamlit)
    origins = [
        "http://localhost:8501",
        "http://127.0.0.1:8501",
    ]

    # Add custom origins if provided (comma-separated)
    if custom_origins:
        origins.extend([o.strip() for o in custom_origins.split(",") if o.strip()])

    frontend_url = os.environ.get("FRONTEND_URL")
    if frontend_url:
        origins.append(frontend_url)

    return origins


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logger.info("Starting Marketing Pulse API...")
    logger.info("CORS allowed origins: %s", get_allowed_origins())
    yield
    logger.info("Shutting down...")


app = FastAPI(
    title="Marketing Pulse API",
    description="Source data and AI insights for the marketing dashboard",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(sources.router, prefix="/api/sources", tags=["Sources"])
app.include_router(insights.router, prefix="/api/insights", tags=["Insights"])


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "healthy", "service": "Marketing Pulse API"}


@app.get("/api/health")
async def health_check():
    """Detailed health check."""
    return {
        "status": "healthy",
        "version": __version__,
        "endpoints": [
            "/api/sources",
            "/api/insights",
        ],
        "sources": list(sources.CONNECTORS),
    }


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run("marketing_pulse.backend.main:app", host="0.0.0.0", port=8000, reload=True)
