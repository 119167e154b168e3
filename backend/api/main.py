"""
FastAPI application entry point.

Local bridge between the browser map widget and the map state.
Run with: uvicorn api.main:app --reload
"""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from backend/.env (optional) before other imports that read env
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(env_path)

from api.routes import favorites, map as map_routes
from api.session import get_orchestrator

logger = logging.getLogger(__name__)

# Create app
app = FastAPI(
    title="Pin Favorites API",
    description="Search places, drop pins and keep favorites on a map",
    version="0.1.0",
)

# CORS middleware for the map frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure properly for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(favorites.router, prefix="/favorites", tags=["favorites"])
app.include_router(map_routes.router, prefix="/map", tags=["map"])


@app.on_event("startup")
def startup_event():
    """Load favorites from durable storage on startup."""
    orchestrator = get_orchestrator()
    logger.info("loaded %d favorites", len(orchestrator.state.favorites))


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "Pin Favorites API"}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}
